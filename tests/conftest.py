"""Pytest fixtures for orderpipe tests."""

import os

# settings are read at import time; keep tests off the production database
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CART_LOCKS_ENABLED", "false")
os.environ.setdefault("CATALOG_BACKEND", "sql")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderpipe.data.database import Base
from orderpipe.data.models import MenuModel, StoreModel
from orderpipe.domain.schemas import OrderCreateIn
from orderpipe.services.access_guard import Principal, Role
from orderpipe.services.cart_service import CartService
from orderpipe.services.catalog_gateway import SqlCatalogGateway
from orderpipe.services.order_service import OrderService
from orderpipe.services.order_status_service import OrderStatusService

S1, S2, S_DELETED = 1, 2, 3
M1, M2, M3, M_SOLD_OUT, M_DELETED = 1, 2, 3, 4, 5
OWNER_S1, OWNER_S2 = 100, 200


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


def add_catalog_rows(db):
    """S1 (fee 3000) with M1 10000 and M2 5000, S2 with M3, plus unavailable rows."""
    db.add_all(
        [
            StoreModel(id=S1, owner_id=OWNER_S1, name="Store One", delivery_fee=Decimal("3000")),
            StoreModel(id=S2, owner_id=OWNER_S2, name="Store Two", delivery_fee=Decimal("2500")),
            StoreModel(
                id=S_DELETED,
                owner_id=OWNER_S1,
                name="Closed Forever",
                delivery_fee=Decimal("1000"),
                is_deleted=True,
            ),
        ]
    )
    db.flush()
    db.add_all(
        [
            MenuModel(id=M1, store_id=S1, name="Bibimbap", price=Decimal("10000"), image_url="m1.png"),
            MenuModel(id=M2, store_id=S1, name="Gukbap", price=Decimal("5000")),
            MenuModel(id=M3, store_id=S2, name="Kalguksu", price=Decimal("8000")),
            MenuModel(id=M_SOLD_OUT, store_id=S1, name="Naengmyeon", price=Decimal("9000"), status="SOLD_OUT"),
            MenuModel(id=M_DELETED, store_id=S1, name="Old Menu", price=Decimal("7000"), is_deleted=True),
            MenuModel(id=6, store_id=S_DELETED, name="Ghost Menu", price=Decimal("1000")),
        ]
    )
    db.commit()


@pytest.fixture
def catalog_rows(db):
    add_catalog_rows(db)


@pytest.fixture
def catalog(db, catalog_rows):
    return SqlCatalogGateway(db)


@pytest.fixture
def customer():
    return Principal(user_id=1, role=Role.CUSTOMER)


@pytest.fixture
def other_customer():
    return Principal(user_id=2, role=Role.CUSTOMER)


@pytest.fixture
def owner():
    return Principal(user_id=OWNER_S1, role=Role.OWNER)


@pytest.fixture
def other_owner():
    return Principal(user_id=OWNER_S2, role=Role.OWNER)


@pytest.fixture
def cart_service(db, catalog):
    return CartService(db=db, catalog=catalog)


@pytest.fixture
def order_service(db, catalog):
    return OrderService(db=db, catalog=catalog)


@pytest.fixture
def status_service(db, catalog):
    return OrderStatusService(db=db, catalog=catalog)


@pytest.fixture
def address():
    return OrderCreateIn(
        delivery_zipcode="54999",
        delivery_address1="1 Hanok-ro",
        delivery_address2="Apt 101",
        requests="  Ring the bell  ",
    )


@pytest.fixture
def placed_order(cart_service, order_service, customer, address):
    """A PENDING order of customer 1 at S1: M1 x2 + M2 x1, total 28000."""
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    cart_service.upsert_cart_line(customer, S1, M2, 1)
    return order_service.commit_order(customer, address)

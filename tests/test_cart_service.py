import re
from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st
from sqlalchemy import event, update

from orderpipe.data.models import CartItemModel, CartModel, MenuModel
from orderpipe.domain.errors import (
    ConcurrentModification,
    ConflictingStore,
    Forbidden,
    InvalidQuantity,
    MenuUnavailable,
    NotFound,
    StoreUnavailable,
)
from orderpipe.services.access_guard import Principal, Role
from orderpipe.services.cart_service import CartService
from orderpipe.services.catalog_gateway import SqlCatalogGateway
from tests.conftest import (
    M1,
    M2,
    M3,
    M_DELETED,
    M_SOLD_OUT,
    S1,
    S2,
    add_catalog_rows,
    make_engine,
    make_session_factory,
)

_WRITE = re.compile(r"^\s*(UPDATE|DELETE FROM|INSERT INTO)\s+(\w+)", re.IGNORECASE)


def _cart_row(db, user_id):
    return db.query(CartModel).filter(CartModel.user_id == user_id).populate_existing().one_or_none()


def test_read_cart_without_cart_is_empty(cart_service, customer):
    cart = cart_service.read_cart(customer)

    assert cart["is_empty"] is True
    assert cart["items"] == []
    assert cart["cart_id"] is None
    assert cart["final_price"] == Decimal("0")


def test_upsert_binds_cart_and_computes_totals(cart_service, customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)

    assert cart["store_id"] == S1
    assert cart["store_name"] == "Store One"
    assert cart["total_item_count"] == 1
    assert cart["total_quantity"] == 2
    assert cart["total_price"] == Decimal("20000")
    assert cart["delivery_fee"] == Decimal("3000")
    assert cart["final_price"] == Decimal("23000")
    assert cart["items"][0]["menu_name"] == "Bibimbap"
    assert cart["items"][0]["available"] is True


def test_upsert_overwrites_quantity_and_is_idempotent(db, cart_service, customer):
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    cart = cart_service.upsert_cart_line(customer, S1, M1, 3)

    assert len(cart["items"]) == 1
    assert cart["items"][0]["quantity"] == 3
    assert db.query(CartItemModel).count() == 1


def test_two_menus_scenario_totals(cart_service, customer):
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    cart = cart_service.upsert_cart_line(customer, S1, M2, 1)

    assert cart["total_item_count"] == 2
    assert cart["total_price"] == Decimal("25000")
    assert cart["final_price"] == Decimal("28000")
    # newest line first
    assert [line["menu_id"] for line in cart["items"]] == [M2, M1]


def test_menu_from_other_store_is_rejected_and_cart_unchanged(db, cart_service, customer):
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    version = _cart_row(db, customer.user_id).version

    with pytest.raises(ConflictingStore):
        cart_service.upsert_cart_line(customer, S2, M3, 1)

    cart = cart_service.read_cart(customer)
    assert cart["store_id"] == S1
    assert [line["menu_id"] for line in cart["items"]] == [M1]
    assert _cart_row(db, customer.user_id).version == version


def test_clear_then_other_store_is_accepted(cart_service, customer):
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    cleared = cart_service.clear_cart(customer)
    assert cleared["is_empty"] is True

    cart = cart_service.upsert_cart_line(customer, S2, M3, 1)
    assert cart["store_id"] == S2
    assert cart["final_price"] == Decimal("10500")


@pytest.mark.parametrize("quantity", [0, -1])
def test_invalid_quantity(db, cart_service, customer, quantity):
    with pytest.raises(InvalidQuantity):
        cart_service.upsert_cart_line(customer, S1, M1, quantity)

    assert _cart_row(db, customer.user_id) is None


def test_unknown_menu_or_wrong_store_is_not_found(cart_service, customer):
    with pytest.raises(NotFound):
        cart_service.upsert_cart_line(customer, S1, 999, 1)
    with pytest.raises(NotFound):
        cart_service.upsert_cart_line(customer, S2, M1, 1)


def test_deleted_and_sold_out_menus_are_unavailable(cart_service, customer):
    with pytest.raises(MenuUnavailable):
        cart_service.upsert_cart_line(customer, S1, M_DELETED, 1)
    with pytest.raises(MenuUnavailable):
        cart_service.upsert_cart_line(customer, S1, M_SOLD_OUT, 1)


def test_menu_of_deleted_store_is_unavailable(cart_service, customer):
    with pytest.raises(StoreUnavailable):
        cart_service.upsert_cart_line(customer, 3, 6, 1)


def test_owner_cannot_manage_cart(cart_service, owner):
    with pytest.raises(Forbidden):
        cart_service.upsert_cart_line(owner, S1, M1, 1)
    with pytest.raises(Forbidden):
        cart_service.read_cart(owner)


def test_set_quantity_overwrites(cart_service, customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]

    cart = cart_service.set_cart_line_quantity(customer, item_id, 5)

    assert cart["items"][0]["quantity"] == 5
    assert cart["total_price"] == Decimal("50000")


def test_set_quantity_rejects_zero(cart_service, customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]

    with pytest.raises(InvalidQuantity):
        cart_service.set_cart_line_quantity(customer, item_id, 0)

    assert cart_service.read_cart(customer)["items"][0]["quantity"] == 2


def test_other_customer_cannot_touch_line(cart_service, customer, other_customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]

    with pytest.raises(Forbidden):
        cart_service.set_cart_line_quantity(other_customer, item_id, 1)
    with pytest.raises(Forbidden):
        cart_service.remove_cart_line(other_customer, item_id)

    assert cart_service.read_cart(customer)["items"][0]["quantity"] == 2


def test_missing_line_is_not_found(cart_service, customer):
    with pytest.raises(NotFound):
        cart_service.set_cart_line_quantity(customer, 12345, 1)
    with pytest.raises(NotFound):
        cart_service.remove_cart_line(customer, 12345)


def test_removing_last_line_keeps_store_binding(db, cart_service, customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]

    cart = cart_service.remove_cart_line(customer, item_id)

    assert cart["is_empty"] is True
    assert _cart_row(db, customer.user_id).store_id == S1
    with pytest.raises(ConflictingStore):
        cart_service.upsert_cart_line(customer, S2, M3, 1)


def test_clear_without_cart_returns_empty(cart_service, customer):
    assert cart_service.clear_cart(customer)["is_empty"] is True


def test_every_mutation_bumps_version(db, cart_service, customer):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 1)
    v1 = _cart_row(db, customer.user_id).version

    cart_service.set_cart_line_quantity(customer, cart["items"][0]["cart_item_id"], 4)
    v2 = _cart_row(db, customer.user_id).version

    cart_service.clear_cart(customer)
    row = _cart_row(db, customer.user_id)

    assert v2 == v1 + 1
    assert row.version == v2 + 1
    assert row.store_id is None


def test_carts_are_per_customer(cart_service, customer, other_customer):
    cart_service.upsert_cart_line(customer, S1, M1, 1)
    cart_service.upsert_cart_line(other_customer, S2, M3, 1)

    assert cart_service.read_cart(customer)["store_id"] == S1
    assert cart_service.read_cart(other_customer)["store_id"] == S2


def test_sold_out_line_is_marked_unavailable(db, cart_service, customer):
    cart_service.upsert_cart_line(customer, S1, M1, 1)
    db.get(MenuModel, M1).status = "SOLD_OUT"
    db.commit()

    cart = cart_service.read_cart(customer)
    assert cart["items"][0]["available"] is False


@pytest.fixture
def cart_writes(engine):
    """(verb, table) of every write statement sent to the database."""
    writes = []

    def record(conn, cursor, statement, parameters, context, executemany):
        match = _WRITE.match(statement)
        if match:
            writes.append((match.group(1).upper(), match.group(2)))

    event.listen(engine, "before_cursor_execute", record)
    yield writes
    event.remove(engine, "before_cursor_execute", record)


def test_line_writes_take_cart_row_first(cart_service, customer, cart_writes):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]

    cart_writes.clear()
    cart_service.set_cart_line_quantity(customer, item_id, 3)
    assert cart_writes == [("UPDATE", "carts"), ("UPDATE", "cart_items")]

    cart_writes.clear()
    cart_service.remove_cart_line(customer, item_id)
    assert cart_writes == [("UPDATE", "carts"), ("DELETE FROM", "cart_items")]


def _bump_version_behind(db, cart_id):
    db.execute(
        update(CartModel)
        .where(CartModel.id == cart_id)
        .values(version=CartModel.version + 1)
        .execution_options(synchronize_session=False)
    )


def test_concurrent_change_aborts_quantity_change(db, cart_service, customer, monkeypatch):
    cart = cart_service.upsert_cart_line(customer, S1, M1, 2)
    item_id = cart["items"][0]["cart_item_id"]
    version = _cart_row(db, customer.user_id).version

    read_cart_row = cart_service.repo.get_cart

    def get_cart_then_race(cart_id):
        row = read_cart_row(cart_id)
        _bump_version_behind(db, cart_id)
        return row

    monkeypatch.setattr(cart_service.repo, "get_cart", get_cart_then_race)

    with pytest.raises(ConcurrentModification):
        cart_service.set_cart_line_quantity(customer, item_id, 5)

    monkeypatch.undo()
    assert cart_service.read_cart(customer)["items"][0]["quantity"] == 2
    assert _cart_row(db, customer.user_id).version == version


def test_concurrent_change_aborts_upsert(db, cart_service, customer, monkeypatch):
    cart_service.upsert_cart_line(customer, S1, M1, 2)
    version = _cart_row(db, customer.user_id).version

    resolve_cart = cart_service.repo.get_or_create_cart

    def get_or_create_then_race(user_id):
        row = resolve_cart(user_id)
        _bump_version_behind(db, row.id)
        return row

    monkeypatch.setattr(cart_service.repo, "get_or_create_cart", get_or_create_then_race)

    with pytest.raises(ConcurrentModification):
        cart_service.upsert_cart_line(customer, S1, M2, 1)

    monkeypatch.undo()
    cart = cart_service.read_cart(customer)
    assert [(line["menu_id"], line["quantity"]) for line in cart["items"]] == [(M1, 2)]
    assert _cart_row(db, customer.user_id).version == version


same_store_upserts = st.lists(
    st.tuples(st.sampled_from([M1, M2]), st.integers(min_value=1, max_value=50)),
    min_size=1,
    max_size=12,
)


@settings(max_examples=40, deadline=None)
@given(steps=same_store_upserts, foreign_quantity=st.integers(min_value=1, max_value=50))
def test_upsert_sequences_keep_one_line_per_menu(steps, foreign_quantity):
    engine = make_engine()
    db = make_session_factory(engine)()
    try:
        add_catalog_rows(db)
        service = CartService(db=db, catalog=SqlCatalogGateway(db))
        customer = Principal(user_id=1, role=Role.CUSTOMER)

        for menu_id, quantity in steps:
            service.upsert_cart_line(customer, S1, menu_id, quantity)

        expected = dict(steps)
        cart = service.read_cart(customer)
        lines = {line["menu_id"]: line["quantity"] for line in cart["items"]}

        assert cart["store_id"] == S1
        assert len(cart["items"]) == len(expected)
        assert lines == expected

        with pytest.raises(ConflictingStore):
            service.upsert_cart_line(customer, S2, M3, foreign_quantity)

        after = service.read_cart(customer)
        assert after["store_id"] == S1
        assert {line["menu_id"]: line["quantity"] for line in after["items"]} == expected
    finally:
        db.close()
        engine.dispose()

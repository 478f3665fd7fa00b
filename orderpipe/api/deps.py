# orderpipe/api/deps.py
from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from orderpipe.data.database import get_db
from orderpipe.services.access_guard import Principal
from orderpipe.services.cart_service import CartService
from orderpipe.services.catalog_gateway import CatalogGateway, build_catalog
from orderpipe.services.lock_service import LockService
from orderpipe.services.order_service import OrderService
from orderpipe.services.order_status_service import OrderStatusService
from orderpipe.services.principal_resolver import PrincipalResolver
from orderpipe.utils.settings import CART_LOCKS_ENABLED


@lru_cache()
def get_principal_resolver() -> PrincipalResolver:
    return PrincipalResolver()


@lru_cache()
def get_lock_service() -> LockService | None:
    return LockService() if CART_LOCKS_ENABLED else None


def get_principal(
    authorization: str | None = Header(None),
    resolver: PrincipalResolver = Depends(get_principal_resolver),
) -> Principal:
    return resolver.resolve(authorization)


def get_catalog(db: Session = Depends(get_db)) -> CatalogGateway:
    return build_catalog(db)


def get_cart_service(
    db: Session = Depends(get_db),
    catalog: CatalogGateway = Depends(get_catalog),
    lock_service: LockService | None = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, catalog=catalog, lock_service=lock_service)


def get_order_service(
    db: Session = Depends(get_db),
    catalog: CatalogGateway = Depends(get_catalog),
    lock_service: LockService | None = Depends(get_lock_service),
) -> OrderService:
    return OrderService(db=db, catalog=catalog, lock_service=lock_service)


def get_order_status_service(
    db: Session = Depends(get_db),
    catalog: CatalogGateway = Depends(get_catalog),
) -> OrderStatusService:
    return OrderStatusService(db=db, catalog=catalog)

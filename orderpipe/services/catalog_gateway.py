# orderpipe/services/catalog_gateway.py
"""
Read-only view of the catalog consumed by the cart and order pipeline.

Records always carry their tombstone (``is_deleted``) and availability flags;
the gateway never hides deleted rows, so every precondition on them is an
explicit check in the calling service.
"""
from dataclasses import dataclass
from functools import lru_cache
from decimal import Decimal
from typing import Optional, Protocol

from sqlalchemy.orm import Session

from orderpipe.data.models.menu import MenuStatus
from orderpipe.data.models.store import StoreStatus
from orderpipe.repos.catalog_repo import CatalogRepo


@dataclass(frozen=True)
class StoreInfo:
    id: int
    owner_id: int
    name: str
    delivery_fee: Decimal
    is_deleted: bool = False
    is_open: bool = True
    image_url: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return not self.is_deleted


@dataclass(frozen=True)
class MenuInfo:
    id: int
    store_id: int
    name: str
    price: Decimal
    is_deleted: bool = False
    is_available: bool = True
    description: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def is_orderable(self) -> bool:
        return not self.is_deleted and self.is_available


class CatalogGateway(Protocol):
    def get_store(self, store_id: int) -> Optional[StoreInfo]: ...

    def get_menu(self, menu_id: int) -> Optional[MenuInfo]: ...


class SqlCatalogGateway:
    """Catalog lookups against the catalog tables in the same database."""

    def __init__(self, db: Session):
        self.repo = CatalogRepo(db)

    def get_store(self, store_id: int) -> Optional[StoreInfo]:
        store = self.repo.get_store(store_id)
        if store is None:
            return None
        return StoreInfo(
            id=store.id,
            owner_id=store.owner_id,
            name=store.name,
            image_url=store.image_url,
            delivery_fee=Decimal(store.delivery_fee),
            is_deleted=bool(store.is_deleted),
            is_open=store.status == StoreStatus.OPEN.value,
        )

    def get_menu(self, menu_id: int) -> Optional[MenuInfo]:
        menu = self.repo.get_menu(menu_id)
        if menu is None:
            return None
        return MenuInfo(
            id=menu.id,
            store_id=menu.store_id,
            name=menu.name,
            description=menu.description,
            image_url=menu.image_url,
            price=Decimal(menu.price),
            is_deleted=bool(menu.is_deleted),
            is_available=menu.status == MenuStatus.AVAILABLE.value,
        )


@lru_cache()
def shared_http_catalog():
    """One HTTP catalog client (and its connection pool) per process."""
    from orderpipe.services.catalog_client import HttpCatalogClient

    return HttpCatalogClient()


def build_catalog(db: Session, backend: str | None = None) -> CatalogGateway:
    from orderpipe.utils.settings import CATALOG_BACKEND

    backend = backend or CATALOG_BACKEND
    if backend == "http":
        return shared_http_catalog()
    if backend == "sql":
        return SqlCatalogGateway(db)
    raise ValueError(f"Unknown catalog backend: {backend}")

# orderpipe/repos/catalog_repo.py
from sqlalchemy.orm import Session

from orderpipe.data.models.menu import MenuModel
from orderpipe.data.models.store import StoreModel


class CatalogRepo:
    """
    Raw catalog rows. Deleted rows are returned as well, callers decide
    what a tombstone means for them.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_store(self, store_id: int) -> StoreModel | None:
        return self.db.get(StoreModel, store_id)

    def get_menu(self, menu_id: int) -> MenuModel | None:
        return self.db.get(MenuModel, menu_id)

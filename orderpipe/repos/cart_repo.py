# orderpipe/repos/cart_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, update, delete
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from orderpipe.data.models.cart import CartModel
from orderpipe.data.models.cart_item import CartItemModel

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def _dialect_insert(self, model):
        name = self.db.get_bind().dialect.name
        insert = _UPSERT_DIALECTS.get(name)
        return insert(model) if insert else None

    # carts
    def get_cart_by_user(self, user_id: int, for_update: bool = False) -> CartModel | None:
        stmt = (
            select(CartModel)
            .where(CartModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id, populate_existing=True)

    def get_or_create_cart(self, user_id: int) -> CartModel:
        """
        Conditional insert on the unique user_id, then read back.
        Two concurrent first adds both end up with the same row.
        """
        cart = self.get_cart_by_user(user_id)
        if cart:
            return cart

        now = datetime.now(timezone.utc)
        stmt = self._dialect_insert(CartModel)
        if stmt is not None:
            self.db.execute(
                stmt.values(user_id=user_id, store_id=None, version=1, created_at=now, updated_at=now)
                .on_conflict_do_nothing(index_elements=["user_id"])
            )
        else:
            # other dialects: a racing insert surfaces as IntegrityError
            self.db.add(CartModel(user_id=user_id, store_id=None, version=1))
            self.db.flush()

        return self.get_cart_by_user(user_id)

    def update_cart_version(self, cart_id: int, old_version: int, new_data: dict) -> int:
        """
        Optimistic locking: UPDATE carts SET ... , version = old + 1
        WHERE id = :id AND version = :old. Returns the affected row count.
        """
        values = dict(new_data)
        values["version"] = old_version + 1
        values["updated_at"] = datetime.now(timezone.utc)

        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # cart items
    def get_cart_items(self, cart_id: int) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.created_at.desc(), CartItemModel.id.desc())
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, cart_id: int, menu_id: int) -> CartItemModel | None:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.menu_id == menu_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_cart_item_by_id(self, cart_item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, cart_item_id, populate_existing=True)

    def upsert_cart_item(self, cart_id: int, menu_id: int, quantity: int) -> None:
        """Insert the line or overwrite its quantity, keyed on (cart_id, menu_id)."""
        now = datetime.now(timezone.utc)
        stmt = self._dialect_insert(CartItemModel)

        if stmt is not None:
            stmt = stmt.values(
                cart_id=cart_id,
                menu_id=menu_id,
                quantity=quantity,
                created_at=now,
                updated_at=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["cart_id", "menu_id"],
                set_={"quantity": quantity, "updated_at": now},
            )
            self.db.execute(stmt)
            return

        existing = self.get_cart_item(cart_id, menu_id)
        if existing:
            existing.quantity = quantity
        else:
            self.db.add(CartItemModel(cart_id=cart_id, menu_id=menu_id, quantity=quantity))
        self.db.flush()

    def set_cart_item_quantity(self, cart_item_id: int, quantity: int) -> int:
        result = self.db.execute(
            update(CartItemModel)
            .where(CartItemModel.id == cart_item_id)
            .values(quantity=quantity, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_cart_item(self, cart_item_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.id == cart_item_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def delete_cart_items(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

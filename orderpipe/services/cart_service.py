# orderpipe/services/cart_service.py
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from orderpipe.data.unit_of_work import unit_of_work
from orderpipe.domain.errors import (
    ConcurrentModification,
    ConflictingStore,
    InvalidQuantity,
    MenuUnavailable,
    NotFound,
    StoreUnavailable,
)
from orderpipe.repos.cart_repo import CartRepo
from orderpipe.services.access_guard import Capability, Principal, authorize
from orderpipe.services.catalog_gateway import CatalogGateway
from orderpipe.services.lock_service import LockService, no_lock
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")


def empty_cart() -> Dict[str, Any]:
    return {
        "cart_id": None,
        "store_id": None,
        "store_name": None,
        "store_image_url": None,
        "items": [],
        "total_item_count": 0,
        "total_quantity": 0,
        "total_price": ZERO,
        "delivery_fee": ZERO,
        "final_price": ZERO,
        "is_empty": True,
    }


class CartService:
    """
    Use cases of the single-store cart.
    Commands (upsert, set quantity, remove, clear) bump the cart version
    with a conditional update; the query (read) joins live catalog data.
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogGateway,
        lock_service: LockService | None = None,
    ):
        self.db = db
        self.repo = CartRepo(db)
        self.catalog = catalog
        self._lock = lock_service.cart_lock if lock_service else no_lock

    # query
    def read_cart(self, principal: Principal) -> Dict[str, Any]:
        authorize(principal, Capability.MANAGE_CART)

        cart = self.repo.get_cart_by_user(principal.user_id)
        if not cart or not cart.is_bound():
            return empty_cart()

        items = self.repo.get_cart_items(cart.id)
        # bound but every line removed: still shown as empty
        if not items:
            return empty_cart()

        store = self.catalog.get_store(cart.store_id)

        lines = []
        for item in items:
            menu = self.catalog.get_menu(item.menu_id)
            price = menu.price if menu else ZERO
            lines.append(
                {
                    "cart_item_id": item.id,
                    "menu_id": item.menu_id,
                    "menu_name": menu.name if menu else None,
                    "menu_description": menu.description if menu else None,
                    "menu_price": price,
                    "menu_image_url": menu.image_url if menu else None,
                    "quantity": item.quantity,
                    "item_total_price": price * item.quantity,
                    "available": bool(menu and menu.is_orderable),
                    "added_at": item.created_at,
                }
            )

        total_quantity = sum(line["quantity"] for line in lines)
        total_price = sum((line["item_total_price"] for line in lines), ZERO)
        delivery_fee = store.delivery_fee if store else ZERO

        return {
            "cart_id": cart.id,
            "store_id": cart.store_id,
            "store_name": store.name if store else None,
            "store_image_url": store.image_url if store else None,
            "items": lines,
            "total_item_count": len(lines),
            "total_quantity": total_quantity,
            "total_price": total_price,
            "delivery_fee": delivery_fee,
            "final_price": total_price + delivery_fee,
            "is_empty": False,
        }

    # commands
    def upsert_cart_line(
        self,
        principal: Principal,
        store_id: int,
        menu_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        """
        Put a menu into the caller's cart with exactly `quantity` units.
        Repeating the call with the same arguments changes nothing.
        """
        authorize(principal, Capability.MANAGE_CART)
        self._validate_quantity(quantity)

        menu = self.catalog.get_menu(menu_id)
        if menu is None or menu.store_id != store_id:
            raise NotFound(f"Menu {menu_id} not found in store {store_id}")
        if not menu.is_orderable:
            raise MenuUnavailable(f"Menu {menu_id} is not available")

        store = self.catalog.get_store(store_id)
        if store is None:
            raise NotFound(f"Store {store_id} not found")
        if not store.is_active:
            raise StoreUnavailable(f"Store {store_id} is not active")

        user_id = principal.user_id
        logger.info(f"Upsert cart line user={user_id} store={store_id} menu={menu_id} qty={quantity}")

        with self._lock(user_id):
            with unit_of_work(self.db, "upsert_cart_line", user_id=user_id, menu_id=menu_id):
                cart = self.repo.get_or_create_cart(user_id)

                if not cart.can_add_from_store(store_id):
                    logger.info(
                        f"Cart {cart.id} is bound to store {cart.store_id}, rejecting menu from store {store_id}"
                    )
                    raise ConflictingStore(
                        "Cart already holds menus from another store, clear the cart first"
                    )

                # binds an unbound cart; also guards against a racing commit/clear
                self._bump_version(cart, {"store_id": store_id})
                self.repo.upsert_cart_item(cart.id, menu_id, quantity)

        logger.info(f"Cart line set user={user_id} menu={menu_id} qty={quantity}")
        return self.read_cart(principal)

    def set_cart_line_quantity(
        self,
        principal: Principal,
        cart_item_id: int,
        quantity: int,
    ) -> Dict[str, Any]:
        authorize(principal, Capability.MANAGE_CART)
        self._validate_quantity(quantity)

        with self._lock(principal.user_id):
            with unit_of_work(self.db, "set_cart_line_quantity", cart_item_id=cart_item_id):
                item, cart = self._owned_item(principal, cart_item_id)
                logger.info(f"Cart item {item.id} quantity {item.quantity} -> {quantity}")

                # cart row first, then the line: same lock order as commit and clear
                self._bump_version(cart, {})
                self.repo.set_cart_item_quantity(item.id, quantity)

        return self.read_cart(principal)

    def remove_cart_line(self, principal: Principal, cart_item_id: int) -> Dict[str, Any]:
        """Delete one line. The cart stays bound to its store even if now empty."""
        authorize(principal, Capability.MANAGE_CART)

        with self._lock(principal.user_id):
            with unit_of_work(self.db, "remove_cart_line", cart_item_id=cart_item_id):
                item, cart = self._owned_item(principal, cart_item_id)
                self._bump_version(cart, {})
                self.repo.delete_cart_item(item.id)

        logger.info(f"Cart item {cart_item_id} removed for user {principal.user_id}")
        return self.read_cart(principal)

    def clear_cart(self, principal: Principal) -> Dict[str, Any]:
        authorize(principal, Capability.MANAGE_CART)
        user_id = principal.user_id

        with self._lock(user_id):
            with unit_of_work(self.db, "clear_cart", user_id=user_id):
                cart = self.repo.get_cart_by_user(user_id, for_update=True)
                if not cart:
                    logger.info(f"User {user_id} has no cart to clear")
                    return empty_cart()

                removed = self.repo.delete_cart_items(cart.id)
                self._bump_version(cart, {"store_id": None})

        logger.info(f"Cart {cart.id} cleared, {removed} lines removed")
        return empty_cart()

    # helpers
    @staticmethod
    def _validate_quantity(quantity: int) -> None:
        if quantity is None or quantity < 1:
            raise InvalidQuantity("Quantity must be at least 1")

    def _owned_item(self, principal: Principal, cart_item_id: int):
        item = self.repo.get_cart_item_by_id(cart_item_id)
        if not item:
            raise NotFound(f"Cart item {cart_item_id} not found")

        cart = self.repo.get_cart(item.cart_id)
        if not cart:
            raise NotFound(f"Cart item {cart_item_id} not found")

        authorize(principal, Capability.MANAGE_CART, owner_id=cart.user_id)
        return item, cart

    def _bump_version(self, cart, new_data: dict) -> None:
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data=new_data,
        )
        # 0 rows: someone else changed the cart since we read it
        if rowcount == 0:
            raise ConcurrentModification("Cart was modified by another request")

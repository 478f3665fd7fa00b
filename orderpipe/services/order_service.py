# orderpipe/services/order_service.py
import math
from decimal import Decimal
from typing import Dict, Any

from sqlalchemy.orm import Session

from orderpipe.data.models.order import OrderModel, VIRTUAL_PAYMENT
from orderpipe.data.models.order_item import OrderItemModel
from orderpipe.data.unit_of_work import unit_of_work
from orderpipe.domain.errors import (
    ConcurrentModification,
    EmptyCart,
    MenuUnavailable,
    NotFound,
    StoreUnavailable,
)
from orderpipe.domain.order_status import OrderStatus
from orderpipe.domain.schemas import OrderCreateIn
from orderpipe.repos.cart_repo import CartRepo
from orderpipe.repos.order_repo import OrderRepo
from orderpipe.services.access_guard import Capability, Principal, authorize, order_owner_id
from orderpipe.services.catalog_gateway import CatalogGateway
from orderpipe.services.lock_service import LockService, no_lock
from orderpipe.utils.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")
UNKNOWN_MENU_NAME = "Unknown menu"


def build_order_detail(order: OrderModel, items: list[OrderItemModel], catalog: CatalogGateway) -> Dict[str, Any]:
    """
    Order detail view. Prices come from the order rows; names and images
    are looked up live since only price and fee are snapshotted.
    """
    store = catalog.get_store(order.store_id)

    order_items = []
    for item in items:
        menu = catalog.get_menu(item.menu_id)
        order_items.append(
            {
                "order_item_id": item.id,
                "menu_id": item.menu_id,
                "menu_name": menu.name if menu else UNKNOWN_MENU_NAME,
                "menu_description": menu.description if menu else None,
                "menu_image_url": menu.image_url if menu else None,
                "quantity": item.quantity,
                "price_at_order": item.price_at_order,
                "item_total_price": item.line_total,
            }
        )

    status = OrderStatus(order.status)
    return {
        "order_id": order.id,
        "user_id": order.user_id,
        "store_id": order.store_id,
        "store_name": store.name if store else None,
        "store_image_url": store.image_url if store else None,
        "status": status,
        "status_display_name": status.display_name,
        "subtotal_amount": order.subtotal_amount,
        "delivery_fee": order.delivery_fee_at_order,
        "discount_amount": order.discount_amount,
        "points_used": order.points_used,
        "total_price": order.total_price,
        "delivery_zipcode": order.delivery_zipcode,
        "delivery_address1": order.delivery_address1,
        "delivery_address2": order.delivery_address2,
        "full_delivery_address": order.full_delivery_address(),
        "phone_number": order.phone_number,
        "requests": order.requests,
        "payment_method": order.payment_method,
        "payment_transaction_id": order.payment_transaction_id,
        "order_items": order_items,
        "total_item_count": len(order_items),
        "total_quantity": sum(i["quantity"] for i in order_items),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def representative_menu_name(first_menu_name: str | None, menu_count: int) -> str:
    if menu_count == 0:
        return ""
    name = first_menu_name or UNKNOWN_MENU_NAME
    if menu_count == 1:
        return name
    return f"{name} and {menu_count - 1} more"


class OrderService:
    """
    Order pipeline: commits the caller's cart into an order and serves
    order reads/listings for customers and store owners.
    """

    def __init__(
        self,
        db: Session,
        catalog: CatalogGateway,
        lock_service: LockService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = CartRepo(db)
        self.catalog = catalog
        self._lock = lock_service.cart_lock if lock_service else no_lock

    def commit_order(self, principal: Principal, payload: OrderCreateIn) -> Dict[str, Any]:
        """
        Use case: create an order from the caller's cart.

        1. cart must be bound and have lines (EmptyCart)
        2. every menu must still resolve and not be deleted (MenuUnavailable)
        3. the bound store must resolve and not be deleted (StoreUnavailable)
        4. snapshot prices and delivery fee, write order + lines
        5. clear and unbind the cart

        Steps 4 and 5 share one transaction; any failure leaves the cart as it was.
        """
        authorize(principal, Capability.PLACE_ORDER)
        user_id = principal.user_id
        logger.info(f"Commit order started for user {user_id}")

        with self._lock(user_id):
            with unit_of_work(self.db, "commit_order", user_id=user_id):
                cart = self.cart_repo.get_cart_by_user(user_id, for_update=True)
                if not cart or not cart.is_bound():
                    raise EmptyCart("Cart is empty")

                cart_items = self.cart_repo.get_cart_items(cart.id)
                if not cart_items:
                    raise EmptyCart("Cart is empty")

                snapshot = []
                for item in cart_items:
                    menu = self.catalog.get_menu(item.menu_id)
                    if menu is None or menu.is_deleted or menu.store_id != cart.store_id:
                        raise MenuUnavailable(f"Menu {item.menu_id} is no longer available")
                    snapshot.append((item, menu.price))

                store = self.catalog.get_store(cart.store_id)
                if store is None or not store.is_active:
                    raise StoreUnavailable(f"Store {cart.store_id} is no longer available")

                subtotal = sum((price * item.quantity for item, price in snapshot), ZERO)
                delivery_fee = store.delivery_fee
                total = OrderModel.compute_total(subtotal, delivery_fee)
                logger.info(f"Order totals subtotal={subtotal} delivery_fee={delivery_fee} total={total}")

                order = self.repo.add_order(
                    OrderModel(
                        user_id=user_id,
                        store_id=cart.store_id,
                        status=OrderStatus.PENDING.value,
                        subtotal_amount=subtotal,
                        delivery_fee_at_order=delivery_fee,
                        discount_amount=ZERO,
                        points_used=ZERO,
                        total_price=total,
                        delivery_zipcode=payload.delivery_zipcode,
                        delivery_address1=payload.delivery_address1,
                        delivery_address2=payload.delivery_address2,
                        phone_number=payload.phone_number,
                        requests=payload.requests,
                        payment_method=VIRTUAL_PAYMENT,
                    )
                )

                order_items = self.repo.add_order_items(
                    [
                        OrderItemModel(
                            order_id=order.id,
                            menu_id=item.menu_id,
                            quantity=item.quantity,
                            price_at_order=price,
                        )
                        for item, price in snapshot
                    ]
                )

                self.cart_repo.delete_cart_items(cart.id)
                rowcount = self.cart_repo.update_cart_version(
                    cart_id=cart.id,
                    old_version=cart.version,
                    new_data={"store_id": None},
                )
                # a line was added/changed while we were building the order
                if rowcount == 0:
                    raise ConcurrentModification("Cart changed while placing the order, please retry")

        logger.info(
            f"Order {order.id} created for user {user_id} at store {order.store_id}, "
            f"{len(order_items)} lines, total {order.total_price}"
        )
        return build_order_detail(order, order_items, self.catalog)

    def read_order(self, principal: Principal, order_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFound(f"Order {order_id} not found")

        store = self.catalog.get_store(order.store_id) if principal.is_owner else None
        authorize(principal, Capability.READ_ORDER, owner_id=order_owner_id(principal, order, store))

        return build_order_detail(order, self.repo.get_order_items(order.id), self.catalog)

    def list_orders(
        self,
        principal: Principal,
        status: OrderStatus | None = None,
        page: int = 0,
        size: int | None = None,
        store_id: int | None = None,
    ) -> Dict[str, Any]:
        """
        Customers list their own orders. Owners list the orders of one of
        their stores and must name it.
        """
        authorize(principal, Capability.LIST_ORDERS)

        page = max(page, 0)
        size = min(max(size or DEFAULT_PAGE_SIZE, 1), MAX_PAGE_SIZE)

        if principal.is_owner:
            if store_id is None:
                raise NotFound("Store id is required to list store orders")
            store = self.catalog.get_store(store_id)
            if store is None:
                raise NotFound(f"Store {store_id} not found")
            authorize(principal, Capability.LIST_ORDERS, owner_id=store.owner_id)
            filters = {"store_id": store_id}
        else:
            filters = {"user_id": principal.user_id}

        rows, total = self.repo.find_orders(
            status=OrderStatus(status).value if status else None,
            offset=page * size,
            limit=size,
            **filters,
        )
        logger.info(f"Listed {len(rows)}/{total} orders for {principal.role.value} {principal.user_id}")

        return {
            "items": [self._summary(order) for order in rows],
            "page": page,
            "size": size,
            "total_elements": total,
            "total_pages": math.ceil(total / size) if total else 0,
        }

    def _summary(self, order: OrderModel) -> Dict[str, Any]:
        items = self.repo.get_order_items(order.id)
        store = self.catalog.get_store(order.store_id)

        first_name = None
        if items:
            first = self.catalog.get_menu(items[0].menu_id)
            first_name = first.name if first else None

        status = OrderStatus(order.status)
        return {
            "order_id": order.id,
            "user_id": order.user_id,
            "store_id": order.store_id,
            "store_name": store.name if store else None,
            "store_image_url": store.image_url if store else None,
            "status": status,
            "status_display_name": status.display_name,
            "subtotal_amount": order.subtotal_amount,
            "delivery_fee_at_order": order.delivery_fee_at_order,
            "total_price": order.total_price,
            "representative_menu_name": representative_menu_name(first_name, len(items)),
            "total_menu_count": len(items),
            "total_quantity": sum(i.quantity for i in items),
            "delivery_address1": order.delivery_address1,
            "delivery_address2": order.delivery_address2,
            "requests": order.requests,
            "ordered_at": order.created_at,
        }

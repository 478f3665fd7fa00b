# orderpipe/services/order_status_service.py
from typing import Dict, Any

from sqlalchemy.orm import Session

from orderpipe.data.unit_of_work import unit_of_work
from orderpipe.domain.errors import ConcurrentModification, NotFound
from orderpipe.domain.order_status import OrderStatus, ensure_transition
from orderpipe.repos.order_repo import OrderRepo
from orderpipe.services.access_guard import Capability, Principal, authorize, order_owner_id
from orderpipe.services.catalog_gateway import CatalogGateway
from orderpipe.services.order_service import build_order_detail
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)


class OrderStatusService:
    """Store owners drive orders through PENDING -> ACCEPTED -> DELIVERING -> COMPLETED (or REJECTED)."""

    def __init__(self, db: Session, catalog: CatalogGateway):
        self.db = db
        self.repo = OrderRepo(db)
        self.catalog = catalog

    def change_order_status(
        self,
        principal: Principal,
        order_id: int,
        new_status: OrderStatus,
    ) -> Dict[str, Any]:
        authorize(principal, Capability.CHANGE_ORDER_STATUS)
        new_status = OrderStatus(new_status)

        with unit_of_work(self.db, "change_order_status", order_id=order_id, new_status=new_status.value):
            # re-read inside the transaction (row lock where the database supports it)
            order = self.repo.get_order(order_id, for_update=True)
            if not order:
                raise NotFound(f"Order {order_id} not found")

            store = self.catalog.get_store(order.store_id)
            authorize(
                principal,
                Capability.CHANGE_ORDER_STATUS,
                owner_id=order_owner_id(principal, order, store),
            )

            current = OrderStatus(order.status)
            ensure_transition(current, new_status)

            # compare-and-set: a concurrent change makes this a no-op
            rowcount = self.repo.update_order_status(order.id, current.value, new_status.value)
            if rowcount == 0:
                raise ConcurrentModification(f"Order {order_id} status was changed by another request")

        order = self.repo.get_order(order_id)
        logger.info(
            f"Order {order_id} status {current.value} -> {new_status.value} by owner {principal.user_id}"
        )
        return build_order_detail(order, self.repo.get_order_items(order.id), self.catalog)

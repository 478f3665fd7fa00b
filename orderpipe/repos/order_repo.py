# orderpipe/repos/order_repo.py
from datetime import datetime, timezone

from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from orderpipe.data.models.order import OrderModel
from orderpipe.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: list[OrderItemModel]) -> list[OrderItemModel]:
        self.db.add_all(items)
        self.db.flush()
        return items

    def get_order(self, order_id: int, for_update: bool = False) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def get_order_items(self, order_id: int) -> list[OrderItemModel]:
        stmt = (
            select(OrderItemModel)
            .where(OrderItemModel.order_id == order_id)
            .order_by(OrderItemModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def find_orders(
        self,
        user_id: int | None = None,
        store_id: int | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[OrderModel], int]:
        """Newest first. Returns (page rows, total matching rows)."""
        conditions = []
        if user_id is not None:
            conditions.append(OrderModel.user_id == user_id)
        if store_id is not None:
            conditions.append(OrderModel.store_id == store_id)
        if status is not None:
            conditions.append(OrderModel.status == status)

        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(*conditions)
        ).scalar_one()

        rows = self.db.execute(
            select(OrderModel)
            .where(*conditions)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        ).scalars().all()

        return list(rows), total

    def update_order_status(self, order_id: int, expected_status: str, new_status: str) -> int:
        """
        Compare-and-set on status: the write only lands if nobody changed
        the status since it was read. Returns the affected row count.
        """
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == expected_status)
            .values(status=new_status, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

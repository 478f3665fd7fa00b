# orderpipe/data/models/order_item.py
from decimal import Decimal

from sqlalchemy import Column, Integer, DateTime, Numeric, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from orderpipe.data.database import Base
from orderpipe.data.models.cart import _now


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    menu_id = Column(Integer, nullable=False, index=True)

    quantity = Column(Integer, nullable=False)
    # unit price copied from the menu at commit time
    price_at_order = Column(Numeric(12, 2), nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)

    order = relationship("OrderModel", back_populates="items")

    __table_args__ = (CheckConstraint("quantity >= 1", name="ck_order_item_quantity"),)

    @property
    def line_total(self) -> Decimal:
        return self.price_at_order * self.quantity

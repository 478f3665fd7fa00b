# orderpipe/data/models/order.py
from decimal import Decimal

from sqlalchemy import Column, Integer, String, DateTime, Numeric, Text, Index
from sqlalchemy.orm import relationship

from orderpipe.data.database import Base
from orderpipe.data.models.cart import _now

VIRTUAL_PAYMENT = "VIRTUAL_PAYMENT"


class OrderModel(Base):
    """
    Immutable order record. Only status (and updated_at) change after
    creation, through the order state machine.
    """

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=False)
    store_id = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default="PENDING")

    subtotal_amount = Column(Numeric(12, 2), nullable=False)
    delivery_fee_at_order = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    points_used = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    total_price = Column(Numeric(12, 2), nullable=False)

    delivery_zipcode = Column(String(10), nullable=False)
    delivery_address1 = Column(String(255), nullable=False)
    delivery_address2 = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    requests = Column(Text, nullable=True)

    # payment is virtual, no transaction id is ever issued
    payment_method = Column(String(50), nullable=False, default=VIRTUAL_PAYMENT)
    payment_transaction_id = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship("OrderItemModel", back_populates="order", order_by="OrderItemModel.id")

    __table_args__ = (
        Index("idx_orders_user", "user_id"),
        Index("idx_orders_store", "store_id"),
        Index("idx_orders_status", "status"),
        Index("idx_orders_created_at", "created_at"),
    )

    @staticmethod
    def compute_total(subtotal, delivery_fee, discount=Decimal("0"), points=Decimal("0")) -> Decimal:
        return subtotal + delivery_fee - discount - points

    def full_delivery_address(self) -> str:
        if self.delivery_address2 and self.delivery_address2.strip():
            return f"{self.delivery_address1} {self.delivery_address2.strip()}"
        return self.delivery_address1

# orderpipe/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.orm import relationship

from orderpipe.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # one cart per customer, enforced by the database
    user_id = Column(Integer, nullable=False, unique=True)

    # null means the cart is empty / not bound to any store
    store_id = Column(Integer, nullable=True, index=True)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_bound(self) -> bool:
        return self.store_id is not None

    def can_add_from_store(self, store_id: int) -> bool:
        return self.store_id is None or self.store_id == store_id

# orderpipe/data/models/store.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric

from orderpipe.data.database import Base


class StoreStatus(str, enum.Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class StoreModel(Base):
    """Catalog store row. Read by the order pipeline, never written by it."""

    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    image_url = Column(String(500), nullable=True)

    delivery_fee = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=StoreStatus.OPEN.value)

    # tombstone, checked explicitly on every catalog read
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

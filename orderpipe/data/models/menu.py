# orderpipe/data/models/menu.py
import enum

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Numeric, ForeignKey

from orderpipe.data.database import Base


class MenuStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    SOLD_OUT = "SOLD_OUT"


class MenuModel(Base):
    __tablename__ = "menus"

    id = Column(Integer, primary_key=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    name = Column(String(60), nullable=False)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(12, 2), nullable=False)
    image_url = Column(String(500), nullable=True)

    status = Column(String(20), nullable=False, default=MenuStatus.AVAILABLE.value)
    is_deleted = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)

# orderpipe/data/seed.py
from decimal import Decimal

from orderpipe.data.database import SessionLocal
from orderpipe.data.models import MenuModel, StoreModel
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)

DEMO_STORES = [
    {"id": 1, "owner_id": 100, "name": "Bibimbap House", "delivery_fee": Decimal("3000")},
    {"id": 2, "owner_id": 200, "name": "Noodle Corner", "delivery_fee": Decimal("2500")},
]

DEMO_MENUS = [
    {"id": 1, "store_id": 1, "name": "Jeonju Bibimbap", "price": Decimal("10000")},
    {"id": 2, "store_id": 1, "name": "Kongnamul Gukbap", "price": Decimal("5000")},
    {"id": 3, "store_id": 2, "name": "Kalguksu", "price": Decimal("8000")},
]


def seed(session_factory=SessionLocal) -> bool:
    """Insert demo catalog data. Only seeds an empty catalog; returns True if it did."""
    db = session_factory()
    try:
        if db.query(StoreModel).first():
            return False

        db.add_all(StoreModel(**data) for data in DEMO_STORES)
        db.flush()
        db.add_all(MenuModel(**data) for data in DEMO_MENUS)
        db.commit()
        logger.info(f"Seeded {len(DEMO_STORES)} stores and {len(DEMO_MENUS)} menus")
        return True
    finally:
        db.close()

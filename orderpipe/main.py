# orderpipe/main.py
import uvicorn

from orderpipe.api import create_app
from orderpipe.data.database import Base, engine
from orderpipe.data.seed import seed
from orderpipe.utils.settings import SEED_DEMO_DATA
from orderpipe.utils.logging import get_logger

# register every model in Base.metadata before create_all
import orderpipe.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db() -> None:
    logger.info(f"Creating tables: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        logger.exception("Failed to create database tables")
        raise

    if SEED_DEMO_DATA:
        seed()


init_db()
app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)

# orderpipe/data/unit_of_work.py
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)


@contextmanager
def unit_of_work(db: Session, action: str, **context):
    """
    Commit on success, roll back on any error. Domain errors propagate
    unchanged; storage errors are logged with the use case context first.
    """
    try:
        yield
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Storage failure during {action} {context}")
        raise
    except Exception:
        db.rollback()
        raise

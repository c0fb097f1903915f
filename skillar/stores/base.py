import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from ..errors import FetchError, WriteError

logger = logging.getLogger(__name__)


@contextmanager
def db_scope(session_factory, write: bool = False):
    """Open a session; commit on success for writes, map driver errors to app errors."""
    db = session_factory()
    try:
        yield db
        if write:
            db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("document store %s failed: %s", "write" if write else "read", e)
        if write:
            raise WriteError(str(e)) from e
        raise FetchError(str(e)) from e
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

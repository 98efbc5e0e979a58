from contextlib import contextmanager

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.User import User
from services.errors import NotFound, StoreUnavailable
from utils.logger import setup_api_logger

logger = setup_api_logger()


@contextmanager
def atomic_batch(db: Session):
    """
    Commit every write issued inside the block as one transaction.

    On any error the whole batch is rolled back. IntegrityError is re-raised
    untouched so callers can treat a lost uniqueness race as a no-op; other
    database errors surface as StoreUnavailable.
    """
    try:
        yield db
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Batch rolled back: %s", exc)
        raise StoreUnavailable("Database unavailable") from exc
    except Exception:
        db.rollback()
        raise


def increment_user_counters(db: Session, uid: str, **deltas: int) -> None:
    """
    Apply counter deltas to one user row as a database-side increment.

    Raises NotFound when the user row does not exist, which aborts the
    enclosing batch.
    """
    values = {name: getattr(User, name) + delta for name, delta in deltas.items()}
    result = db.execute(
        update(User).where(User.uid == uid).values(**values).execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound(f"User {uid} not found")

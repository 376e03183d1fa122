"""Transaction boundary shared by every state-changing operation"""

import logging
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from client_tracker.domain.exceptions import DomainException, TransactionFailureError


@contextmanager
def unit_of_work(db: Session) -> Iterator[Session]:
    """
    Commit everything done inside the block, or nothing.

    Domain errors roll back and propagate unchanged. Database errors
    (lock timeouts, serialization failures, lost connections) roll back
    and are raised as TransactionFailureError so callers can retry.
    """
    try:
        yield db
        db.commit()
    except DomainException:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Transaction rolled back: {e}")
        raise TransactionFailureError("Transaction could not be committed, retry the operation") from e
    except Exception:
        db.rollback()
        raise

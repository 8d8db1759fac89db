"""
Error-handling wrappers for the two kinds of data paths.

- Mutations fail fast: ``mutation_guard`` rolls the session back and surfaces
  every failure to the caller, translating raw driver errors into
  ``TransientBackendError``.
- Non-critical aggregate reads degrade: ``degrade_to`` returns a default
  value and logs a warning instead of propagating backend errors.
"""
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import AlreadyExists, APIException, TransientBackendError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def mutation_guard(db: Session, action: str) -> Iterator[Session]:
    """Run a write unit of work; commit on success, roll back and re-raise on failure."""
    try:
        yield db
        db.commit()
    except APIException as e:
        db.rollback()
        logger.info(f"{action} rejected: {e}")
        raise
    except IntegrityError as e:
        db.rollback()
        logger.info(f"{action} violated a uniqueness constraint: {e.orig}")
        raise AlreadyExists() from e
    except (DBAPIError, SQLAlchemyError) as e:
        db.rollback()
        logger.error(f"{action} failed: {e}", exc_info=True)
        raise TransientBackendError() from e


def degrade_to(default: Any) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Decorator for read-only aggregates that must never block a page.

    ``default`` may be a value or a zero-argument factory (use ``list`` rather
    than ``[]`` for mutable defaults).
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except (TransientBackendError, SQLAlchemyError) as e:
                logger.warning(f"{func.__name__} degraded to default: {e}")
                for arg in args:
                    if isinstance(arg, Session):
                        arg.rollback()
                        break
                return default() if callable(default) else default
        return wrapper
    return decorator

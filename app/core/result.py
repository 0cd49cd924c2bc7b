import functools
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import ErrorKind, ServiceError

logger = logging.getLogger(__name__)


@dataclass
class ServiceResult:
    """Tagged outcome of a core operation: `ok` with `data`, or an error kind and message."""
    ok: bool
    data: Any = None
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error_kind: ErrorKind, message: str) -> "ServiceResult":
        return cls(ok=False, error_kind=error_kind, message=message)


def service_operation(func):
    """
    Run a core operation as one unit of work.

    The wrapped function receives the session as its first argument and commits
    it itself. Any failure rolls the session back so no partial status, inventory
    or audit change survives, and is reported as a failed ServiceResult instead
    of an exception.
    """
    @functools.wraps(func)
    def wrapper(db: Session, *args, **kwargs) -> ServiceResult:
        try:
            data = func(db, *args, **kwargs)
        except ServiceError as exc:
            db.rollback()
            logger.info(f"{func.__name__} failed ({exc.kind.value}): {exc.message}")
            return ServiceResult.failure(exc.kind, exc.message)
        except IntegrityError as exc:
            db.rollback()
            logger.warning(f"{func.__name__} hit a uniqueness or integrity violation: {exc.orig}")
            return ServiceResult.failure(ErrorKind.CONFLICT, "The change conflicts with existing data")
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Storage error in {func.__name__}")
            return ServiceResult.failure(ErrorKind.INTERNAL, "Storage error")
        except Exception:
            db.rollback()
            logger.exception(f"Unexpected error in {func.__name__}")
            return ServiceResult.failure(ErrorKind.INTERNAL, "Something went wrong")
        return ServiceResult.success(data)

    return wrapper

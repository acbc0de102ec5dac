# backend/mentorbook/services/base.py
"""
Base Service Pattern for the booking service.

Every service gets a session, an injectable clock, a class-named logger,
a ``transaction()`` unit of work and the ``measure_operation`` timing
decorator feeding Prometheus.
"""

from contextlib import contextmanager
from datetime import datetime
from functools import wraps
import logging
import time
from typing import Any, Callable, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException, ServiceException, translate_store_error
from ..core.timezone_utils import utc_now
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


def is_conflict_error(exc: BaseException) -> bool:
    """Constraint violations and deadlocks the caller translates into a domain conflict."""
    if isinstance(exc, IntegrityError):
        return True
    return "deadlock detected" in str(exc).lower()


class BaseService:
    """Common plumbing for the booking, feedback, availability and offering services."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        """
        Args:
            db: Database session owned by the caller (one per request)
            clock: Returns the current UTC instant; injectable for tests
        """
        self.db = db
        self.clock: Clock = clock or utc_now
        self.logger = logging.getLogger(self.__class__.__name__)

    def now(self) -> datetime:
        return self.clock()

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Constraint violations and deadlocks are re-raised untouched so the
        caller can map them to a domain conflict. Store timeouts and pool
        exhaustion become StoreTimeoutException / ServiceUnavailableException;
        any other store failure becomes ServiceException.

        Usage:
            with self.transaction():
                self.repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed")
        except (SQLAlchemyError, RepositoryException) as e:
            self.db.rollback()
            cause = e.__cause__ if isinstance(e, RepositoryException) and e.__cause__ else e
            if is_conflict_error(cause):
                raise
            translated = translate_store_error(cause)
            if translated is not None:
                self.logger.warning(f"Store unavailable during transaction: {str(e)}")
                raise translated from e
            self.logger.error(f"Transaction failed: {str(e)}")
            raise ServiceException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record it in Prometheus.

        Usage:
            @BaseService.measure_operation("create_booking")
            def create_booking(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self: "BaseService", *args: Any, **kwargs: Any) -> Any:
                start_time = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - start_time
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )
                    if settings.metrics_enabled:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="error" if error_type else "success",
                            error_type=error_type,
                        )

            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with its context as structured ``extra`` fields."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

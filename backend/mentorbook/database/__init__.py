"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
import random
import time
from typing import Any, Callable, Generator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from mentorbook.core.config import settings
from mentorbook.core.exceptions import RepositoryException, translate_store_error

logger = logging.getLogger(__name__)

# Every store call carries a deadline:
# - statement_timeout caps runaway queries server-side
# - connect_timeout bounds establishing a new connection
# - pool_timeout bounds waiting for a pooled connection (surfaces as 503)
_POSTGRES_CONNECT_ARGS: dict[str, Any] = {
    "options": f"-c statement_timeout={settings.db_statement_timeout_ms}",
    "connect_timeout": settings.db_connect_timeout_seconds,
    "application_name": "mentorbook",
}

_POSTGRES_POOL_KWARGS: dict[str, Any] = {
    "pool_size": settings.db_pool_size,
    "max_overflow": settings.db_max_overflow,
    "pool_timeout": settings.db_pool_timeout_seconds,
    "pool_recycle": 300,
    "pool_pre_ping": True,
    "pool_use_lifo": True,
}


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Engine options per dialect."""
    if db_url.startswith("sqlite"):
        # sqlite3's busy timeout is in seconds and bounds waits on the writer lock
        return {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.db_statement_timeout_ms / 1000,
            }
        }
    kwargs = dict(_POSTGRES_POOL_KWARGS)
    kwargs["connect_args"] = dict(_POSTGRES_CONNECT_ARGS)
    return kwargs


engine: Engine = create_engine(settings.database_url, **_build_engine_kwargs(settings.database_url))


@event.listens_for(engine, "connect")
def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
    connection_record.info["connect_time"] = datetime.now()
    logger.debug("Database connection established")


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


T = TypeVar("T")

_RETRYABLE_ERROR_SNIPPETS = (
    "server closed the connection",
    "ssl connection has been closed unexpectedly",
    "could not connect",
    "connection refused",
    "queuepool",
)


def _is_retryable_db_error(exc: BaseException) -> bool:
    message = str(exc).lower()
    return any(snippet in message for snippet in _RETRYABLE_ERROR_SNIPPETS)


_TRANSIENT_DB_ERRORS = (OperationalError, DisconnectionError, PoolTimeoutError)
_RETRY_CANDIDATES = _TRANSIENT_DB_ERRORS + (RepositoryException,)


def store_error_of(exc: BaseException) -> BaseException | None:
    """The driver-level failure behind ``exc``, seen through a RepositoryException wrapper."""
    if isinstance(exc, RepositoryException):
        exc = exc.__cause__ if exc.__cause__ is not None else exc
    return exc if isinstance(exc, _TRANSIENT_DB_ERRORS) else None


def _retry_delay(attempt: int) -> float:
    base = 0.1 * (2 ** (attempt - 1))
    return base + random.uniform(0, 0.05 * attempt)


def with_db_retry(
    op_name: str,
    func: Callable[[], T],
    *,
    max_attempts: int | None = None,
) -> T:
    """
    Execute an idempotent read with retries for transient store failures.

    Only connection loss and pool exhaustion are retried, whether raised by
    the driver directly or wrapped by a repository in RepositoryException.
    When attempts run out the failure surfaces as ServiceUnavailableException,
    or StoreTimeoutException for statement timeouts. Never wrap writes.
    """
    attempts = max_attempts or settings.db_read_retry_attempts
    attempt = 1
    while True:
        try:
            return func()
        except _RETRY_CANDIDATES as exc:
            store_error = store_error_of(exc)
            if store_error is None:
                raise
            if attempt >= attempts or not _is_retryable_db_error(store_error):
                translated = translate_store_error(store_error)
                if translated is not None:
                    raise translated from exc
                raise

            delay = _retry_delay(attempt)
            logger.warning(
                "Transient DB failure detected, retrying",
                extra={
                    "event": "db_retry",
                    "op": op_name,
                    "attempt": attempt,
                    "delay": delay,
                    "error": str(store_error),
                },
            )
            time.sleep(delay)
            attempt += 1


__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "store_error_of",
    "with_db_retry",
]

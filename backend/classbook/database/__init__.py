"""
Engine builder, session factory, and metadata shared across the engine.

Nothing here is a process-wide singleton: callers build an engine from
``Settings`` and own its lifecycle (the FastAPI app keeps it on ``app.state``).
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
import random
import time
from typing import Any, Callable, Generator, Optional, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from ..core.config import Settings
from ..core.exceptions import StoreUnavailableException, is_transient_store_error

logger = logging.getLogger(__name__)

Base: DeclarativeMeta = declarative_base()


def _build_postgres_kwargs(settings: Settings) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": settings.pool_size,
        "max_overflow": settings.max_overflow,
        "pool_timeout": settings.pool_timeout,
        "pool_recycle": settings.pool_recycle,
        "pool_pre_ping": True,
        "pool_use_lifo": True,
        "connect_args": {
            "keepalives": 1,
            "keepalives_idle": 15,
            "keepalives_interval": 5,
            "keepalives_count": 3,
            # Caps runaway statements and lock waits so callers get a retryable error
            "options": (
                f"-c statement_timeout={settings.statement_timeout_ms} "
                f"-c lock_timeout={settings.statement_timeout_ms}"
            ),
            "connect_timeout": settings.connect_timeout_seconds,
            "application_name": "classbook",
        },
    }


def _build_sqlite_kwargs(settings: Settings) -> dict[str, Any]:
    return {
        "connect_args": {
            "check_same_thread": False,
            # Busy timeout: how long a writer waits for the database lock
            "timeout": settings.statement_timeout_ms / 1000,
        },
    }


def _install_sqlite_transaction_hooks(engine: Engine) -> None:
    """
    Take over transaction control from pysqlite.

    Every transaction starts with BEGIN IMMEDIATE so the write lock is held from
    the first statement. Concurrent check-then-insert sequences are serialized
    the same way a row lock serializes them on PostgreSQL, and SAVEPOINTs work.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(settings: Settings, *, url: Optional[str] = None) -> Engine:
    """Create the SQLAlchemy engine for the configured store."""
    db_url = url or settings.database_url
    if db_url.startswith("sqlite"):
        engine = create_engine(db_url, echo=settings.database_echo, **_build_sqlite_kwargs(settings))
        _install_sqlite_transaction_hooks(engine)
    else:
        engine = create_engine(
            db_url, echo=settings.database_echo, **_build_postgres_kwargs(settings)
        )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    logger.info("Store engine created", extra={"dialect": engine.dialect.name})
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes from model metadata."""
    from .. import models  # noqa: F401  (populates Base.metadata)

    Base.metadata.create_all(engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Context manager for short-lived DB work."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


T = TypeVar("T")


def _retry_delay(attempt: int) -> float:
    base = 0.1 * (2 ** (attempt - 1))
    return base + random.uniform(0, 0.05 * attempt)


def with_db_retry(op_name: str, func: Callable[[], T], *, max_attempts: int = 3) -> T:
    """
    Execute an idempotent DB operation with retries for transient store failures.

    Only reads should go through here; writes re-validate before any retry.
    """

    attempt = 1
    while True:
        try:
            return func()
        except (OperationalError, StoreUnavailableException) as exc:
            transient = isinstance(exc, StoreUnavailableException) or is_transient_store_error(exc)
            if attempt >= max_attempts or not transient:
                raise

            delay = _retry_delay(attempt)
            logger.warning(
                "Transient DB failure detected, retrying",
                extra={
                    "event": "db_retry",
                    "op": op_name,
                    "attempt": attempt,
                    "delay": delay,
                    "error": str(exc),
                },
            )
            time.sleep(delay)
            attempt += 1


__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "create_schema",
    "session_scope",
    "with_db_retry",
]

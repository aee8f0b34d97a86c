from __future__ import annotations

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar, cast

from loguru import logger
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.interfaces import DBAPIConnection
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

T = TypeVar("T")
P = ParamSpec("P")


def enable_wal_mode(
    dbapi_conn: DBAPIConnection,
    connection_record: object,
) -> None:
    """Enable WAL mode and foreign keys for SQLite connections.

    WAL mode is skipped for in-memory databases as they don't support it,
    but foreign keys are still enabled.
    """
    _ = connection_record
    cursor = dbapi_conn.cursor()
    try:
        cursor.execute("PRAGMA database_list")
        db_list = cursor.fetchall()
        # db_list format: [(seq, name, file), ...], file is '' for in-memory
        is_memory = any(
            cast(str, row[2]) == "" for row in cast(list[tuple[object, object, object]], db_list)
        )

        if not is_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA busy_timeout=60000")

        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def create_db_engine(
    db_url: str,
    *,
    echo: bool = False,
) -> Engine:
    """Create SQLAlchemy engine with WAL mode for SQLite.

    Args:
        db_url: Database URL (SQLite or other)
        echo: Enable SQL query logging

    Returns:
        SQLAlchemy engine instance
    """
    kwargs: dict[str, object] = {"echo": echo}

    if db_url.lower().startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url or db_url.strip() == "sqlite://":
            # A single shared connection keeps the in-memory database alive
            kwargs["poolclass"] = StaticPool
        else:
            kwargs.update({"poolclass": QueuePool, "pool_size": 10, "max_overflow": 20})
    else:
        kwargs.update({"pool_size": 10, "max_overflow": 20})

    engine = create_engine(db_url, **kwargs)

    if db_url.lower().startswith("sqlite"):
        event.listen(engine, "connect", enable_wal_mode)

    return engine


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Create session factory from engine."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        class_=Session,
    )


def with_retry(
    max_retries: int = 5, initial_delay: float = 0.5
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator to retry a function on SQLite locking errors."""

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            delay = initial_delay
            for i in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except OperationalError as e:
                    if "database is locked" not in str(e).lower() or i == max_retries - 1:
                        raise
                    logger.warning(
                        f"Database locked, retrying {i + 1}/{max_retries} after {delay}s..."
                    )
                    time.sleep(delay)
                    delay *= 2  # Exponential backoff
            raise RuntimeError("with_retry requires max_retries >= 1")

        return wrapper

    return decorator

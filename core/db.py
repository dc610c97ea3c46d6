"""
core/db.py -- Engine construction and store-failure translation.

One SQLAlchemy Engine is created per process by the entry point (see the
lifespan in api/main.py) and passed explicitly to every store. Stores never
create or dispose engines themselves.

Bounded waits:
  SQLite: the `timeout` connect arg is the busy timeout -- a writer waits at
          most this long for the database lock.
  Others: `pool_timeout` bounds the wait for a pooled connection and the
          driver's `connect_timeout` bounds connection setup.

hide_parameters=True keeps bound values (password hashes, diary content) out
of exception messages and logs.

Layer rule: no imports from api/, auth/, or diary/.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import StoreUnavailable

logger = logging.getLogger("privatediary.store")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def create_store_engine(db_url: str, timeout: float = 5.0) -> Engine:
    """Build the process-wide Engine for the given connection string.

    Usage:
        engine = create_store_engine("sqlite:///privatediary.db")
        engine = create_store_engine("postgresql://user:pw@host/db", timeout=3)
        ...
        engine.dispose()
    """
    if db_url.startswith("sqlite"):
        # check_same_thread=False: FastAPI runs sync handlers in a thread pool.
        engine = create_engine(
            db_url,
            connect_args={"check_same_thread": False, "timeout": timeout},
            hide_parameters=True,
        )
        event.listen(engine, "connect", _set_wal_mode)
        return engine
    return create_engine(
        db_url,
        pool_timeout=timeout,
        pool_pre_ping=True,
        connect_args={"connect_timeout": max(1, int(timeout))},
        hide_parameters=True,
    )


@contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """Translate any store-layer exception into StoreUnavailable.

    Wrap every store call made at an operation boundary:

        with store_guard("create_entry"):
            ...

    Only the exception class name is logged. The original exception is not
    chained onto StoreUnavailable so no driver detail reaches the caller.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error("Store failure during %s (%s)", operation, type(exc).__name__)
        raise StoreUnavailable() from None


def ping(engine: Engine) -> bool:
    """Return True if the store answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Store ping failed (%s)", type(exc).__name__)
        return False
    return True

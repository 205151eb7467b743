"""
Database engine configuration and connection management.

Provides the SQLAlchemy async engine setup and connection helpers.
Repository calls take an AsyncConnection (and optionally an
AsyncTransaction) from the caller; nothing in the repository layer opens
or closes connections itself.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from identity_store.core.config import settings
from identity_store.core.logging_config import get_logger
from identity_store.models.schema import create_schema

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None


def get_async_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create and configure an async SQLAlchemy engine.

    For SQLite:
    - Uses StaticPool for in-memory databases (one shared connection)
    - Enables check_same_thread=False for async compatibility
    - Turns on foreign key enforcement and WAL mode on every connection

    Args:
        database_url: Connection URL; defaults to settings.database_url

    Returns:
        Configured AsyncEngine instance

    Note:
        settings.database_timeout_seconds is handed to the driver as-is
        (sqlite3 ``timeout``, asyncpg ``command_timeout``). This layer does
        not interpret or enforce timeouts itself.
    """
    url = database_url or settings.database_url
    is_sqlite = "sqlite" in url
    timeout = settings.database_timeout_seconds

    connect_args: dict = {}
    if is_sqlite:
        connect_args["check_same_thread"] = False
        if timeout is not None:
            connect_args["timeout"] = timeout
    elif timeout is not None:
        connect_args["command_timeout"] = timeout

    engine_kwargs = {
        "echo": settings.database_echo,
        "connect_args": connect_args,
    }

    # In-memory SQLite only exists for the lifetime of its connection
    if is_sqlite and ":memory:" in url:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **engine_kwargs)

    if is_sqlite:
        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):  # noqa: ANN001
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


def get_engine() -> AsyncEngine:
    """
    Return the process-wide engine, creating it on first use.

    The engine is read-only shared state; connections drawn from it are
    owned by whichever caller opened them.
    """
    global _engine
    if _engine is None:
        _engine = get_async_engine()
    return _engine


@asynccontextmanager
async def connect(engine: Optional[AsyncEngine] = None) -> AsyncIterator[AsyncConnection]:
    """
    Open a connection for one logical unit of work.

    Example:
        async with connect() as conn:
            role = await repo.get_role_by_id(role_id, conn)

    Note:
        - The connection is closed on exit; anything not committed is
          rolled back by SQLAlchemy at that point.
        - Use ``conn.begin()`` for explicit transactions.
    """
    async with (engine or get_engine()).connect() as conn:
        yield conn


async def init_db(engine: Optional[AsyncEngine] = None) -> None:
    """
    Initialize the database.

    Table creation only happens when ENABLE_DB_CREATE_ALL is set; shared
    databases are provisioned by their own migration tooling.
    """
    if not settings.enable_db_create_all:
        logger.info("Skipping schema creation (ENABLE_DB_CREATE_ALL not set)")
        return

    async with (engine or get_engine()).begin() as conn:
        await create_schema(conn)
    logger.info("Identity schema created")


async def close_db() -> None:
    """
    Dispose of the process-wide engine.

    Should be called at shutdown to cleanly close pooled connections.
    """
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None

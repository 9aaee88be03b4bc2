"""Storefront Auth database configuration - async SQLAlchemy.

Two independent databases are used: the primary application database
(accounts) and the session store (issued tokens). Each has its own
declarative base so that creating or migrating one never touches the other.
"""

from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from storefront_auth.core.logging import get_logger

logger = get_logger("database")

# Base class for models in the primary application database
AppBase = declarative_base()

# Base class for models in the session token store
SessionStoreBase = declarative_base()


def _ensure_sqlite_directory(url: str) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    parsed = make_url(url)
    if not parsed.get_backend_name().startswith("sqlite"):
        return
    database = parsed.database
    if not database or database == ":memory:":
        return
    Path(database).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL.

    Connection pool sizing only applies to server databases; SQLite uses
    SQLAlchemy's default pool for aiosqlite.
    """
    _ensure_sqlite_directory(url)

    if make_url(url).get_backend_name().startswith("sqlite"):
        return create_async_engine(url, echo=echo)

    return create_async_engine(
        url,
        pool_size=10,
        max_overflow=10,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,  # Verify connection before use
        echo=echo,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def check_db_connection(session_factory: async_sessionmaker[AsyncSession]) -> bool:
    """Check if a database is reachable."""
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (OSError, ConnectionError) as e:
        logger.debug(f"Database connection check failed: {e}")
        return False
    except Exception as e:
        logger.warning(f"Unexpected error checking database connection: {e}")
        return False

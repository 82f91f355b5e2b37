"""Database configuration and session management.

This module provides the SQLAlchemy asyncio engine, session management, and
schema bootstrap used by the relational prefix backend.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from prefixstore.observability.logging import get_logger
from prefixstore.storage.base_model import Base

logger = get_logger(__name__)


class DatabaseConfig:
    """Database configuration.

    Attributes:
        url: Async database URL (postgresql+asyncpg://... or sqlite+aiosqlite://...)
        echo: Whether to log SQL statements (default: False)
        pool_size: Connection pool size (default: 5)
        max_overflow: Maximum overflow connections (default: 10)
        pool_timeout: Seconds to wait for a pooled connection (default: 30)
    """

    def __init__(
        self,
        url: str = "sqlite+aiosqlite:///:memory:",
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: float = 30.0,
    ):
        self.url = url
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


class Database:
    """Database connection and session manager.

    Manages the SQLAlchemy async engine and session lifecycle.

    Example:
        >>> config = DatabaseConfig(url="sqlite+aiosqlite:///./prefixes.db")
        >>> db = Database(config)
        >>> await db.create_tables()
        >>> async with db.session() as session:
        ...     result = await session.execute(select(PrefixModel))
    """

    def __init__(self, config: DatabaseConfig):
        """Initialize database with configuration.

        Args:
            config: Database configuration
        """
        self.config = config

        # In-memory SQLite lives on one static connection; pool settings do not apply
        engine_kwargs: dict = {"echo": config.echo}
        if not _is_memory_sqlite(config.url):
            engine_kwargs["pool_size"] = config.pool_size
            engine_kwargs["max_overflow"] = config.max_overflow
            engine_kwargs["pool_timeout"] = config.pool_timeout

        self.engine = create_async_engine(config.url, **engine_kwargs)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )

    @property
    def dialect_name(self) -> str:
        """Name of the SQL dialect, e.g. "postgresql" or "sqlite"."""
        return self.engine.dialect.name

    async def create_tables(self) -> None:
        """Create all tables and indexes defined in ORM models if missing."""
        from prefixstore.storage import models as _  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.debug("schema_ensured", dialect=self.dialect_name)

    async def drop_tables(self) -> None:
        """Drop all tables defined in ORM models."""
        from prefixstore.storage import models as _  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session wrapped in one transaction.

        Commits when the block exits normally and rolls back on any exception.

        Yields:
            Database session
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def close(self) -> None:
        """Close database engine and connections."""
        await self.engine.dispose()

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is healthy

        Raises:
            Exception if database connection fails
        """
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

"""Pytest configuration and shared fixtures for the test suite."""

import os
import tempfile
from typing import AsyncGenerator

import pytest

from prefixstore.storage.base import PrefixStorage
from prefixstore.storage.database import Database, DatabaseConfig
from prefixstore.storage.memory import InMemoryPrefixStorage
from prefixstore.storage.sql import SQLPrefixStorage

# Configure pytest-asyncio to use auto mode
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
async def test_db() -> AsyncGenerator[Database, None]:
    """Create an in-memory SQLite database with the prefix schema.

    Yields:
        Database instance with in-memory SQLite connection
    """
    db = Database(DatabaseConfig(url="sqlite+aiosqlite:///:memory:", echo=False))
    await db.create_tables()

    yield db

    await db.close()


@pytest.fixture
async def test_db_file() -> AsyncGenerator[Database, None]:
    """Create a file-based SQLite database for tests that reopen the store.

    Yields:
        Database instance with file-based SQLite connection
    """
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    try:
        db = Database(DatabaseConfig(url=f"sqlite+aiosqlite:///{db_path}", echo=False))
        await db.create_tables()

        yield db

        await db.close()
    finally:
        if os.path.exists(db_path):
            os.remove(db_path)


@pytest.fixture
def sql_storage(test_db: Database) -> SQLPrefixStorage:
    """Create SQL storage on the in-memory SQLite test database."""
    return SQLPrefixStorage(test_db)


@pytest.fixture(params=["memory", "sql"])
async def storage(
    request: pytest.FixtureRequest, tmp_path
) -> AsyncGenerator[PrefixStorage, None]:
    """Yield each storage backend in turn, for contract tests.

    The SQL backend runs on a file-backed SQLite database so that concurrent
    operations get their own connections, as they would on a server.
    """
    if request.param == "memory":
        backend: PrefixStorage = InMemoryPrefixStorage()
    else:
        backend = await SQLPrefixStorage.connect(
            DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'prefixes.db'}")
        )
    yield backend
    await backend.close()


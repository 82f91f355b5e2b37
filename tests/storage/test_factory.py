"""Tests for create_storage()."""

import pytest

from prefixstore.config import StorageConfig
from prefixstore.errors import StorageConnectionError
from prefixstore.models import Prefix
from prefixstore.storage import create_storage
from prefixstore.storage.memory import InMemoryPrefixStorage
from prefixstore.storage.sql import SQLPrefixStorage


class TestCreateStorage:
    """Tests for backend selection."""

    @pytest.mark.asyncio
    async def test_memory_backend(self) -> None:
        storage = await create_storage(StorageConfig(backend="memory"), configure_logging=False)
        assert isinstance(storage, InMemoryPrefixStorage)

    @pytest.mark.asyncio
    async def test_sql_backend_bootstraps_schema(self, tmp_path) -> None:
        url = f"sqlite+aiosqlite:///{tmp_path}/prefixes.db"
        storage = await create_storage(
            StorageConfig(backend="sql", database_url=url), configure_logging=False
        )
        try:
            assert isinstance(storage, SQLPrefixStorage)
            created = await storage.create_prefix(Prefix(cidr="10.0.0.0/8"))
            assert await storage.read_prefix("10.0.0.0/8") == created
        finally:
            await storage.close()

    @pytest.mark.asyncio
    async def test_unreachable_database(self, tmp_path) -> None:
        url = f"sqlite+aiosqlite:///{tmp_path}/no/such/dir.db"
        with pytest.raises(StorageConnectionError):
            await create_storage(
                StorageConfig(backend="sql", database_url=url), configure_logging=False
            )

    @pytest.mark.asyncio
    async def test_sql_backend_without_url_raises(self) -> None:
        """A config built without validation still cannot reach the sql backend."""
        config = StorageConfig.model_construct(backend="sql", database_url=None)
        with pytest.raises(ValueError, match="database_url"):
            await create_storage(config, configure_logging=False)


class TestCreateStorageLogging:
    """create_storage() applies the configured logging settings."""

    @pytest.fixture
    def logging_calls(self, monkeypatch: pytest.MonkeyPatch) -> list[dict]:
        calls: list[dict] = []
        monkeypatch.setattr(
            "prefixstore.storage.factory.setup_logging",
            lambda **kwargs: calls.append(kwargs),
        )
        return calls

    @pytest.mark.asyncio
    async def test_logging_configured_from_config(self, logging_calls: list[dict]) -> None:
        await create_storage(StorageConfig(log_level="DEBUG", json_logs=False))
        assert logging_calls == [{"log_level": "DEBUG", "json_logs": False}]

    @pytest.mark.asyncio
    async def test_logging_left_alone_when_disabled(self, logging_calls: list[dict]) -> None:
        await create_storage(StorageConfig(), configure_logging=False)
        assert logging_calls == []

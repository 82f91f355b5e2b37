"""Construction of storage backends from configuration."""

from prefixstore.config import StorageConfig
from prefixstore.observability.logging import setup_logging
from prefixstore.storage.base import PrefixStorage
from prefixstore.storage.database import DatabaseConfig
from prefixstore.storage.memory import InMemoryPrefixStorage
from prefixstore.storage.sql import SQLPrefixStorage


async def create_storage(
    config: StorageConfig, *, configure_logging: bool = True
) -> PrefixStorage:
    """Build the backend selected by the configuration.

    Logging is configured from ``config.log_level`` and ``config.json_logs``
    first, unless the host application already did so and passes
    ``configure_logging=False``. The sql backend is connected and its schema
    bootstrapped before returning.

    Args:
        config: Storage configuration
        configure_logging: Whether to call setup_logging() with the config's settings

    Returns:
        A ready-to-use PrefixStorage

    Raises:
        ValueError: If the sql backend is selected without a database URL
        StorageConnectionError: If the sql backend cannot reach its database
    """
    if configure_logging:
        setup_logging(log_level=config.log_level, json_logs=config.json_logs)

    if config.backend == "memory":
        return InMemoryPrefixStorage()

    # model_construct() and model_copy() skip the StorageConfig validator
    if not config.database_url:
        raise ValueError("database_url is required when backend is 'sql'")
    return await SQLPrefixStorage.connect(
        DatabaseConfig(
            url=config.database_url,
            echo=config.echo,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
        )
    )

"""Storage configuration models and utilities.

This module provides configuration for choosing and connecting a prefix
storage backend, including PostgreSQL connection parameters and loading
settings from the environment.
"""

import os
from enum import Enum
from typing import Literal, Optional
from urllib.parse import quote

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, model_validator


class SSLMode(str, Enum):
    """How the PostgreSQL connection negotiates TLS.

    Values follow libpq's sslmode names.
    """

    # Do not care about security, pay for encryption only if the server insists
    ALLOW = "allow"
    # Do not care about security, never pay for encryption
    DISABLE = "disable"
    # Do not care about security, encrypt if the server supports it
    PREFER = "prefer"
    # Encrypt, trust the network to route to the right server
    REQUIRE = "require"
    # Encrypt and verify the server certificate chain
    VERIFY_CA = "verify-ca"
    # Encrypt, verify the chain and that the host name matches
    VERIFY_FULL = "verify-full"

    def query(self) -> str:
        """Connection-string query parameter selecting this mode for asyncpg."""
        return f"ssl={self.value}"


class PostgresConfig(BaseModel):
    """Connection parameters for a PostgreSQL prefix store.

    Attributes:
        host: Database host name or address
        port: Database port
        user: Role to connect as
        password: Password of the role (sensitive - not logged)
        dbname: Database name
        sslmode: TLS negotiation mode

    Example:
        >>> PostgresConfig(host="db", user="ipam", password="s3cret", dbname="ipam").url()
        'postgresql+asyncpg://ipam:s3cret@db:5432/ipam?ssl=prefer'
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default="localhost", min_length=1)
    port: int = Field(default=5432, ge=1, le=65535)
    user: str = Field(default="postgres", min_length=1)
    password: str = Field(default="", repr=False, description="Password (sensitive)")
    dbname: str = Field(default="postgres", min_length=1)
    sslmode: SSLMode = SSLMode.PREFER

    def url(self) -> str:
        """Build the SQLAlchemy async URL, percent-escaping credentials.

        Returns:
            URL usable with DatabaseConfig
        """
        user = quote(self.user, safe="")
        password = quote(self.password, safe="")
        credentials = f"{user}:{password}" if self.password else user
        return (
            f"postgresql+asyncpg://{credentials}@{self.host}:{self.port}/"
            f"{quote(self.dbname, safe='')}?{self.sslmode.query()}"
        )


class StorageConfig(BaseModel):
    """Global storage configuration.

    Attributes:
        backend: "memory" for the process-local store, "sql" for a relational one
        database_url: Async SQLAlchemy URL, required for the sql backend
        echo: Whether to log SQL statements
        pool_size: Connection pool size
        max_overflow: Maximum overflow connections
        pool_timeout: Seconds to wait for a pooled connection
        log_level: Logging level applied by create_storage()
        json_logs: Whether create_storage() configures JSON or console logs

    Example:
        >>> config = StorageConfig(backend="sql", database_url="sqlite+aiosqlite:///ipam.db")
        >>> storage = await create_storage(config)
    """

    model_config = ConfigDict(frozen=True)

    backend: Literal["memory", "sql"] = "memory"
    database_url: Optional[str] = Field(default=None, repr=False)
    echo: bool = False
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0)
    log_level: str = "INFO"
    json_logs: bool = True

    @model_validator(mode="after")
    def validate_database_url(self) -> "StorageConfig":
        """Require a database URL for the sql backend.

        Raises:
            ValueError: If backend is "sql" and no URL was given
        """
        if self.backend == "sql" and not self.database_url:
            raise ValueError("database_url is required when backend is 'sql'")
        return self


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def load_config_from_env() -> StorageConfig:
    """Load storage configuration from environment variables.

    Automatically loads variables from a .env file if present.

    Reads configuration from environment variables:
    - PREFIXSTORE_BACKEND: "memory" (default) or "sql"
    - PREFIXSTORE_DATABASE_URL: Full async SQLAlchemy URL
    - PREFIXSTORE_PG_HOST / _PORT / _USER / _PASSWORD / _DBNAME / _SSLMODE:
      PostgreSQL parameters, used when PREFIXSTORE_DATABASE_URL is unset
    - PREFIXSTORE_DB_ECHO: Log SQL statements (true/false)
    - PREFIXSTORE_DB_POOL_SIZE: Connection pool size
    - PREFIXSTORE_DB_MAX_OVERFLOW: Maximum overflow connections
    - PREFIXSTORE_DB_POOL_TIMEOUT: Seconds to wait for a pooled connection
    - PREFIXSTORE_LOG_LEVEL: Logging level
    - PREFIXSTORE_JSON_LOGS: Render logs as JSON (true/false)

    Returns:
        StorageConfig loaded from environment

    Raises:
        ValueError: If values are malformed or inconsistent
    """
    load_dotenv()

    backend = os.getenv("PREFIXSTORE_BACKEND", "memory").lower()

    database_url = os.getenv("PREFIXSTORE_DATABASE_URL")
    if not database_url and os.getenv("PREFIXSTORE_PG_HOST"):
        database_url = PostgresConfig(
            host=os.environ["PREFIXSTORE_PG_HOST"],
            port=int(os.getenv("PREFIXSTORE_PG_PORT", "5432")),
            user=os.getenv("PREFIXSTORE_PG_USER", "postgres"),
            password=os.getenv("PREFIXSTORE_PG_PASSWORD", ""),
            dbname=os.getenv("PREFIXSTORE_PG_DBNAME", "postgres"),
            sslmode=SSLMode(os.getenv("PREFIXSTORE_PG_SSLMODE", "prefer")),
        ).url()

    return StorageConfig(
        backend=backend,
        database_url=database_url,
        echo=_env_flag("PREFIXSTORE_DB_ECHO", "false"),
        pool_size=int(os.getenv("PREFIXSTORE_DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("PREFIXSTORE_DB_MAX_OVERFLOW", "10")),
        pool_timeout=float(os.getenv("PREFIXSTORE_DB_POOL_TIMEOUT", "30")),
        log_level=os.getenv("PREFIXSTORE_LOG_LEVEL", "INFO"),
        json_logs=_env_flag("PREFIXSTORE_JSON_LOGS", "true"),
    )

"""SQL-backed implementation of the prefix storage interface.

This module stores prefixes in one relational table through SQLAlchemy's
asyncio engine. Every operation runs in its own transaction; updates lock the
row and compare versions before writing.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import delete, select, text, update
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from prefixstore.context import OperationContext, bounded, check_context
from prefixstore.errors import (
    InvalidPrefixError,
    OptimisticLockError,
    PrefixAlreadyExistsError,
    PrefixNotFoundError,
    StorageConnectionError,
)
from prefixstore.models import DEFAULT_NAMESPACE, Prefix
from prefixstore.observability.logging import get_logger
from prefixstore.storage.database import Database, DatabaseConfig
from prefixstore.storage.models import PrefixModel

logger = get_logger(__name__)


class SQLPrefixStorage:
    """SQL-backed implementation of PrefixStorage.

    The table is keyed by (cidr, namespace) and keeps the whole record as a
    JSON document. Works against PostgreSQL (asyncpg) and SQLite (aiosqlite).

    Example:
        >>> storage = await SQLPrefixStorage.connect(
        ...     DatabaseConfig(url="postgresql+asyncpg://ipam:secret@db/ipam")
        ... )
        >>> created = await storage.create_prefix(Prefix(cidr="10.0.0.0/8"))
        >>> await storage.close()
    """

    def __init__(self, database: Database) -> None:
        """Initialize storage on top of a database whose schema already exists.

        Args:
            database: Database providing engine and sessions
        """
        self.database = database

    @classmethod
    async def connect(cls, config: DatabaseConfig) -> "SQLPrefixStorage":
        """Create the engine, ensure the schema exists and return the storage.

        Args:
            config: Database configuration

        Returns:
            Ready-to-use SQLPrefixStorage

        Raises:
            StorageConnectionError: If the database cannot be reached
        """
        database = Database(config)
        storage = cls(database)
        async with storage._translate_errors("connect"):
            await database.create_tables()
        logger.info("storage_opened", backend=storage.name())
        return storage

    def name(self) -> str:
        return self.database.dialect_name

    @asynccontextmanager
    async def _translate_errors(self, operation: str) -> AsyncIterator[None]:
        """Wrap driver, pool and transport failures in StorageConnectionError.

        Integrity violations pass through untouched; callers map them to
        domain errors.
        """
        try:
            yield
        except IntegrityError:
            raise
        except (DBAPIError, PoolTimeoutError, OSError) as exc:
            logger.warning(
                "storage_unavailable", backend=self.name(), operation=operation, error=str(exc)
            )
            raise StorageConnectionError(f"{operation} failed: {exc}") from exc

    @asynccontextmanager
    async def _transaction(
        self, operation: str, ctx: Optional[OperationContext]
    ) -> AsyncIterator[AsyncSession]:
        """Run the block in one transaction bounded by the context deadline."""
        check_context(ctx)
        async with self._translate_errors(operation):
            async with bounded(ctx):
                async with self.database.session() as session:
                    yield session

    async def create_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Insert a new prefix with version 0.

        Args:
            prefix: The prefix to create
            ctx: Optional cancellation context

        Returns:
            Copy of the stored prefix

        Raises:
            PrefixAlreadyExistsError: If (cidr, namespace) is already stored
            InvalidPrefixError: If the cidr is empty or the payload is not JSON
        """
        check_context(ctx)
        if not prefix.cidr:
            raise InvalidPrefixError("Cannot create a prefix without cidr")

        stored = prefix.validated_copy(version=0)
        try:
            async with self._transaction("create_prefix", ctx) as session:
                session.add(
                    PrefixModel(
                        cidr=stored.cidr,
                        namespace=stored.namespace,
                        prefix=stored.to_document(),
                    )
                )
                await session.flush()
        except IntegrityError as exc:
            raise PrefixAlreadyExistsError(prefix.cidr, prefix.namespace) from exc
        return stored

    async def read_prefix(
        self,
        cidr: str,
        namespace: str = DEFAULT_NAMESPACE,
        *,
        ctx: Optional[OperationContext] = None,
    ) -> Prefix:
        """Retrieve one prefix.

        Raises:
            PrefixNotFoundError: If no prefix is stored under (cidr, namespace)
        """
        async with self._transaction("read_prefix", ctx) as session:
            model = await session.get(PrefixModel, (cidr, namespace))
            if model is None:
                raise PrefixNotFoundError(cidr, namespace)
            return Prefix.from_document(model.prefix)

    async def read_prefixes(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        stmt = select(PrefixModel.prefix).where(PrefixModel.namespace == namespace)
        async with self._transaction("read_prefixes", ctx) as session:
            result = await session.execute(stmt)
            return [Prefix.from_document(document) for document in result.scalars().all()]

    async def read_all_prefixes(
        self, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        async with self._transaction("read_all_prefixes", ctx) as session:
            result = await session.execute(select(PrefixModel.prefix))
            return [Prefix.from_document(document) for document in result.scalars().all()]

    async def read_all_prefix_cidrs(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[str]:
        stmt = select(PrefixModel.cidr).where(PrefixModel.namespace == namespace)
        async with self._transaction("read_all_prefix_cidrs", ctx) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def update_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Replace a stored prefix if its version still matches.

        Reads the row with SELECT ... FOR UPDATE, compares the stored version
        with the observed one and writes the incremented record in the same
        transaction. The UPDATE is additionally guarded by the observed
        version, so engines without row locks (SQLite) still reject a
        concurrent writer.

        Args:
            prefix: New state; ``prefix.version`` is the version last observed
            ctx: Optional cancellation context

        Returns:
            Copy of the stored prefix, carrying ``version + 1``

        Raises:
            PrefixNotFoundError: If the cidr is empty or the key is not stored
            OptimisticLockError: If the stored version differs from prefix.version
            InvalidPrefixError: If the payload is not JSON
        """
        check_context(ctx)
        if not prefix.cidr:
            raise PrefixNotFoundError(prefix.cidr, prefix.namespace)

        observed = prefix.version
        updated = prefix.validated_copy(version=observed + 1)
        key_clause = (
            PrefixModel.cidr == updated.cidr,
            PrefixModel.namespace == updated.namespace,
        )

        async with self._transaction("update_prefix", ctx) as session:
            locked = await session.execute(
                select(PrefixModel.prefix).where(*key_clause).with_for_update()
            )
            document = locked.scalar_one_or_none()
            if document is None:
                raise PrefixNotFoundError(prefix.cidr, prefix.namespace)

            current = Prefix.from_document(document).version
            if current != observed:
                raise OptimisticLockError(prefix.cidr, prefix.namespace, observed, current)

            result = await session.execute(
                update(PrefixModel)
                .where(*key_clause, PrefixModel.prefix["version"].as_integer() == observed)
                .values(prefix=updated.to_document())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise OptimisticLockError(prefix.cidr, prefix.namespace, observed)
        return updated

    async def delete_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        stmt = delete(PrefixModel).where(
            PrefixModel.cidr == prefix.cidr, PrefixModel.namespace == prefix.namespace
        )
        async with self._transaction("delete_prefix", ctx) as session:
            await session.execute(stmt)
        return prefix.model_copy(deep=True)

    async def delete_all_prefixes(self, *, ctx: Optional[OperationContext] = None) -> None:
        async with self._transaction("delete_all_prefixes", ctx) as session:
            if self.name() == "postgresql":
                await session.execute(text(f"TRUNCATE TABLE {PrefixModel.__tablename__}"))
            else:
                await session.execute(delete(PrefixModel))
        logger.info("prefixes_purged", backend=self.name())

    async def list_namespaces(self, *, ctx: Optional[OperationContext] = None) -> list[str]:
        stmt = select(PrefixModel.namespace).distinct().order_by(PrefixModel.namespace)
        async with self._transaction("list_namespaces", ctx) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def delete_namespace(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> int:
        """Remove every prefix of one namespace.

        Returns:
            Number of prefixes removed
        """
        stmt = delete(PrefixModel).where(PrefixModel.namespace == namespace)
        async with self._transaction("delete_namespace", ctx) as session:
            result = await session.execute(stmt)
            removed = result.rowcount
        logger.info("namespace_deleted", backend=self.name(), namespace=namespace, count=removed)
        return removed

    async def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        await self.database.close()

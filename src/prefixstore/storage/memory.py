"""In-memory implementation of the prefix storage interface.

This module provides a process-local, dictionary-based backend suitable for
development, testing, and single-instance deployments.
"""

from typing import Optional

from prefixstore.context import OperationContext, bounded, check_context
from prefixstore.errors import (
    InvalidPrefixError,
    OptimisticLockError,
    PrefixAlreadyExistsError,
    PrefixNotFoundError,
)
from prefixstore.models import DEFAULT_NAMESPACE, Prefix, PrefixKey
from prefixstore.observability.logging import get_logger
from prefixstore.storage.locks import AsyncReadWriteLock

logger = get_logger(__name__)


class InMemoryPrefixStorage:
    """In-memory implementation of PrefixStorage.

    One reader/writer lock guards the whole mapping: reads share it, every
    mutation takes it exclusively. Prefixes are deep-copied on the way in and
    on the way out, so callers never hold a reference into the store.

    Attributes:
        _prefixes: Dictionary mapping (cidr, namespace) to stored prefixes
        _lock: Reader/writer lock over _prefixes

    Example:
        >>> storage = InMemoryPrefixStorage()
        >>> created = await storage.create_prefix(Prefix(cidr="10.0.0.0/8"))
        >>> created.version
        0
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._prefixes: dict[PrefixKey, Prefix] = {}
        self._lock = AsyncReadWriteLock()
        logger.debug("storage_opened", backend=self.name())

    def name(self) -> str:
        return "memory"

    async def create_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Store a new prefix with version 0.

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
        async with bounded(ctx):
            await self._lock.acquire_write()
        try:
            if stored.key in self._prefixes:
                raise PrefixAlreadyExistsError(prefix.cidr, prefix.namespace)
            self._prefixes[stored.key] = stored
            return stored.model_copy(deep=True)
        finally:
            self._lock.release_write()

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
        async with bounded(ctx):
            await self._lock.acquire_read()
        try:
            prefix = self._prefixes.get(PrefixKey(cidr, namespace))
            if prefix is None:
                raise PrefixNotFoundError(cidr, namespace)
            return prefix.model_copy(deep=True)
        finally:
            self._lock.release_read()

    async def read_prefixes(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        async with bounded(ctx):
            await self._lock.acquire_read()
        try:
            return [
                prefix.model_copy(deep=True)
                for key, prefix in self._prefixes.items()
                if key.namespace == namespace
            ]
        finally:
            self._lock.release_read()

    async def read_all_prefixes(
        self, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        async with bounded(ctx):
            await self._lock.acquire_read()
        try:
            return [prefix.model_copy(deep=True) for prefix in self._prefixes.values()]
        finally:
            self._lock.release_read()

    async def read_all_prefix_cidrs(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[str]:
        async with bounded(ctx):
            await self._lock.acquire_read()
        try:
            return [key.cidr for key in self._prefixes if key.namespace == namespace]
        finally:
            self._lock.release_read()

    async def update_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Replace a stored prefix if its version still matches.

        The version comparison and the write happen under the exclusive lock,
        which makes the compare-and-swap atomic.

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
        async with bounded(ctx):
            await self._lock.acquire_write()
        try:
            current = self._prefixes.get(updated.key)
            if current is None:
                raise PrefixNotFoundError(prefix.cidr, prefix.namespace)
            if current.version != observed:
                raise OptimisticLockError(
                    prefix.cidr, prefix.namespace, observed, current.version
                )
            self._prefixes[updated.key] = updated
            return updated.model_copy(deep=True)
        finally:
            self._lock.release_write()

    async def delete_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        async with bounded(ctx):
            await self._lock.acquire_write()
        try:
            self._prefixes.pop(prefix.key, None)
        finally:
            self._lock.release_write()
        return prefix.model_copy(deep=True)

    async def delete_all_prefixes(self, *, ctx: Optional[OperationContext] = None) -> None:
        async with bounded(ctx):
            await self._lock.acquire_write()
        try:
            purged = len(self._prefixes)
            self._prefixes = {}
        finally:
            self._lock.release_write()
        logger.info("prefixes_purged", backend=self.name(), count=purged)

    async def list_namespaces(self, *, ctx: Optional[OperationContext] = None) -> list[str]:
        async with bounded(ctx):
            await self._lock.acquire_read()
        try:
            return sorted({key.namespace for key in self._prefixes})
        finally:
            self._lock.release_read()

    async def delete_namespace(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> int:
        """Remove every prefix of one namespace.

        Returns:
            Number of prefixes removed
        """
        async with bounded(ctx):
            await self._lock.acquire_write()
        try:
            doomed = [key for key in self._prefixes if key.namespace == namespace]
            for key in doomed:
                del self._prefixes[key]
        finally:
            self._lock.release_write()
        logger.info(
            "namespace_deleted", backend=self.name(), namespace=namespace, count=len(doomed)
        )
        return len(doomed)

    async def close(self) -> None:
        """Nothing to release; the store lives as long as the object."""
        return None

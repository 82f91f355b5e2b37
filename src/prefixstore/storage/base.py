"""Abstract storage interface for prefix records.

This module defines the Protocol every prefix storage backend implements,
enabling callers to swap the in-memory and relational backends without code
changes and letting contract tests run once against every backend.
"""

from typing import Optional, Protocol, runtime_checkable

from prefixstore.context import OperationContext
from prefixstore.models import DEFAULT_NAMESPACE, Prefix


@runtime_checkable
class PrefixStorage(Protocol):
    """Protocol for versioned, namespace-scoped prefix storage.

    Records are identified by (cidr, namespace). Every record handed out is an
    independent copy. Updates are guarded by optimistic concurrency control:
    the caller passes the version it last read and the backend rejects the
    write if the stored version moved on.

    Every operation accepts an optional ``ctx``; a cancelled or expired
    context makes the operation raise OperationCancelledError without
    touching the store.
    """

    def name(self) -> str:
        """Short identifier of the backend, e.g. "memory" or "postgresql"."""
        ...

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
        ...

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
        ...

    async def read_prefixes(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        """List every prefix of a namespace, in no particular order.

        Returns an empty list when the namespace holds nothing.
        """
        ...

    async def read_all_prefixes(
        self, *, ctx: Optional[OperationContext] = None
    ) -> list[Prefix]:
        """List every prefix across all namespaces."""
        ...

    async def read_all_prefix_cidrs(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> list[str]:
        """List the cidrs of every prefix in a namespace."""
        ...

    async def update_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Replace a stored prefix if nobody changed it since it was read.

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
        ...

    async def delete_prefix(
        self, prefix: Prefix, *, ctx: Optional[OperationContext] = None
    ) -> Prefix:
        """Remove a prefix if present. Deleting an absent prefix succeeds.

        Returns:
            Copy of the given prefix
        """
        ...

    async def delete_all_prefixes(self, *, ctx: Optional[OperationContext] = None) -> None:
        """Remove every prefix of every namespace."""
        ...

    async def list_namespaces(self, *, ctx: Optional[OperationContext] = None) -> list[str]:
        """List, sorted, the namespaces holding at least one prefix."""
        ...

    async def delete_namespace(
        self, namespace: str, *, ctx: Optional[OperationContext] = None
    ) -> int:
        """Remove every prefix of one namespace.

        Returns:
            Number of prefixes removed (0 for an unknown namespace)
        """
        ...

    async def close(self) -> None:
        """Release resources held by the backend."""
        ...

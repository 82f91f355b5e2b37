"""Custom exceptions for prefix storage.

This module defines the exception hierarchy raised by every storage backend.
Callers distinguish failures by exception class, never by message text.
"""

from typing import Optional


class StorageError(Exception):
    """Base exception for all prefix storage errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable error message
        status_code: HTTP-style status code for API surfaces built on top
    """

    def __init__(self, message: str, code: str, status_code: int) -> None:
        """Initialize storage error.

        Args:
            message: Human-readable error description
            code: Machine-readable error code
            status_code: HTTP-style status code (404, 409, etc.)
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


class PrefixAlreadyExistsError(StorageError):
    """Raised when creating a prefix whose (cidr, namespace) is already stored."""

    def __init__(self, cidr: str, namespace: str) -> None:
        """Initialize prefix already exists error.

        Args:
            cidr: The cidr of the conflicting prefix
            namespace: The namespace of the conflicting prefix
        """
        super().__init__(
            message=f"Prefix '{cidr}' already exists in namespace '{namespace}'",
            code="prefix_already_exists",
            status_code=409,
        )
        self.cidr = cidr
        self.namespace = namespace


class PrefixNotFoundError(StorageError):
    """Raised when a prefix cannot be found."""

    def __init__(self, cidr: str, namespace: str) -> None:
        """Initialize prefix not found error.

        Args:
            cidr: The cidr that was looked up (may be empty)
            namespace: The namespace that was searched
        """
        super().__init__(
            message=f"Prefix '{cidr}' not found in namespace '{namespace}'",
            code="prefix_not_found",
            status_code=404,
        )
        self.cidr = cidr
        self.namespace = namespace


class OptimisticLockError(StorageError):
    """Raised when an update was conditioned on a stale version.

    This error indicates that the prefix was modified by another caller
    since it was last read. The caller must re-read and retry.
    """

    def __init__(
        self,
        cidr: str,
        namespace: str,
        expected_version: int,
        current_version: Optional[int] = None,
    ) -> None:
        """Initialize optimistic lock error.

        Args:
            cidr: The cidr of the prefix
            namespace: The namespace of the prefix
            expected_version: The version the caller observed
            current_version: The stored version, when known
        """
        found = "unknown" if current_version is None else str(current_version)
        super().__init__(
            message=f"Concurrent modification detected for prefix '{cidr}' "
            f"in namespace '{namespace}': expected version {expected_version}, "
            f"found version {found}",
            code="optimistic_lock_conflict",
            status_code=409,
        )
        self.cidr = cidr
        self.namespace = namespace
        self.expected_version = expected_version
        self.current_version = current_version


class InvalidPrefixError(StorageError):
    """Raised when a prefix cannot be stored because it is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="invalid_prefix", status_code=400)


class StorageConnectionError(StorageError):
    """Raised when the underlying store cannot be reached or fails in transit.

    The original driver exception is chained as ``__cause__``.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="storage_unavailable", status_code=503)


class OperationCancelledError(StorageError):
    """Raised when an operation context was cancelled or ran past its deadline."""

    def __init__(self, message: str = "Operation cancelled") -> None:
        super().__init__(message=message, code="operation_cancelled", status_code=499)

"""prefixstore: versioned, namespace-scoped storage for network prefix records."""

from prefixstore.context import OperationContext
from prefixstore.errors import (
    InvalidPrefixError,
    OperationCancelledError,
    OptimisticLockError,
    PrefixAlreadyExistsError,
    PrefixNotFoundError,
    StorageConnectionError,
    StorageError,
)
from prefixstore.models import DEFAULT_NAMESPACE, Prefix, PrefixKey

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_NAMESPACE",
    "Prefix",
    "PrefixKey",
    "OperationContext",
    "StorageError",
    "PrefixAlreadyExistsError",
    "PrefixNotFoundError",
    "OptimisticLockError",
    "InvalidPrefixError",
    "StorageConnectionError",
    "OperationCancelledError",
]

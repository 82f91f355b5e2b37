"""Cancellation and deadline handling for storage operations.

Every storage operation accepts an optional OperationContext. An operation
refuses to start when its context is already cancelled or expired, and bounds
any lock wait or database round trip by the time the context has left.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from prefixstore.errors import OperationCancelledError


class OperationContext:
    """Cancellation flag plus optional deadline shared by one or more operations.

    Deadlines are measured on the monotonic clock.

    Example:
        >>> ctx = OperationContext(timeout=0.5)
        >>> await storage.read_prefix("10.0.0.0/8", ctx=ctx)
        >>> ctx.cancel()
        >>> await storage.read_prefix("10.0.0.0/8", ctx=ctx)  # raises
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize the context.

        Args:
            timeout: Seconds from now until the deadline; None for no deadline
        """
        self._deadline = None if timeout is None else time.monotonic() + timeout
        self._cancelled = False

    @classmethod
    def with_deadline(cls, deadline: float) -> "OperationContext":
        """Create a context expiring at an absolute monotonic timestamp.

        Args:
            deadline: Value comparable with time.monotonic()

        Returns:
            A new OperationContext
        """
        ctx = cls()
        ctx._deadline = deadline
        return ctx

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called or the deadline passed."""
        return self._cancelled or self.expired

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def cancel(self) -> None:
        """Cancel every operation that checks this context from now on."""
        self._cancelled = True

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, clamped at zero; None without deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise if the context can no longer run operations.

        Raises:
            OperationCancelledError: If cancelled or past the deadline
        """
        if self._cancelled:
            raise OperationCancelledError("Operation cancelled")
        if self.expired:
            raise OperationCancelledError("Operation deadline exceeded")


def check_context(ctx: Optional[OperationContext]) -> None:
    """Check an optional context, doing nothing when none was given."""
    if ctx is not None:
        ctx.check()


@asynccontextmanager
async def bounded(ctx: Optional[OperationContext]) -> AsyncIterator[None]:
    """Bound the enclosed awaits by the context deadline.

    Checks the context on entry. A deadline hit inside the block surfaces as
    OperationCancelledError instead of TimeoutError.

    Args:
        ctx: Optional operation context

    Raises:
        OperationCancelledError: If the context is done before or during the block
    """
    check_context(ctx)
    remaining = ctx.remaining() if ctx is not None else None
    scope = asyncio.timeout(remaining)
    try:
        async with scope:
            yield
    except TimeoutError as exc:
        if not scope.expired():
            raise
        raise OperationCancelledError("Operation deadline exceeded") from exc

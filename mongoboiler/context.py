"""
Operation context.

Carries the cancellation flag and deadline shared by a ``Database`` handle
and every ``Collection`` derived from it. Each driver call runs inside
``OperationContext.scope()``, which refuses to start when the context is
cancelled or expired and otherwise hands the remaining time to the driver
through ``pymongo.timeout`` so the driver aborts the call itself.

Usage:
    ctx = OperationContext.background().with_timeout(2.5)
    db = Database(client, "shop", context=ctx)
    await db.orders.find_many({"status": "open"})

    ctx.cancel()  # later calls raise OperationCancelledError
"""

import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager

import pymongo

from .exceptions import DeadlineExceededError, OperationCancelledError


class OperationContext:
    """
    Cancellation and deadline carrier for collection operations.

    A child context created with ``with_timeout`` never outlives its parent:
    its deadline is the earlier of the two and cancelling the parent
    cancels the child.
    """

    def __init__(self, timeout: float | None = None, parent: "OperationContext | None" = None):
        """
        Args:
            timeout: Seconds from now until the deadline (None for no deadline)
            parent: Optional parent context whose deadline and cancellation are inherited
        """
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")

        self._parent = parent
        self._cancelled = threading.Event()

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

    @classmethod
    def background(cls) -> "OperationContext":
        """Return a context with no deadline."""
        return cls()

    def with_timeout(self, seconds: float) -> "OperationContext":
        """Derive a child context that expires ``seconds`` from now."""
        return OperationContext(timeout=seconds, parent=self)

    @property
    def parent(self) -> "OperationContext | None":
        return self._parent

    @property
    def deadline(self) -> float | None:
        """Deadline as a ``time.monotonic()`` value, or None."""
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.cancelled

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cancel(self) -> None:
        """Cancel this context and every context derived from it."""
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """
        Raise if no further operation may start under this context.

        Raises:
            OperationCancelledError: If the context (or a parent) was cancelled
            DeadlineExceededError: If the deadline has passed
        """
        if self.cancelled:
            raise OperationCancelledError("Operation context was cancelled")
        if self.expired:
            raise DeadlineExceededError(
                "Operation context deadline exceeded",
                context={"deadline": round(self._deadline, 3)},
            )

    @contextmanager
    def scope(self) -> Iterator[None]:
        """Run the enclosed driver call under this context's deadline."""
        self.check()
        remaining = self.remaining()
        if remaining is None:
            yield
            return
        with pymongo.timeout(remaining):
            yield

    def __repr__(self) -> str:
        remaining = self.remaining()
        remaining_str = "none" if remaining is None else f"{remaining:.3f}s"
        return f"OperationContext(remaining={remaining_str}, cancelled={self.cancelled})"

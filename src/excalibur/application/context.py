"""
Run context: cooperative cancellation with an optional deadline.

A RunContext is handed down through every layer of a generation run. Long
running work checks it at safe points (between sheets and rows) and the data
sources consult remaining() to bound their own query timeouts. cancel() may be
called from a signal handler or another thread.
"""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Callable, Optional, Type

from excalibur.domain.errors import (
    GenerationCancelled,
    GenerationInterrupted,
    GenerationTimedOut,
)


class RunContext:
    """
    Cancellation token plus deadline.

    Usage:
        ctx = RunContext(timeout=300)
        ctx.check("before sheet 'Summary'")   # raises if cancelled/expired
        ctx.cancel()                          # e.g. from a SIGINT handler
    """

    def __init__(
        self,
        timeout: float | timedelta | None = None,
        *,
        parent: Optional["RunContext"] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            timeout: Seconds (or timedelta) until the context expires; None for no deadline
            parent: Context whose cancellation and deadline are inherited
            clock: Monotonic time source (injectable for tests)
        """
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()

        self._parent = parent
        self._clock = clock
        self._cancelled = threading.Event()
        self._timeout = timeout
        self._deadline: float | None = clock() + timeout if timeout is not None else None

    @classmethod
    def background(cls) -> "RunContext":
        """A context that never expires and is only cancelled explicitly."""
        return cls()

    def with_timeout(self, timeout: float | timedelta) -> "RunContext":
        """Derive a child context with its own deadline."""
        return RunContext(timeout, parent=self, clock=self._clock)

    @property
    def timeout(self) -> float | None:
        """Timeout this context was created with (seconds)."""
        return self._timeout

    @property
    def deadline(self) -> float | None:
        """Earliest deadline of this context and its ancestors (clock units)."""
        deadlines = [d for d in (self._deadline, self._parent.deadline if self._parent else None) if d is not None]
        return min(deadlines) if deadlines else None

    def cancel(self) -> None:
        """Request cancellation. Safe to call repeatedly and from signal handlers."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent.cancelled if self._parent else False

    @property
    def expired(self) -> bool:
        deadline = self.deadline
        return deadline is not None and self._clock() >= deadline

    @property
    def done(self) -> bool:
        return self.cancelled or self.expired

    def remaining(self) -> float | None:
        """Seconds left before the deadline (never negative), or None if unbounded."""
        deadline = self.deadline
        if deadline is None:
            return None
        return max(0.0, deadline - self._clock())

    def interruption(self) -> Optional[Type[GenerationInterrupted]]:
        """
        Return the reason this context is done, or None while it is live.

        Cancellation wins over expiry so a Ctrl+C close to the deadline is
        reported as a cancellation.
        """
        if self.cancelled:
            return GenerationCancelled
        if self.expired:
            return GenerationTimedOut
        return None

    def check(self, message: str, *, sheet: str | None = None, row: int | None = None) -> None:
        """
        Raise the matching interruption error if the context is done.

        Raises:
            GenerationCancelled: If cancel() was called
            GenerationTimedOut: If the deadline passed
        """
        reason = self.interruption()
        if reason is None:
            return
        detail = "cancelled" if reason is GenerationCancelled else "deadline exceeded"
        raise reason(f"{message}: {detail}", sheet=sheet, row=row)

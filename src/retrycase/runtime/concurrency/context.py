"""Cancellable execution context.

A CancelContext carries a cancellation signal, an optional deadline, and the
cause once fired. Contexts form a tree: cancelling a parent cancels every
derived child, and a child's deadline never outlives its parent's.

Example:
    >>> async with CancelContext(timeout=5.0) as ctx:
    ...     outcome = await policy.run(ctx, fetch)
    >>>
    >>> # Explicit cancellation from elsewhere
    >>> ctx = CancelContext()
    >>> ctx.cancel()
    >>> ctx.cause
    ContextCancelled('context canceled')

All methods must be called from the event loop thread that awaits the context.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from retrycase.foundation.errors import ContextCancelled, DeadlineExceeded

if TYPE_CHECKING:
    from types import TracebackType


@dataclass(slots=True, eq=False, weakref_slot=True)
class CancelContext:
    """Cancellation signal with optional deadline and parent.

    Attributes:
        timeout: Seconds from construction until the deadline fires
        deadline: Absolute deadline on the time.monotonic() clock
        parent: Context whose cancellation propagates to this one
    """

    timeout: float | None = None
    deadline: float | None = None
    parent: CancelContext | None = field(default=None, repr=False)
    _cause: BaseException | None = field(default=None, init=False, repr=False)
    _event: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)
    _children: weakref.WeakSet[CancelContext] = field(default_factory=weakref.WeakSet, init=False, repr=False)
    _timer: asyncio.TimerHandle | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.timeout is not None:
            if self.timeout < 0:
                raise ValueError(f"timeout must be >= 0, got {self.timeout}")
            self.deadline = _earliest(self.deadline, time.monotonic() + self.timeout)

        if self.parent is not None:
            self.deadline = _earliest(self.deadline, self.parent.deadline)
            if (cause := self.parent.cause) is not None:
                self.cancel(cause)
            else:
                self.parent._children.add(self)

    # ─────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────

    @property
    def cause(self) -> BaseException | None:
        """Why the context ended, or None while it is still live.

        A passed deadline is observed here even if no timer is armed.
        """
        if self._cause is None and self.deadline is not None and time.monotonic() >= self.deadline:
            self._expire()
        return self._cause

    @property
    def cancelled(self) -> bool:
        return self.cause is not None

    @property
    def remaining(self) -> float | None:
        """Seconds until the deadline, or None if there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    # ─────────────────────────────────────────────────────────────────
    # Control
    # ─────────────────────────────────────────────────────────────────

    def cancel(self, cause: BaseException | None = None) -> None:
        """Fire the context. Only the first call records a cause."""
        if self._cause is not None:
            return
        self._cause = cause if cause is not None else ContextCancelled()
        self._event.set()
        self._disarm()
        for child in list(self._children):
            child.cancel(self._cause)
        self._children.clear()

    async def wait(self) -> BaseException:
        """Suspend until the context fires and return its cause."""
        if (cause := self.cause) is not None:
            return cause
        remaining = self.remaining
        if remaining is None:
            await self._event.wait()
        else:
            try:
                await asyncio.wait_for(self._event.wait(), remaining)
            except asyncio.TimeoutError:
                self._expire()
        assert self._cause is not None
        return self._cause

    def child(self) -> CancelContext:
        """Derive a context cancelled together with this one."""
        return CancelContext(parent=self)

    def with_timeout(self, timeout: float) -> CancelContext:
        """Derive a context that also fires after *timeout* seconds."""
        return CancelContext(timeout=timeout, parent=self)

    # ─────────────────────────────────────────────────────────────────
    # Async context manager: arms the deadline timer
    # ─────────────────────────────────────────────────────────────────

    async def __aenter__(self) -> CancelContext:
        remaining = self.remaining
        if remaining is not None and self._cause is None:
            self._timer = asyncio.get_running_loop().call_later(remaining, self._expire)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        self._disarm()
        return False

    # ─────────────────────────────────────────────────────────────────

    def _expire(self) -> None:
        self._timer = None
        self.cancel(DeadlineExceeded())

    def _disarm(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


def _earliest(a: float | None, b: float | None) -> float | None:
    if a is None:
        return b
    if b is None:
        return a
    return min(a, b)

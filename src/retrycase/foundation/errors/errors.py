"""Failure kinds reported by a retry run and causes carried by a context.

A run ends in exactly one of:
- the filter-rejected error itself (returned verbatim, not wrapped)
- RetryExhausted: every attempt failed; carries all errors in attempt order
- RetryCancelled: the context fired while waiting; carries cause and attempts
"""

from __future__ import annotations

from typing import Self


class RetryError(Exception):
    """Base class for failures produced by the retry loop itself."""


class RetryExhausted(RetryError):
    """All attempts consumed without success.

    Attributes:
        errors: Every error seen during the run, in attempt order
    """

    __slots__ = ("errors",)

    def __init__(self, errors: tuple[Exception, ...] | list[Exception] = ()) -> None:
        self.errors: tuple[Exception, ...] = tuple(errors)
        super().__init__(f"aborting retry after {len(self.errors)} attempts. errors: {list(self.errors)!r}")

    @property
    def attempts(self) -> int:
        return len(self.errors)

    @property
    def last_error(self) -> Exception | None:
        return self.errors[-1] if self.errors else None


class RetryCancelled(RetryError):
    """Context fired while waiting between attempts.

    Prior attempt errors are not carried; the cancellation cause takes
    precedence in the reported outcome.

    Attributes:
        cause: Why the context ended (ContextCancelled, DeadlineExceeded, or caller-supplied)
        attempts: Attempts already made when cancellation was observed
    """

    __slots__ = ("cause", "attempts")

    def __init__(self, cause: BaseException | None, attempts: int) -> None:
        self.cause = cause
        self.attempts = attempts
        super().__init__(f"context expired while retrying: {cause}. retried {attempts} times")
        self.__cause__ = cause


class ContextCancelled(Exception):
    """Cause recorded when a context is cancelled explicitly."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class DeadlineExceeded(ContextCancelled):
    """Cause recorded when a context's deadline passes."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)

    @classmethod
    def after(cls, seconds: float) -> Self:
        return cls(f"context deadline exceeded after {seconds:.3f}s")

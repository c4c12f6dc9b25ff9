"""Backoff sequence generators for retry policies.

A backoff is a stateful cursor over a sequence of delays:
- next(): current delay in seconds, then advance
- reset(): rewind to the initial delay
- clone(): independent copy (same parameters, same cursor position)

Policies treat the backoff they are given as a template and always work on
a clone, so one template can drive any number of runs.

Provided strategies:
- ExponentialBackoff: Exponential growth with optional jitter
- LinearBackoff: Linear growth with cap
- ConstantBackoff: Fixed delay
- DecorrelatedJitter: AWS-style decorrelated jitter (optimal for many retriers)
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from typing import Self

    from retrycase.foundation.config import RetrySettings


@runtime_checkable
class Backoff(Protocol):
    """Protocol for backoff sequence generators."""

    def next(self) -> float:
        """Return the current delay in seconds and advance the cursor."""
        ...

    def reset(self) -> None:
        """Rewind the cursor to the initial delay."""
        ...

    def clone(self) -> Backoff:
        """Return a copy sharing no mutable state with this one."""
        ...


@dataclass(slots=True)
class _Cursor:
    """Shared cursor bookkeeping; subclasses implement delay(attempt)."""

    _attempt: int = field(default=0, repr=False, compare=False, kw_only=True)

    @property
    def attempt(self) -> int:
        """Number of delays drawn since the last reset."""
        return self._attempt

    def delay(self, attempt: int) -> float:
        raise NotImplementedError

    def next(self) -> float:
        d = self.delay(self._attempt)
        self._attempt += 1
        return d

    def reset(self) -> None:
        self._attempt = 0

    def clone(self) -> Self:
        return replace(self)


@dataclass(slots=True)
class ExponentialBackoff(_Cursor):
    """Exponential backoff with optional jitter.

    Delay = min(base * (multiplier ^ attempt), max_delay) * jitter

    Jitter prevents thundering herd by randomizing delays.

    Attributes:
        base: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay cap in seconds (default: 60.0)
        multiplier: Exponential growth factor (default: 2.0)
        jitter: Add randomization 0.5-1.5x (default: True)
    """

    base: float = 1.0
    max_delay: float = 60.0
    multiplier: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.base < 0 or self.max_delay < 0:
            raise ValueError(f"delays must be >= 0 (base={self.base}, max_delay={self.max_delay})")
        if self.multiplier <= 0:
            raise ValueError(f"multiplier must be > 0, got {self.multiplier}")

    def delay(self, attempt: int) -> float:
        try:
            d = min(self.base * (self.multiplier ** attempt), self.max_delay)
        except OverflowError:
            d = self.max_delay
        return d * (0.5 + random.random()) if self.jitter else d

    @classmethod
    def from_settings(cls, settings: RetrySettings) -> ExponentialBackoff:
        return cls(
            base=settings.base_delay,
            max_delay=settings.max_delay,
            multiplier=settings.multiplier,
            jitter=settings.jitter,
        )


@dataclass(slots=True)
class LinearBackoff(_Cursor):
    """Linear backoff with cap.

    Delay = min(base + (increment * attempt), max_delay)
    """

    base: float = 1.0
    increment: float = 1.0
    max_delay: float = 60.0

    def delay(self, attempt: int) -> float:
        return min(self.base + (self.increment * attempt), self.max_delay)


@dataclass(slots=True)
class ConstantBackoff(_Cursor):
    """Fixed delay between attempts."""

    delay_seconds: float = 1.0

    def delay(self, attempt: int) -> float:
        return self.delay_seconds


@dataclass(slots=True)
class DecorrelatedJitter(_Cursor):
    """AWS-style decorrelated jitter backoff.

    Each delay is drawn from [base, previous * 3], capped at max_delay.
    The previous delay is part of the cursor: clone() copies it and
    reset() rewinds it to base.

    Reference: https://aws.amazon.com/blogs/architecture/exponential-backoff-and-jitter/
    """

    base: float = 1.0
    max_delay: float = 60.0
    _prev: float | None = field(default=None, repr=False, compare=False, kw_only=True)

    def delay(self, attempt: int) -> float:
        prev = self.base if self._prev is None else self._prev
        return prev if attempt == 0 else min(self.max_delay, random.uniform(self.base, prev * 3))

    def next(self) -> float:
        d = self.delay(self._attempt)
        self._prev = d
        self._attempt += 1
        return d

    def reset(self) -> None:
        self._attempt = 0
        self._prev = None


def default_backoff(settings: RetrySettings | None = None) -> ExponentialBackoff:
    """Backoff template used when a policy is built without one."""
    if settings is None:
        from retrycase.foundation.config import get_settings
        settings = get_settings().retry
    return ExponentialBackoff.from_settings(settings)

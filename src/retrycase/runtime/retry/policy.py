"""Retry policy: run a fallible action until success, rejection, cancellation or exhaustion.

A RetryPolicy is frozen configuration plus the retry loop. Each run clones
and resets the backoff template, so one policy can serve any number of
sequential or concurrent runs without their delays leaking into each other.

An action takes the run's CancelContext and may be sync or async. It fails
by returning Err(exc) or raising an Exception; anything else is success.

Outcomes (Result[None, Exception]):
- Ok(None): an attempt succeeded
- Err(exc): should_retry rejected exc; returned verbatim
- Err(RetryExhausted): every attempt failed; errors kept in attempt order
- Err(RetryCancelled): the context fired while waiting between attempts

Example:
    >>> policy = RetryPolicy(
    ...     max_attempts=5,
    ...     backoff=ExponentialBackoff(base=0.2, max_delay=5.0),
    ...     should_retry=lambda e: not isinstance(e, PermissionError),
    ... )
    >>> async with CancelContext(timeout=30) as ctx:
    ...     outcome = await policy.run(ctx, fetch_profile)
    >>> outcome.unwrap_or_raise()
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, Callable

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

from retrycase.foundation.errors import Err, Ok, Result, RetryCancelled, RetryExhausted
from retrycase.runtime.concurrency import sleep_or_cancel
from retrycase.runtime.observability import get_logger

from .backoff import Backoff, default_backoff

if TYPE_CHECKING:
    from retrycase.foundation.config import RetrySettings
    from retrycase.runtime.concurrency import CancelContext


log = get_logger("retrycase.retry")

Action = Callable[["CancelContext"], "Result[Any, Exception] | Awaitable[Result[Any, Exception] | Any] | Any"]
RetryFilter = Callable[[Exception], bool]
RetryHook = Callable[[int, Exception, float], None]


def always_retry(error: Exception) -> bool:
    """Default filter: every error is eligible for another attempt."""
    return True


class RetryPolicy(BaseModel):
    """Configurable retry policy.

    Attributes:
        backoff: Template generator for the delays between attempts (cloned per run)
        should_retry: Filter deciding whether an error is worth another attempt
        max_attempts: Upper bound on action invocations per run (<= 0 means none)
        on_retry: Optional hook called as (attempt, error, delay) before each wait
    """

    model_config = ConfigDict(
        frozen=True,
        arbitrary_types_allowed=True,  # For Backoff protocol
        validate_default=True,
        extra="forbid",
        revalidate_instances="never",
    )

    backoff: Backoff = Field(default_factory=default_backoff, repr=False)
    should_retry: RetryFilter = Field(default=always_retry, repr=False)
    max_attempts: StrictInt = 5
    on_retry: RetryHook | None = Field(default=None, exclude=True, repr=False)

    @field_validator("should_retry", mode="before")
    @classmethod
    def _default_filter(cls, v: RetryFilter | None) -> RetryFilter:
        """An unset filter means every error is eligible."""
        return always_retry if v is None else v

    @classmethod
    def with_max_attempts(cls, max_attempts: int) -> RetryPolicy:
        """Policy with the default backoff template and filter."""
        return cls(max_attempts=max_attempts)

    @classmethod
    def from_settings(cls, settings: RetrySettings | None = None, **overrides: Any) -> RetryPolicy:
        """Policy built from RETRYCASE_RETRY_* configuration."""
        if settings is None:
            from retrycase.foundation.config import get_settings
            settings = get_settings().retry
        fields: dict[str, Any] = {"backoff": default_backoff(settings), "max_attempts": settings.max_attempts}
        return cls(**(fields | overrides))

    async def run(self, ctx: CancelContext, action: Action) -> Result[None, Exception]:
        """Invoke *action* under this policy until a terminal outcome.

        Waits only when another attempt will follow, so the backoff cursor
        advances once per failed, eligible, non-final attempt.
        """
        backoff = self.backoff.clone()
        backoff.reset()
        errors: list[Exception] = []

        for n in range(self.max_attempts):
            error = await _attempt(action, ctx)
            if error is None:
                if n:
                    log.debug("retry succeeded", attempt=n + 1)
                return Ok(None)
            if not self.should_retry(error):
                log.debug("retry stopped by filter", attempt=n + 1)
                return Err(error)
            errors.append(error)

            if n + 1 >= self.max_attempts:
                break

            delay = backoff.next()
            if self.on_retry is not None:
                self.on_retry(n + 1, error, delay)
            log.debug("retry scheduled", attempt=n + 1, max_attempts=self.max_attempts, delay=delay)

            if not await sleep_or_cancel(delay, ctx):
                log.debug("retry cancelled", attempt=n + 1)
                return Err(RetryCancelled(ctx.cause, n + 1))

        log.debug("retry exhausted", attempts=len(errors))
        return Err(RetryExhausted(errors))


async def _attempt(action: Action, ctx: CancelContext) -> Exception | None:
    """Run one attempt and return its error, or None on success."""
    try:
        outcome = action(ctx)
        if inspect.isawaitable(outcome):
            outcome = await outcome
    except Exception as e:
        return e
    if isinstance(outcome, Result) and outcome.is_err():
        err = outcome.unwrap_err()
        return err if isinstance(err, Exception) else RuntimeError(err)
    return None


async def retry(
    ctx: CancelContext,
    backoff: Backoff,
    max_attempts: int,
    action: Action,
) -> Result[None, Exception]:
    """One-shot retry with the default (always eligible) filter.

    Resets *backoff* before use; the run itself still works on a clone.
    """
    backoff.reset()
    return await RetryPolicy(backoff=backoff, max_attempts=max_attempts).run(ctx, action)

"""Retrycase - Cancellable retry orchestration with pluggable backoff.

Runs a fallible action until it succeeds, a filter rejects its error, a
context is cancelled, or the attempt budget runs out. Every run returns a
Result instead of raising.

Quick Start:
    >>> from retrycase import CancelContext, ExponentialBackoff, RetryPolicy
    >>>
    >>> policy = RetryPolicy(
    ...     max_attempts=5,
    ...     backoff=ExponentialBackoff(base=0.1, max_delay=2.0),
    ...     should_retry=lambda e: not isinstance(e, PermissionError),
    ... )
    >>>
    >>> async def fetch(ctx: CancelContext) -> None:
    ...     await client.get("/orders")
    >>>
    >>> async with CancelContext(timeout=10.0) as ctx:
    ...     outcome = await policy.run(ctx, fetch)
    >>> if outcome.is_err():
    ...     print(outcome.unwrap_err())

One-shot:
    >>> from retrycase import retry
    >>> outcome = await retry(ctx, ExponentialBackoff(), 3, fetch)
"""

from __future__ import annotations

__version__ = "0.1.0"

from .foundation import (
    ContextCancelled,
    DeadlineExceeded,
    Err,
    Ok,
    Result,
    RetryCancelled,
    RetryError,
    RetryExhausted,
    RetrycaseSettings,
    get_settings,
)
from .runtime import (
    Backoff,
    CancelContext,
    ConstantBackoff,
    DecorrelatedJitter,
    ExponentialBackoff,
    LinearBackoff,
    RetryPolicy,
    always_retry,
    configure_logging,
    default_backoff,
    get_logger,
    retry,
)

__all__ = [
    "__version__",
    # Results & errors
    "Result", "Ok", "Err",
    "RetryError", "RetryExhausted", "RetryCancelled",
    "ContextCancelled", "DeadlineExceeded",
    # Context
    "CancelContext",
    # Backoff
    "Backoff", "ExponentialBackoff", "LinearBackoff", "ConstantBackoff", "DecorrelatedJitter", "default_backoff",
    # Retry
    "RetryPolicy", "always_retry", "retry",
    # Config & logging
    "RetrycaseSettings", "get_settings", "configure_logging", "get_logger",
]

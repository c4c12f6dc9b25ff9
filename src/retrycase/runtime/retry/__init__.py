"""Retry policies with pluggable backoff and eligibility filters.

Example:
    >>> from retrycase.runtime.retry import RetryPolicy, ExponentialBackoff
    >>>
    >>> policy = RetryPolicy(
    ...     max_attempts=4,
    ...     backoff=ExponentialBackoff(base=0.5, max_delay=10.0),
    ...     should_retry=lambda e: isinstance(e, ConnectionError),
    ... )
    >>> outcome = await policy.run(ctx, lambda ctx: client.get("/health"))
"""

from .backoff import (
    Backoff,
    ConstantBackoff,
    DecorrelatedJitter,
    ExponentialBackoff,
    LinearBackoff,
    default_backoff,
)
from .policy import (
    Action,
    RetryFilter,
    RetryHook,
    RetryPolicy,
    always_retry,
    retry,
)

__all__ = [
    # Backoff strategies
    "Backoff",
    "ExponentialBackoff",
    "LinearBackoff",
    "ConstantBackoff",
    "DecorrelatedJitter",
    "default_backoff",
    # Policy
    "RetryPolicy",
    "RetryFilter",
    "RetryHook",
    "Action",
    "always_retry",
    # Execution
    "retry",
]

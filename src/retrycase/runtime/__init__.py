"""Runtime layer: cancellation, retry loop and observability."""

from .concurrency import CancelContext, race, sleep_or_cancel
from .observability import configure_logging, get_logger, log_context
from .retry import (
    Backoff,
    ConstantBackoff,
    DecorrelatedJitter,
    ExponentialBackoff,
    LinearBackoff,
    RetryPolicy,
    always_retry,
    default_backoff,
    retry,
)

__all__ = [
    "CancelContext", "race", "sleep_or_cancel",
    "configure_logging", "get_logger", "log_context",
    "Backoff", "ExponentialBackoff", "LinearBackoff", "ConstantBackoff", "DecorrelatedJitter", "default_backoff",
    "RetryPolicy", "always_retry", "retry",
]

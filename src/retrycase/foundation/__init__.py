"""Foundation layer: result/error types and configuration."""

from .config import LoggingSettings, RetrycaseSettings, RetrySettings, clear_settings_cache, get_settings
from .errors import (
    ContextCancelled,
    DeadlineExceeded,
    Err,
    Ok,
    Result,
    RetryCancelled,
    RetryError,
    RetryExhausted,
)

__all__ = [
    "Result", "Ok", "Err",
    "RetryError", "RetryExhausted", "RetryCancelled",
    "ContextCancelled", "DeadlineExceeded",
    "RetrySettings", "LoggingSettings", "RetrycaseSettings", "get_settings", "clear_settings_cache",
]

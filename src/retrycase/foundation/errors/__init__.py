"""Unified error handling for retrycase.

- Result/Ok/Err: Outcome of every retry run
- RetryError/RetryExhausted/RetryCancelled: Failures produced by the retry loop
- ContextCancelled/DeadlineExceeded: Causes carried by a cancelled context
"""

from .errors import ContextCancelled, DeadlineExceeded, RetryCancelled, RetryError, RetryExhausted
from .result import Err, Ok, Result

__all__ = [
    # Result
    "Result", "Ok", "Err",
    # Run failures
    "RetryError", "RetryExhausted", "RetryCancelled",
    # Context causes
    "ContextCancelled", "DeadlineExceeded",
]

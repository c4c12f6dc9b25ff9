"""Cancellation and waiting primitives for the retry loop.

Key Components:
    - CancelContext: Cancellation signal with deadline, cause and parent tree
    - race: First awaitable to finish wins, losers are cancelled
    - sleep_or_cancel: Delay raced against a context

Pure asyncio, no external dependencies.
"""

from __future__ import annotations

from .context import CancelContext
from .wait import race, sleep_or_cancel

__all__ = [
    "CancelContext",
    "race",
    "sleep_or_cancel",
]

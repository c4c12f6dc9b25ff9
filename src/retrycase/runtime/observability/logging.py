"""Structured logging for retry runs with context propagation.

- Key-value binding (policy name, run id, attempt)
- Human-readable console output for development, JSON Lines for production
- Scoped context that follows async calls

Quick Start:
    >>> from retrycase.runtime.observability import get_logger, configure_logging
    >>>
    >>> configure_logging(format="console", level="DEBUG")  # or "json"
    >>> log = get_logger("payments")
    >>> log.info("charging card", order_id=123)

    >>> with log_context(run_id="abc123"):
    ...     await policy.run(ctx, charge)  # retry events include run_id
"""

from __future__ import annotations

import logging
import sys
import time
import traceback
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, TextIO, runtime_checkable

import orjson

if TYPE_CHECKING:
    from types import TracebackType

    from retrycase.foundation.config import LoggingSettings

JsonDict = dict[str, Any]

# Context var for scoped context (persists across async calls)
_log_context: ContextVar[JsonDict] = ContextVar("log_context", default={})


@dataclass(slots=True)
class BoundLogger:
    """Structured logger with bound context.

    Immutable - bind() returns a new logger with merged context.

    Example:
        >>> log = BoundLogger(context={"policy": "fetch"})
        >>> log.bind(attempt=2).debug("retry scheduled", delay=0.5)
        # => 10:30:45.123 [debug] retry scheduled attempt=2 delay=0.5 policy="fetch"
    """

    context: JsonDict = field(default_factory=dict)
    _renderer: LogRenderer | None = None
    _level: int | None = None

    def bind(self, **kw: Any) -> BoundLogger:
        """Create new logger with additional bound context."""
        return BoundLogger(context={**self.context, **kw}, _renderer=self._renderer, _level=self._level)

    def unbind(self, *keys: str) -> BoundLogger:
        """Create new logger without specified keys."""
        return BoundLogger(
            context={k: v for k, v in self.context.items() if k not in keys},
            _renderer=self._renderer,
            _level=self._level,
        )

    def is_enabled_for(self, level: int) -> bool:
        return level >= (self._level if self._level is not None else _default_level.get())

    def _log(self, level: int, event: str, **kw: Any) -> None:
        if not self.is_enabled_for(level):
            return
        entry = LogEntry(
            timestamp=time.time(),
            level=logging.getLevelName(level).lower(),
            event=event,
            context={**_log_context.get(), **self.context, **kw},
        )
        (self._renderer or _get_renderer()).render(entry)

    def debug(self, event: str, **kw: Any) -> None:
        self._log(logging.DEBUG, event, **kw)

    def info(self, event: str, **kw: Any) -> None:
        self._log(logging.INFO, event, **kw)

    def warning(self, event: str, **kw: Any) -> None:
        self._log(logging.WARNING, event, **kw)

    def error(self, event: str, **kw: Any) -> None:
        self._log(logging.ERROR, event, **kw)

    def exception(self, event: str, **kw: Any) -> None:
        """Log error with exception info."""
        kw["exc_info"] = traceback.format_exc()
        self._log(logging.ERROR, event, **kw)


@dataclass(slots=True)
class LogEntry:
    """Log entry with all context."""

    timestamp: float
    level: str
    event: str
    context: JsonDict

    @property
    def ts_iso(self) -> str:
        return datetime.fromtimestamp(self.timestamp, tz=UTC).isoformat()

    @property
    def ts_human(self) -> str:
        """Human-readable timestamp (HH:MM:SS.mmm)."""
        return datetime.fromtimestamp(self.timestamp, tz=UTC).strftime("%H:%M:%S.%f")[:-3]


# ─────────────────────────────────────────────────────────────────────────────
# Renderers
# ─────────────────────────────────────────────────────────────────────────────


@runtime_checkable
class LogRenderer(Protocol):
    """Protocol for log output renderers."""

    def render(self, entry: LogEntry) -> None: ...


@dataclass(slots=True)
class ConsoleRenderer:
    """Human-readable console output.

    Format: timestamp [level] event key=value key2=value2
    """

    output: TextIO = field(default_factory=lambda: sys.stderr)
    colors: bool | None = None  # None = auto-detect
    show_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.colors is None:
            self.colors = hasattr(self.output, "isatty") and self.output.isatty()

    def render(self, entry: LogEntry) -> None:
        c = _COLORS if self.colors else _NO_COLORS
        parts: list[str] = []
        if self.show_timestamp:
            parts.append(f"{c['dim']}{entry.ts_human}{c['reset']}")
        parts.append(f"{_LEVEL_COLORS.get(entry.level, c['dim']) if self.colors else ''}[{entry.level}]{c['reset']}")
        parts.append(f"{c['bold']}{entry.event}{c['reset']}")
        parts.extend(f"{c['cyan']}{k}{c['reset']}={_format_value(v)}"
                     for k, v in sorted(entry.context.items()) if k != "exc_info")
        print(" ".join(parts), file=self.output)
        if "exc_info" in entry.context:
            print(f"{c['red']}{entry.context['exc_info']}{c['reset']}", file=self.output)


@dataclass(slots=True)
class JsonRenderer:
    """JSON Lines output for log aggregation (Elasticsearch, Loki, Datadog, etc.)."""

    output: TextIO = field(default_factory=lambda: sys.stdout)

    def render(self, entry: LogEntry) -> None:
        print(orjson.dumps({"timestamp": entry.ts_iso, "level": entry.level, "event": entry.event,
                            **entry.context}, default=str, option=orjson.OPT_NON_STR_KEYS).decode(), file=self.output)


@dataclass(slots=True)
class NoOpRenderer:
    """Silent renderer for testing."""

    def render(self, entry: LogEntry) -> None:
        pass


# ─────────────────────────────────────────────────────────────────────────────
# Global Configuration
# ─────────────────────────────────────────────────────────────────────────────


_renderer: ContextVar[LogRenderer | None] = ContextVar("log_renderer", default=None)
_default_level: ContextVar[int] = ContextVar("log_level", default=logging.INFO)


def configure_logging(
    format: str = "console",  # noqa: A002 - shadows builtin but matches stdlib
    level: str = "INFO",
    *,
    output: TextIO | None = None,
    colors: bool | None = None,
) -> LogRenderer:
    """Configure global structured logging.

    Args:
        format: Output format - "console" (human), "json" (machine), "none"
        level: Minimum log level - DEBUG, INFO, WARNING, ERROR
        output: Output stream (default: stderr for console, stdout for json)
        colors: Force colors on/off (None = auto-detect)

    Returns:
        Configured renderer instance
    """
    renderer: LogRenderer
    if format == "console":
        renderer = ConsoleRenderer(output=output or sys.stderr, colors=colors)
    elif format == "json":
        renderer = JsonRenderer(output=output or sys.stdout)
    elif format == "none":
        renderer = NoOpRenderer()
    else:
        raise ValueError(f"Unknown format: {format}. Use 'console', 'json', or 'none'")

    _default_level.set(getattr(logging, level.upper(), logging.INFO))
    _renderer.set(renderer)
    return renderer


def configure_from_settings(settings: LoggingSettings | None = None, *, output: TextIO | None = None) -> LogRenderer:
    """Configure logging from RETRYCASE_LOG_* settings."""
    if settings is None:
        from retrycase.foundation.config import get_settings
        root = get_settings()
        return configure_logging(root.logging.format, root.log_level, output=output)
    return configure_logging(settings.format, settings.level, output=output)


def get_logger(name: str | None = None, **initial_context: Any) -> BoundLogger:
    """Get a structured logger with optional initial context.

    The level is read from the global configuration at log time, so loggers
    created at import time follow later configure_logging() calls.
    """
    ctx = dict(initial_context)
    if name:
        ctx["logger"] = name
    return BoundLogger(context=ctx)


def _get_renderer() -> LogRenderer:
    renderer = _renderer.get()
    if renderer is None:
        renderer = ConsoleRenderer()
        _renderer.set(renderer)
    return renderer


class log_context:
    """Context manager for scoped logging context.

    Example:
        >>> with log_context(run_id="abc123"):
        ...     log.info("processing")  # includes run_id
        >>> log.info("done")  # no longer includes it
    """

    __slots__ = ("_ctx", "_token")

    def __init__(self, **kw: Any) -> None:
        self._ctx: JsonDict = dict(kw)
        self._token: object | None = None

    def __enter__(self) -> log_context:
        self._token = _log_context.set({**_log_context.get(), **self._ctx})
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._token is not None:
            _log_context.reset(self._token)  # type: ignore[arg-type]


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


_COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "red": "\033[31m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "cyan": "\033[36m",
}

_NO_COLORS = {k: "" for k in _COLORS}

_LEVEL_COLORS = {
    "debug": _COLORS["dim"],
    "info": _COLORS["green"],
    "warning": _COLORS["yellow"],
    "error": _COLORS["red"],
}


def _format_value(v: object) -> str:
    if isinstance(v, str):
        return f'"{v}"'
    if isinstance(v, bool):
        return str(v).lower()
    if isinstance(v, float):
        return f"{v:.3f}"
    return str(v)

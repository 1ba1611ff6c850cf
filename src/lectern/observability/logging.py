"""Structured logging for the invalidation engine.

Every record emitted while an event is being handled carries the event id,
its type tag and, when the producer supplied one, a correlation id linking
the eviction back to the write that caused it.

Usage:
    from lectern.observability.logging import LogContext, configure_logging

    configure_logging()  # level and format from settings

    logger = logging.getLogger(__name__)
    with LogContext(event_id=event.event_id, event_type=event.type_name):
        logger.error("Eviction failed", extra={"scope": scope.target})
"""

from __future__ import annotations

import contextvars
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import orjson

from lectern.config import settings

event_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("event_id", default="")
event_type_var: contextvars.ContextVar[str] = contextvars.ContextVar("event_type", default="")
correlation_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "correlation_id", default=""
)

_CONTEXT_VARS: dict[str, contextvars.ContextVar[str]] = {
    "event_id": event_id_var,
    "event_type": event_type_var,
    "correlation_id": correlation_id_var,
}

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def current_context() -> dict[str, str]:
    """Event context values set in the current task."""
    return {key: value for key, var in _CONTEXT_VARS.items() if (value := var.get())}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    {"timestamp": "...", "level": "ERROR", "logger": "lectern.invalidation.service",
     "message": "Eviction of analytics:platform:* failed ...", "event_id": "7c0e...",
     "event_type": "course.published", "scope": "analytics:platform:*"}
    """

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        payload.update(current_context())
        payload.update(_extra_fields(record))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": self.formatException(record.exc_info),
            }

        # Unserializable extras (sets, dataclasses, ...) fall back to str()
        return orjson.dumps(payload, default=str, option=orjson.OPT_NON_STR_KEYS).decode()


class ConsoleFormatter(logging.Formatter):
    """Single-line records for local runs and the CLI.

    12:34:56 WARNING  lectern.invalidation.service  Unknown ... [event=badge.awarded id=7c0e1f2a]
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[34m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and sys.stderr.isatty()

    def _context_suffix(self) -> str:
        context = current_context()
        parts = []
        if "event_type" in context:
            parts.append(f"event={context['event_type']}")
        if "event_id" in context:
            parts.append(f"id={context['event_id'][:8]}")
        if "correlation_id" in context:
            parts.append(f"corr={context['correlation_id']}")
        return f" [{' '.join(parts)}]" if parts else ""

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_colors:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        line = (
            f"{self.formatTime(record, '%H:%M:%S')} {level} {record.name}  "
            f"{record.getMessage()}{self._context_suffix()}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    json_format: bool | None = None,
    level: str | None = None,
    use_colors: bool = True,
) -> logging.Handler:
    """Install a single stderr handler on the root logger.

    Args:
        json_format: JSON records instead of console lines; defaults to settings.log_json
        level: Root log level name; defaults to settings.log_level
        use_colors: Color console output when stderr is a terminal

    Returns the installed handler.
    """
    if json_format is None:
        json_format = settings.log_json
    if level is None:
        level = settings.log_level

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if json_format else ConsoleFormatter(use_colors))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level.upper())

    # Pattern deletes issue many SCAN round trips
    logging.getLogger("redis").setLevel(logging.WARNING)
    return handler


class LogContext:
    """Bind event context to every record logged inside the block.

        with LogContext(event_id="7c0e...", event_type="user.deleted"):
            logger.info("Flushing analytics cache")

    Keys other than event_id, event_type and correlation_id are ignored, as
    are None values. Contexts nest; leaving one restores the outer values.
    """

    def __init__(self, **kwargs: Any) -> None:
        self._values = {
            key: str(value)
            for key, value in kwargs.items()
            if key in _CONTEXT_VARS and value is not None
        }
        self._tokens: list[tuple[contextvars.ContextVar[str], contextvars.Token[str]]] = []

    def __enter__(self) -> LogContext:
        for key, value in self._values.items():
            var = _CONTEXT_VARS[key]
            self._tokens.append((var, var.set(value)))
        return self

    def __exit__(self, *args: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)

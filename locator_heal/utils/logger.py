# locator_heal/utils/logger.py
from __future__ import annotations

"""Logging setup
-------------
Root logging is configured once from settings: a Rich console handler on
stderr and, with LOG_TO_FILE, a rotating file of JSON lines. Context bound
with `bind()` (the CLI binds run_id and url) and scoped context from
`log_with_context()` (the orchestrator adds the selector being healed) rides
along on every record and lands under "context" in the JSON lines.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from locator_heal.utils.config import LogLevel, Settings, get_settings


__all__ = [
    "configure_logging",
    "get_logger",
    "bind",
    "unbind",
    "log_with_context",
]


_config_lock = threading.Lock()
_configured = False
_global_extra: Dict[str, Any] = {}

_QUIET_LOGGERS = ("asyncio", "playwright")


class JsonFormatter(logging.Formatter):
    """One JSON object per line, millisecond UTC timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "extra", None)
        if isinstance(context, dict) and context:
            payload["context"] = dict(context)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _console_handler(settings: Settings, level: int) -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True, force_jupyter=False, color_system="auto"),
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=settings.COLORIZED_OUTPUT,
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    return handler


def _file_handler(settings: Settings, level: int) -> logging.Handler:
    settings.LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(settings.LOG_FILE),
        maxBytes=5 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
        delay=True,
    )
    handler.setFormatter(JsonFormatter())
    handler.setLevel(level)
    return handler


def configure_logging(
    level: LogLevel | str | None = None,
    *,
    settings: Optional[Settings] = None,
    force: bool = False,
) -> None:
    """
    Install the root handlers. A no-op once configured unless `force` is set,
    in which case existing handlers are closed and replaced. `level`
    overrides LOG_LEVEL.
    """
    global _configured
    with _config_lock:
        if _configured and not force:
            return

        s = settings or get_settings()
        name = level.value if isinstance(level, LogLevel) else (level or s.LOG_LEVEL.value)
        py_level = logging.getLevelName(name.upper())
        if not isinstance(py_level, int):
            py_level = logging.INFO

        root = logging.getLogger()
        for h in list(root.handlers):
            root.removeHandler(h)
            h.close()
        root.setLevel(py_level)
        root.addHandler(_console_handler(s, py_level))
        if s.LOG_TO_FILE:
            root.addHandler(_file_handler(s, py_level))

        for quiet in _QUIET_LOGGERS:
            logging.getLogger(quiet).setLevel(max(py_level, logging.WARNING))

        _configured = True


def get_logger(name: Optional[str] = None) -> logging.LoggerAdapter:
    """Logger carrying the globally bound context."""
    configure_logging()
    return logging.LoggerAdapter(logging.getLogger(name or "locator_heal"), extra={"extra": _global_extra})


def bind(**kwargs: Any) -> None:
    """Attach context (e.g. run_id, url) to every subsequent record."""
    _global_extra.update(kwargs)


def unbind(*keys: str) -> None:
    for k in keys:
        _global_extra.pop(k, None)


def log_with_context(logger: logging.LoggerAdapter, **kwargs: Any) -> logging.LoggerAdapter:
    """
    Adapter over the same logger with extra scoped context, e.g.
    ``log_with_context(log, selector="#submit").info("healing")``.
    """
    return logging.LoggerAdapter(logger.logger, extra={"extra": {**_global_extra, **kwargs}})

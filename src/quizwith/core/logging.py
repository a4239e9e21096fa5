"""Logging helpers shared across quizwith commands."""

from __future__ import annotations

import json
import logging
import sys
import tempfile
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

__all__ = [
    "JsonLogFormatter",
    "configure_logger",
]

_FALLBACK_DIR_NAME = "quizwith-logs"
_MAX_BYTES = 2 * 1024 * 1024
_BACKUP_COUNT = 3


class JsonLogFormatter(logging.Formatter):
    """Emit log records as structured JSON lines."""

    _RESERVED = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    }

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extras = {
            key: _coerce_value(value)
            for key, value in record.__dict__.items()
            if key not in self._RESERVED
        }
        if extras:
            payload["extra"] = extras
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, ensure_ascii=True)


def configure_logger(
    name: str,
    *,
    log_dir: Path,
    level: str = "INFO",
    verbose: bool = False,
    filename: str | None = None,
) -> tuple[logging.Logger, Path]:
    """Configure ``name`` with a rotating JSON file handler.

    Child loggers (``quizwith.quiz.session`` and friends) propagate into the
    configured logger, so modules only ever call ``logging.getLogger``.
    When ``verbose`` is set a plain stderr handler is attached as well.
    """

    logger = logging.getLogger(name)
    logger.propagate = False
    logger.setLevel(logging.DEBUG)

    log_name = filename or f"{name.rsplit('.', 1)[-1]}.log"
    file_path = _writable_log_path(log_dir, log_name)
    file_handler = _ensure_file_handler(logger, file_path)
    file_handler.setLevel(logging.DEBUG if verbose else _coerce_level(level))

    for handler in list(logger.handlers):
        if getattr(handler, "_quizwith_console", False):
            logger.removeHandler(handler)
            handler.close()
    if verbose:
        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(logging.DEBUG)
        console.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        console._quizwith_console = True  # type: ignore[attr-defined]
        logger.addHandler(console)

    return logger, file_path


def _coerce_level(level: str) -> int:
    numeric = logging.getLevelName(level.upper())
    if isinstance(numeric, int):
        return numeric
    return logging.INFO


def _ensure_file_handler(
    logger: logging.Logger, path: Path
) -> RotatingFileHandler:
    for handler in list(logger.handlers):
        if getattr(handler, "_quizwith_file", False):
            if Path(handler.baseFilename) == path:  # type: ignore[attr-defined]
                return handler  # type: ignore[return-value]
            logger.removeHandler(handler)
            handler.close()

    managed = RotatingFileHandler(
        path,
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    managed.setFormatter(JsonLogFormatter())
    managed._quizwith_file = True  # type: ignore[attr-defined]
    logger.addHandler(managed)
    return managed


def _coerce_value(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): _coerce_value(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_coerce_value(item) for item in value]
    return repr(value)


def _writable_log_path(log_dir: Path, filename: str) -> Path:
    """Return ``log_dir / filename``, or the temp-dir fallback when denied."""

    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        path = log_dir / filename
        path.touch(exist_ok=True)
        return path
    except PermissionError:
        fallback = _fallback_log_dir()
        fallback.mkdir(parents=True, exist_ok=True)
        return fallback / filename


def _fallback_log_dir() -> Path:
    return Path(tempfile.gettempdir()) / _FALLBACK_DIR_NAME

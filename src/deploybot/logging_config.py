"""Structured logging setup with per-request correlation ids."""

from __future__ import annotations

from contextvars import ContextVar, Token
from datetime import datetime, timezone
import json
import logging
import os
import sys
from typing import Any
import uuid

from .utils.logging import redact_items

REDACTED = "***REDACTED***"
_HANDLER_NAME = "deploybot-stdout"
_TRUTHY = {"1", "true", "yes", "on"}

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "correlation_id"}

_DEFAULT_CORRELATION_ID = os.getenv("DEPLOYBOT_CORR_ID") or uuid.uuid4().hex
_CORRELATION_ID: ContextVar[str | None] = ContextVar("deploybot_correlation_id", default=None)


def get_correlation_id() -> str:
    """Return the correlation id of the current request, or the process default."""

    return _CORRELATION_ID.get() or _DEFAULT_CORRELATION_ID


def set_correlation_id(value: str | None = None) -> Token:
    """Bind ``value`` (or a fresh id) to the current context and return the reset token."""

    return _CORRELATION_ID.set(value or uuid.uuid4().hex)


def reset_correlation_id(token: Token) -> None:
    _CORRELATION_ID.reset(token)


def _json_enabled() -> bool:
    return os.getenv("DEPLOYBOT_LOG_JSON", "").strip().lower() in _TRUTHY


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    extras = {
        key: value for key, value in record.__dict__.items() if key not in _RESERVED_ATTRS
    }
    return redact_items(extras, placeholder=REDACTED)


def _timestamp(record: logging.LogRecord) -> str:
    created = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return created.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _CorrelationFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id()
        return True


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        line = (
            f"{_timestamp(record)} {record.levelname} "
            f"[{getattr(record, 'correlation_id', get_correlation_id())}] "
            f"{record.name}: {message}"
        )
        extras = _extras(record)
        if extras:
            rendered = " ".join(
                f"{key}={json.dumps(value, default=str)}" for key, value in sorted(extras.items())
            )
            line = f"{line} {rendered}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _timestamp(record),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, "correlation_id", get_correlation_id()),
        }
        payload.update(_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: str | int | None = None) -> logging.Logger:
    """Install the deploybot stdout handler on the root logger.

    Calling this repeatedly replaces the previous handler so the formatter
    follows the current ``DEPLOYBOT_LOG_JSON`` setting.
    """

    resolved = level or os.getenv("DEPLOYBOT_LOG_LEVEL", "INFO")
    if isinstance(resolved, str):
        resolved = resolved.upper()

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.addFilter(_CorrelationFilter())
    handler.setFormatter(JsonFormatter() if _json_enabled() else TextFormatter())
    root.addHandler(handler)
    root.setLevel(resolved)
    return root


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


__all__ = [
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "reset_correlation_id",
    "set_correlation_id",
]

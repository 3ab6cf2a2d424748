"""Structured JSON logging for NotifyFlow."""

import json
import logging
from datetime import UTC, datetime
from typing import Any

# Dynamically derive standard LogRecord attributes at module import time
# This ensures future Python additions (like taskName) are automatically handled
_STANDARD_LOGRECORD_KEYS: frozenset[str] = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__.keys()
)

DISPATCH_LOGGER_NAME = "notifyflow.dispatch"

MASKED_VALUE = "[***]"
_MASK_ELLIPSIS = "..."
_TOKEN_MASK_THRESHOLD = 8
_TOKEN_VISIBLE_CHARS = 4
DEFAULT_MAX_LOG_LENGTH = 100


class JSONFormatter(logging.Formatter):
    """JSON formatter with UTC ISO8601 timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        # Add standard NotifyFlow fields if present
        for field in ("kind", "recipient", "attempt", "provider", "error_category"):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        # Add any extra fields passed via extra={}
        for key, value in vars(record).items():
            if key not in _STANDARD_LOGRECORD_KEYS and key not in log_data:
                log_data[key] = value

        if record.exc_info and "exception" not in log_data:
            log_data["exception"] = self.formatException(record.exc_info)

        try:
            return json.dumps(log_data, default=str)
        except Exception:
            # Fallback to safe string representation if serialization fails
            return str(log_data)


def _setup_json_handler(logger: logging.Logger, level: int | None) -> None:
    """Configure a logger with JSON formatting.

    Args:
        logger: The logger to configure.
        level: The logging level to set. None keeps a level set earlier and
            falls back to INFO for a fresh logger.
    """
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    logger.propagate = False


def configure_dispatch_logger(level: int | None = None) -> logging.Logger:
    """Configure and return the dispatch logger with JSON formatting.

    The dispatcher, retry orchestrator, async sender and event publisher all
    log lifecycle details through this logger.

    Args:
        level: The logging level to set. Defaults to keeping the current level (INFO when unset).
    """
    logger = logging.getLogger(DISPATCH_LOGGER_NAME)
    _setup_json_handler(logger, level)
    return logger


def get_logger(name: str = "notifyflow", level: int | None = None) -> logging.Logger:
    """Get a logger with JSON formatting.

    Args:
        name: The logger name. Defaults to "notifyflow".
        level: The logging level to set. Defaults to keeping the current level (INFO when unset).
    """
    logger = logging.getLogger(name)
    _setup_json_handler(logger, level)
    return logger


def mask_token(token: str | None) -> str:
    """Mask a sensitive token for logging.

    Tokens of 8 characters or fewer are fully masked; longer ones keep the
    first and last 4 characters.
    """
    if token is None or len(token) <= _TOKEN_MASK_THRESHOLD:
        return MASKED_VALUE
    return token[:_TOKEN_VISIBLE_CHARS] + _MASK_ELLIPSIS + token[-_TOKEN_VISIBLE_CHARS:]


def truncate_for_log(content: str | None, max_length: int = DEFAULT_MAX_LOG_LENGTH) -> str:
    """Truncate content for log output, appending an ellipsis when cut."""
    if content is None:
        return ""
    if len(content) > max_length:
        return content[:max_length] + _MASK_ELLIPSIS
    return content

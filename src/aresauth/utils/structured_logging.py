r"""Structured logging utilities for machine-readable log output.

This module provides a JSON log formatter and context-local correlation
ids. The correlation id of the current context is added to every JSON
log record and sent as the ``X-Request-ID`` header of the requests made
by ``ApiClient``, so server and client logs of one operation can be
joined.

Example:
    ```python
    import logging
    from aresauth.utils.structured_logging import StructuredFormatter, set_correlation_id

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("aresauth")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    set_correlation_id("checkout-42")
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import time
from typing import Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "aresauth_correlation_id", default=None
)

# Attributes of every LogRecord, anything else was passed through ``extra``
_RECORD_ATTRIBUTES = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def get_correlation_id() -> str | None:
    """Return the correlation id of the current context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation id of the current context.

    The id is stored in a context variable, so concurrent asyncio tasks
    each keep their own.

    Example:
        ```pycon
        >>> from aresauth.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("req-1")
        >>> get_correlation_id()
        'req-1'
        >>> clear_correlation_id()
        >>> get_correlation_id() is None
        True

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """Format log records as one JSON object per line.

    Output fields are ``timestamp`` (ISO 8601, UTC), ``level``,
    ``logger``, ``message``, ``module``, ``function``, ``line``, the
    ``correlation_id`` when one is set, ``exception`` when the record
    carries exception info, and any field passed through ``extra``.

    Example:
        ```pycon
        >>> import json
        >>> import logging
        >>> from aresauth.utils.structured_logging import StructuredFormatter
        >>> record = logging.makeLogRecord({"msg": "done", "levelname": "INFO", "status": 200})
        >>> payload = json.loads(StructuredFormatter().format(record))
        >>> payload["message"], payload["status"]
        ('done', 200)

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            log_data["correlation_id"] = correlation_id
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRIBUTES:
                log_data[key] = value
        return json.dumps(log_data, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: ARG002
        return (
            time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created))
            + f".{int(record.msecs):03d}Z"
        )


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log a message with structured fields.

    The fields are attached to the record through ``extra`` and appear
    in the output of ``StructuredFormatter``.

    Args:
        logger: Logger to use.
        level: Log level (e.g., logging.DEBUG).
        message: Log message.
        **extra: Structured fields to attach to the record.
    """
    logger.log(level, message, extra=extra)

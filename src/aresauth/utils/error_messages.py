r"""User-facing messages for failed requests.

Screens show these messages instead of raw errors. Connectivity and
timeout failures get fixed wording; other failures prefer the server's
``message`` field.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "NETWORK_ERROR_MESSAGE",
    "TIMEOUT_ERROR_MESSAGE",
    "format_error_for_user",
    "handle_network_error",
    "parse_api_error",
]

import logging
from typing import Any

from aresauth.exceptions import ApiRequestError, ConnectivityError, TransportError
from aresauth.outcome import TransportFailureKind

logger: logging.Logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"
NETWORK_ERROR_MESSAGE = "Network error. Please check your connection."
TIMEOUT_ERROR_MESSAGE = "Request timeout. Please try again."


def parse_api_error(error: Any) -> str:
    """Extract the most specific message from an error.

    The ``message`` field of the error body wins over the error message.

    Example:
        ```pycon
        >>> from aresauth.exceptions import HttpStatusError
        >>> from aresauth.utils.error_messages import parse_api_error
        >>> parse_api_error(HttpStatusError("Request failed with status 422", status=422,
        ...                                 data={"message": "Email already used"}))
        'Email already used'
        >>> parse_api_error("plain text")
        'plain text'
        >>> parse_api_error(None)
        'An unexpected error occurred'

        ```
    """
    if isinstance(error, str):
        return error or DEFAULT_ERROR_MESSAGE
    data = getattr(error, "data", None)
    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(error, Exception) and str(error):
        return str(error)
    return DEFAULT_ERROR_MESSAGE


def handle_network_error(error: Any) -> str:
    """Return the message for an error, with fixed wording for
    connectivity and timeout failures."""
    if isinstance(error, ConnectivityError):
        return NETWORK_ERROR_MESSAGE
    if isinstance(error, TransportError):
        if error.kind is TransportFailureKind.TIMEOUT:
            return TIMEOUT_ERROR_MESSAGE
        return NETWORK_ERROR_MESSAGE
    return parse_api_error(error)


def format_error_for_user(error: Any, context: str | None = None) -> str:
    """Return the message to display for an error and log it.

    Args:
        error: The error raised by a request, or any other value.
        context: Optional description of the failed operation, used in
            the log record.

    Returns:
        The user-facing message.
    """
    if isinstance(error, ApiRequestError):
        logger.debug(f"Error{f' in {context}' if context else ''}: {error!r}")
    return handle_network_error(error)

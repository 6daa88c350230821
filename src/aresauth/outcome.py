r"""Typed outcomes of a single transport attempt.

An attempt ends in exactly one of:

- ``Success``: a 2xx response whose body decoded as JSON
- ``HttpFailure``: any other response
- ``TransportFailure``: no response (timeout, abort or network error)

``classify_response`` and ``classify_exception`` turn httpx results into
these values so the retry decision never inspects raw responses or
exceptions.
"""

from __future__ import annotations

__all__ = [
    "HttpFailure",
    "Outcome",
    "Success",
    "TransportFailure",
    "TransportFailureKind",
    "classify_exception",
    "classify_response",
    "parse_error_body",
]

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

import httpx

logger: logging.Logger = logging.getLogger(__name__)


class TransportFailureKind(Enum):
    """Reasons an attempt ended without an HTTP response."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    ABORT = "abort"


@dataclass(frozen=True)
class Success:
    """A 2xx response with its decoded JSON body.

    ``data`` is ``None`` when the response has no body.
    """

    status: int
    data: Any
    headers: httpx.Headers = field(default_factory=httpx.Headers)


@dataclass(frozen=True)
class HttpFailure:
    """A response that cannot be returned to the caller as a success."""

    status: int
    data: Any
    message: str


@dataclass(frozen=True)
class TransportFailure:
    """An attempt that produced no HTTP response."""

    kind: TransportFailureKind
    message: str


Outcome = Union[Success, HttpFailure, TransportFailure]


def parse_error_body(response: httpx.Response) -> Any:
    """Decode an error response body, falling back to an empty dict.

    Args:
        response: The failing HTTP response.

    Returns:
        The decoded JSON body, or ``{}`` if the body is empty or is not
        valid JSON.

    Example:
        ```pycon
        >>> import httpx
        >>> from aresauth.outcome import parse_error_body
        >>> parse_error_body(httpx.Response(400, json={"message": "bad"}))
        {'message': 'bad'}
        >>> parse_error_body(httpx.Response(502, text="<html>"))
        {}

        ```
    """
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return {}


def _failure_message(status: int, data: Any) -> str:
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
    return f"Request failed with status {status}"


def classify_response(response: httpx.Response) -> Success | HttpFailure:
    """Classify an HTTP response.

    Args:
        response: The response returned by the transport.

    Returns:
        ``Success`` for a 2xx response with an empty or JSON body,
        ``HttpFailure`` otherwise. The failure message is the server's
        ``message`` field when present, else
        ``"Request failed with status {status}"``.

    Example:
        ```pycon
        >>> import httpx
        >>> from aresauth.outcome import classify_response
        >>> classify_response(httpx.Response(200, json={"id": 1})).data
        {'id': 1}
        >>> classify_response(httpx.Response(404)).message
        'Request failed with status 404'

        ```
    """
    status = response.status_code
    if not response.is_success:
        data = parse_error_body(response)
        return HttpFailure(status=status, data=data, message=_failure_message(status, data))

    if not response.content:
        return Success(status=status, data=None, headers=response.headers)
    try:
        data = response.json()
    except ValueError:
        logger.debug(f"response with status {status} has a body that is not valid JSON")
        return HttpFailure(status=status, data={}, message="Response body is not valid JSON")
    return Success(status=status, data=data, headers=response.headers)


def classify_exception(exc: Exception, timeout: float) -> TransportFailure:
    """Classify an exception raised while waiting for a response.

    Args:
        exc: The exception raised by the transport call.
        timeout: The deadline of the attempt in seconds, used in the
            message when the deadline itself expired.

    Returns:
        The matching ``TransportFailure``.

    Raises:
        TypeError: If ``exc`` is not a transport-level error.

    Example:
        ```pycon
        >>> import httpx
        >>> from aresauth.outcome import classify_exception
        >>> classify_exception(httpx.ConnectError("connection refused"), timeout=10.0)
        TransportFailure(kind=<TransportFailureKind.NETWORK: 'network'>, message='connection refused')

        ```
    """
    if isinstance(exc, asyncio.TimeoutError):
        return TransportFailure(
            kind=TransportFailureKind.TIMEOUT, message=f"Request timed out after {timeout}s"
        )
    if isinstance(exc, httpx.TimeoutException):
        return TransportFailure(
            kind=TransportFailureKind.TIMEOUT, message=str(exc) or "Request timed out"
        )
    if isinstance(exc, httpx.RemoteProtocolError):
        return TransportFailure(
            kind=TransportFailureKind.ABORT, message=str(exc) or "Request was aborted"
        )
    if isinstance(exc, httpx.RequestError):
        return TransportFailure(
            kind=TransportFailureKind.NETWORK, message=str(exc) or "Network request failed"
        )
    msg = f"{type(exc).__qualname__} is not a transport error"
    raise TypeError(msg)

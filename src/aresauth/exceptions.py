r"""Exception types raised when a logical request cannot complete.

Every failure reaching a caller is an ``ApiRequestError`` exposing the
same ``status``, ``data`` and ``message`` attributes, so callers can map
errors to user-facing text without inspecting the exception type:

- ``ConnectivityError``: the device is offline, no attempt was made
- ``TransportError``: an attempt was made but no HTTP response arrived
- ``HttpStatusError``: a response arrived with a failing status
- ``AuthenticationError``: a 401 that could not be recovered by a
  token refresh
"""

from __future__ import annotations

__all__ = [
    "ApiRequestError",
    "AuthenticationError",
    "ConnectivityError",
    "HttpStatusError",
    "TransportError",
]

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from aresauth.outcome import TransportFailureKind


class ApiRequestError(RuntimeError):
    """Base exception for failed logical requests.

    Args:
        message: A descriptive error message.
        status: The HTTP status code, or ``None`` when no response was
            received.
        data: The decoded error body, if any.

    Example:
        ```pycon
        >>> from aresauth.exceptions import ApiRequestError
        >>> err = ApiRequestError("Request failed with status 404", status=404, data={})
        >>> err.to_dict()
        {'status': 404, 'data': {}, 'message': 'Request failed with status 404'}

        ```
    """

    def __init__(self, message: str, *, status: int | None = None, data: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.data = data

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(message={self.message!r}, status={self.status})"

    def to_dict(self) -> dict[str, Any]:
        """Return the ``{status?, data?, message}`` view of the error.

        Keys whose value is ``None`` are omitted.
        """
        out: dict[str, Any] = {}
        if self.status is not None:
            out["status"] = self.status
        if self.data is not None:
            out["data"] = self.data
        out["message"] = self.message
        return out


class ConnectivityError(ApiRequestError):
    """Raised when the connectivity gate reports the device offline."""


class TransportError(ApiRequestError):
    """Raised when the last attempt ended without an HTTP response.

    Args:
        message: The transport error message.
        kind: Whether the attempt timed out, was aborted, or hit a
            network error.
    """

    def __init__(self, message: str, *, kind: TransportFailureKind) -> None:
        super().__init__(message)
        self.kind = kind


class HttpStatusError(ApiRequestError):
    """Raised when the last attempt returned a failing status code."""

    def __init__(self, message: str, *, status: int, data: Any = None) -> None:
        super().__init__(message, status=status, data=data)


class AuthenticationError(HttpStatusError):
    """Raised when a 401 response cannot be recovered.

    This happens when the token refresh fails or when the retry budget
    is exhausted on a 401 response.
    """

    def __init__(self, message: str = "Authentication failed", *, data: Any = None) -> None:
        super().__init__(message, status=401, data=data)

r"""Logical request model.

A ``LogicalRequest`` describes one caller-intended HTTP operation. It is
immutable; each retry works on the copy returned by ``next_attempt``,
whose retry budget is one lower, so a retry loop over it always
terminates.
"""

from __future__ import annotations

__all__ = [
    "HTTP_METHODS",
    "LogicalRequest",
    "prepare_upload_files",
    "resolve_url",
]

import logging
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from aresauth.core.config import DEFAULT_MAX_RETRIES, DEFAULT_TIMEOUT
from aresauth.core.validation import validate_timeout

if TYPE_CHECKING:
    from collections.abc import Mapping

logger: logging.Logger = logging.getLogger(__name__)

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")


@dataclass(frozen=True)
class LogicalRequest:
    """One logical HTTP request and its remaining retry budget.

    Args:
        url: The absolute URL of the request.
        method: One of ``GET``, ``POST``, ``PUT``, ``PATCH``, ``DELETE``.
        body: Optional payload serialized as JSON.
        files: Optional multipart files for uploads. When set, ``body``
            must be ``None`` and no ``Content-Type`` header is sent so
            the transport can set the multipart boundary.
        headers: Caller headers merged over the defaults.
        timeout: Deadline in seconds of one transport attempt.
        remaining_retries: Number of retries still allowed.
        replayable: Whether the body can be sent again. Requests that
            are not replayable are never retried.

    Example:
        ```pycon
        >>> from aresauth.request import LogicalRequest
        >>> request = LogicalRequest(url="https://api.example.com/x", method="GET")
        >>> request.remaining_retries
        3
        >>> request.next_attempt().remaining_retries
        2

        ```
    """

    url: str
    method: str
    body: Any = None
    files: Mapping[str, Any] | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    remaining_retries: int = DEFAULT_MAX_RETRIES
    replayable: bool = True

    def __post_init__(self) -> None:
        if self.method not in HTTP_METHODS:
            msg = f"method must be one of {HTTP_METHODS}, got {self.method!r}"
            raise ValueError(msg)
        if self.remaining_retries < 0:
            msg = f"remaining_retries must be >= 0, got {self.remaining_retries}"
            raise ValueError(msg)
        if self.files is not None and self.body is not None:
            msg = "body and files cannot be used together"
            raise ValueError(msg)
        validate_timeout(self.timeout)

    @property
    def is_upload(self) -> bool:
        return self.files is not None

    def next_attempt(self) -> LogicalRequest:
        """Return a copy of this request with one retry consumed.

        Raises:
            ValueError: If the retry budget is already exhausted.
        """
        if self.remaining_retries == 0:
            msg = f"no retries left for {self.method} {self.url}"
            raise ValueError(msg)
        return replace(self, remaining_retries=self.remaining_retries - 1)


def resolve_url(base_url: str, path: str) -> str:
    """Resolve a request path against a base URL.

    Absolute ``http://`` and ``https://`` URLs are returned unchanged.

    Example:
        ```pycon
        >>> from aresauth.request import resolve_url
        >>> resolve_url("https://api.example.com", "/users/1")
        'https://api.example.com/users/1'
        >>> resolve_url("https://api.example.com/", "users/1")
        'https://api.example.com/users/1'
        >>> resolve_url("https://api.example.com", "https://cdn.example.com/a.png")
        'https://cdn.example.com/a.png'

        ```
    """
    if path.startswith(("http://", "https://")):
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


def _read_content(content: Any) -> tuple[Any, bool]:
    if isinstance(content, (bytes, str)):
        return content, True
    if isinstance(content, (bytearray, memoryview)):
        return bytes(content), True
    read = getattr(content, "read", None)
    if callable(read):
        return read(), True
    return content, False


def prepare_upload_files(files: Mapping[str, Any]) -> tuple[dict[str, Any], bool]:
    """Read upload contents into memory so that every attempt sends the
    same bytes.

    Values follow the httpx ``files`` format: the content itself, or a
    ``(filename, content[, content_type[, headers]])`` tuple. File-like
    contents are read once and ``bytearray`` or ``memoryview`` contents are
    copied to ``bytes``. Contents that cannot be read eagerly, such as
    iterators, are passed through unchanged and make the upload not
    replayable.

    Args:
        files: The multipart files to upload.

    Returns:
        A tuple with the prepared files and whether they can be replayed.

    Example:
        ```pycon
        >>> import io
        >>> from aresauth.request import prepare_upload_files
        >>> prepare_upload_files({"avatar": ("me.png", io.BytesIO(b"png"), "image/png")})
        ({'avatar': ('me.png', b'png', 'image/png')}, True)
        >>> prepare_upload_files({"log": iter([b"a", b"b"])})[1]
        False

        ```
    """
    prepared: dict[str, Any] = {}
    replayable = True
    for name, value in files.items():
        if isinstance(value, tuple):
            content, ok = _read_content(value[1])
            prepared[name] = (value[0], content, *value[2:])
        else:
            content, ok = _read_content(value)
            prepared[name] = content
        if not ok:
            logger.debug(f"upload field {name!r} cannot be replayed, retries are disabled")
        replayable = replayable and ok
    return prepared, replayable

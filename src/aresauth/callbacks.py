r"""Callback data structures for observing the request lifecycle.

Four hooks can be set on ``ClientConfig``:

- on_request: called before each attempt
- on_retry: called before each retry delay
- on_success: called when the logical request succeeds
- on_failure: called when the logical request fails for good

Example:
    ```pycon
    >>> from aresauth.callbacks import RetryInfo
    >>> from aresauth.core import ClientConfig
    >>> def log_retry(info: RetryInfo) -> None:
    ...     print(f"retrying {info.url} in {info.wait_time}s")
    ...
    >>> config = ClientConfig(on_retry=log_retry)

    ```
"""

from __future__ import annotations

__all__ = ["CallbackInfo", "FailureInfo", "RequestInfo", "ResponseInfo", "RetryInfo"]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from aresauth.exceptions import ApiRequestError
    from aresauth.outcome import Success


@dataclass(frozen=True)
class CallbackInfo:
    """Fields shared by every callback payload.

    Attributes:
        url: The URL being requested.
        method: The HTTP method.
        attempt: The attempt number (1-indexed).
        remaining_retries: Retries left after this attempt.
    """

    url: str
    method: str
    attempt: int
    remaining_retries: int


@dataclass(frozen=True)
class RequestInfo(CallbackInfo):
    """Payload of ``on_request``."""


@dataclass(frozen=True)
class RetryInfo(CallbackInfo):
    """Payload of ``on_retry``.

    Attributes:
        wait_time: Seconds waited before the next attempt.
        reason: Why the attempt is retried, e.g. ``"status 503"`` or
            ``"timeout"``.
        status_code: The status that triggered the retry, if any.
    """

    wait_time: float = 0.0
    reason: str = ""
    status_code: int | None = None


@dataclass(frozen=True)
class ResponseInfo(CallbackInfo):
    """Payload of ``on_success``.

    Attributes:
        outcome: The successful outcome.
        total_time: Seconds elapsed since the first attempt started.
    """

    outcome: Success | None = None
    total_time: float = 0.0


@dataclass(frozen=True)
class FailureInfo(CallbackInfo):
    """Payload of ``on_failure``.

    Attributes:
        error: The error raised to the caller.
        total_time: Seconds elapsed since the first attempt started.
    """

    error: ApiRequestError | None = None
    total_time: float = 0.0

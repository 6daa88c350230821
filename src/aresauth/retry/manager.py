r"""Callback manager for request lifecycle events.

This module provides the CallbackManager class that builds the callback
payloads and invokes the user-defined callbacks of a ``ClientConfig``.
"""

from __future__ import annotations

__all__ = ["CallbackManager"]

import time
from typing import TYPE_CHECKING

from aresauth.callbacks import FailureInfo, RequestInfo, ResponseInfo, RetryInfo

if TYPE_CHECKING:
    from aresauth.core.config import ClientConfig
    from aresauth.exceptions import ApiRequestError
    from aresauth.outcome import Success
    from aresauth.request import LogicalRequest


class CallbackManager:
    """Invoke the lifecycle callbacks configured on a ``ClientConfig``.

    Attempts are 0-indexed internally and reported 1-indexed to the
    callbacks.

    Args:
        config: The configuration holding the callbacks.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.config = config

    def on_request(self, request: LogicalRequest, attempt: int) -> None:
        if self.config.on_request is not None:
            self.config.on_request(
                RequestInfo(
                    url=request.url,
                    method=request.method,
                    attempt=attempt + 1,
                    remaining_retries=request.remaining_retries,
                )
            )

    def on_retry(
        self,
        request: LogicalRequest,
        attempt: int,
        wait_time: float,
        reason: str,
        status_code: int | None,
    ) -> None:
        if self.config.on_retry is not None:
            self.config.on_retry(
                RetryInfo(
                    url=request.url,
                    method=request.method,
                    attempt=attempt + 1,
                    remaining_retries=request.remaining_retries,
                    wait_time=wait_time,
                    reason=reason,
                    status_code=status_code,
                )
            )

    def on_success(
        self, request: LogicalRequest, attempt: int, outcome: Success, start_time: float
    ) -> None:
        if self.config.on_success is not None:
            self.config.on_success(
                ResponseInfo(
                    url=request.url,
                    method=request.method,
                    attempt=attempt + 1,
                    remaining_retries=request.remaining_retries,
                    outcome=outcome,
                    total_time=time.time() - start_time,
                )
            )

    def on_failure(
        self, request: LogicalRequest, attempt: int, error: ApiRequestError, start_time: float
    ) -> None:
        if self.config.on_failure is not None:
            self.config.on_failure(
                FailureInfo(
                    url=request.url,
                    method=request.method,
                    attempt=attempt + 1,
                    remaining_retries=request.remaining_retries,
                    error=error,
                    total_time=time.time() - start_time,
                )
            )

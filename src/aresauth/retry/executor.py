r"""Asynchronous retry executor for logical requests.

This module provides the AsyncRetryExecutor class that runs the attempts
of one logical request: it checks connectivity, builds the headers with
the current access token, sends the request under a deadline, and
follows the retry decision until the request succeeds or fails for good.
"""

from __future__ import annotations

__all__ = ["AsyncRetryExecutor"]

import asyncio
import logging
import time
from typing import TYPE_CHECKING

import httpx

from aresauth.core.config import ClientConfig
from aresauth.exceptions import AuthenticationError, ConnectivityError
from aresauth.outcome import Success, classify_exception, classify_response
from aresauth.retry.decider import Fail, RefreshThenRetry, Retry, RetryDecider
from aresauth.retry.manager import CallbackManager
from aresauth.retry.strategy import RetryStrategy
from aresauth.telemetry import get_default_telemetry
from aresauth.utils.structured_logging import get_correlation_id, log_structured

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from aresauth.auth.token_manager import TokenProvider
    from aresauth.connectivity import ConnectivityProvider
    from aresauth.outcome import Outcome
    from aresauth.request import LogicalRequest
    from aresauth.telemetry import RetryTelemetry

    Send = Callable[[LogicalRequest, httpx.Headers], Awaitable[httpx.Response]]

logger: logging.Logger = logging.getLogger(__name__)

CONNECTIVITY_ERROR_MESSAGE = "No network connection"


class AsyncRetryExecutor:
    """Execute logical requests with retry and token refresh.

    Per attempt, the executor:

    1. fails with ``ConnectivityError`` if the connectivity gate reports
       the device offline (no attempt is made)
    2. builds the headers: JSON content negotiation, the caller headers,
       the correlation id and ``Authorization: Bearer <token>``
    3. sends the request, cancelling it after ``request.timeout`` seconds
    4. classifies the result into an outcome
    5. returns a success, or follows the ``RetryDecider`` decision

    A 401 triggers one coordinated refresh through the token provider.
    If the refresh fails the session-invalidation hook is called and an
    ``AuthenticationError`` is raised. Every retry after a delay
    increments the telemetry counter and every success resets it.

    Args:
        config: The client configuration.
        token_provider: Optional provider of access tokens.
        connectivity: Optional connectivity gate. Without one the network
            is assumed to be reachable.
        telemetry: The retry counter. Defaults to the process-wide one.
        on_session_invalidated: Optional zero-argument callable invoked
            when a token refresh fails.

    Example:
        ```pycon
        >>> import asyncio
        >>> import httpx
        >>> from aresauth.core import ClientConfig
        >>> from aresauth.request import LogicalRequest
        >>> from aresauth.retry import AsyncRetryExecutor
        >>> async def send(request, headers):
        ...     return httpx.Response(200, json={"ok": True})
        ...
        >>> executor = AsyncRetryExecutor(ClientConfig())
        >>> request = LogicalRequest(url="https://api.example.com/health", method="GET")
        >>> asyncio.run(executor.execute(request, send)).data
        {'ok': True}

        ```
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        token_provider: TokenProvider | None = None,
        connectivity: ConnectivityProvider | None = None,
        telemetry: RetryTelemetry | None = None,
        on_session_invalidated: Callable[[], None] | None = None,
    ) -> None:
        self.config = config if config is not None else ClientConfig()
        self.decider = RetryDecider(
            status_forcelist=self.config.status_forcelist,
            strategy=RetryStrategy(
                retry_delay=self.config.retry_delay,
                jitter_factor=self.config.jitter_factor,
                backoff_strategy=self.config.backoff_strategy,
                max_wait_time=self.config.max_wait_time,
            ),
        )
        self.callbacks = CallbackManager(self.config)
        self.token_provider = token_provider
        self.connectivity = connectivity
        self.telemetry = telemetry if telemetry is not None else get_default_telemetry()
        self.on_session_invalidated = on_session_invalidated

    def is_connected(self) -> bool:
        return self.connectivity is None or self.connectivity.is_connected

    async def build_headers(self, request: LogicalRequest) -> httpx.Headers:
        """Build the headers of the next attempt of ``request``.

        The token is fetched again for every attempt so that a token
        installed by a refresh is always used.
        """
        headers = httpx.Headers({"Content-Type": "application/json", "Accept": "application/json"})
        headers.update(request.headers)
        if request.is_upload and "Content-Type" in headers:
            # The transport sets the multipart boundary.
            del headers["Content-Type"]

        correlation_id = get_correlation_id()
        if correlation_id is not None and "X-Request-ID" not in headers:
            headers["X-Request-ID"] = correlation_id

        if self.token_provider is not None:
            token = await self.token_provider.get_valid_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    async def send_once(self, request: LogicalRequest, send: Send) -> Outcome:
        """Make one attempt and classify its result."""
        headers = await self.build_headers(request)
        try:
            response = await asyncio.wait_for(send(request, headers), timeout=request.timeout)
        except (asyncio.TimeoutError, httpx.RequestError) as exc:
            return classify_exception(exc, request.timeout)
        return classify_response(response)

    async def execute(self, request: LogicalRequest, send: Send) -> Success:
        """Run the attempts of a logical request until it completes.

        Every edge back to a new attempt consumes one retry of
        ``request.remaining_retries``, so at most
        ``remaining_retries + 1`` attempts are made.

        Args:
            request: The logical request.
            send: Coroutine function sending one attempt given the
                request and the headers to use.

        Returns:
            The successful outcome of the last attempt.

        Raises:
            ConnectivityError: If the device is offline before an attempt.
            TransportError: If the last attempt got no response.
            HttpStatusError: If the last attempt got a failing response.
            AuthenticationError: If a 401 could not be recovered.
        """
        start_time = time.time()
        attempt = 0
        while True:
            if not self.is_connected():
                error = ConnectivityError(CONNECTIVITY_ERROR_MESSAGE)
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{request.method} request to {request.url} skipped: no network connection",
                    method=request.method,
                    url=request.url,
                    attempt=attempt + 1,
                )
                self.callbacks.on_failure(request, attempt, error, start_time)
                raise error

            self.callbacks.on_request(request, attempt)
            outcome = await self.send_once(request, send)

            if isinstance(outcome, Success):
                self.telemetry.reset()
                self.callbacks.on_success(request, attempt, outcome, start_time)
                return outcome

            decision = self.decider.decide(outcome, request, attempt)
            if isinstance(decision, Fail):
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{request.method} request to {request.url} failed: {decision.error.message}",
                    method=request.method,
                    url=request.url,
                    attempt=attempt + 1,
                    status=decision.error.status,
                )
                self.callbacks.on_failure(request, attempt, decision.error, start_time)
                raise decision.error

            if isinstance(decision, RefreshThenRetry):
                await self._refresh_or_fail(request, attempt, outcome.data, start_time)
            elif isinstance(decision, Retry):
                retry_count = self.telemetry.increment()
                log_structured(
                    logger,
                    logging.DEBUG,
                    f"{request.method} request to {request.url}: will retry in "
                    f"{decision.delay:.2f}s ({decision.reason})",
                    method=request.method,
                    url=request.url,
                    attempt=attempt + 1,
                    reason=decision.reason,
                    delay=decision.delay,
                    retry_count=retry_count,
                )
                self.callbacks.on_retry(
                    request, attempt, decision.delay, decision.reason, decision.status_code
                )
                await asyncio.sleep(decision.delay)

            request = request.next_attempt()
            attempt += 1

    async def _refresh_or_fail(
        self, request: LogicalRequest, attempt: int, data: object, start_time: float
    ) -> None:
        logger.debug(f"{request.method} request to {request.url} unauthorized, refreshing token")
        refreshed = self.token_provider is not None and await self.token_provider.refresh_token()
        if refreshed:
            return

        error = AuthenticationError(data=data)
        logger.warning(
            f"{request.method} request to {request.url}: token refresh failed, "
            "invalidating session"
        )
        if self.on_session_invalidated is not None:
            self.on_session_invalidated()
        self.callbacks.on_failure(request, attempt, error, start_time)
        raise error

r"""Asynchronous API client with retry and token refresh.

This module provides ``ApiClient``, the surface used by the rest of an
application to call its API. It owns an ``httpx.AsyncClient`` and turns
each call into a ``LogicalRequest`` executed by ``AsyncRetryExecutor``.
"""

from __future__ import annotations

__all__ = ["ApiClient", "ApiResponse"]

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

from aresauth.core.config import ClientConfig
from aresauth.request import LogicalRequest, prepare_upload_files, resolve_url
from aresauth.retry.executor import AsyncRetryExecutor

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from types import TracebackType
    from typing import Self

    from aresauth.auth.token_manager import TokenProvider
    from aresauth.connectivity import ConnectivityProvider
    from aresauth.telemetry import RetryTelemetry

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResponse:
    """Successful result of a logical request.

    Attributes:
        data: The JSON-decoded response body, ``None`` for an empty body.
        status: The HTTP status code.
        headers: The response headers.
    """

    data: Any
    status: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)


class ApiClient:
    r"""Asynchronous context manager for calls to a JSON API.

    Relative paths are resolved against ``config.base_url``. Failed
    attempts are retried according to ``config``, a 401 triggers a token
    refresh through ``token_provider``, and every failure is raised as an
    ``ApiRequestError``.

    Args:
        config: Optional ClientConfig. If ``None``, a default one is used.
        token_provider: Optional provider of access tokens, usually a
            ``TokenManager``.
        connectivity: Optional connectivity gate, usually a
            ``NetworkState``.
        telemetry: Retry counter. Defaults to the process-wide one.
        on_session_invalidated: Optional zero-argument callable invoked
            when a token refresh fails, usually ``SessionStore.logout``.
        transport: Optional httpx transport, e.g. ``httpx.MockTransport``.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aresauth import ApiClient, ClientConfig, NetworkState, SessionStore, TokenManager
        >>> async def main():  # doctest: +SKIP
        ...     session = SessionStore()
        ...     config = ClientConfig(base_url="https://api.example.com")
        ...     async with ApiClient(
        ...         config=config,
        ...         token_provider=TokenManager(session, base_url=config.base_url),
        ...         connectivity=NetworkState(),
        ...         on_session_invalidated=session.logout,
        ...     ) as client:
        ...         profile = await client.get("/user/profile")
        ...         await client.put("/user/profile", {"name": "Ada"})
        ...
        >>> asyncio.run(main())  # doctest: +SKIP

        ```
    """

    def __init__(
        self,
        *,
        config: ClientConfig | None = None,
        token_provider: TokenProvider | None = None,
        connectivity: ConnectivityProvider | None = None,
        telemetry: RetryTelemetry | None = None,
        on_session_invalidated: Callable[[], None] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config if config is not None else ClientConfig()
        self._token_provider = token_provider
        self._connectivity = connectivity
        self._telemetry = telemetry
        self._on_session_invalidated = on_session_invalidated
        self._transport = transport

        # Client will be created when entering context
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    async def __aenter__(self) -> Self:
        # The deadline of each attempt is enforced by the executor.
        self._client = httpx.AsyncClient(timeout=None, transport=self._transport)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the underlying httpx client.

        Raises:
            RuntimeError: If the client is used outside of a context manager.
        """
        if self._client is None:
            msg = "ApiClient must be used within an async context manager (async with statement)"
            raise RuntimeError(msg)
        return self._client

    async def _send(self, request: LogicalRequest, headers: httpx.Headers) -> httpx.Response:
        client = self._ensure_client()
        if request.is_upload:
            return await client.request(
                request.method, request.url, headers=headers, files=request.files
            )
        if request.body is None:
            return await client.request(request.method, request.url, headers=headers)
        return await client.request(request.method, request.url, headers=headers, json=request.body)

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        files: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ) -> ApiResponse:
        r"""Send a request and return its successful response.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH or DELETE).
            path: Path relative to ``config.base_url``, or an absolute URL.
            body: Optional payload serialized as JSON.
            files: Optional multipart files, see ``upload``.
            headers: Optional headers merged over the defaults.
            timeout: Override of ``config.timeout`` for this request.
            max_retries: Override of ``config.max_retries`` for this request.

        Returns:
            The decoded response.

        Raises:
            RuntimeError: If called outside of a context manager.
            ApiRequestError: If the request fails, see
                ``AsyncRetryExecutor.execute``.
        """
        self._ensure_client()
        config = self._config.merge(timeout=timeout, max_retries=max_retries)
        replayable = True
        if files is not None:
            files, replayable = prepare_upload_files(files)
        request = LogicalRequest(
            url=resolve_url(config.base_url, path),
            method=method.upper(),
            body=body,
            files=files,
            headers=dict(headers or {}),
            timeout=config.timeout,
            remaining_retries=config.max_retries,
            replayable=replayable,
        )
        executor = AsyncRetryExecutor(
            config,
            token_provider=self._token_provider,
            connectivity=self._connectivity,
            telemetry=self._telemetry,
            on_session_invalidated=self._on_session_invalidated,
        )
        outcome = await executor.execute(request, self._send)
        return ApiResponse(data=outcome.data, status=outcome.status, headers=outcome.headers)

    async def get(self, path: str, **kwargs: Any) -> ApiResponse:
        """Send a GET request, see ``request`` for the keyword arguments."""
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a POST request with an optional JSON body."""
        return await self.request("POST", path, body, **kwargs)

    async def put(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a PUT request with an optional JSON body."""
        return await self.request("PUT", path, body, **kwargs)

    async def patch(self, path: str, body: Any = None, **kwargs: Any) -> ApiResponse:
        """Send a PATCH request with an optional JSON body."""
        return await self.request("PATCH", path, body, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> ApiResponse:
        """Send a DELETE request."""
        return await self.request("DELETE", path, **kwargs)

    async def upload(self, path: str, files: Mapping[str, Any], **kwargs: Any) -> ApiResponse:
        r"""Upload files with a multipart POST request.

        No ``Content-Type`` header is sent so that httpx sets the
        multipart boundary. File-like contents are read before the first
        attempt so that retries resend the same bytes; contents that
        cannot be read eagerly (iterators) disable retries.

        Args:
            path: Path relative to ``config.base_url``, or an absolute URL.
            files: The files in the httpx ``files`` format.
            **kwargs: ``headers``, ``timeout`` and ``max_retries``, see
                ``request``.

        Returns:
            The decoded response.
        """
        return await self.request("POST", path, files=files, **kwargs)

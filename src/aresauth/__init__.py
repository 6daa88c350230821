r"""aresauth - Resilient, authentication-aware API client.

This package turns a logical HTTP request into a decoded JSON response
or a classified failure. Built on top of httpx and asyncio, it retries
transient failures with a bounded budget, refreshes the access token on
401 responses with at most one refresh in flight, and short-circuits
requests while the device is offline.

Key Features:
    - Automatic retry for 408, 429, 5xx responses and transport errors
    - Fixed retry delay by default, optional exponential backoff and jitter
    - Single-flight access token refresh and session invalidation
    - Connectivity gate and retry telemetry counter for UI indicators
    - Uniform ``{status, data, message}`` errors
    - Callbacks and structured logging for observability

Example:
    ```pycon
    >>> import asyncio
    >>> from aresauth import ApiClient, ClientConfig
    >>> async def main():  # doctest: +SKIP
    ...     async with ApiClient(config=ClientConfig(base_url="https://api.example.com")) as client:
    ...         response = await client.get("/items")
    ...         return response.data
    ...
    >>> asyncio.run(main())  # doctest: +SKIP

    ```
"""

from __future__ import annotations

__all__ = [
    "ApiClient",
    "ApiRequestError",
    "ApiResponse",
    "AuthenticationError",
    "ClientConfig",
    "ConnectivityError",
    "HttpStatusError",
    "NetworkState",
    "RetryTelemetry",
    "SessionStore",
    "TokenManager",
    "TransportError",
    "__version__",
    "get_default_telemetry",
]

from importlib.metadata import PackageNotFoundError, version

from aresauth.auth import SessionStore, TokenManager
from aresauth.client import ApiClient, ApiResponse
from aresauth.connectivity import NetworkState
from aresauth.core.config import ClientConfig
from aresauth.exceptions import (
    ApiRequestError,
    AuthenticationError,
    ConnectivityError,
    HttpStatusError,
    TransportError,
)
from aresauth.telemetry import RetryTelemetry, get_default_telemetry

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"

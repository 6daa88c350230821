r"""Shared helpers for building tokens, responses and transports in
tests."""

from __future__ import annotations

__all__ = ["TEST_URL", "json_response", "make_jwt", "make_send", "make_transport"]

import base64
import json
import time
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock

import httpx

if TYPE_CHECKING:
    from collections.abc import Callable

TEST_URL = "https://api.example.com/data"


def _b64(payload: dict[str, Any]) -> str:
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).rstrip(b"=").decode()


def make_jwt(expires_in: float = 3600.0, **claims: Any) -> str:
    """Create an unsigned JWT expiring ``expires_in`` seconds from now."""
    payload = {"exp": int(time.time() + expires_in), **claims}
    return f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(payload)}.signature"


def json_response(status_code: int = 200, data: Any = None, **kwargs: Any) -> httpx.Response:
    """Create an httpx response with a JSON body."""
    if data is None:
        return httpx.Response(status_code, **kwargs)
    return httpx.Response(status_code, json=data, **kwargs)


def make_send(*side_effect: Any) -> AsyncMock:
    """Create an async send function returning or raising each item in
    turn."""
    return AsyncMock(side_effect=list(side_effect))


def make_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    """Create an httpx mock transport recording every request on
    ``transport.requests``."""
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    transport = httpx.MockTransport(record)
    transport.requests = requests
    return transport

from __future__ import annotations

import asyncio
import io
import json
from unittest.mock import Mock

import httpx
import pytest

from aresauth import (
    ApiClient,
    ApiResponse,
    AuthenticationError,
    ClientConfig,
    ConnectivityError,
    HttpStatusError,
    NetworkState,
    SessionStore,
    TokenManager,
    TransportError,
)
from aresauth.auth import TokenPair
from aresauth.telemetry import RetryTelemetry
from tests.helpers import make_jwt, make_transport

BASE_URL = "https://api.example.com"


def ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"method": request.method, "path": request.url.path})


###############################
#     Tests for ApiClient     #
###############################


@pytest.mark.asyncio
async def test_api_client_outside_context_manager() -> None:
    client = ApiClient()
    with pytest.raises(RuntimeError, match=r"async context manager"):
        await client.get("/users")


@pytest.mark.asyncio
async def test_api_client_closed_after_context_manager() -> None:
    async with ApiClient(transport=make_transport(ok_handler)) as client:
        pass
    with pytest.raises(RuntimeError, match=r"async context manager"):
        await client.get("/users")


def test_api_client_default_config() -> None:
    assert ApiClient().config == ClientConfig()


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["get", "post", "put", "patch", "delete"])
async def test_api_client_http_methods(method: str, telemetry: RetryTelemetry) -> None:
    transport = make_transport(ok_handler)
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await getattr(client, method)("/users/1")
    assert isinstance(response, ApiResponse)
    assert response.data == {"method": method.upper(), "path": "/users/1"}
    assert response.status == 200
    assert len(transport.requests) == 1
    assert str(transport.requests[0].url) == f"{BASE_URL}/users/1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("path", "url"),
    [
        ("users", f"{BASE_URL}/v1/users"),
        ("/users", f"{BASE_URL}/v1/users"),
        ("", f"{BASE_URL}/v1/"),
        ("https://other.example.com/ping", "https://other.example.com/ping"),
    ],
)
async def test_api_client_resolves_path(path: str, url: str, telemetry: RetryTelemetry) -> None:
    transport = make_transport(ok_handler)
    config = ClientConfig(base_url=f"{BASE_URL}/v1/")
    async with ApiClient(config=config, transport=transport, telemetry=telemetry) as client:
        await client.get(path)
    assert str(transport.requests[0].url) == url


@pytest.mark.asyncio
async def test_api_client_request_lowercase_method(telemetry: RetryTelemetry) -> None:
    async with ApiClient(transport=make_transport(ok_handler), telemetry=telemetry) as client:
        response = await client.request("get", "/users")
    assert response.data["method"] == "GET"


@pytest.mark.asyncio
async def test_api_client_json_body(telemetry: RetryTelemetry) -> None:
    transport = make_transport(lambda request: httpx.Response(201, json={"id": 7}))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await client.post("/users", {"name": "Ada", "tags": [1, 2]})
    assert response.status == 201
    assert response.data == {"id": 7}
    request = transport.requests[0]
    assert json.loads(request.content) == {"name": "Ada", "tags": [1, 2]}
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_api_client_no_body(telemetry: RetryTelemetry) -> None:
    transport = make_transport(lambda request: httpx.Response(204))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await client.delete("/users/1")
    assert response.data is None
    assert response.status == 204
    assert transport.requests[0].content == b""


@pytest.mark.asyncio
async def test_api_client_response_headers(telemetry: RetryTelemetry) -> None:
    transport = make_transport(
        lambda request: httpx.Response(200, json={}, headers={"X-Total": "42"})
    )
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await client.get("/users")
    assert response.headers["X-Total"] == "42"


@pytest.mark.asyncio
async def test_api_client_custom_headers(telemetry: RetryTelemetry) -> None:
    transport = make_transport(ok_handler)
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        await client.get("/users", headers={"X-Trace": "abc"})
    assert transport.requests[0].headers["X-Trace"] == "abc"


@pytest.mark.asyncio
async def test_api_client_upload(telemetry: RetryTelemetry) -> None:
    transport = make_transport(lambda request: httpx.Response(200, json={"uploaded": True}))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await client.upload(
            "/files", {"file": ("notes.txt", io.BytesIO(b"hello"), "text/plain")}
        )
    assert response.data == {"uploaded": True}
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
    assert b"hello" in request.content
    assert b'filename="notes.txt"' in request.content


@pytest.mark.asyncio
async def test_api_client_upload_retry_resends_content(
    telemetry: RetryTelemetry, mock_asleep: Mock
) -> None:
    responses = iter([httpx.Response(503), httpx.Response(200, json={})])
    transport = make_transport(lambda request: next(responses))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        await client.upload("/files", {"file": ("a.bin", io.BytesIO(b"payload"))})
    assert len(transport.requests) == 2
    assert all(b"payload" in request.content for request in transport.requests)


@pytest.mark.asyncio
async def test_api_client_retries_server_error(
    telemetry: RetryTelemetry, mock_asleep: Mock
) -> None:
    responses = iter(
        [httpx.Response(503), httpx.Response(502), httpx.Response(200, json={"ok": True})]
    )
    transport = make_transport(lambda request: next(responses))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        response = await client.get("/health")
    assert response.data == {"ok": True}
    assert len(transport.requests) == 3
    assert mock_asleep.await_count == 2
    assert telemetry.count == 0


@pytest.mark.asyncio
async def test_api_client_server_error_exhausted(
    telemetry: RetryTelemetry, mock_asleep: Mock
) -> None:
    transport = make_transport(lambda request: httpx.Response(500, json={"message": "down"}))
    config = ClientConfig(max_retries=2)
    async with ApiClient(config=config, transport=transport, telemetry=telemetry) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await client.get("/health")
    assert exc_info.value.to_dict() == {"status": 500, "data": {"message": "down"}, "message": "down"}
    assert len(transport.requests) == 3
    assert telemetry.count == 2


@pytest.mark.asyncio
async def test_api_client_max_retries_override(
    telemetry: RetryTelemetry, mock_asleep: Mock
) -> None:
    transport = make_transport(lambda request: httpx.Response(503))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        with pytest.raises(HttpStatusError):
            await client.get("/health", max_retries=0)
    assert len(transport.requests) == 1
    mock_asleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_api_client_not_found(telemetry: RetryTelemetry) -> None:
    transport = make_transport(lambda request: httpx.Response(404, json={"message": "No user"}))
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        with pytest.raises(HttpStatusError, match=r"No user") as exc_info:
            await client.get("/users/9")
    assert exc_info.value.status == 404
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_api_client_network_error(telemetry: RetryTelemetry, mock_asleep: Mock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    transport = make_transport(handler)
    config = ClientConfig(max_retries=1)
    async with ApiClient(config=config, transport=transport, telemetry=telemetry) as client:
        with pytest.raises(TransportError, match=r"connection refused"):
            await client.get("/users")
    assert len(transport.requests) == 2
    assert telemetry.count == 1


@pytest.mark.asyncio
async def test_api_client_offline(network: NetworkState, telemetry: RetryTelemetry) -> None:
    network.set_connected(False)
    transport = make_transport(ok_handler)
    async with ApiClient(transport=transport, connectivity=network, telemetry=telemetry) as client:
        with pytest.raises(ConnectivityError, match=r"No network connection"):
            await client.get("/users")
    assert transport.requests == []


@pytest.mark.asyncio
async def test_api_client_back_online(network: NetworkState, telemetry: RetryTelemetry) -> None:
    transport = make_transport(ok_handler)
    async with ApiClient(transport=transport, connectivity=network, telemetry=telemetry) as client:
        network.set_connected(False)
        with pytest.raises(ConnectivityError):
            await client.get("/users")
        network.set_connected(True)
        response = await client.get("/users")
    assert response.status == 200
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_api_client_repeated_calls_are_independent(
    telemetry: RetryTelemetry, mock_asleep: Mock
) -> None:
    responses = iter([httpx.Response(503), httpx.Response(200, json={}), httpx.Response(200, json={})])
    transport = make_transport(lambda request: next(responses))
    config = ClientConfig(max_retries=1)
    async with ApiClient(config=config, transport=transport, telemetry=telemetry) as client:
        await client.get("/a")
        await client.get("/b")
    assert len(transport.requests) == 3


@pytest.mark.asyncio
async def test_api_client_bearer_token(session: SessionStore, telemetry: RetryTelemetry) -> None:
    token = make_jwt()
    session.set_session(token, "refresh-1")
    manager = TokenManager(session)
    transport = make_transport(ok_handler)
    async with ApiClient(transport=transport, token_provider=manager, telemetry=telemetry) as client:
        await client.get("/me")
    assert transport.requests[0].headers["Authorization"] == f"Bearer {token}"


@pytest.mark.asyncio
async def test_api_client_anonymous(session: SessionStore, telemetry: RetryTelemetry) -> None:
    transport = make_transport(ok_handler)
    async with ApiClient(
        transport=transport, token_provider=TokenManager(session), telemetry=telemetry
    ) as client:
        await client.get("/public")
    assert "Authorization" not in transport.requests[0].headers


@pytest.mark.asyncio
async def test_api_client_concurrent_unauthorized_refresh_once(
    session: SessionStore, telemetry: RetryTelemetry
) -> None:
    old_token, new_token = make_jwt(sub="old"), make_jwt(sub="new")
    session.set_session(old_token, "refresh-1")
    all_waiting = asyncio.Event()
    refresher_calls = []

    async def refresher(refresh_token: str) -> TokenPair:
        refresher_calls.append(refresh_token)
        await all_waiting.wait()
        return TokenPair(new_token, "refresh-2")

    manager = TokenManager(session, refresher=refresher)
    refresh_calls = []
    refresh_token = manager.refresh_token

    async def counting_refresh_token() -> bool:
        refresh_calls.append(None)
        if len(refresh_calls) == 3:
            all_waiting.set()
        return await refresh_token()

    manager.refresh_token = counting_refresh_token

    def handler(request: httpx.Request) -> httpx.Response:
        if request.headers["Authorization"] == f"Bearer {new_token}":
            return httpx.Response(200, json={"path": request.url.path})
        return httpx.Response(401, json={"message": "Token expired"})

    transport = make_transport(handler)
    try:
        async with ApiClient(
            transport=transport, token_provider=manager, telemetry=telemetry
        ) as client:
            responses = await asyncio.gather(client.get("/a"), client.get("/b"), client.get("/c"))
    finally:
        manager.cleanup()

    assert [response.data["path"] for response in responses] == ["/a", "/b", "/c"]
    assert refresher_calls == ["refresh-1"]
    assert len(transport.requests) == 6
    assert session.token == new_token
    assert session.refresh_token == "refresh-2"
    assert telemetry.count == 0


@pytest.mark.asyncio
async def test_api_client_refresh_failure_logs_out(
    session: SessionStore, telemetry: RetryTelemetry
) -> None:
    async def refresher(refresh_token: str) -> None:
        return None

    session.set_session(make_jwt(), "refresh-1")
    listener = Mock()
    session.add_logout_listener(listener)
    transport = make_transport(lambda request: httpx.Response(401, json={"message": "expired"}))
    async with ApiClient(
        transport=transport,
        token_provider=TokenManager(session, refresher=refresher),
        telemetry=telemetry,
        on_session_invalidated=session.logout,
    ) as client:
        with pytest.raises(AuthenticationError, match=r"Authentication failed") as exc_info:
            await client.get("/me")
    assert exc_info.value.status == 401
    assert len(transport.requests) == 1
    assert not session.is_authenticated
    listener.assert_called_once_with()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error", [RuntimeError("backend down"), asyncio.TimeoutError(), OSError("io")]
)
async def test_api_client_refresher_error_invalidates_session(
    error: Exception, session: SessionStore, telemetry: RetryTelemetry, mock_callback: Mock
) -> None:
    async def refresher(refresh_token: str) -> TokenPair:
        raise error

    session.set_session(make_jwt(), "refresh-1")
    transport = make_transport(lambda request: httpx.Response(401, json={"message": "expired"}))
    async with ApiClient(
        transport=transport,
        token_provider=TokenManager(session, refresher=refresher),
        telemetry=telemetry,
        on_session_invalidated=mock_callback,
    ) as client:
        with pytest.raises(AuthenticationError, match=r"Authentication failed") as exc_info:
            await client.get("/me")
    assert exc_info.value.to_dict() == {
        "status": 401,
        "data": {"message": "expired"},
        "message": "Authentication failed",
    }
    mock_callback.assert_called_once_with()
    assert len(transport.requests) == 1


@pytest.mark.asyncio
async def test_api_client_timeout_override(telemetry: RetryTelemetry, mock_asleep: Mock) -> None:
    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.Event().wait()
        return httpx.Response(200, json={})

    transport = httpx.MockTransport(slow_handler)
    async with ApiClient(transport=transport, telemetry=telemetry) as client:
        with pytest.raises(TransportError) as exc_info:
            await client.get("/slow", timeout=0.01, max_retries=0)
    assert exc_info.value.message == "Request timed out after 0.01s"

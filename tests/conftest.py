from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, Mock, patch

import pytest

from aresauth.auth import SessionStore
from aresauth.connectivity import NetworkState
from aresauth.telemetry import RetryTelemetry

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def mock_asleep() -> Generator[Mock, None, None]:
    """Patch asyncio.sleep to make tests run faster."""
    with patch("asyncio.sleep", return_value=None) as mock:
        yield mock


@pytest.fixture
def telemetry() -> RetryTelemetry:
    """Create a retry counter isolated from the process-wide one."""
    return RetryTelemetry()


@pytest.fixture
def network() -> NetworkState:
    """Create a connected network state."""
    return NetworkState()


@pytest.fixture
def session() -> SessionStore:
    """Create an anonymous session store."""
    return SessionStore()


@pytest.fixture
def token_provider() -> Mock:
    """Create a token provider whose refresh succeeds.

    The first attempt gets ``token-1`` and later ones ``token-2``.
    """
    return Mock(
        get_valid_token=AsyncMock(side_effect=["token-1", "token-2", "token-2", "token-2"]),
        refresh_token=AsyncMock(return_value=True),
    )


@pytest.fixture
def mock_callback() -> Mock:
    """Create a mock callback function for testing callbacks."""
    return Mock()

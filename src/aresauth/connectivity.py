r"""Connectivity gate consumed by the request executor.

The executor only reads ``is_connected``; anything exposing that
property satisfies ``ConnectivityProvider``. ``NetworkState`` is a
simple mutable implementation that an application updates from its
platform reachability notifications.
"""

from __future__ import annotations

__all__ = ["ConnectionType", "ConnectivityProvider", "NetworkState"]

import logging
from enum import Enum
from typing import Protocol, runtime_checkable

logger: logging.Logger = logging.getLogger(__name__)


@runtime_checkable
class ConnectivityProvider(Protocol):
    """Report whether the network is currently reachable."""

    @property
    def is_connected(self) -> bool: ...


class ConnectionType(Enum):
    WIFI = "wifi"
    CELLULAR = "cellular"
    ETHERNET = "ethernet"
    UNKNOWN = "unknown"


class NetworkState:
    """Mutable network reachability state.

    Args:
        is_connected: Whether a network connection is available.
        is_online: Whether the internet is reachable through it.
        connection_type: The kind of connection.

    Example:
        ```pycon
        >>> from aresauth.connectivity import NetworkState
        >>> state = NetworkState()
        >>> state.is_connected
        True
        >>> state.set_connected(False)
        >>> state.is_connected
        False

        ```
    """

    def __init__(
        self,
        *,
        is_connected: bool = True,
        is_online: bool = True,
        connection_type: ConnectionType = ConnectionType.UNKNOWN,
    ) -> None:
        self._is_connected = is_connected
        self._is_online = is_online
        self._connection_type = connection_type

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(is_connected={self._is_connected}, "
            f"is_online={self._is_online}, connection_type={self._connection_type.value})"
        )

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def is_online(self) -> bool:
        return self._is_online

    @property
    def connection_type(self) -> ConnectionType:
        return self._connection_type

    def set_connected(self, is_connected: bool) -> None:
        if is_connected != self._is_connected:
            logger.debug(f"network connection {'restored' if is_connected else 'lost'}")
        self._is_connected = is_connected

    def set_online_status(self, is_online: bool) -> None:
        self._is_online = is_online

    def set_connection_type(self, connection_type: ConnectionType | str) -> None:
        self._connection_type = ConnectionType(connection_type)

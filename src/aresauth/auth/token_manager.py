r"""Access token management with single-flight refresh.

``TokenManager`` implements the ``TokenProvider`` protocol consumed by
the request executor. It hands out the current access token, refreshes
it when it is about to expire, and guarantees that at most one refresh
runs at a time: concurrent callers of ``refresh_token`` await the same
in-flight ``asyncio.Task``.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_EXPIRY_MARGIN",
    "TokenManager",
    "TokenPair",
    "TokenProvider",
    "decode_token_expiry",
]

import asyncio
import base64
import json
import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import httpx

from aresauth.core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from aresauth.auth.session import SessionStore

logger: logging.Logger = logging.getLogger(__name__)

# Tokens expiring within this many seconds are treated as expired
DEFAULT_EXPIRY_MARGIN = 300.0


@runtime_checkable
class TokenProvider(Protocol):
    """Supply access tokens to the request executor."""

    async def get_valid_token(self) -> str | None:
        """Return a currently valid access token, or ``None``."""

    async def refresh_token(self) -> bool:
        """Refresh the access token.

        Returns:
            ``True`` if a new token is installed and the request can be
            retried, ``False`` if the session must be invalidated.
        """


@dataclass(frozen=True)
class TokenPair:
    """Tokens returned by a successful refresh."""

    token: str
    refresh_token: str | None = None


def decode_token_expiry(token: str) -> float | None:
    """Read the ``exp`` claim of a JWT without verifying it.

    Args:
        token: The encoded JWT.

    Returns:
        The expiry as a POSIX timestamp, or ``None`` if the token is not
        a JWT or has no finite numeric ``exp`` claim.

    Example:
        ```pycon
        >>> from aresauth.auth.token_manager import decode_token_expiry
        >>> decode_token_expiry("eyJhbGciOiJub25lIn0.eyJleHAiOjE3MDAwMDAwMDB9.")
        1700000000
        >>> decode_token_expiry("not-a-jwt") is None
        True

        ```
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    payload_part = parts[1] + "=" * (-len(parts[1]) % 4)
    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_part))
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    exp = payload.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    if not math.isfinite(exp):
        return None
    return exp


class TokenManager:
    r"""Provide valid access tokens and coordinate their refresh.

    Args:
        session: The session store holding the tokens.
        base_url: Base URL of the API hosting ``/auth/refresh``.
        refresher: Optional coroutine function receiving the refresh
            token and returning the new ``TokenPair``, or ``None`` on
            failure. Defaults to ``POST {base_url}/auth/refresh``.
        expiry_margin: Seconds before expiry at which a token is
            considered expired and a scheduled refresh fires.
        transport: Optional httpx transport used by the default
            refresher.

    Example:
        ```pycon
        >>> import asyncio
        >>> from aresauth.auth import SessionStore, TokenManager, TokenPair
        >>> async def refresher(refresh_token):
        ...     return TokenPair(token="new-access", refresh_token="new-refresh")
        ...
        >>> session = SessionStore()
        >>> session.set_session("old-access", "old-refresh")
        >>> manager = TokenManager(session, refresher=refresher)
        >>> asyncio.run(manager.refresh_token())
        True
        >>> session.token
        'new-access'

        ```
    """

    def __init__(
        self,
        session: SessionStore,
        *,
        base_url: str = DEFAULT_BASE_URL,
        refresher: Callable[[str], Awaitable[TokenPair | None]] | None = None,
        expiry_margin: float = DEFAULT_EXPIRY_MARGIN,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if expiry_margin < 0:
            msg = f"expiry_margin must be >= 0, got {expiry_margin}"
            raise ValueError(msg)
        self.session = session
        self.base_url = base_url
        self.expiry_margin = expiry_margin
        self._refresher = refresher if refresher is not None else self._request_new_tokens
        self._transport = transport
        self._refresh_task: asyncio.Task[bool] | None = None
        self._refresh_timer: asyncio.TimerHandle | None = None
        self._scheduled_refresh: asyncio.Task[bool] | None = None

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(base_url={self.base_url!r}, "
            f"expiry_margin={self.expiry_margin})"
        )

    @property
    def is_refreshing(self) -> bool:
        return self._refresh_task is not None

    def is_token_expired(self, token: str) -> bool:
        """Indicate whether a token is expired or about to expire.

        Tokens that cannot be decoded are treated as expired.
        """
        exp = decode_token_expiry(token)
        if exp is None:
            return True
        return exp < time.time() + self.expiry_margin

    async def get_valid_token(self) -> str | None:
        """Return a valid access token, refreshing it if needed.

        Returns:
            The access token, or ``None`` if there is no session or the
            expired token could not be refreshed. In the latter case the
            session is logged out.
        """
        token = self.session.token
        if not token:
            return None
        if not self.is_token_expired(token):
            return token

        if self.session.refresh_token and await self.refresh_token():
            return self.session.token

        logger.warning("access token expired and could not be refreshed")
        self.session.logout()
        return None

    async def refresh_token(self) -> bool:
        """Refresh the access token, joining any refresh already in
        flight.

        Returns:
            ``True`` if new tokens are installed, otherwise ``False``.
        """
        if self._refresh_task is None:
            logger.debug("starting access token refresh")
            task = asyncio.ensure_future(self._perform_token_refresh())
            task.add_done_callback(self._clear_refresh_task)
            self._refresh_task = task
        else:
            logger.debug("joining access token refresh already in flight")
        # A cancelled caller must not cancel the refresh other callers are awaiting.
        return await asyncio.shield(self._refresh_task)

    def _clear_refresh_task(self, task: asyncio.Task[bool]) -> None:
        if self._refresh_task is task:
            self._refresh_task = None

    async def _perform_token_refresh(self) -> bool:
        refresh_token = self.session.refresh_token
        if not refresh_token:
            logger.debug("no refresh token available")
            return False

        try:
            pair = await self._refresher(refresh_token)
        except Exception as exc:  # noqa: BLE001
            logger.warning(f"token refresh failed: {exc!r}")
            return False
        if pair is None:
            logger.warning("token refresh was rejected")
            return False
        if self.session.refresh_token != refresh_token:
            # Logged out or signed in again while the refresh was running.
            logger.debug("session changed during token refresh, discarding new tokens")
            return self.session.is_authenticated

        self.session.update_tokens(
            pair.token, pair.refresh_token, expires_at=decode_token_expiry(pair.token)
        )
        self.schedule_token_refresh(pair.token)
        logger.debug("access token refreshed")
        return True

    async def _request_new_tokens(self, refresh_token: str) -> TokenPair | None:
        async with httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, transport=self._transport) as client:
            response = await client.post(
                f"{self.base_url.rstrip('/')}/auth/refresh",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {refresh_token}",
                },
            )
        if not response.is_success:
            logger.debug(f"refresh endpoint answered with status {response.status_code}")
            return None
        data = response.json()["data"]
        return TokenPair(token=data["token"], refresh_token=data.get("refreshToken"))

    def schedule_token_refresh(self, token: str) -> None:
        """Schedule a refresh ``expiry_margin`` seconds before the token
        expires.

        Any previously scheduled refresh is cancelled. Nothing is
        scheduled if the token has no expiry or no event loop is
        running.
        """
        self._cancel_timer()
        exp = decode_token_expiry(token)
        if exp is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("no running event loop, token refresh not scheduled")
            return
        delay = max(0.0, exp - time.time() - self.expiry_margin)
        logger.debug(f"next token refresh in {delay:.0f}s")
        self._refresh_timer = loop.call_later(delay, self._run_scheduled_refresh)

    def _run_scheduled_refresh(self) -> None:
        self._refresh_timer = None
        self._scheduled_refresh = asyncio.ensure_future(self.refresh_token())

    def _cancel_timer(self) -> None:
        if self._refresh_timer is not None:
            self._refresh_timer.cancel()
            self._refresh_timer = None

    def initialize(self) -> None:
        """Schedule the next refresh of an authenticated session."""
        token = self.session.token
        if self.session.is_authenticated and token:
            self.schedule_token_refresh(token)

    def cleanup(self) -> None:
        """Cancel the scheduled refresh and forget the in-flight one."""
        self._cancel_timer()
        if self._scheduled_refresh is not None:
            self._scheduled_refresh.cancel()
        self._refresh_task = None
        self._scheduled_refresh = None

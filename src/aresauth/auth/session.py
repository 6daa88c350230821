r"""Session state shared by the token manager and the application.

``SessionStore`` owns the ``AuthState``. The request executor never
mutates it: tokens are installed by ``TokenManager`` and cleared by
``SessionStore.logout``, which is the usual session-invalidation hook
given to ``ApiClient``.
"""

from __future__ import annotations

__all__ = ["AuthState", "SessionStore"]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthState:
    """Tokens of the current session.

    Attributes:
        access_token: The bearer token sent with requests.
        refresh_token: The token used to obtain a new access token.
        expires_at: POSIX timestamp at which the access token expires,
            if known.
    """

    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: float | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None


class SessionStore:
    """Hold the current ``AuthState`` and notify listeners on logout.

    Args:
        state: The initial state. Defaults to an anonymous session.

    Example:
        ```pycon
        >>> from aresauth.auth import SessionStore
        >>> store = SessionStore()
        >>> store.set_session("access", "refresh")
        >>> store.token, store.is_authenticated
        ('access', True)
        >>> store.logout()
        >>> store.token, store.is_authenticated
        (None, False)

        ```
    """

    def __init__(self, state: AuthState | None = None) -> None:
        self._state = state if state is not None else AuthState()
        self._logout_listeners: list[Callable[[], None]] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(is_authenticated={self.is_authenticated})"

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def token(self) -> str | None:
        return self._state.access_token

    @property
    def refresh_token(self) -> str | None:
        return self._state.refresh_token

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    def set_session(
        self, access_token: str, refresh_token: str | None = None, expires_at: float | None = None
    ) -> None:
        """Install the tokens of a freshly authenticated session."""
        self._state = AuthState(
            access_token=access_token, refresh_token=refresh_token, expires_at=expires_at
        )

    def update_tokens(
        self, access_token: str, refresh_token: str | None = None, expires_at: float | None = None
    ) -> None:
        """Replace the tokens after a refresh.

        The previous refresh token is kept when ``refresh_token`` is
        ``None``.
        """
        self._state = AuthState(
            access_token=access_token,
            refresh_token=refresh_token if refresh_token is not None else self._state.refresh_token,
            expires_at=expires_at,
        )

    def add_logout_listener(self, listener: Callable[[], None]) -> None:
        """Register a callable invoked after every logout."""
        self._logout_listeners.append(listener)

    def logout(self) -> None:
        """Clear the session and notify the logout listeners."""
        logger.warning("session invalidated, clearing authentication state")
        self._state = AuthState()
        for listener in self._logout_listeners:
            listener()

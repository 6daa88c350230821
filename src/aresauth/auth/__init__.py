r"""Session state and access token management."""

from __future__ import annotations

__all__ = [
    "AuthState",
    "SessionStore",
    "TokenManager",
    "TokenPair",
    "TokenProvider",
    "decode_token_expiry",
]

from aresauth.auth.session import AuthState, SessionStore
from aresauth.auth.token_manager import (
    TokenManager,
    TokenPair,
    TokenProvider,
    decode_token_expiry,
)

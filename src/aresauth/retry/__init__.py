r"""Retry package implementing the request executor.

Public API:
    - RetryStrategy: Strategy for calculating retry delays
    - RetryDecider: Logic for deciding whether to retry
    - Retry, RefreshThenRetry, Fail: The retry decisions
    - CallbackManager: Manager for callback invocations
    - AsyncRetryExecutor: Asynchronous retry executor
"""

from __future__ import annotations

__all__ = [
    "AsyncRetryExecutor",
    "CallbackManager",
    "Fail",
    "RefreshThenRetry",
    "Retry",
    "RetryDecider",
    "RetryDecision",
    "RetryStrategy",
]

from aresauth.retry.decider import Fail, RefreshThenRetry, Retry, RetryDecider, RetryDecision
from aresauth.retry.executor import AsyncRetryExecutor
from aresauth.retry.manager import CallbackManager
from aresauth.retry.strategy import RetryStrategy

r"""Retry decision logic.

``RetryDecider.decide`` maps the outcome of a failed attempt to one of
three decisions:

- ``Retry``: wait ``delay`` seconds and attempt again
- ``RefreshThenRetry``: refresh the access token and attempt again
- ``Fail``: raise ``error`` to the caller

Both retry decisions are only returned when the request has retries
left and a replayable body, so following them always consumes budget.
"""

from __future__ import annotations

__all__ = ["Fail", "RefreshThenRetry", "Retry", "RetryDecider", "RetryDecision"]

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from aresauth.core.config import RETRY_STATUS_CODES
from aresauth.exceptions import (
    ApiRequestError,
    AuthenticationError,
    HttpStatusError,
    TransportError,
)
from aresauth.outcome import HttpFailure, TransportFailure
from aresauth.retry.strategy import RetryStrategy

if TYPE_CHECKING:
    from aresauth.request import LogicalRequest


@dataclass(frozen=True)
class Retry:
    delay: float
    reason: str
    status_code: int | None = None


@dataclass(frozen=True)
class RefreshThenRetry:
    pass


@dataclass(frozen=True)
class Fail:
    error: ApiRequestError


RetryDecision = Union[Retry, RefreshThenRetry, Fail]


class RetryDecider:
    """Decide what to do after a failed attempt.

    Args:
        status_forcelist: Status codes below 500 that are retried. Every
            status >= 500 is retried.
        strategy: Strategy computing the delay of ``Retry`` decisions.

    Example:
        ```pycon
        >>> from aresauth.outcome import HttpFailure
        >>> from aresauth.request import LogicalRequest
        >>> from aresauth.retry import RetryDecider
        >>> decider = RetryDecider()
        >>> request = LogicalRequest(url="https://api.example.com/x", method="GET")
        >>> decider.decide(HttpFailure(503, {}, "unavailable"), request, attempt=0)
        Retry(delay=1.0, reason='status 503', status_code=503)
        >>> decider.decide(HttpFailure(404, {}, "missing"), request, attempt=0)
        Fail(error=HttpStatusError(message='missing', status=404))

        ```
    """

    def __init__(
        self,
        status_forcelist: tuple[int, ...] = RETRY_STATUS_CODES,
        strategy: RetryStrategy | None = None,
    ) -> None:
        self.status_forcelist = status_forcelist
        self.strategy = strategy if strategy is not None else RetryStrategy()

    def is_retryable_status(self, status: int) -> bool:
        return status >= 500 or status in self.status_forcelist

    def decide(
        self, outcome: HttpFailure | TransportFailure, request: LogicalRequest, attempt: int
    ) -> RetryDecision:
        """Decide what to do after a failed attempt.

        Args:
            outcome: The failure outcome of the attempt.
            request: The request of the attempt.
            attempt: The attempt number (0-indexed), used for the delay.

        Returns:
            The retry decision.
        """
        can_retry = request.remaining_retries > 0 and request.replayable

        if isinstance(outcome, TransportFailure):
            if can_retry:
                return Retry(
                    delay=self.strategy.calculate_delay(attempt), reason=outcome.kind.value
                )
            return Fail(TransportError(outcome.message, kind=outcome.kind))

        if outcome.status == 401:
            if can_retry:
                return RefreshThenRetry()
            return Fail(AuthenticationError(outcome.message, data=outcome.data))

        if can_retry and self.is_retryable_status(outcome.status):
            return Retry(
                delay=self.strategy.calculate_delay(attempt),
                reason=f"status {outcome.status}",
                status_code=outcome.status,
            )
        return Fail(HttpStatusError(outcome.message, status=outcome.status, data=outcome.data))

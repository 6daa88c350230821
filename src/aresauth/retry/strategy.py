r"""Retry strategy for calculating the delay between attempts.

This module provides the RetryStrategy class for calculating retry
delays.
"""

from __future__ import annotations

__all__ = ["RetryStrategy"]

import logging
import random
from typing import TYPE_CHECKING

from aresauth.backoff import ConstantBackoff
from aresauth.core.config import DEFAULT_RETRY_DELAY

if TYPE_CHECKING:
    from aresauth.backoff import BaseBackoffStrategy

logger: logging.Logger = logging.getLogger(__name__)


class RetryStrategy:
    """Calculate the delay before the next attempt.

    The delay is computed as follows:

    1. ``backoff_strategy.calculate(attempt)``, a fixed ``retry_delay``
       when no strategy is given
    2. capped at ``max_wait_time`` if set
    3. increased by ``random.uniform(0, jitter_factor) * delay`` if
       ``jitter_factor > 0``

    Args:
        retry_delay: Fixed delay used when ``backoff_strategy`` is None.
        jitter_factor: Factor for adding random jitter to delays.
        backoff_strategy: Optional backoff strategy.
        max_wait_time: Optional cap in seconds on the delay before jitter.

    Example:
        ```pycon
        >>> from aresauth.retry import RetryStrategy
        >>> strategy = RetryStrategy(retry_delay=1.0)
        >>> strategy.calculate_delay(0), strategy.calculate_delay(2)
        (1.0, 1.0)

        ```
    """

    def __init__(
        self,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        jitter_factor: float = 0.0,
        backoff_strategy: BaseBackoffStrategy | None = None,
        max_wait_time: float | None = None,
    ) -> None:
        self.jitter_factor = jitter_factor
        self.backoff_strategy: BaseBackoffStrategy = (
            backoff_strategy if backoff_strategy is not None else ConstantBackoff(retry_delay)
        )
        self.max_wait_time = max_wait_time

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay before next retry.

        Args:
            attempt: Current attempt number (0-indexed).

        Returns:
            Sleep time in seconds.
        """
        delay = self.backoff_strategy.calculate(attempt)
        if self.max_wait_time is not None and delay > self.max_wait_time:
            logger.debug(f"Capping retry delay from {delay:.2f}s to {self.max_wait_time:.2f}s")
            delay = self.max_wait_time
        if self.jitter_factor > 0:
            delay += random.uniform(0, self.jitter_factor) * delay  # noqa: S311
        return delay

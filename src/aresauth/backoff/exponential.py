r"""Exponential backoff strategy."""

from __future__ import annotations

__all__ = ["ExponentialBackoff"]

from aresauth.backoff.base import BaseBackoffStrategy
from aresauth.core.config import DEFAULT_RETRY_DELAY


class ExponentialBackoff(BaseBackoffStrategy):
    """Multiply the delay by ``multiplier`` after each retry.

    The delay before retry ``attempt`` (0-indexed) is
    ``base_delay * multiplier ** attempt``, capped at ``max_delay`` when
    set.

    Args:
        base_delay: Delay in seconds before the first retry. Must be >= 0.
        multiplier: Growth factor between two retries. Must be >= 1.
        max_delay: Optional cap in seconds. Must be > 0 if provided.

    Example:
        ```pycon
        >>> from aresauth.backoff import ExponentialBackoff
        >>> backoff = ExponentialBackoff(base_delay=0.5)
        >>> [backoff.calculate(i) for i in range(4)]
        [0.5, 1.0, 2.0, 4.0]
        >>> ExponentialBackoff(base_delay=1.0, max_delay=3.0).calculate(5)
        3.0

        ```
    """

    def __init__(
        self,
        base_delay: float = DEFAULT_RETRY_DELAY,
        multiplier: float = 2.0,
        max_delay: float | None = None,
    ) -> None:
        if base_delay < 0:
            msg = f"base_delay must be >= 0, got {base_delay}"
            raise ValueError(msg)
        if multiplier < 1:
            msg = f"multiplier must be >= 1, got {multiplier}"
            raise ValueError(msg)
        if max_delay is not None and max_delay <= 0:
            msg = f"max_delay must be > 0, got {max_delay}"
            raise ValueError(msg)
        self.base_delay = base_delay
        self.multiplier = multiplier
        self.max_delay = max_delay

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}(base_delay={self.base_delay}, "
            f"multiplier={self.multiplier}, max_delay={self.max_delay})"
        )

    def calculate(self, attempt: int) -> float:
        delay = self.base_delay * (self.multiplier**attempt)
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return delay

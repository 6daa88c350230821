r"""Fixed delay backoff strategy."""

from __future__ import annotations

__all__ = ["ConstantBackoff"]

from aresauth.backoff.base import BaseBackoffStrategy
from aresauth.core.config import DEFAULT_RETRY_DELAY


class ConstantBackoff(BaseBackoffStrategy):
    """Wait the same delay before every retry.

    This is the strategy used when a ``ClientConfig`` does not provide
    one; its delay is then ``ClientConfig.retry_delay``.

    Args:
        delay: The delay in seconds. Must be >= 0.

    Example:
        ```pycon
        >>> from aresauth.backoff import ConstantBackoff
        >>> backoff = ConstantBackoff()
        >>> backoff.calculate(0), backoff.calculate(5)
        (1.0, 1.0)

        ```
    """

    def __init__(self, delay: float = DEFAULT_RETRY_DELAY) -> None:
        if delay < 0:
            msg = f"delay must be >= 0, got {delay}"
            raise ValueError(msg)
        self.delay = delay

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(delay={self.delay})"

    def calculate(self, attempt: int) -> float:  # noqa: ARG002
        return self.delay

r"""Abstract base class for backoff strategies."""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy"]

from abc import ABC, abstractmethod


class BaseBackoffStrategy(ABC):
    """Compute the delay to wait before the next attempt of a logical
    request."""

    @abstractmethod
    def calculate(self, attempt: int) -> float:
        """Calculate the delay before the next attempt.

        Args:
            attempt: Number of attempts already made minus one (0-indexed).
                ``attempt=0`` is the wait before the first retry.

        Returns:
            The delay in seconds.
        """

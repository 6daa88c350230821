r"""Retry telemetry counter.

The counter records how many retries happened since the last successful
request. It is only used for observability (for example a UI polling it
to show a degraded-connection indicator), never for control flow.
"""

from __future__ import annotations

__all__ = ["RetryTelemetry", "get_default_telemetry"]

import threading


class RetryTelemetry:
    """Thread-safe counter of retries since the last success.

    Example:
        ```pycon
        >>> from aresauth.telemetry import RetryTelemetry
        >>> telemetry = RetryTelemetry()
        >>> telemetry.increment()
        1
        >>> telemetry.increment()
        2
        >>> telemetry.reset()
        >>> telemetry.count
        0

        ```
    """

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}(count={self.count})"

    @property
    def count(self) -> int:
        with self._lock:
            return self._count

    def increment(self) -> int:
        """Increment the counter and return the new value."""
        with self._lock:
            self._count += 1
            return self._count

    def reset(self) -> None:
        """Reset the counter to zero."""
        with self._lock:
            self._count = 0


_default_telemetry = RetryTelemetry()


def get_default_telemetry() -> RetryTelemetry:
    """Return the process-wide telemetry counter."""
    return _default_telemetry

r"""Backoff strategies for delays between request attempts.

The executor waits a fixed delay between attempts by default
(``ConstantBackoff``). ``ExponentialBackoff`` is available for callers
that prefer growing delays; neither strategy changes the retry count.
"""

from __future__ import annotations

__all__ = ["BaseBackoffStrategy", "ConstantBackoff", "ExponentialBackoff"]

from aresauth.backoff.base import BaseBackoffStrategy
from aresauth.backoff.constant import ConstantBackoff
from aresauth.backoff.exponential import ExponentialBackoff

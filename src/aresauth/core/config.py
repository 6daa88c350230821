r"""Configuration dataclass and defaults for ApiClient.

This module provides configuration constants and a dataclass-based
configuration object shared by the ApiClient and the retry executor.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "RETRY_STATUS_CODES",
    "ClientConfig",
]

import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

from aresauth.core.validation import validate_retry_params, validate_timeout

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from aresauth.backoff import BaseBackoffStrategy
    from aresauth.callbacks import FailureInfo, RequestInfo, ResponseInfo, RetryInfo


DEFAULT_BASE_URL = "https://api.example.com"

# Default timeout in seconds for one transport attempt
DEFAULT_TIMEOUT = 10.0

# Default maximum number of retry attempts
# Total attempts = max_retries + 1 (initial attempt)
DEFAULT_MAX_RETRIES = 3

# Fixed delay in seconds between two attempts
DEFAULT_RETRY_DELAY = 1.0

# HTTP status codes below 500 that should trigger automatic retry
# 408: Request Timeout
# 429: Too Many Requests - Rate limiting
# Any status >= 500 is retried as well.
RETRY_STATUS_CODES = (408, 429)


@dataclass
class ClientConfig:
    """Configuration for ApiClient request and retry behavior.

    Args:
        base_url: URL prepended to relative request paths.
        timeout: Maximum seconds to wait for one transport attempt. Must be > 0.
        max_retries: Maximum number of retry attempts for failed requests. Must be >= 0.
        retry_delay: Delay in seconds between two attempts. Must be >= 0.
            Used by the default ``ConstantBackoff``.
        status_forcelist: HTTP status codes below 500 that trigger a retry.
        jitter_factor: Factor for adding random jitter to retry delays. Must be >= 0.
        backoff_strategy: Optional backoff strategy replacing the fixed delay.
        max_wait_time: Optional cap in seconds on a single retry delay.
        on_request: Optional callback called before each request attempt.
        on_retry: Optional callback called before each retry delay.
        on_success: Optional callback called when the request succeeds.
        on_failure: Optional callback called when the request fails for good.

    Example:
        ```pycon
        >>> from aresauth.core.config import ClientConfig
        >>> config = ClientConfig()
        >>> config.max_retries
        3
        >>> config.merge(max_retries=0).max_retries
        0
        >>> config.max_retries
        3

        ```
    """

    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay: float = DEFAULT_RETRY_DELAY
    status_forcelist: tuple[int, ...] = field(default_factory=lambda: RETRY_STATUS_CODES)
    jitter_factor: float = 0.0
    backoff_strategy: BaseBackoffStrategy | None = None
    max_wait_time: float | None = None
    on_request: Callable[[RequestInfo], None] | None = None
    on_retry: Callable[[RetryInfo], None] | None = None
    on_success: Callable[[ResponseInfo], None] | None = None
    on_failure: Callable[[FailureInfo], None] | None = None

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_timeout(self.timeout)
        validate_retry_params(
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            jitter_factor=self.jitter_factor,
            max_wait_time=self.max_wait_time,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: Any) -> ClientConfig:
        """Create a config from ``ARESAUTH_*`` environment variables.

        Recognized variables are ``ARESAUTH_API_URL``, ``ARESAUTH_TIMEOUT``,
        ``ARESAUTH_MAX_RETRIES`` and ``ARESAUTH_RETRY_DELAY``. Missing
        variables keep their defaults.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.
            **overrides: Explicit values taking precedence over the environment.

        Returns:
            A new validated ClientConfig.

        Raises:
            ValueError: If a variable cannot be parsed or is out of range.

        Example:
            ```pycon
            >>> from aresauth.core.config import ClientConfig
            >>> config = ClientConfig.from_env({"ARESAUTH_MAX_RETRIES": "5"})
            >>> config.max_retries
            5

            ```
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if "ARESAUTH_API_URL" in environ:
            values["base_url"] = environ["ARESAUTH_API_URL"]
        if "ARESAUTH_TIMEOUT" in environ:
            values["timeout"] = float(environ["ARESAUTH_TIMEOUT"])
        if "ARESAUTH_MAX_RETRIES" in environ:
            values["max_retries"] = int(environ["ARESAUTH_MAX_RETRIES"])
        if "ARESAUTH_RETRY_DELAY" in environ:
            values["retry_delay"] = float(environ["ARESAUTH_RETRY_DELAY"])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the configuration parameters.
        """
        return {
            "base_url": self.base_url,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "status_forcelist": self.status_forcelist,
            "jitter_factor": self.jitter_factor,
            "backoff_strategy": self.backoff_strategy,
            "max_wait_time": self.max_wait_time,
            "on_request": self.on_request,
            "on_retry": self.on_retry,
            "on_success": self.on_success,
            "on_failure": self.on_failure,
        }

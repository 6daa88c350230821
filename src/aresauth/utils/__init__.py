r"""Utilities for logging and error presentation."""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "format_error_for_user",
    "get_correlation_id",
    "handle_network_error",
    "log_structured",
    "parse_api_error",
    "set_correlation_id",
]

from aresauth.utils.error_messages import (
    format_error_for_user,
    handle_network_error,
    parse_api_error,
)
from aresauth.utils.structured_logging import (
    StructuredFormatter,
    clear_correlation_id,
    get_correlation_id,
    log_structured,
    set_correlation_id,
)

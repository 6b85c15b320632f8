"""
Utility modules for forgelink.
"""

from forgelink.utils.logging import (
    get_logger,
    setup_logging,
    mask_token,
    log_api_call,
    log_error_with_context,
)
from forgelink.utils.resilience import BackoffRetrier, retry_with_backoff

__all__ = [
    "get_logger",
    "setup_logging",
    "mask_token",
    "log_api_call",
    "log_error_with_context",
    "BackoffRetrier",
    "retry_with_backoff",
]

"""Utility Functions"""

from cloud_assist_lib.utils.resilience import (
    create_custom_retry,
    is_transient_error,
    transient_http_retry,
)

__all__ = [
    "create_custom_retry",
    "is_transient_error",
    "transient_http_retry",
]

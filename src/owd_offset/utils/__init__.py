"""
Utilities for owd_offset.
"""

from .logging import (
    setup_logging,
    enable_debug,
    disable_debug,
    is_debug_enabled,
    debug_log_call,
    debug_log_variable,
    format_value,
)

__all__ = [
    "setup_logging",
    "enable_debug",
    "disable_debug",
    "is_debug_enabled",
    "debug_log_call",
    "debug_log_variable",
    "format_value",
]

"""Utility module for magickpipe."""

from magickpipe.utils.logging import (
    get_logger,
    set_log_output,
    setup_logging,
    setup_logging_from_settings,
)

__all__ = [
    "get_logger",
    "set_log_output",
    "setup_logging",
    "setup_logging_from_settings",
]

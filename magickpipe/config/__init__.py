"""Configuration module for magickpipe."""

from magickpipe.config.settings import (
    FanoutConfig,
    MagickPipeSettings,
    get_settings,
    reload_settings,
)

__all__ = [
    "FanoutConfig",
    "MagickPipeSettings",
    "get_settings",
    "reload_settings",
]

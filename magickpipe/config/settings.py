"""Configuration settings using pydantic-settings."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, YamlConfigSettingsSource

from magickpipe.config.constants import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_CONFIG_FILE,
    DEFAULT_EXECUTABLE,
    DEFAULT_EXIT_GRACE_PERIOD,
    DEFAULT_MAX_PENDING_CHUNKS,
    DEFAULT_OPTIONS,
)
from magickpipe.exceptions import ConfigurationError


class FanoutConfig(BaseModel):
    """Fan-out configuration."""

    # 0 keeps per-sink queues unbounded; a positive value throttles the
    # engine's stdout to the slowest destination
    max_pending_chunks: int = Field(default=DEFAULT_MAX_PENDING_CHUNKS, ge=0)


class MagickPipeSettings(BaseSettings):
    """Main configuration class for magickpipe."""

    model_config = SettingsConfigDict(
        env_prefix="MAGICKPIPE_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings sources to include YAML file."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=DEFAULT_CONFIG_FILE),
            file_secret_settings,
        )

    # Engine
    executable: str = DEFAULT_EXECUTABLE
    timeout: float | None = Field(default=None, gt=0)
    exit_grace_period: float = Field(default=DEFAULT_EXIT_GRACE_PERIOD, ge=0)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)

    fanout: FanoutConfig = Field(default_factory=FanoutConfig)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_file: str | None = None
    json_logs: bool = False

    def option_defaults(self) -> dict[str, Any]:
        """Default option record with the configured engine binary."""
        return {**DEFAULT_OPTIONS, "executable": self.executable}


@lru_cache
def get_settings() -> MagickPipeSettings:
    """Get cached settings instance."""
    try:
        return MagickPipeSettings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid magickpipe settings: {e}") from e


def reload_settings() -> MagickPipeSettings:
    """Force reload settings (clear cache)."""
    get_settings.cache_clear()
    return get_settings()

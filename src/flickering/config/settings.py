"""
Runtime settings for Flickering.

This module provides the settings that decide where configuration files and
the cache live and how the Flickr API is reached, using Pydantic settings
with support for environment variables and .env files.
"""

from pathlib import Path
from typing import Any, Dict

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENDPOINT = "https://api.flickr.com/services/rest/"


class FlickeringSettings(BaseSettings):
    """
    Main runtime settings for Flickering.

    Settings are loaded from multiple sources in order of preference:
    1. Explicit keyword arguments
    2. Environment variables (prefixed with FLICKERING_)
    3. A .env file in the working directory
    4. Default values

    API credentials are not settings: they are read from the ``config``
    group in ``root_dir`` or passed to the client explicitly.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLICKERING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Directory Configuration
    root_dir: Path = Field(
        default_factory=lambda: Path.home() / ".config" / "flickering",
        description="Root directory holding configuration files and the cache"
    )

    environment: str = Field(
        default="production",
        description="Configuration environment used for cascading overrides"
    )

    # API Configuration
    api_endpoint: str = Field(
        default=DEFAULT_ENDPOINT,
        description="Flickr REST endpoint"
    )

    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
        gt=0
    )

    # Cache Configuration
    cache_lifetime: int = Field(
        default=60,
        description="Minutes a method result stays cached (0 disables caching)",
        ge=0
    )

    # Logging Configuration
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the flickering logger"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{v}'. Valid levels: {', '.join(sorted(valid_levels))}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        v = v.strip()
        if not v or "/" in v or "\\" in v or v.startswith("."):
            raise ValueError(f"Invalid environment name '{v}'")
        return v

    @property
    def cache_dir(self) -> Path:
        """Path to the cache directory."""
        return self.root_dir / "cache"

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a plain dictionary."""
        data = self.model_dump()
        data["root_dir"] = str(self.root_dir)
        data["cache_dir"] = str(self.cache_dir)
        return data


def get_settings() -> FlickeringSettings:
    """Get the current Flickering settings."""
    return FlickeringSettings()

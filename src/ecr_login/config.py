"""Credential helper configuration.

Settings come from three places, highest precedence first:

1. ``AWS_ECR_*`` environment variables (e.g. ``AWS_ECR_DISABLE_CACHE=1``)
2. ``config.yaml`` in the cache directory (``~/.ecr`` unless
   ``AWS_ECR_CACHE_DIR`` says otherwise)
3. Defaults below
"""

from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .auth import DEFAULT_REFRESH_FRACTION

DEFAULT_CACHE_DIR = Path.home() / ".ecr"
CONFIG_FILENAME = "config.yaml"


class LogFormats(str, Enum):
    JSON = "json"
    CONSOLE = "console"


class HelperConfig(BaseSettings):
    """Runtime settings for the credential helper."""

    model_config = SettingsConfigDict(env_prefix="AWS_ECR_", extra="ignore")

    cache_dir: Path = DEFAULT_CACHE_DIR
    disable_cache: bool = False
    refresh_fraction: float = DEFAULT_REFRESH_FRACTION
    log_level: str = "INFO"
    log_format: LogFormats = LogFormats.CONSOLE
    log_to_stderr: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats values loaded from the YAML file (passed as init kwargs)
        return env_settings, init_settings, file_secret_settings

    @field_validator("refresh_fraction")
    def validate_refresh_fraction(cls, v):
        if not 0 <= v < 1:
            raise ValueError("refresh_fraction must be in [0, 1)")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return v.upper()

    @property
    def cache_file(self) -> Path:
        return self.cache_dir / "cache.json"

    @property
    def log_file(self) -> Path:
        return self.cache_dir / "log" / "ecr-login.log"

    @classmethod
    def from_yaml(cls, path: Path) -> "HelperConfig":
        """Load from a specific YAML file."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls(**data)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "HelperConfig":
        """Load configuration from ``path`` or the default location.

        A missing file is not an error; defaults and environment apply.

        Raises:
            ValueError: If the file is present but invalid
            yaml.YAMLError: If the file is not valid YAML
            OSError: If the file cannot be read
        """
        if path is None:
            defaults = cls()
            path = defaults.cache_dir / CONFIG_FILENAME
            if not path.exists():
                return defaults
        elif not path.exists():
            return cls()
        return cls.from_yaml(path)


__all__ = [
    "DEFAULT_CACHE_DIR",
    "CONFIG_FILENAME",
    "LogFormats",
    "HelperConfig",
]

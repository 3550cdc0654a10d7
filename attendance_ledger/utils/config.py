"""Configuration management for the attendance ledger service.

Loads YAML configuration for storage locations and server options, and
reads the device shared secret and listening port from the environment
via Pydantic BaseSettings.
"""

import copy
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

from .logger import setup_logger

logger = setup_logger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment and config file."""

    config_path: Path = Field(default=Path("configs/config.yaml"))
    device_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "device_api_key", "ATTENDANCE_LEDGER_DEVICE_API_KEY", "DEVICE_API_KEY"
        ),
    )
    port: int | None = Field(
        default=None,
        validation_alias=AliasChoices("port", "ATTENDANCE_LEDGER_PORT", "PORT"),
    )

    model_config = {
        "env_prefix": "ATTENDANCE_LEDGER_",
        "env_file": ".env",
        "extra": "ignore",
    }

    def load_config(self) -> dict:
        """Load the YAML configuration merged over the defaults.

        A ``port`` taken from the environment overrides ``server.port``.

        Returns:
            Configuration dictionary.
        """
        config = _default_config()
        if not self.config_path.exists():
            logger.warning("Config file not found at %s, using defaults", self.config_path)
        else:
            with open(self.config_path) as f:
                loaded = yaml.safe_load(f) or {}
            _merge(config, loaded)
            logger.info("Configuration loaded from %s", self.config_path)

        if self.port is not None:
            config["server"]["port"] = self.port
        return config


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings singleton.

    Returns:
        Settings instance.
    """
    return Settings()


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge ``override`` into ``base`` in place."""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def _default_config() -> dict:
    """Return default configuration when config file is missing.

    Returns:
        Dictionary with sensible default values.
    """
    return {
        "server": {
            "host": "0.0.0.0",
            "port": 5000,
            "reload": False,
            "frontend_dir": "public",
        },
        "storage": {
            "ledger_path": "data/attendance.xlsx",
            "sheet_name": "Attendance",
            "voices_dir": "data/voices",
            "voice_extension": ".webm",
        },
        "logging": {
            "level": "INFO",
        },
    }

"""
Settings Management Module

Provides pydantic-based configuration with:
- Optional YAML configuration file loading
- Environment variable overrides (VIDEO_TRACKER_*)
- Multi-environment support (config.{environment}.yaml overlays)
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrackerSettings(BaseSettings):
    """
    Process-wide tracker settings.

    Configuration hierarchy (lowest to highest precedence):
    1. YAML file passed to load_from_yaml (or named by VIDEO_TRACKER_CONFIG_FILE)
    2. config.{environment}.yaml next to it
    3. Environment variables (VIDEO_TRACKER_*)

    Examples:
        >>> settings = get_settings()
        >>> settings.heartbeat_interval_ms
        30000

        Override through the environment:
        $ VIDEO_TRACKER_HEARTBEAT_INTERVAL_MS=10000 python app.py
    """

    model_config = SettingsConfigDict(
        env_prefix="VIDEO_TRACKER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"
    json_logs: bool = False

    heartbeat_interval_ms: int = Field(default=30000, gt=0)
    """Default time between heartbeats when a tracker sets none."""

    initial_buffering_threshold_ms: int = Field(default=100, ge=0)
    """Buffering that begins this soon after start counts as initial."""

    backend_url: str | None = None
    backend_timeout: float = Field(default=5.0, gt=0)
    backend_headers: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def load_from_yaml(cls, config_path: Path | None = None) -> "TrackerSettings":
        """
        Load settings from a YAML file, then apply environment overrides.

        Args:
            config_path: Path to the config file. Defaults to the
                VIDEO_TRACKER_CONFIG_FILE environment variable.

        Returns:
            TrackerSettings instance
        """
        if config_path is None:
            env_path = os.getenv("VIDEO_TRACKER_CONFIG_FILE")
            if not env_path:
                return cls()
            config_path = Path(env_path)

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        env = os.getenv("VIDEO_TRACKER_ENVIRONMENT", config_data.get("environment", "development"))
        env_config_path = config_path.parent / f"config.{env}.yaml"
        if env_config_path.exists():
            with open(env_config_path) as f:
                config_data = cls._deep_merge(config_data, yaml.safe_load(f) or {})

        # Environment variables take precedence over file values
        file_values = {
            key: value
            for key, value in config_data.items()
            if os.getenv(f"VIDEO_TRACKER_{key.upper()}") is None
        }
        return cls(**file_values)

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = TrackerSettings._deep_merge(result[key], value)
            else:
                result[key] = value
        return result


@lru_cache
def get_settings(config_path: Path | None = None) -> TrackerSettings:
    """
    Get cached settings instance.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        TrackerSettings instance
    """
    return TrackerSettings.load_from_yaml(config_path)


def reload_settings() -> TrackerSettings:
    """Reload settings by clearing the cache."""
    get_settings.cache_clear()
    return get_settings()


__all__ = [
    "TrackerSettings",
    "get_settings",
    "reload_settings",
]

"""
Configuration management for StationPlay.

Handles loading, validation, and access to application configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

# Global configuration instance
_config: Optional["StationPlayConfig"] = None


class ServerConfig(BaseModel):
    """Server configuration."""
    host: str = "0.0.0.0"
    port: int = 8420
    debug: bool = False
    log_level: str = "INFO"


class DatabaseConfig(BaseModel):
    """Database configuration."""
    url: str = "sqlite:///./stationplay.db"
    echo: bool = False


class SchedulingConfig(BaseModel):
    """Schedule resolution and chaining configuration."""
    grace_seconds: int = 120  # Tolerance applied to both window edges
    guide_lookahead_hours: int = 24  # Guide only lists a next program starting within this horizon
    default_base_time: str = "00:00:00"  # Chain base time-of-day (UTC)

    @field_validator("grace_seconds", "guide_lookahead_hours")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must be >= 0")
        return v


class PlaybackConfig(BaseModel):
    """Viewer playback configuration."""
    standby_fallback_media: str = "standby/standby.mp4"  # Used when a channel has none
    resolve_workers: int = 4  # Thread pool size for whole-guide resolution


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    file: str = "logs/stationplay.log"
    max_size: str = "10MB"
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    @property
    def max_bytes(self) -> int:
        """Parse max_size ("10MB", "512KB", "1048576") into bytes."""
        size = self.max_size.strip().upper()
        for suffix, factor in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024)):
            if size.endswith(suffix):
                return int(float(size[: -len(suffix)]) * factor)
        return int(size)


class StationPlayConfig(BaseModel):
    """Main StationPlay configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Optional[str] = None) -> StationPlayConfig:
    """
    Load configuration from file.

    Args:
        config_path: Path to config file. Defaults to config.yaml in project root.

    Returns:
        Loaded and validated configuration.
    """
    global _config

    if config_path is None:
        # Look for config.yaml in current directory or project root
        possible_paths = [
            Path("config.yaml"),
            Path(__file__).parent.parent / "config.yaml",
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data: dict[str, Any] = {}

    if config_path and Path(config_path).exists():
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

    # Apply environment variable overrides
    env_overrides = _get_env_overrides()
    _deep_merge(config_data, env_overrides)

    _config = StationPlayConfig(**config_data)
    return _config


def get_config() -> StationPlayConfig:
    """
    Get the current configuration.

    Returns:
        Current configuration (loads default if not yet loaded).
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> StationPlayConfig:
    """
    Reload configuration from disk.

    Returns:
        Freshly loaded configuration.
    """
    global _config
    _config = None
    return load_config()


def _get_env_overrides() -> dict[str, Any]:
    """Get configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    # Map of environment variables to config paths
    env_map = {
        "STATIONPLAY_HOST": ("server", "host"),
        "STATIONPLAY_PORT": ("server", "port"),
        "STATIONPLAY_DEBUG": ("server", "debug"),
        "STATIONPLAY_DATABASE_URL": ("database", "url"),
        "STATIONPLAY_GRACE_SECONDS": ("scheduling", "grace_seconds"),
        "STATIONPLAY_LOG_LEVEL": ("logging", "level"),
    }

    for env_var, path in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            _set_nested(overrides, path, _parse_env_value(value))

    return overrides


def _parse_env_value(value: str) -> Any:
    """Parse environment variable value to appropriate type."""
    # Boolean
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False

    # Integer
    try:
        return int(value)
    except ValueError:
        pass

    # Float
    try:
        return float(value)
    except ValueError:
        pass

    return value


def _set_nested(d: dict[str, Any], path: tuple[str, ...], value: Any) -> None:
    """Set a nested dictionary value from a path tuple."""
    for key in path[:-1]:
        d = d.setdefault(key, {})
    d[path[-1]] = value


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Deep merge override into base dictionary."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value

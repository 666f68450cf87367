"""
Configuration management for lrctunes.

The config file is TOML and is only ever read; a missing file means defaults.
"""
import os
import tomllib
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from lrctunes.logging_config import get_logger, ConfigurationError

logger = get_logger('config')

VALID_PLAYERS = ("auto", "ffplay", "mpg123")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class AppConfig:
    """Application configuration settings."""

    # Music library
    music_directory: str = "~/Music"

    # Audio settings
    audio_player: str = "auto"  # auto, ffplay, mpg123
    volume: float = 1.0
    seek_seconds: int = 5

    # Loop timing (seconds)
    main_tick: float = 0.2
    ui_tick: float = 0.1
    input_poll: float = 0.1

    # UI settings
    progress_width: int = 35
    use_colors: bool = True

    # Logging settings
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def get_music_directory_path(self) -> Path:
        """Get the actual path to music directory."""
        return Path(self.music_directory).expanduser()

    def get_log_file_path(self) -> Optional[Path]:
        if not self.log_file:
            return None
        return Path(self.log_file).expanduser()


def _field_issues(config: AppConfig) -> Dict[str, str]:
    """Map each invalid setting name to a description of the problem."""
    issues = {}

    if config.audio_player not in VALID_PLAYERS:
        issues["audio_player"] = f"Invalid audio player: {config.audio_player}"

    if not (0.0 <= config.volume <= 2.0):
        issues["volume"] = f"Volume must be 0.0-2.0, got {config.volume}"

    if not (1 <= config.seek_seconds <= 30):
        issues["seek_seconds"] = f"Seek seconds must be 1-30, got {config.seek_seconds}"

    for name in ("main_tick", "ui_tick", "input_poll"):
        value = getattr(config, name)
        if not (0.01 <= value <= 2.0):
            issues[name] = f"{name} must be 0.01-2.0, got {value}"

    if not (10 <= config.progress_width <= 200):
        issues["progress_width"] = f"Progress width must be 10-200, got {config.progress_width}"

    if config.log_level.upper() not in VALID_LOG_LEVELS:
        issues["log_level"] = f"Invalid log level: {config.log_level}"

    return issues


def validate_config(config: AppConfig) -> List[str]:
    """Return the list of problems found in `config` (empty when valid)."""
    return list(_field_issues(config).values())


class ConfigManager:
    """Loads and validates the configuration file."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self._get_default_config_path()
        self.config: AppConfig = AppConfig()
        self._load_config()

    def _get_default_config_path(self) -> Path:
        """Get default configuration file path."""
        xdg_config = os.environ.get("XDG_CONFIG_HOME")
        if xdg_config:
            return Path(xdg_config) / "lrctunes" / "config.toml"
        return Path.home() / ".config" / "lrctunes" / "config.toml"

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not self.config_path.exists():
            logger.info(f"Config file not found at {self.config_path}, using defaults")
            return

        try:
            with open(self.config_path, "rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, OSError) as e:
            logger.error(f"Failed to load config: {e}")
            logger.info("Using default configuration")
            return

        self._apply_config_data(data)
        logger.info(f"Loaded configuration from {self.config_path}")

        issues = _field_issues(self.config)
        if issues:
            logger.warning(f"Configuration validation issues: {list(issues.values())}")
            defaults = AppConfig()
            for name in issues:
                setattr(self.config, name, getattr(defaults, name))

    def _apply_config_data(self, data: Dict[str, Any]) -> None:
        """Apply configuration data to AppConfig object."""
        known = {f.name for f in fields(AppConfig)}
        for key, value in data.items():
            if key not in known:
                logger.warning(f"Unknown config key: {key}")
                continue
            try:
                setattr(self.config, key, _coerce(key, value, getattr(self.config, key)))
            except ConfigurationError as e:
                logger.warning(str(e))

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return getattr(self.config, key, default)


def _coerce(key: str, value: Any, current: Any) -> Any:
    """Convert a TOML value to the type of the current setting."""
    if current is None:
        if value is None or isinstance(value, str):
            return value
        raise ConfigurationError(f"Invalid config value for {key}: {value!r}")
    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        raise ConfigurationError(f"Invalid config value for {key}: {value!r}")
    if isinstance(current, float) and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    if isinstance(current, int) and isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(current, str) and isinstance(value, str):
        return value
    raise ConfigurationError(f"Invalid config value for {key}: {value!r}")


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load configuration and return it."""
    return ConfigManager(config_path).config

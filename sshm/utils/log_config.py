"""
Logging configuration for sshm.

Provides configurable logging with:
- Log directory management
- Log rotation (size and time-based)
- Verbosity levels
- Settings from config.yaml and SSHM_LOG_* variables
"""
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional

from sshm.core.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Log verbosity levels."""
    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_string(cls, level: str) -> "LogLevel":
        """Parse log level from string (case-insensitive)."""
        level = level.upper()
        try:
            return cls(level)
        except ValueError:
            aliases = {
                "WARN": cls.WARNING,
                "ERR": cls.ERROR,
                "CRIT": cls.CRITICAL,
                "FATAL": cls.CRITICAL,
            }
            if level in aliases:
                return aliases[level]
            raise ValueError(f"Unknown log level: {level}") from None


@dataclass
class LogConfig:
    """
    Configuration for sshm logging.

    Attributes:
        log_dir: Directory for log files (default: ~/.sshm/logs)
        app_log_name: Main application log filename
        console_level: Log level for console output
        file_level: Log level for file output
        rotation_size: Max size before rotation (e.g., "10 MB", "100 KB")
        rotation_time: Time-based rotation (e.g., "1 day", "1 week")
        rotation_strategy: "size" or "time"
        retention: How long to keep old logs (e.g., "7 days", "4 weeks")
        compression: Compress rotated files (zip, gz, or None)
        json_logs: Use JSON format for file logs
        include_caller: Include caller info (file:function:line)
        console_enabled: Log to stderr even without --verbose
    """
    log_dir: str = ""
    app_log_name: str = "sshm.log"

    console_level: str = "WARNING"
    file_level: str = "DEBUG"

    rotation_size: str = "5 MB"
    rotation_time: str = "1 week"
    rotation_strategy: str = "size"
    retention: str = "4 weeks"
    compression: Optional[str] = "gz"

    json_logs: bool = False
    include_caller: bool = True

    console_enabled: bool = False  # Only enable with --verbose

    _VALID_COMPRESSION: ClassVar[frozenset] = frozenset({"zip", "gz", None})
    _VALID_STRATEGIES: ClassVar[frozenset] = frozenset({"size", "time"})

    def __post_init__(self):
        """Validate and set defaults."""
        if not self.log_dir:
            self.log_dir = str(Path.home() / ".sshm" / "logs")

        try:
            LogLevel.from_string(self.console_level)
        except ValueError as e:
            raise ValueError(f"Invalid console_level: {e}") from e

        try:
            LogLevel.from_string(self.file_level)
        except ValueError as e:
            raise ValueError(f"Invalid file_level: {e}") from e

        if self.rotation_strategy not in self._VALID_STRATEGIES:
            raise ValueError(
                f"rotation_strategy must be one of {set(self._VALID_STRATEGIES)}, "
                f"got: {self.rotation_strategy!r}"
            )

        if self.compression not in self._VALID_COMPRESSION:
            raise ValueError(
                f"compression must be one of {set(self._VALID_COMPRESSION)}, "
                f"got: {self.compression!r}"
            )

        self._validate_size_format(self.rotation_size)

    def _validate_size_format(self, size_str: str) -> None:
        """Validate size format like '10 MB' or '100 KB'."""
        parts = size_str.strip().split()
        if len(parts) != 2:
            raise ValueError(f"Invalid size format: {size_str!r} (expected: '10 MB')")

        try:
            value = float(parts[0])
        except ValueError as e:
            raise ValueError(f"Invalid size value: {parts[0]!r}") from e
        if value <= 0:
            raise ValueError(f"Size must be positive: {size_str!r}")

        valid_units = {"B", "KB", "MB", "GB"}
        if parts[1].upper() not in valid_units:
            raise ValueError(f"Invalid size unit: {parts[1]!r} (valid: {valid_units})")

    @property
    def log_path(self) -> Path:
        """Get the full path to the main log file."""
        return Path(self.log_dir) / self.app_log_name

    @property
    def rotation(self) -> str:
        """Rotation value handed to loguru."""
        if self.rotation_strategy == "time":
            return self.rotation_time
        return self.rotation_size

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogConfig":
        """Create from dictionary, ignoring unknown keys."""
        known_fields = {
            "log_dir", "app_log_name",
            "console_level", "file_level",
            "rotation_size", "rotation_time", "rotation_strategy",
            "retention", "compression",
            "json_logs", "include_caller", "console_enabled",
        }
        filtered = {k: v for k, v in data.items() if k in known_fields}
        return cls(**filtered)


_ENV_MAPPINGS = {
    "SSHM_LOG_DIR": "log_dir",
    "SSHM_LOG_LEVEL": "console_level",
    "SSHM_LOG_FILE_LEVEL": "file_level",
    "SSHM_LOG_ROTATION_SIZE": "rotation_size",
    "SSHM_LOG_RETENTION": "retention",
    "SSHM_LOG_COMPRESSION": "compression",
    "SSHM_LOG_JSON": "json_logs",
}


def load_log_config(settings: Optional[Dict[str, Any]] = None) -> LogConfig:
    """
    Build the logging configuration.

    Priority:
    1. Environment variables (SSHM_LOG_*)
    2. The ``logging`` section of config.yaml
    3. Defaults

    Raises:
        ConfigurationError: If a setting does not validate
    """
    config_data: Dict[str, Any] = dict(settings or {})

    for env_var, config_key in _ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        if config_key == "json_logs":
            config_data[config_key] = value.lower() in ("1", "true", "yes", "on")
        elif config_key == "compression":
            config_data[config_key] = value if value.lower() not in ("none", "") else None
        else:
            config_data[config_key] = value

    try:
        return LogConfig.from_dict(config_data)
    except (AttributeError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid logging settings: {e}", {"section": "logging"}) from e

"""Configuration exceptions: settings files, environment, CLI overrides."""

from pathlib import Path
from typing import Any

from .base import ChurnRadarError
from .taxonomy import ExitCode


class ConfigurationError(ChurnRadarError):
    """Base class for configuration-related errors."""

    exit_code = ExitCode.INVALID_CONFIGURATION


class InvalidConfigError(ConfigurationError):
    """Raised when configuration values are invalid."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration for {key}: {value}",
            details={"key": key, "value": str(value), "reason": reason},
        )
        self.key = key
        self.value = value
        self.reason = reason


class ConfigFileError(ConfigurationError):
    """Raised when a TOML config file is missing or malformed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Invalid config file: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason

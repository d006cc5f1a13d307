"""Exception hierarchy for Churn Radar."""

from .analysis import ExtractionError, StateReadError, StateWriteError, WatermarkError
from .base import ChurnRadarError
from .config import ConfigFileError, ConfigurationError, InvalidConfigError
from .taxonomy import ExitCode

__all__ = [
    "ChurnRadarError",
    "ExitCode",
    "ConfigurationError",
    "ConfigFileError",
    "InvalidConfigError",
    "ExtractionError",
    "WatermarkError",
    "StateReadError",
    "StateWriteError",
]

"""Base exception for Churn Radar."""

from typing import Dict, Optional

from .taxonomy import ExitCode


class ChurnRadarError(Exception):
    """Base exception for all Churn Radar errors."""

    exit_code: ExitCode = ExitCode.UNHANDLED_EXCEPTION

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, str]] = None,
        exit_code: Optional[ExitCode] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if exit_code is not None:
            self.exit_code = exit_code

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

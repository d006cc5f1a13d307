"""Run-time exceptions: git extraction, watermark moves, state file I/O."""

from pathlib import Path
from typing import Optional

from .base import ChurnRadarError
from .taxonomy import ExitCode


class ExtractionError(ChurnRadarError):
    """Raised when git cannot produce a change delta."""

    exit_code = ExitCode.GIT_OPERATION_FAILURE

    def __init__(self, reason: str, command: Optional[str] = None):
        details = {"reason": reason}
        if command:
            details["command"] = command
        super().__init__("Could not extract change delta from git", details=details)
        self.reason = reason
        self.command = command


class WatermarkError(ChurnRadarError):
    """Raised when the state commit or the watermark tag cannot be pushed."""

    exit_code = ExitCode.GIT_OPERATION_FAILURE

    def __init__(self, step: str, reason: str):
        super().__init__(f"Failed to {step}", details={"reason": reason})
        self.step = step
        self.reason = reason


class StateReadError(ChurnRadarError):
    """Raised when the state document exists but cannot be parsed.

    The state store recovers from this by starting a fresh history.
    """

    exit_code = ExitCode.FILE_IO_FAILURE

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot read analysis state: {path}", details={"reason": reason})
        self.path = path
        self.reason = reason


class StateWriteError(ChurnRadarError):
    """Raised when the state document cannot be written."""

    exit_code = ExitCode.FILE_IO_FAILURE

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to write analysis state: {path}", details={"reason": reason})
        self.path = path
        self.reason = reason

"""Process exit codes for pipeline runs.

Exit Code Convention:
    0      - Pass (no significant ranking movement)
    1-9    - Operational failures (run results are not trustworthy)
    70-79  - Risk outcomes (run completed, state committed)
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit classification of a pipeline run."""

    PASS = 0
    UNHANDLED_EXCEPTION = 1
    INVALID_CONFIGURATION = 2
    GIT_OPERATION_FAILURE = 3
    FILE_IO_FAILURE = 4

    ALERT = 70
    FAIL = 71

"""Data models for the git change delta consumed by the risk engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FileChange:
    path: str  # repository-relative, forward slashes
    status: str  # git status letter: A, M, D, T ...
    lines_added: int = 0
    lines_deleted: int = 0  # binary files report 0 for both


@dataclass(frozen=True)
class GitDelta:
    """Changes between the watermark commit and the analyzed head.

    ``changes`` holds one aggregated FileChange per path across the range.
    ``commits`` holds the paths touched by each individual commit, newest
    first, and drives co-change detection.
    """

    from_commit: Optional[str]  # None on the very first run
    to_commit: str
    changes: tuple[FileChange, ...] = ()
    commits: tuple[tuple[str, ...], ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.from_commit == self.to_commit

    @property
    def changed_paths(self) -> list[str]:
        return [c.path for c in self.changes]

    @property
    def cochanged_paths(self) -> list[str]:
        """Paths from every commit that touched more than one file."""
        return [p for group in self.commits if len(group) > 1 for p in group]

"""Data models for cumulative risk state and run results.

All records are frozen: each run derives a new AnalysisState from the
previous one instead of mutating it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Decision(str, Enum):
    """Outcome of a run, driven by ranking movement."""

    PASS = "pass"
    ALERT = "alert"
    FAIL = "fail"


class ChangeType(str, Enum):
    MOVED_UP = "moved_up"
    MOVED_DOWN = "moved_down"
    NEW_ENTRY = "new_entry"
    EXITED = "exited"


@dataclass(frozen=True)
class AreaMetrics:
    """Cumulative counters for one area. Never decremented or decayed."""

    total_commits: int = 0  # runs that touched the area
    total_lines_added: int = 0
    total_lines_deleted: int = 0
    total_files_changed: int = 0
    first_commit_date_utc: Optional[datetime] = None
    last_commit_date_utc: Optional[datetime] = None

    @property
    def churn(self) -> int:
        return self.total_lines_added + self.total_lines_deleted


@dataclass(frozen=True)
class TrackedArea:
    path: str  # leaf directory, forward slashes, no trailing slash
    metrics: AreaMetrics = field(default_factory=AreaMetrics)
    risk_score: float = 0.0
    percentile: float = 0.0  # (0, 100] once scored
    current_ranking: Optional[int] = None  # 1 = riskiest; None = below cutoff


@dataclass(frozen=True)
class CorrelatedPath:
    path: str
    cooccurrence_count: int = 0
    correlation_score: float = 0.0  # cooccurrence_count / source total_commits


@dataclass(frozen=True)
class BlastRadiusAnalysis:
    """Areas that historically change together with ``source_path``."""

    source_path: str
    correlated_paths: tuple[CorrelatedPath, ...] = ()

    def top(self, n: int = 3) -> list[CorrelatedPath]:
        """Strongest correlations first."""
        return sorted(
            self.correlated_paths,
            key=lambda cp: (-cp.correlation_score, -cp.cooccurrence_count, cp.path),
        )[:n]


@dataclass(frozen=True)
class AnalysisState:
    """Durable snapshot persisted between runs."""

    tool_version: Optional[str] = None
    analysis_timestamp: Optional[datetime] = None
    last_commit_hash: Optional[str] = None  # watermark
    tracked_areas: tuple[TrackedArea, ...] = ()
    blast_radius: tuple[BlastRadiusAnalysis, ...] = ()

    @property
    def is_initial(self) -> bool:
        return self.last_commit_hash is None and not self.tracked_areas

    def area(self, path: str) -> Optional[TrackedArea]:
        for area in self.tracked_areas:
            if area.path == path:
                return area
        return None

    def rankings(self) -> dict[str, int]:
        """Map of path -> rank for every ranked area."""
        return {
            a.path: a.current_ranking for a in self.tracked_areas if a.current_ranking is not None
        }

    def ranked_areas(self) -> list[TrackedArea]:
        """Ranked areas, rank 1 first."""
        ranked = [a for a in self.tracked_areas if a.current_ranking is not None]
        return sorted(ranked, key=lambda a: a.current_ranking)

    def blast_radius_for(self, path: str) -> Optional[BlastRadiusAnalysis]:
        for entry in self.blast_radius:
            if entry.source_path == path:
                return entry
        return None


@dataclass(frozen=True)
class RankingChange:
    path: str
    previous_ranking: Optional[int]
    current_ranking: Optional[int]
    type: ChangeType

    @property
    def movement(self) -> int:
        """Positions climbed toward rank 1 (0 for entries and exits)."""
        if self.previous_ranking is None or self.current_ranking is None:
            return 0
        return self.previous_ranking - self.current_ranking


@dataclass(frozen=True)
class RiskAnalysisResult:
    previous_state: AnalysisState
    current_state: AnalysisState
    decision: Decision = Decision.PASS
    reasons: tuple[str, ...] = ()
    ranking_changes: tuple[RankingChange, ...] = ()

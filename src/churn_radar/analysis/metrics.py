"""Fold one run's per-area activity into cumulative counters."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..temporal.models import FileChange
from .areas import area_of
from .models import AreaMetrics, TrackedArea


def changes_for_area(area_path: str, changes: Iterable[FileChange]) -> list[FileChange]:
    """Changes whose containing directory is exactly ``area_path``."""
    return [c for c in changes if area_of(c.path) == area_path]


def update_metrics(
    previous: Optional[TrackedArea],
    area_path: str,
    changes: Iterable[FileChange],
    now: datetime,
) -> TrackedArea:
    """Return a new TrackedArea with this run's activity added.

    One run counts as a single velocity event regardless of how many files
    or commits touched the area. Score, percentile and rank are reset; the
    scorer recomputes them for the whole state.
    """
    base = previous.metrics if previous is not None else AreaMetrics()
    area_changes = changes_for_area(area_path, changes)

    metrics = AreaMetrics(
        total_commits=base.total_commits + 1,
        total_lines_added=base.total_lines_added + sum(c.lines_added for c in area_changes),
        total_lines_deleted=base.total_lines_deleted + sum(c.lines_deleted for c in area_changes),
        total_files_changed=base.total_files_changed + len(area_changes),
        first_commit_date_utc=base.first_commit_date_utc or now,
        last_commit_date_utc=now,
    )
    return TrackedArea(path=area_path, metrics=metrics)


def carry_forward(area: TrackedArea) -> TrackedArea:
    """Copy an untouched area into the next snapshot with its rank cleared."""
    return replace(area, risk_score=0.0, percentile=0.0, current_ranking=None)

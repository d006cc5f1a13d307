"""Risk engine: derive the next AnalysisState from a delta and the previous one."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from ..config import AnalysisThresholds
from ..logging_config import get_logger
from ..temporal.models import GitDelta
from .areas import leaf_areas
from .blast_radius import build_blast_radius, edge_counts, update_blast_radius
from .metrics import carry_forward, update_metrics
from .models import AnalysisState, TrackedArea
from .scoring import score_and_rank

logger = get_logger(__name__)


class RiskEngine:
    """Fold one GitDelta into the cumulative analysis state.

    The previous state is never modified. Areas untouched this run keep
    their counters; every area is rescored against ``now``.

    Usage:
        engine = RiskEngine(config.thresholds)
        current = engine.run(delta, previous)
    """

    def __init__(self, thresholds: Optional[AnalysisThresholds] = None, tool_version: str = ""):
        self.thresholds = thresholds or AnalysisThresholds()
        if not tool_version:
            from .. import __version__

            tool_version = __version__
        self.tool_version = tool_version

    def run(
        self,
        delta: GitDelta,
        previous: AnalysisState,
        now: Optional[datetime] = None,
    ) -> AnalysisState:
        """Compute the next snapshot.

        Returns ``previous`` itself when there is nothing to fold in: an
        empty delta, or a delta whose head was already recorded (a retried
        run after a failed push must not count the same range twice).
        """
        if delta.is_empty:
            logger.info("No new commits since last analysis")
            return previous
        if previous.last_commit_hash is not None and previous.last_commit_hash == delta.to_commit:
            logger.warning(
                "Commit %s is already folded into the analysis state, skipping metric update",
                delta.to_commit[:7],
            )
            return previous

        now = now or datetime.now(timezone.utc)
        logger.info("Starting core risk analysis")

        areas = leaf_areas(delta.changed_paths, self.thresholds.excluded_areas)
        logger.debug("Delta touches %d areas: %s", len(areas), sorted(areas))

        tracked = self._update_areas(previous, delta, areas, now)
        scored = score_and_rank(
            tracked,
            now,
            minimum_percentile=self.thresholds.minimum_percentile,
            decay_constant=self.thresholds.decay_constant,
            min_age_days=self.thresholds.min_age_days,
        )

        metrics_by_path = {a.path: a.metrics for a in scored}
        if delta.cochanged_paths:
            blast_radius = update_blast_radius(
                previous.blast_radius, delta.commits, areas, metrics_by_path
            )
        else:
            logger.debug("No multi-file commits in delta, co-change edges only rescored")
            blast_radius = build_blast_radius(edge_counts(previous.blast_radius), metrics_by_path)

        current = replace(
            previous,
            tool_version=self.tool_version,
            analysis_timestamp=now,
            last_commit_hash=delta.to_commit,
            tracked_areas=scored,
            blast_radius=blast_radius,
        )
        logger.info(
            "Core risk analysis complete. Processed %d areas (%d tracked)",
            len(areas),
            len(scored),
        )
        return current

    def _update_areas(
        self,
        previous: AnalysisState,
        delta: GitDelta,
        areas: frozenset[str],
        now: datetime,
    ) -> list[TrackedArea]:
        """Previous areas in stored order, then new areas in path order."""
        result: list[TrackedArea] = []
        seen: set[str] = set()

        for area in previous.tracked_areas:
            if area.path in seen:
                continue
            seen.add(area.path)
            if area.path in areas:
                result.append(update_metrics(area, area.path, delta.changes, now))
            else:
                result.append(carry_forward(area))

        for path in sorted(areas - seen):
            result.append(update_metrics(None, path, delta.changes, now))

        return result

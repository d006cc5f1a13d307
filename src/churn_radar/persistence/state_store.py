"""Read and write the analysis state document (change-analysis.json).

The document is rewritten in full after each run. A missing, empty or
corrupt document is not fatal: the run proceeds as the project's first.
"""

from __future__ import annotations

import json
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..analysis.models import (
    AnalysisState,
    AreaMetrics,
    BlastRadiusAnalysis,
    CorrelatedPath,
    TrackedArea,
)
from ..exceptions import StateReadError, StateWriteError
from ..logging_config import get_logger

logger = get_logger(__name__)


class StateStore:
    """JSON-backed persistence for AnalysisState."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> AnalysisState:
        """Load the stored state, or an empty state for the first run."""
        if not self.path.exists():
            logger.info("Analysis state file not found at '%s'. Assuming initial run.", self.path)
            return AnalysisState()

        try:
            state = self.read()
        except StateReadError as e:
            logger.warning("%s. Treating as initial run.", e)
            return AnalysisState()

        logger.info(
            "Loaded analysis state from '%s' (%d tracked areas)",
            self.path,
            len(state.tracked_areas),
        )
        return state

    def read(self) -> AnalysisState:
        """Strict read.

        Raises:
            StateReadError: If the file is unreadable, empty or malformed
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StateReadError(self.path, str(e))

        if not text.strip():
            raise StateReadError(self.path, "file is empty")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise StateReadError(self.path, f"invalid JSON: {e}")

        try:
            return state_from_dict(data)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            raise StateReadError(self.path, f"malformed state: {e}")

    def save(self, state: AnalysisState) -> Path:
        """Atomically replace the state document.

        Raises:
            StateWriteError: If the document cannot be written
        """
        logger.info("Saving updated analysis state to '%s'", self.path)
        payload = json.dumps(state_to_dict(state), indent=2) + "\n"

        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StateWriteError(self.path, str(e))

        logger.debug("Saved %d tracked areas", len(state.tracked_areas))
        return self.path


# ---------------------------------------------------------------------------
# Serialization (camelCase JSON, null fields omitted)
# ---------------------------------------------------------------------------


def _format_dt(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_dt(value: Any) -> Optional[datetime]:
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.year <= 1:
        # Unset dates written by older tool versions
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _without_nulls(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


def state_to_dict(state: AnalysisState) -> dict[str, Any]:
    return _without_nulls(
        {
            "toolVersion": state.tool_version,
            "analysisDateUtc": _format_dt(state.analysis_timestamp),
            "lastCommitHash": state.last_commit_hash,
            "trackedAreas": [_area_to_dict(a) for a in state.tracked_areas],
            "blastRadius": [
                {
                    "sourcePath": br.source_path,
                    "correlatedPaths": [
                        {
                            "path": cp.path,
                            "correlationScore": cp.correlation_score,
                            "cooccurrenceCount": cp.cooccurrence_count,
                        }
                        for cp in br.correlated_paths
                    ],
                }
                for br in state.blast_radius
            ],
        }
    )


def _area_to_dict(area: TrackedArea) -> dict[str, Any]:
    m = area.metrics
    return _without_nulls(
        {
            "path": area.path,
            "metrics": _without_nulls(
                {
                    "totalCommits": m.total_commits,
                    "totalLinesAdded": m.total_lines_added,
                    "totalLinesDeleted": m.total_lines_deleted,
                    "totalFilesChanged": m.total_files_changed,
                    "firstCommitDateUtc": _format_dt(m.first_commit_date_utc),
                    "lastCommitDateUtc": _format_dt(m.last_commit_date_utc),
                }
            ),
            "riskScore": area.risk_score,
            "percentile": area.percentile,
            "currentRanking": area.current_ranking,
        }
    )


def state_from_dict(data: dict[str, Any]) -> AnalysisState:
    """Inverse of state_to_dict. Duplicate area paths keep the first entry."""
    if not isinstance(data, dict):
        raise TypeError(f"expected a JSON object, got {type(data).__name__}")

    areas: list[TrackedArea] = []
    seen: set[str] = set()
    for raw in data.get("trackedAreas") or []:
        area = _area_from_dict(raw)
        if area.path in seen:
            logger.warning("Duplicate tracked area '%s' in state file ignored", area.path)
            continue
        seen.add(area.path)
        areas.append(area)

    blast_radius = tuple(
        BlastRadiusAnalysis(
            source_path=str(br["sourcePath"]),
            correlated_paths=tuple(
                CorrelatedPath(
                    path=str(cp["path"]),
                    cooccurrence_count=int(cp.get("cooccurrenceCount", 0)),
                    correlation_score=float(cp.get("correlationScore", 0.0)),
                )
                for cp in br.get("correlatedPaths") or []
            ),
        )
        for br in data.get("blastRadius") or []
    )

    return AnalysisState(
        tool_version=data.get("toolVersion"),
        analysis_timestamp=_parse_dt(data.get("analysisDateUtc")),
        last_commit_hash=data.get("lastCommitHash") or None,
        tracked_areas=tuple(areas),
        blast_radius=blast_radius,
    )


def _area_from_dict(raw: dict[str, Any]) -> TrackedArea:
    m = raw.get("metrics") or {}
    ranking = raw.get("currentRanking")
    return TrackedArea(
        path=str(raw["path"]),
        metrics=AreaMetrics(
            total_commits=int(m.get("totalCommits", 0)),
            total_lines_added=int(m.get("totalLinesAdded", 0)),
            total_lines_deleted=int(m.get("totalLinesDeleted", 0)),
            total_files_changed=int(m.get("totalFilesChanged", 0)),
            first_commit_date_utc=_parse_dt(m.get("firstCommitDateUtc")),
            last_commit_date_utc=_parse_dt(m.get("lastCommitDateUtc")),
        ),
        risk_score=float(raw.get("riskScore", 0.0)),
        percentile=float(raw.get("percentile", 0.0)),
        current_ranking=int(ranking) if ranking is not None else None,
    )

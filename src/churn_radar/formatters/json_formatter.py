"""JSON formatter for Churn Radar."""

import json
from typing import Any

from ..analysis.models import RiskAnalysisResult
from ..persistence.state_store import state_to_dict
from .base import BaseFormatter


def result_to_dict(result: RiskAnalysisResult) -> dict[str, Any]:
    current = state_to_dict(result.current_state)
    return {
        "decision": result.decision.value,
        "fromCommit": result.previous_state.last_commit_hash,
        "toCommit": result.current_state.last_commit_hash,
        "reasons": list(result.reasons),
        "rankingChanges": [
            {
                "path": c.path,
                "previousRanking": c.previous_ranking,
                "currentRanking": c.current_ranking,
                "type": c.type.value,
            }
            for c in result.ranking_changes
        ],
        "trackedAreas": current.get("trackedAreas", []),
        "blastRadius": current.get("blastRadius", []),
    }


class JsonFormatter(BaseFormatter):
    """Render a run result as JSON on stdout."""

    def render(self, result: RiskAnalysisResult) -> None:
        print(self.format(result))

    def format(self, result: RiskAnalysisResult) -> str:
        return json.dumps(result_to_dict(result), indent=2)

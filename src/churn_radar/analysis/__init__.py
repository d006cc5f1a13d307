"""Risk analysis core: turns change deltas into scored, ranked areas."""

from .areas import leaf_areas, normalize_path
from .blast_radius import update_blast_radius
from .decision import decide, make_decision
from .engine import RiskEngine
from .metrics import update_metrics
from .models import (
    AnalysisState,
    AreaMetrics,
    BlastRadiusAnalysis,
    ChangeType,
    CorrelatedPath,
    Decision,
    RankingChange,
    RiskAnalysisResult,
    TrackedArea,
)
from .scoring import score_and_rank

__all__ = [
    "RiskEngine",
    "decide",
    "make_decision",
    "leaf_areas",
    "normalize_path",
    "update_metrics",
    "update_blast_radius",
    "score_and_rank",
    "AnalysisState",
    "AreaMetrics",
    "TrackedArea",
    "BlastRadiusAnalysis",
    "CorrelatedPath",
    "Decision",
    "ChangeType",
    "RankingChange",
    "RiskAnalysisResult",
]

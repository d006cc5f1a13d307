"""
Churn Radar - incremental change-risk hotspot tracking

Folds git history into cumulative per-directory change metrics across
pipeline runs, scores each area by churn, frequency and recency, and flags
areas whose risk ranking climbs too fast.
"""

__version__ = "1.0.0"

from .analysis import RiskEngine, decide, make_decision
from .analysis.models import AnalysisState, Decision, RiskAnalysisResult, TrackedArea
from .config import AnalysisThresholds, RadarConfig, load_config
from .temporal.models import FileChange, GitDelta

__all__ = [
    "RiskEngine",  # Main entry point for a single analysis pass
    "decide",
    "make_decision",
    "AnalysisState",
    "TrackedArea",
    "Decision",
    "RiskAnalysisResult",
    "AnalysisThresholds",
    "RadarConfig",
    "load_config",
    "FileChange",
    "GitDelta",
]

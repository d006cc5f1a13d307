"""PASS / ALERT / FAIL policy based on ranking movement between runs.

An area climbing toward rank 1 is getting relatively riskier. Movement is
measured in rank positions: #5 -> #1 is a movement of 4.

The policy is a pure function of two ranking snapshots. It never raises and
identical inputs always produce the same decision and reason order.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from ..config import AnalysisThresholds
from ..logging_config import get_logger
from .models import AnalysisState, ChangeType, Decision, RankingChange, RiskAnalysisResult

logger = get_logger(__name__)

NO_CHANGE_REASON = "No significant risk pattern changes detected."


@dataclass(frozen=True)
class DecisionOutcome:
    decision: Decision
    reasons: tuple[str, ...]
    ranking_changes: tuple[RankingChange, ...]


def make_decision(
    previous_rankings: Mapping[str, int],
    current_rankings: Mapping[str, int],
    thresholds: AnalysisThresholds,
) -> DecisionOutcome:
    """Classify ranking movement between two runs.

    Current ranked areas are visited in rank order, then areas that dropped
    out of the rankings in their previous rank order. FAIL is final; ALERT
    never downgrades a FAIL.
    """
    decision = Decision.PASS
    reasons: list[str] = []
    changes: list[RankingChange] = []

    for path, current in sorted(current_rankings.items(), key=lambda kv: (kv[1], kv[0])):
        previous = previous_rankings.get(path)

        if previous is None:
            changes.append(RankingChange(path, None, current, ChangeType.NEW_ENTRY))
            if thresholds.alert_on_new_entries:
                if decision != Decision.FAIL:
                    decision = Decision.ALERT
                reasons.append(f"NEW HOTSPOT: Area '{path}' entered the risk rankings at #{current}.")
            else:
                reasons.append(f"NEW ENTRY: Area '{path}' entered the risk rankings at #{current}.")
            continue

        movement = previous - current
        if movement > 0:
            changes.append(RankingChange(path, previous, current, ChangeType.MOVED_UP))
            if movement >= thresholds.fail_threshold:
                decision = Decision.FAIL
                reasons.append(
                    f"CRITICAL SHIFT: Area '{path}' jumped from #{previous} to #{current} "
                    f"(moved up {movement} positions, meets fail threshold of "
                    f"{thresholds.fail_threshold})."
                )
            elif movement >= thresholds.alert_threshold:
                if decision != Decision.FAIL:
                    decision = Decision.ALERT
                reasons.append(
                    f"RISK SHIFT: Area '{path}' moved from #{previous} to #{current} "
                    f"(moved up {movement} positions, meets alert threshold of "
                    f"{thresholds.alert_threshold})."
                )
            else:
                reasons.append(
                    f"MINOR SHIFT: Area '{path}' moved from #{previous} to #{current} "
                    f"(moved up {movement} positions, below alert threshold of "
                    f"{thresholds.alert_threshold})."
                )
        elif movement < 0:
            changes.append(RankingChange(path, previous, current, ChangeType.MOVED_DOWN))
            reasons.append(f"RISK EASED: Area '{path}' moved down from #{previous} to #{current}.")

    for path, previous in sorted(previous_rankings.items(), key=lambda kv: (kv[1], kv[0])):
        if path not in current_rankings:
            changes.append(RankingChange(path, previous, None, ChangeType.EXITED))
            reasons.append(f"EXITED: Area '{path}' left the risk rankings (was #{previous}).")

    if decision == Decision.PASS:
        reasons.append(NO_CHANGE_REASON)

    return DecisionOutcome(decision=decision, reasons=tuple(reasons), ranking_changes=tuple(changes))


def decide(
    previous_state: AnalysisState,
    current_state: AnalysisState,
    thresholds: AnalysisThresholds,
) -> RiskAnalysisResult:
    """Run the decision policy on two snapshots and package the result."""
    logger.info("Making PASS/ALERT/FAIL decision based on risk ranking changes")
    outcome = make_decision(previous_state.rankings(), current_state.rankings(), thresholds)
    logger.info("Decision complete: %s", outcome.decision.value.upper())
    return RiskAnalysisResult(
        previous_state=previous_state,
        current_state=current_state,
        decision=outcome.decision,
        reasons=outcome.reasons,
        ranking_changes=outcome.ranking_changes,
    )

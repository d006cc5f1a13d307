"""Recency-weighted risk scoring, percentiles and dense ranking.

    churn          = lines_added + lines_deleted
    frequency      = total_commits / max(days_since_first_change, min_age_days)
    recency_weight = exp(-k * days_since_last_change)
    risk_score     = churn * frequency * recency_weight

Scores are recomputed for every tracked area on every run, so an area that
goes quiet decays out of the rankings even though its counters never drop.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from typing import Optional

import numpy as np

from .models import AreaMetrics, TrackedArea

_SECONDS_PER_DAY = 86400.0


def _days_between(earlier: Optional[datetime], now: datetime) -> float:
    if earlier is None:
        return 0.0
    return max(0.0, (now - earlier).total_seconds() / _SECONDS_PER_DAY)


def risk_scores(
    metrics: Sequence[AreaMetrics],
    now: datetime,
    decay_constant: float = 0.1,
    min_age_days: float = 1.0,
) -> np.ndarray:
    """Vectorized risk score for each metrics record."""
    if not metrics:
        return np.zeros(0)

    churn = np.array([m.churn for m in metrics], dtype=float)
    commits = np.array([m.total_commits for m in metrics], dtype=float)
    age = np.array([_days_between(m.first_commit_date_utc, now) for m in metrics])
    idle = np.array([_days_between(m.last_commit_date_utc, now) for m in metrics])

    frequency = commits / np.maximum(age, min_age_days)
    recency_weight = np.exp(-decay_constant * idle)
    return churn * frequency * recency_weight


def percentiles(scores: np.ndarray) -> np.ndarray:
    """Ordinal percentile in (0, 100]: ((position in ascending order) + 1) / N * 100.

    Ties keep input order, so tied areas get distinct percentiles.
    """
    n = len(scores)
    result = np.zeros(n)
    if n == 0:
        return result
    order = np.argsort(scores, kind="stable")
    result[order] = (np.arange(n) + 1) / n * 100.0
    return result


def dense_ranks(
    scores: np.ndarray, pctls: np.ndarray, minimum_percentile: float
) -> list[Optional[int]]:
    """Rank 1..M by descending score among areas at/above the percentile cutoff."""
    qualifying = [i for i in range(len(scores)) if pctls[i] >= minimum_percentile]
    qualifying.sort(key=lambda i: -scores[i])  # stable: ties keep input order

    ranks: list[Optional[int]] = [None] * len(scores)
    for rank, index in enumerate(qualifying, start=1):
        ranks[index] = rank
    return ranks


def score_and_rank(
    areas: Sequence[TrackedArea],
    now: datetime,
    minimum_percentile: float = 70.0,
    decay_constant: float = 0.1,
    min_age_days: float = 1.0,
) -> tuple[TrackedArea, ...]:
    """Return copies of ``areas`` with score, percentile and rank filled in."""
    if not areas:
        return ()

    scores = risk_scores(
        [a.metrics for a in areas],
        now,
        decay_constant=decay_constant,
        min_age_days=min_age_days,
    )
    pctls = percentiles(scores)
    ranks = dense_ranks(scores, pctls, minimum_percentile)

    return tuple(
        replace(
            area,
            risk_score=float(scores[i]),
            percentile=float(pctls[i]),
            current_ranking=ranks[i],
        )
        for i, area in enumerate(areas)
    )

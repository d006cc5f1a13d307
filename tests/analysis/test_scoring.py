"""Tests for risk scoring, percentiles and dense ranking."""

import math

import numpy as np
import pytest

from churn_radar.analysis.scoring import dense_ranks, percentiles, risk_scores, score_and_rank

from conftest import make_area


class TestRiskScores:
    """Test risk_scores formula."""

    def test_formula(self, now):
        area = make_area("x", commits=4, added=30, deleted=10, age_days=8, idle_days=2)
        (score,) = risk_scores([area.metrics], now)
        expected = 40 * (4 / 8) * math.exp(-0.1 * 2)
        assert score == pytest.approx(expected)

    def test_age_floor(self, now):
        """A brand-new area divides by min_age_days, not zero."""
        area = make_area("x", commits=1, added=10, age_days=0, idle_days=0)
        (score,) = risk_scores([area.metrics], now, min_age_days=1.0)
        assert score == pytest.approx(10.0)

    def test_recency_decay(self, now):
        fresh = make_area("a", age_days=30, idle_days=0)
        stale = make_area("b", age_days=30, idle_days=20)
        scores = risk_scores([fresh.metrics, stale.metrics], now)
        assert scores[1] == pytest.approx(scores[0] * math.exp(-2.0))

    def test_custom_decay_constant(self, now):
        area = make_area("x", commits=1, added=10, age_days=1, idle_days=1)
        (score,) = risk_scores([area.metrics], now, decay_constant=1.0)
        assert score == pytest.approx(10 * math.exp(-1.0))

    def test_zero_churn_scores_zero(self, now):
        area = make_area("x", added=0, deleted=0)
        assert risk_scores([area.metrics], now)[0] == 0.0

    def test_empty(self, now):
        assert len(risk_scores([], now)) == 0


class TestPercentiles:
    """Test ordinal percentiles."""

    def test_highest_is_100(self):
        pctls = percentiles(np.array([5.0, 1.0, 9.0, 3.0]))
        assert pctls[2] == pytest.approx(100.0)
        assert list(pctls) == pytest.approx([75.0, 25.0, 100.0, 50.0])

    def test_bounds(self):
        pctls = percentiles(np.array([0.0, 0.0, 2.0, 7.0, 7.0]))
        assert all(0 < p <= 100 for p in pctls)

    def test_ties_keep_input_order(self):
        pctls = percentiles(np.array([1.0, 1.0, 1.0]))
        assert list(pctls) == pytest.approx([100 / 3, 200 / 3, 100.0])

    def test_single_area(self):
        assert list(percentiles(np.array([0.0]))) == [100.0]


class TestDenseRanks:
    """Test dense_ranks."""

    def test_descending_by_score(self):
        scores = np.array([1.0, 3.0, 2.0])
        assert dense_ranks(scores, percentiles(scores), 0.0) == [3, 1, 2]

    def test_below_cutoff_unranked(self):
        scores = np.array([1.0, 2.0, 3.0, 4.0])
        ranks = dense_ranks(scores, percentiles(scores), 50.0)
        assert ranks == [None, 3, 2, 1]

    def test_dense_without_gaps(self):
        scores = np.array([9.0, 0.5, 4.0, 4.0, 7.0, 1.0, 3.0])
        pctls = percentiles(scores)
        ranks = dense_ranks(scores, pctls, 40.0)
        assigned = sorted(r for r in ranks if r is not None)
        qualifying = sum(1 for p in pctls if p >= 40.0)
        assert assigned == list(range(1, qualifying + 1))


class TestScoreAndRank:
    """Test score_and_rank over tracked areas."""

    def test_fills_every_area(self, now):
        areas = [
            make_area("low", added=1, age_days=10),
            make_area("mid", added=50, age_days=10),
            make_area("high", added=500, age_days=10),
        ]
        scored = score_and_rank(areas, now, minimum_percentile=60.0)
        by_path = {a.path: a for a in scored}
        assert by_path["high"].percentile == pytest.approx(100.0)
        assert by_path["high"].current_ranking == 1
        assert by_path["mid"].current_ranking == 2
        assert by_path["low"].current_ranking is None
        assert all(0 < a.percentile <= 100 for a in scored)

    def test_input_not_mutated(self, now):
        areas = [make_area("a", rank=7)]
        score_and_rank(areas, now)
        assert areas[0].current_ranking == 7
        assert areas[0].risk_score == 0.0

    def test_empty(self, now):
        assert score_and_rank([], now) == ()

"""Tests for the risk engine that folds deltas into cumulative state."""

from datetime import timedelta

import pytest

from churn_radar.analysis.engine import RiskEngine
from churn_radar.analysis.models import AnalysisState, BlastRadiusAnalysis, CorrelatedPath
from churn_radar.config import AnalysisThresholds
from churn_radar.temporal.models import GitDelta

from conftest import make_area, make_delta


@pytest.fixture
def engine(thresholds):
    return RiskEngine(thresholds, tool_version="1.0.0-test")


class TestRiskEngineRun:
    """Test RiskEngine.run."""

    def test_empty_delta_returns_previous(self, engine, now):
        previous = AnalysisState(last_commit_hash="a" * 40)
        delta = GitDelta(from_commit="a" * 40, to_commit="a" * 40)
        assert engine.run(delta, previous, now=now) is previous

    def test_replayed_head_returns_previous(self, engine, now):
        """A retried run over an already-folded head must not double count."""
        previous = AnalysisState(
            last_commit_hash="b" * 40, tracked_areas=(make_area("src/a", commits=3),)
        )
        delta = make_delta([("src/a/x.py", 5, 0)], to_commit="b" * 40)
        assert engine.run(delta, previous, now=now) is previous

    def test_first_run_creates_areas(self, engine, now):
        delta = make_delta(
            [("src/auth/login.py", 10, 2), ("src/auth/token.py", 5, 0), ("src/db/pool.py", 1, 1)],
            commits=[("src/auth/login.py", "src/auth/token.py", "src/db/pool.py")],
        )
        state = engine.run(delta, AnalysisState(), now=now)

        assert state.last_commit_hash == "b" * 40
        assert state.tool_version == "1.0.0-test"
        assert state.analysis_timestamp == now
        assert [a.path for a in state.tracked_areas] == ["src/auth", "src/db"]

        auth = state.area("src/auth").metrics
        assert auth.total_commits == 1
        assert auth.total_lines_added == 15
        assert auth.total_lines_deleted == 2
        assert auth.total_files_changed == 2
        assert auth.first_commit_date_utc == now
        assert auth.last_commit_date_utc == now

    def test_one_velocity_event_per_run(self, engine, now):
        """Several commits touching an area in one run count once."""
        delta = make_delta(
            [("lib/a.py", 1, 0), ("lib/b.py", 1, 0), ("lib/c.py", 1, 0)],
        )
        state = engine.run(delta, AnalysisState(), now=now)
        assert state.area("lib").metrics.total_commits == 1

    def test_counters_never_decrease(self, engine, now):
        first = engine.run(
            make_delta([("a/x.py", 10, 0), ("b/y.py", 3, 3)], to_commit="1" * 40),
            AnalysisState(),
            now=now,
        )
        later = now + timedelta(days=3)
        second = engine.run(
            make_delta([("a/x.py", 4, 1)], from_commit="1" * 40, to_commit="2" * 40),
            first,
            now=later,
        )

        for before in first.tracked_areas:
            after = second.area(before.path)
            assert after is not None
            assert after.metrics.total_commits >= before.metrics.total_commits
            assert after.metrics.total_lines_added >= before.metrics.total_lines_added
            assert after.metrics.total_lines_deleted >= before.metrics.total_lines_deleted
            assert after.metrics.total_files_changed >= before.metrics.total_files_changed

        a = second.area("a").metrics
        assert a.total_commits == 2
        assert a.total_lines_added == 14
        assert a.first_commit_date_utc == now
        assert a.last_commit_date_utc == later
        # untouched area keeps its counters and dates
        assert second.area("b").metrics == first.area("b").metrics

    def test_previous_state_not_mutated(self, engine, now):
        previous = AnalysisState(
            last_commit_hash="1" * 40, tracked_areas=(make_area("a", commits=2, rank=1),)
        )
        snapshot = previous.tracked_areas[0]
        engine.run(make_delta([("a/x.py", 1, 0), ("c/z.py", 1, 0)]), previous, now=now)
        assert previous.tracked_areas[0] is snapshot
        assert previous.tracked_areas[0].metrics.total_commits == 2
        assert previous.last_commit_hash == "1" * 40

    def test_excluded_areas_never_tracked(self, now):
        engine = RiskEngine(
            AnalysisThresholds(minimum_percentile=0.0, excluded_areas=("vendor/",)),
            tool_version="t",
        )
        delta = make_delta(
            [("vendor/lib/x.js", 100, 0), ("src/app/main.py", 2, 0)],
            commits=[("vendor/lib/x.js", "src/app/main.py")],
        )
        state = engine.run(delta, AnalysisState(), now=now)
        assert [a.path for a in state.tracked_areas] == ["src/app"]
        assert state.blast_radius == ()

    def test_areas_keep_stored_order(self, engine, now):
        previous = AnalysisState(
            last_commit_hash="1" * 40,
            tracked_areas=(make_area("zeta"), make_area("alpha")),
        )
        state = engine.run(make_delta([("mid/f.py", 1, 0), ("alpha/f.py", 1, 0)]), previous, now=now)
        assert [a.path for a in state.tracked_areas] == ["zeta", "alpha", "mid"]

    def test_every_area_scored_and_ranked(self, engine, now):
        delta = make_delta([("a/f.py", 50, 0), ("b/f.py", 5, 0), ("c/f.py", 1, 0)])
        state = engine.run(delta, AnalysisState(), now=now)
        assert all(0 < a.percentile <= 100 for a in state.tracked_areas)
        assert state.rankings() == {"a": 1, "b": 2, "c": 3}

    def test_blast_radius_from_commit_groups(self, engine, now):
        delta = make_delta(
            [("a/f.py", 1, 0), ("b/f.py", 1, 0), ("c/f.py", 1, 0)],
            commits=[("a/f.py", "b/f.py"), ("b/f.py", "c/f.py")],
        )
        state = engine.run(delta, AnalysisState(), now=now)

        b = state.blast_radius_for("b")
        assert {cp.path: cp.cooccurrence_count for cp in b.correlated_paths} == {"a": 1, "c": 1}
        a = state.blast_radius_for("a")
        assert [(cp.path, cp.correlation_score) for cp in a.correlated_paths] == [("b", 1.0)]
        assert state.blast_radius_for("c").correlated_paths[0].path == "b"

    def test_repeated_cochange_in_one_run_scores_at_most_one(self, engine, now):
        delta = make_delta(
            [("a/f.py", 1, 0), ("b/f.py", 1, 0)],
            commits=[("a/f.py", "b/f.py")] * 5,
        )
        state = engine.run(delta, AnalysisState(), now=now)
        (edge,) = state.blast_radius_for("a").correlated_paths
        assert edge.cooccurrence_count == 1
        assert edge.correlation_score == pytest.approx(1.0)

    def test_single_file_commits_only_rescore_edges(self, engine, now):
        previous = AnalysisState(
            last_commit_hash="1" * 40,
            tracked_areas=(make_area("a", commits=1), make_area("b", commits=1)),
            blast_radius=(
                BlastRadiusAnalysis("a", (CorrelatedPath("b", 1, 1.0),)),
                BlastRadiusAnalysis("b", (CorrelatedPath("a", 1, 1.0),)),
            ),
        )
        delta = make_delta([("a/f.py", 1, 0), ("b/f.py", 1, 0)], commits=[("a/f.py",), ("b/f.py",)])
        assert delta.cochanged_paths == []

        state = engine.run(delta, previous, now=now)

        (edge,) = state.blast_radius_for("a").correlated_paths
        assert edge.cooccurrence_count == 1
        assert edge.correlation_score == pytest.approx(0.5)

    def test_blast_radius_accumulates(self, engine, now):
        first = engine.run(
            make_delta([("a/f.py", 1, 0), ("b/f.py", 1, 0)], commits=[("a/f.py", "b/f.py")], to_commit="1" * 40),
            AnalysisState(),
            now=now,
        )
        second = engine.run(
            make_delta(
                [("a/f.py", 1, 0), ("b/f.py", 1, 0)],
                commits=[("a/f.py", "b/f.py")],
                from_commit="1" * 40,
                to_commit="2" * 40,
            ),
            first,
            now=now,
        )
        (edge,) = second.blast_radius_for("a").correlated_paths
        assert edge.cooccurrence_count == 2
        assert edge.correlation_score == pytest.approx(1.0)

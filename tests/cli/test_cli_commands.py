"""Tests for the churn-radar command line."""

import json

import pytest
from typer.testing import CliRunner

from churn_radar.analysis.models import AnalysisState, BlastRadiusAnalysis, CorrelatedPath
from churn_radar.cli import app
from churn_radar.exceptions import ExitCode
from churn_radar.persistence import StateStore

from conftest import NOW, make_area

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(home)
    for key in ("RISKCALC_VERBOSE", "RISKCALC_LOG_LEVEL", "3SC_VERBOSE", "3SC_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def stored_state(tmp_path):
    repo = tmp_path / "stored"
    repo.mkdir()
    state = AnalysisState(
        tool_version="1.0.0",
        analysis_timestamp=NOW,
        last_commit_hash="e" * 40,
        tracked_areas=(
            make_area("src/auth", commits=4, rank=1),
            make_area("src/db", commits=2, rank=2),
            make_area("docs", rank=None),
        ),
        blast_radius=(
            BlastRadiusAnalysis(
                source_path="src/auth",
                correlated_paths=(CorrelatedPath("src/db", cooccurrence_count=2, correlation_score=0.5),),
            ),
        ),
    )
    StateStore(repo / "change-analysis.json").save(state)
    return repo


class TestRankingsCommand:
    """Test `churn-radar rankings`."""

    def test_table(self, stored_state):
        result = runner.invoke(app, ["rankings", "-C", str(stored_state)])
        assert result.exit_code == 0
        assert "src/auth" in result.stdout
        assert "docs" not in result.stdout

    def test_json(self, stored_state):
        result = runner.invoke(app, ["rankings", "-C", str(stored_state), "--json", "--limit", "1"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [a["path"] for a in data] == ["src/auth"]

    def test_missing_state(self, tmp_path):
        result = runner.invoke(app, ["rankings", "-C", str(tmp_path)])
        assert result.exit_code == 0
        assert "No analysis state found" in result.stdout

    def test_corrupt_state(self, tmp_path):
        (tmp_path / "change-analysis.json").write_text("not json")
        result = runner.invoke(app, ["rankings", "-C", str(tmp_path)])
        assert result.exit_code == ExitCode.FILE_IO_FAILURE


class TestBlastRadiusCommand:
    """Test `churn-radar blast-radius`."""

    def test_json(self, stored_state):
        result = runner.invoke(app, ["blast-radius", "src/auth/", "-C", str(stored_state), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["sourcePath"] == "src/auth"
        assert data["correlatedPaths"][0]["path"] == "src/db"

    def test_unknown_area(self, stored_state):
        result = runner.invoke(app, ["blast-radius", "nowhere", "-C", str(stored_state)])
        assert result.exit_code == 0
        assert "No co-change history" in result.stdout


class TestRunCommand:
    """Test `churn-radar run`."""

    def test_invalid_thresholds(self, tmp_path):
        result = runner.invoke(
            app, ["run", "-C", str(tmp_path), "--alert-threshold", "5", "--fail-threshold", "3"]
        )
        assert result.exit_code == ExitCode.INVALID_CONFIGURATION

    def test_not_a_repository(self, tmp_path):
        result = runner.invoke(app, ["run", "-C", str(tmp_path), "--no-push"])
        assert result.exit_code == ExitCode.GIT_OPERATION_FAILURE

    @pytest.mark.git
    def test_first_then_empty_run(self, git_repo):
        git_repo.commit({"src/a/x.py": "1\n2\n3\n", "src/b/y.py": "1\n"})

        first = runner.invoke(app, ["run", "-C", str(git_repo.path), "--no-push"])
        assert first.exit_code == ExitCode.ALERT
        state = StateStore(git_repo.path / "change-analysis.json").read()
        assert state.rankings() == {"src/a": 1}
        assert git_repo.git("rev-parse", "change-analysis-last-run^{commit}") == git_repo.git("rev-parse", "HEAD")

        second = runner.invoke(app, ["run", "-C", str(git_repo.path), "--no-push"])
        assert second.exit_code == ExitCode.PASS

    @pytest.mark.git
    def test_excluded_areas(self, git_repo):
        git_repo.commit({"vendor/lib/big.js": "x\n" * 50, "app/main.py": "1\n"})

        result = runner.invoke(
            app, ["run", "-C", str(git_repo.path), "--no-push", "--exclude", "vendor/", "--min-percentile", "0"]
        )

        assert result.exit_code == ExitCode.ALERT
        state = StateStore(git_repo.path / "change-analysis.json").read()
        assert [a.path for a in state.tracked_areas] == ["app"]

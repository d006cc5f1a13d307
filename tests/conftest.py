"""Shared test fixtures for Churn Radar tests."""

import shutil
import subprocess
from datetime import datetime, timedelta, timezone

import pytest

from churn_radar.analysis.models import AnalysisState, AreaMetrics, TrackedArea
from churn_radar.config import AnalysisThresholds
from churn_radar.temporal.models import FileChange, GitDelta


def pytest_configure(config):
    """Configure git marker."""
    config.addinivalue_line("markers", "git: test needs a git executable")


def pytest_collection_modifyitems(config, items):
    """Skip git tests when git is not installed."""
    if shutil.which("git"):
        return
    skip_git = pytest.mark.skip(reason="git executable not available")
    for item in items:
        if item.get_closest_marker("git") is not None:
            item.add_marker(skip_git)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    """Fixed analysis time."""
    return NOW


@pytest.fixture
def thresholds():
    """Permissive thresholds: every area is ranked."""
    return AnalysisThresholds(
        alert_threshold=2, fail_threshold=4, alert_on_new_entries=True, minimum_percentile=0.0
    )


def make_delta(files, commits=None, from_commit="a" * 40, to_commit="b" * 40):
    """Build a GitDelta from (path, added, deleted) tuples.

    Without explicit commits every file is treated as its own commit.
    """
    changes = tuple(FileChange(path=p, status="M", lines_added=a, lines_deleted=d) for p, a, d in files)
    if commits is None:
        commits = [(p,) for p, _, _ in files]
    return GitDelta(
        from_commit=from_commit,
        to_commit=to_commit,
        changes=changes,
        commits=tuple(tuple(c) for c in commits),
    )


def make_area(path, commits=1, added=10, deleted=0, files=1, age_days=10.0, idle_days=0.0, rank=None):
    """TrackedArea with metrics dated relative to NOW."""
    return TrackedArea(
        path=path,
        metrics=AreaMetrics(
            total_commits=commits,
            total_lines_added=added,
            total_lines_deleted=deleted,
            total_files_changed=files,
            first_commit_date_utc=NOW - timedelta(days=age_days),
            last_commit_date_utc=NOW - timedelta(days=idle_days),
        ),
        current_ranking=rank,
    )


def ranked_state(rankings, commit="c" * 40):
    """AnalysisState whose areas carry the given {path: rank} map."""
    return AnalysisState(
        last_commit_hash=commit,
        tracked_areas=tuple(make_area(path, rank=rank) for path, rank in rankings.items()),
    )


class GitRepo:
    """Scratch git repository driven through the git CLI."""

    def __init__(self, path):
        self.path = path
        path.mkdir(parents=True, exist_ok=True)
        self.git("init", "-q")
        self.git("config", "user.email", "ci@example.com")
        self.git("config", "user.name", "CI")
        self.git("config", "commit.gpgsign", "false")
        self.git("config", "tag.gpgsign", "false")

    def git(self, *args):
        return subprocess.run(
            ["git", "-C", str(self.path), *args], capture_output=True, text=True, check=True
        ).stdout.strip()

    def commit(self, files, message="change"):
        """Write {relative_path: content} and commit; returns the new HEAD."""
        for rel, content in files.items():
            target = self.path / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
        self.git("add", "-A")
        self.git("commit", "-q", "-m", message)
        return self.git("rev-parse", "HEAD")


@pytest.fixture
def git_repo(tmp_path):
    """Empty git repository with a committer identity configured."""
    return GitRepo(tmp_path / "repo")

"""Extract change deltas from git and manage the analysis watermark tag."""

import re
import subprocess
from pathlib import Path
from typing import Optional

from ..exceptions import ExtractionError, WatermarkError
from ..logging_config import get_logger
from .models import FileChange, GitDelta

logger = get_logger(__name__)

DEFAULT_WATERMARK_TAG = "change-analysis-last-run"
STATE_COMMIT_MESSAGE = "chore(risk-analysis): update change-analysis.json [skip ci]"

_COMMIT_MARKER = "commit:"


class GitExtractor:
    """Parse git log between the watermark tag and HEAD into a GitDelta."""

    def __init__(
        self,
        repo_path: str,
        watermark_tag: str = DEFAULT_WATERMARK_TAG,
        timeout_seconds: int = 60,
    ):
        self.repo_path = str(Path(repo_path).resolve())
        self.watermark_tag = watermark_tag
        self.timeout_seconds = timeout_seconds

    # ------------------------------------------------------------------
    # Delta extraction
    # ------------------------------------------------------------------

    def extract_since_watermark(self) -> GitDelta:
        """Build the delta from the watermark commit (exclusive) to HEAD.

        Without a watermark tag the whole reachable history is analyzed.

        Raises:
            ExtractionError: If HEAD cannot be resolved or git log fails
        """
        from_commit = self.last_run_commit()
        to_commit = self.resolve("HEAD")
        if not to_commit:
            raise ExtractionError("could not determine the current HEAD commit hash")

        if from_commit == to_commit:
            return GitDelta(from_commit=from_commit, to_commit=to_commit)

        revision = f"{from_commit}..{to_commit}" if from_commit else to_commit
        logger.info(
            "Analyzing git history from %s to %s",
            from_commit[:7] if from_commit else "repository root",
            to_commit[:7],
        )

        ok, output, error = self._run_git(
            ["log", revision, "--no-renames", "--raw", "--numstat", f"--format={_COMMIT_MARKER}%H"]
        )
        if not ok:
            raise ExtractionError(f"git log failed: {error}", command=f"git log {revision}")

        changes, commits = parse_log(output)
        logger.debug("Parsed %d commits touching %d files", len(commits), len(changes))
        return GitDelta(
            from_commit=from_commit,
            to_commit=to_commit,
            changes=tuple(changes),
            commits=tuple(commits),
        )

    def last_run_commit(self) -> Optional[str]:
        """Commit the watermark tag points at, or None before the first run."""
        return self.resolve(f"{self.watermark_tag}^{{commit}}")

    def resolve(self, rev: str) -> Optional[str]:
        ok, output, _ = self._run_git(["rev-parse", "--verify", "--quiet", rev])
        return output if ok and output else None

    # ------------------------------------------------------------------
    # Watermark advance
    # ------------------------------------------------------------------

    def commit_state_and_move_tag(self, state_path: Path, push: bool = True) -> str:
        """Commit the state document, force-move the watermark tag, push both.

        Commit and tag are pushed in one atomic push. If that push fails the
        tag is put back where it was and the state commit is undone (the
        saved document stays staged), so the next run sees the same range
        and the engine's replay guard keeps it from being counted twice.

        Returns:
            Hash of the commit the watermark now points at

        Raises:
            WatermarkError: If any git step fails
        """
        logger.info("Committing analysis state file and updating tag")
        relative = Path(state_path).resolve().relative_to(self.repo_path)
        analyzed_head = self.resolve("HEAD")
        previous_tag = self.last_run_commit()

        ok, _, error = self._run_git(["add", relative.as_posix()])
        if not ok:
            raise WatermarkError("stage analysis file", error)

        committed = True
        ok, output, error = self._run_git(["commit", "-m", STATE_COMMIT_MESSAGE])
        if not ok:
            if "nothing to commit" in output or "nothing to commit" in error:
                logger.info("No changes to analysis file, commit skipped")
                committed = False
            else:
                raise WatermarkError("commit analysis file", error or output)

        new_head = self.resolve("HEAD")
        if not new_head:
            raise WatermarkError("resolve HEAD after commit", "rev-parse returned nothing")

        ok, _, error = self._run_git(["tag", "-f", self.watermark_tag, new_head])
        if not ok:
            if committed:
                self._undo_commit(analyzed_head)
            raise WatermarkError(f"move tag '{self.watermark_tag}'", error)

        if push:
            ok, _, error = self._run_git(
                ["push", "--atomic", "origin", "HEAD", f"+refs/tags/{self.watermark_tag}"]
            )
            if not ok:
                self._restore_tag(previous_tag)
                if committed:
                    self._undo_commit(analyzed_head)
                raise WatermarkError(f"push commit and tag '{self.watermark_tag}'", error)

        logger.info("Analysis state committed, tag moved to %s", new_head[:7])
        return new_head

    def _restore_tag(self, previous: Optional[str]) -> None:
        """Point the watermark tag back at ``previous``, or remove it."""
        if previous:
            ok, _, error = self._run_git(["tag", "-f", self.watermark_tag, previous])
        else:
            ok, _, error = self._run_git(["tag", "-d", self.watermark_tag])
        if not ok:
            logger.error("Could not restore tag '%s': %s", self.watermark_tag, error)

    def _undo_commit(self, analyzed_head: Optional[str]) -> None:
        """Drop the local state commit, keeping the saved document staged."""
        if not analyzed_head:
            return
        ok, _, error = self._run_git(["reset", "--soft", analyzed_head])
        if not ok:
            logger.error("Could not undo the analysis state commit: %s", error)

    # ------------------------------------------------------------------

    def _run_git(self, args: list[str]) -> tuple[bool, str, str]:
        cmd = ["git", "-C", self.repo_path, *args]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except FileNotFoundError:
            raise ExtractionError("git executable not found", command=" ".join(args))
        except subprocess.TimeoutExpired:
            raise ExtractionError(
                f"git timed out after {self.timeout_seconds}s", command=" ".join(args)
            )

        output = result.stdout.strip()
        error = result.stderr.strip()
        if result.returncode != 0:
            logger.debug("git %s failed (%d): %s", " ".join(args), result.returncode, error)
            return False, output, error
        return True, output, error


# Raw line: ":100644 100644 abc1234 def5678 M\tpath"
_RAW_RE = re.compile(r"^:\d+ \d+ [0-9a-f]+\.* [0-9a-f]+\.* ([A-Z])\d*\t(.+)$")
# Numstat line: "12\t3\tpath" (binary files report "-\t-\tpath")
_NUMSTAT_RE = re.compile(r"^(\d+|-)\t(\d+|-)\t(.+)$")


def parse_log(raw: str) -> tuple[list[FileChange], list[tuple[str, ...]]]:
    """Parse ``git log --raw --numstat --format=commit:%H`` output.

    Returns:
        (changes, commits) where changes aggregates line counts per path
        across the whole range (status taken from the newest commit) and
        commits lists the paths touched by each commit in log order.
    """
    statuses: dict[str, str] = {}
    added: dict[str, int] = {}
    deleted: dict[str, int] = {}
    commits: list[tuple[str, ...]] = []
    current: Optional[list[str]] = None

    def flush() -> None:
        if current:
            commits.append(tuple(dict.fromkeys(current)))

    for line in raw.splitlines():
        line = line.rstrip()
        if not line:
            continue

        if line.startswith(_COMMIT_MARKER):
            flush()
            current = []
            continue
        if current is None:
            continue

        raw_match = _RAW_RE.match(line)
        if raw_match:
            status, path = raw_match.groups()
            path = path.replace("\\", "/")
            statuses.setdefault(path, status)
            current.append(path)
            continue

        num_match = _NUMSTAT_RE.match(line)
        if num_match:
            plus, minus, path = num_match.groups()
            path = path.replace("\\", "/")
            added[path] = added.get(path, 0) + (int(plus) if plus != "-" else 0)
            deleted[path] = deleted.get(path, 0) + (int(minus) if minus != "-" else 0)
            if path not in statuses:
                statuses[path] = "M"
                current.append(path)

    flush()

    changes = [
        FileChange(
            path=path,
            status=status,
            lines_added=added.get(path, 0),
            lines_deleted=deleted.get(path, 0),
        )
        for path, status in statuses.items()
    ]
    return changes, commits

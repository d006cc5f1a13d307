"""Co-change correlation between areas ("blast radius").

Answers "when area A changes, how often does B change too". Every pair of
distinct areas touched by the same commit strengthens the edge in both
directions, at most once per run; the score is normalized by the source area's own change count,
so A->B and B->A usually differ.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from itertools import combinations

from .areas import group_by_area
from .models import AreaMetrics, BlastRadiusAnalysis, CorrelatedPath

EdgeCounts = dict[str, dict[str, int]]


def edge_counts(blast_radius: Iterable[BlastRadiusAnalysis]) -> EdgeCounts:
    """Flatten stored edges into {source: {target: cooccurrence_count}}."""
    counts: EdgeCounts = {}
    for entry in blast_radius:
        targets = counts.setdefault(entry.source_path, {})
        for cp in entry.correlated_paths:
            targets[cp.path] = targets.get(cp.path, 0) + cp.cooccurrence_count
    return counts


def record_cochanges(
    counts: EdgeCounts,
    commit_groups: Iterable[Iterable[str]],
    areas: frozenset[str],
) -> int:
    """Add one co-occurrence per area pair per run, in both directions.

    A pair seen in several commits of the same run still counts once, the
    same way a run counts as one commit in the area metrics.

    Returns:
        Number of directed edge increments applied
    """
    pairs: set[tuple[str, str]] = set()
    for files in commit_groups:
        touched = sorted(group_by_area(files, areas))
        pairs.update(combinations(touched, 2))

    increments = 0
    for a, b in sorted(pairs):
        for source, target in ((a, b), (b, a)):
            targets = counts.setdefault(source, {})
            targets[target] = targets.get(target, 0) + 1
            increments += 1
    return increments


def build_blast_radius(
    counts: EdgeCounts, metrics: Mapping[str, AreaMetrics]
) -> tuple[BlastRadiusAnalysis, ...]:
    """Materialize edges with scores recomputed against current commit totals."""
    entries = []
    for source, targets in counts.items():
        source_metrics = metrics.get(source)
        total = source_metrics.total_commits if source_metrics is not None else 0
        correlated = tuple(
            CorrelatedPath(
                path=target,
                cooccurrence_count=count,
                correlation_score=count / total if total > 0 else 0.0,
            )
            for target, count in targets.items()
        )
        entries.append(BlastRadiusAnalysis(source_path=source, correlated_paths=correlated))
    return tuple(entries)


def update_blast_radius(
    previous: Iterable[BlastRadiusAnalysis],
    commit_groups: Iterable[Iterable[str]],
    areas: frozenset[str],
    metrics: Mapping[str, AreaMetrics],
) -> tuple[BlastRadiusAnalysis, ...]:
    """Fold this run's commits into the stored blast radius."""
    counts = edge_counts(previous)
    record_cochanges(counts, commit_groups, areas)
    return build_blast_radius(counts, metrics)

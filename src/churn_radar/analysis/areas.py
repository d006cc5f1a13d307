"""Reduce changed file paths to leaf-directory areas.

Only the deepest affected directory of each change chain becomes an area,
so one file change never inflates metrics at several nesting levels.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable
from typing import Optional


def normalize_path(path: str) -> str:
    """Forward slashes, no trailing slash."""
    return path.replace("\\", "/").rstrip("/")


def area_of(file_path: str) -> Optional[str]:
    """Containing directory of a file, or None for root-level files."""
    parent = posixpath.dirname(normalize_path(file_path))
    return parent or None


def is_excluded(area: str, excluded_prefixes: Iterable[str]) -> bool:
    """True if ``area`` lies under one of the excluded prefixes.

    Prefixes match whole path segments: "vendor" excludes "vendor/lib" but
    not "vendored/lib".
    """
    candidate = normalize_path(area) + "/"
    for prefix in excluded_prefixes:
        norm = normalize_path(prefix)
        if norm and candidate.startswith(norm + "/"):
            return True
    return False


def leaf_areas(file_paths: Iterable[str], excluded_prefixes: Iterable[str] = ()) -> frozenset[str]:
    """Compute the set of leaf areas touched by ``file_paths``.

    candidate dirs = immediate parents of changed files
    non-leaf dirs  = every proper ancestor of a candidate dir
    areas          = candidates - non-leaf, minus excluded prefixes

    The result does not depend on the order of ``file_paths``.
    """
    candidates: set[str] = set()
    non_leaf: set[str] = set()

    for file_path in file_paths:
        directory = area_of(file_path)
        if directory is None:
            continue
        candidates.add(directory)

        parent = posixpath.dirname(directory)
        while parent:
            non_leaf.add(parent)
            parent = posixpath.dirname(parent)

    excluded = tuple(excluded_prefixes)
    return frozenset(
        d for d in candidates - non_leaf if not is_excluded(d, excluded)
    )


def group_by_area(file_paths: Iterable[str], areas: frozenset[str]) -> set[str]:
    """Distinct areas (restricted to ``areas``) directly containing the files."""
    found = set()
    for file_path in file_paths:
        directory = area_of(file_path)
        if directory is not None and directory in areas:
            found.add(directory)
    return found

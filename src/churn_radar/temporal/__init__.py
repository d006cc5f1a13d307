"""Temporal analysis: git change deltas and watermark handling."""

from .git_extractor import GitExtractor
from .models import FileChange, GitDelta

__all__ = [
    "FileChange",
    "GitDelta",
    "GitExtractor",
]

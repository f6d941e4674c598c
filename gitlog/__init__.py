"""Git log extraction: per-file change history of a repository as JSON lines.

Walks every commit reachable from HEAD and the branch tips, classifies each
diff into added / removed / modified lines and hunks per file, and flattens
the result into one record per (commit, file) pair.
"""

from .diff_classifier import DiffAccumulator, classify_diff
from .diff_types import Commit, CommitType, FileChange, FlatCommit
from .emitter import JsonLinesEmitter, flatten
from .exceptions import ExtractError
from .walker import CommitWalker

__all__ = [
  "Commit",
  "CommitType",
  "CommitWalker",
  "DiffAccumulator",
  "ExtractError",
  "FileChange",
  "FlatCommit",
  "JsonLinesEmitter",
  "classify_diff",
  "flatten",
]

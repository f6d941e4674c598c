"""Classify a tree-to-tree diff into per-file line and hunk counters.

The diff is enumerated as a push stream of file, hunk and line events (see
`gitlog.diff_parser.foreach_diff`). `DiffAccumulator` holds the one open file
record while the enumeration runs and closes it when the next file starts.
"""

import logging
from typing import Optional

from unidiff import PatchSet

from gitlog.diff_parser import foreach_diff
from gitlog.diff_types import FileChange
from gitlog.exceptions import ExtractError

logger = logging.getLogger(__name__)


class DiffAccumulator:
  """Single-slot state machine fed by file, hunk and line events.

  Events must arrive in nesting order: a file event before any of its hunk
  events, a hunk event before any of its line events. A hunk or line event
  with no open file is a broken enumeration and raises `ExtractError`.
  """

  def __init__(self):
    self.files: list[FileChange] = []
    self._current: Optional[FileChange] = None

  @property
  def current(self) -> Optional[FileChange]:
    return self._current

  def on_file(self, path: str) -> None:
    """Close the open record, if any, and open a fresh one for `path`."""
    if self._current is not None:
      self.files.append(self._current)
      self._current = None

    if not path:
      raise ExtractError(
        description="Diff delta has no resolvable file path",
        name="MISSING_FILE_PATH",
        source="classifier",
      )

    self._current = FileChange(path=path)

  def on_hunk(self, old_lines: int, new_lines: int) -> None:
    """Count one hunk by the sizes of its old and new sides."""
    current = self._require_open("hunk")
    if old_lines == 0:
      current.hunks_added += 1
    elif new_lines == 0:
      current.hunks_removed += 1
    else:
      current.hunks_modified += 1

  def on_line(self, old_lineno: Optional[int], new_lineno: Optional[int]) -> None:
    """Count one line by which sides carry a line number.

    Both sides present counts as modified; this includes context lines, since
    line numbers alone cannot tell them apart from a changed line.
    """
    current = self._require_open("line")
    if old_lineno is None and new_lineno is not None:
      current.lines_added += 1
    elif old_lineno is not None and new_lineno is None:
      current.lines_removed += 1
    elif old_lineno is not None and new_lineno is not None:
      current.lines_modified += 1
    # Neither side numbered ("\ No newline at end of file"): no counter

  def finish(self) -> list[FileChange]:
    """Close the last open record and return all records in diff order."""
    if self._current is not None:
      self.files.append(self._current)
      self._current = None
    return self.files

  def _require_open(self, event: str) -> FileChange:
    if self._current is None:
      raise ExtractError(
        description=f"Received a {event} event before any file event",
        name="NO_OPEN_FILE",
        source="classifier",
      )
    return self._current


def classify_diff(patch_set: PatchSet) -> list[FileChange]:
  """Summarize every file touched by a diff.

  Args:
      patch_set: Parsed diff between two trees

  Returns:
      One FileChange per file, in the order the diff lists them
  """
  accumulator = DiffAccumulator()
  foreach_diff(
    patch_set,
    file_cb=accumulator.on_file,
    hunk_cb=accumulator.on_hunk,
    line_cb=accumulator.on_line,
  )
  files = accumulator.finish()
  logger.debug(f"Classified {len(files)} files")
  return files

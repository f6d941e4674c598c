"""Flatten commits into per-file rows and write them as JSON lines."""

import json
import logging
from typing import TextIO

from gitlog.diff_types import Commit, FlatCommit
from gitlog.exceptions import ExtractError

logger = logging.getLogger(__name__)


def flatten(commit: Commit) -> list[FlatCommit]:
  """One FlatCommit per file change, in change order.

  Merges and commits without file changes flatten to an empty list.
  """
  return [FlatCommit.from_change(commit, change) for change in commit.changes]


class JsonLinesEmitter:
  """Writes commits to a stream, one JSON object per line.

  A record that fails to serialize is logged and dropped; the run goes on.

  Attributes:
      stream: Text stream receiving the lines
      nested: Write one line per commit with a changes array instead of
        one line per (commit, file) pair
      written: Lines written so far
      dropped: Records dropped because they could not be serialized
  """

  def __init__(self, stream: TextIO, nested: bool = False):
    self.stream = stream
    self.nested = nested
    self.written = 0
    self.dropped = 0

  def emit(self, commit: Commit) -> int:
    """Write all lines for `commit` and return how many were written."""
    if self.nested:
      lines = [self._serialize_nested(commit)]
    else:
      lines = [self._serialize_flat(record) for record in flatten(commit)]

    count = 0
    for line in lines:
      if line is None:
        continue
      try:
        self.stream.write(line + "\n")
      except UnicodeEncodeError as e:
        # Output stream encoding cannot represent the record
        self._drop(commit.id, e)
        continue
      count += 1

    self.written += count
    return count

  def flush(self) -> None:
    self.stream.flush()

  def _serialize_flat(self, record: FlatCommit):
    try:
      return record.model_dump_json()
    except ValueError as e:
      self._drop(f"{record.id} {record.path}", e)
      return None

  def _serialize_nested(self, commit: Commit):
    try:
      return json.dumps(commit.to_dict())
    except ValueError as e:
      self._drop(commit.id, e)
      return None

  def _drop(self, what: str, e: Exception) -> None:
    self.dropped += 1
    error = ExtractError.from_exception(
      e, name="RECORD_DROPPED", source="serialization", context=what
    )
    logger.error(
      f"Failed to serialize record {what}, skipping => "
      f"{error.to_report().model_dump_json()}"
    )

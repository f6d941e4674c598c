"""Structured data types for extracted commit history.

Commits and per-file summaries are plain dataclasses; the flat output row is a
pydantic model so that serialization goes through one encoder.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from pydantic import BaseModel, Field

UNKNOWN = "unknown"


@dataclass
class FileChange:
  """Line and hunk counters for one file within one commit.

  Attributes:
      path: Repository-relative path after the change
      lines_added: Lines with only a new-side line number
      lines_removed: Lines with only an old-side line number
      lines_modified: Lines with both line numbers
      hunks_added: Hunks with an empty old side
      hunks_removed: Hunks with an empty new side
      hunks_modified: Hunks with both sides non-empty
  """

  path: str
  lines_added: int = 0
  lines_removed: int = 0
  lines_modified: int = 0
  hunks_added: int = 0
  hunks_removed: int = 0
  hunks_modified: int = 0


class CommitType(str, Enum):
  NORMAL = "Normal"
  MERGE = "Merge"


@dataclass
class Commit:
  """One visited commit with its per-file changes.

  Attributes:
      id: Full SHA of the commit
      repo_url: Repository URL as given by the caller
      timestamp: Author time, seconds since epoch
      author_name: Author name or "unknown"
      author_email: Author email or "unknown"
      message: Raw commit message or "unknown"
      type: Normal or Merge
      changes: File summaries in diff order, always empty for merges
  """

  id: str
  repo_url: str
  timestamp: int
  author_name: str = UNKNOWN
  author_email: str = UNKNOWN
  message: str = UNKNOWN
  type: CommitType = CommitType.NORMAL
  changes: list[FileChange] = field(default_factory=list)

  def to_dict(self):
    """Convert to the nested dict form with a changes array."""
    return {
      "id": self.id,
      "repo_url": self.repo_url,
      "timestamp": self.timestamp,
      "author_name": self.author_name,
      "author_email": self.author_email,
      "message": self.message,
      "type": self.type.value,
      "changes": [asdict(change) for change in self.changes],
    }


class FlatCommit(BaseModel):
  """One (commit, file) pair as a single output row"""

  id: str = Field(..., description="Commit SHA")
  repo_url: str = Field(..., description="Repository URL for the run")
  timestamp: int = Field(..., description="Author time in seconds since epoch")
  author_name: str
  author_email: str
  message: str
  type: CommitType
  path: str = Field(..., description="Repository-relative path of the file")
  lines_added: int = Field(0, ge=0)
  lines_removed: int = Field(0, ge=0)
  lines_modified: int = Field(0, ge=0)
  hunks_added: int = Field(0, ge=0)
  hunks_removed: int = Field(0, ge=0)
  hunks_modified: int = Field(0, ge=0)

  @classmethod
  def from_change(cls, commit: Commit, change: FileChange) -> "FlatCommit":
    return cls(
      id=commit.id,
      repo_url=commit.repo_url,
      timestamp=commit.timestamp,
      author_name=commit.author_name,
      author_email=commit.author_email,
      message=commit.message,
      type=commit.type,
      **asdict(change),
    )

"""
Custom exceptions for the git log extractor
"""

from typing import Literal, Optional, cast
from pydantic import BaseModel, Field


# All possible error sources in the extractor
ErrorSource = Literal[
  "transport",  # Clone / fetch / credential failures
  "resolution",  # Commit, tree or diff lookups during the walk
  "classifier",  # Diff enumeration delivered events out of order
  "serialization",  # A single record could not be encoded
  "config",  # Bad settings or arguments
  "unknown",  # Uncategorized errors
]


def get_exit_code(source: ErrorSource) -> int:
  """Determine process exit code based on error source"""
  if source == "transport":
    return 2
  elif source == "resolution":
    return 3
  elif source == "classifier":
    return 4
  elif source == "config":
    return 5
  else:
    return 1


class ErrorReport(BaseModel):
  """Diagnostic record logged when a run aborts or a record is dropped"""

  description: str = Field(..., description="Human-readable error message")
  name: str = Field(..., description="Unique error identifier")
  source: ErrorSource = Field(..., description="Where the error originated")
  caused_by: Optional[str] = Field(
    None, description="Original error details if this is a chained error"
  )
  last_commit: Optional[str] = Field(
    None, description="Id of the last commit fully written before the failure"
  )


class ExtractError(Exception):
  """
  Application error for the extractor.
  Fatal conditions are converted to this type before reaching the entry point.
  """

  def __init__(
    self,
    description: str,
    name: str,
    source: ErrorSource,
    caused_by: Optional[str] = None,
    last_commit: Optional[str] = None,
  ):
    """
    Initialize an extractor error

    Args:
        description: Human-readable error message
        name: Unique error identifier (e.g., "CLONE_FAILED")
        source: Where the error originated from
        caused_by: Original error details if this wraps another error
        last_commit: Last commit emitted before the failure, if any
    """
    self.description: str = description
    self.name: str = name
    self.source: ErrorSource = source
    self.caused_by: Optional[str] = caused_by
    self.last_commit: Optional[str] = last_commit
    super().__init__(description)

  def to_report(self) -> ErrorReport:
    """Convert to ErrorReport model for the diagnostic stream"""
    return ErrorReport(
      description=self.description,
      name=self.name,
      source=cast(ErrorSource, self.source),
      caused_by=self.caused_by,
      last_commit=self.last_commit,
    )

  @classmethod
  def from_exception(
    cls,
    e: Exception,
    name: str,
    source: ErrorSource,
    context: Optional[str] = None,
    last_commit: Optional[str] = None,
  ) -> "ExtractError":
    """
    Create an ExtractError from an existing exception

    Args:
        e: The original exception
        name: Error identifier for this error
        source: Where this error originated
        context: Additional context to prepend to the description
        last_commit: Last commit emitted before the failure, if any

    Returns:
        ExtractError with original exception details preserved
    """
    original_msg = str(e)
    description = f"{context}: {original_msg}" if context else original_msg

    return cls(
      description=description,
      name=name,
      source=source,
      caused_by=f"{e.__class__.__name__}: {original_msg}",
      last_commit=last_commit,
    )

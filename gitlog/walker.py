"""Walk every commit reachable from HEAD and the branch tips."""

import logging
from typing import Iterator, Optional

from git.exc import BadName, BadObject, GitCommandError
from unidiff.errors import UnidiffParseError

from gitlog.diff_classifier import classify_diff
from gitlog.diff_types import UNKNOWN, Commit, CommitType
from gitlog.exceptions import ExtractError
from gitlog.repository import GitRepository

logger = logging.getLogger(__name__)

RESOLUTION_ERRORS = (ValueError, GitCommandError, BadName, BadObject, UnidiffParseError)


class CommitWalker:
  """Turns the revision walk of a repository into fully populated Commits.

  Merge commits (more than one parent) are reported with no changes. Any
  other commit is diffed against its first parent's tree, or against the
  empty tree for a root commit.

  Args:
      repository: Cloned repository to read from
      repo_url: URL recorded on every commit
  """

  def __init__(self, repository: GitRepository, repo_url: str):
    self.repository = repository
    self.repo_url = repo_url
    self.last_commit: Optional[str] = None
    self.visited = 0
    self.merges = 0

  def tips(self) -> list[str]:
    """Collect HEAD plus every other branch tip as starting points."""
    try:
      logger.info("Adding head")
      tips = [self.repository.resolve_head()]
      for name, target in self.repository.list_branches():
        logger.info(f"Adding branch => {name}")
        tips.append(target)
    except RESOLUTION_ERRORS as e:
      raise ExtractError.from_exception(
        e, "HEAD_UNRESOLVED", "resolution", context="Failed to resolve starting refs"
      ) from e
    return tips

  def iter_commits(self) -> Iterator[Commit]:
    """Yield one Commit per reachable commit, newest first.

    `last_commit` is updated once the consumer has finished with a commit,
    so it names the last commit fully handled when an error is raised.

    Raises:
        ExtractError: On the first commit, tree or diff that cannot be resolved
    """
    commit_ids = self.repository.walk(self.tips())
    while True:
      try:
        commit_id = next(commit_ids)
      except StopIteration:
        return
      except RESOLUTION_ERRORS as e:
        raise ExtractError.from_exception(
          e,
          "WALK_FAILED",
          "resolution",
          context="Revision walk failed",
          last_commit=self.last_commit,
        ) from e

      commit = self.build_commit(commit_id)
      yield commit
      self.last_commit = commit.id

  def build_commit(self, commit_id: str) -> Commit:
    """Resolve one commit and classify its diff."""
    try:
      record = self.repository.get_commit(commit_id)
      parent_tree = (
        self.repository.tree_of(record.parent_ids[0]) if record.parent_ids else None
      )
      is_merge = len(record.parent_ids) > 1
      patch_set = (
        None if is_merge else self.repository.diff_trees(parent_tree, record.tree_id)
      )
    except RESOLUTION_ERRORS as e:
      raise ExtractError.from_exception(
        e,
        "COMMIT_UNRESOLVED",
        "resolution",
        context=f"Failed to resolve commit {commit_id}",
        last_commit=self.last_commit,
      ) from e

    self.visited += 1
    commit = Commit(
      id=record.id,
      repo_url=self.repo_url,
      timestamp=record.author_time,
      author_name=record.author_name or UNKNOWN,
      author_email=record.author_email or UNKNOWN,
      message=record.message or UNKNOWN,
    )

    if is_merge:
      self.merges += 1
      commit.type = CommitType.MERGE
      return commit

    try:
      commit.changes = classify_diff(patch_set)
    except ExtractError as e:
      e.last_commit = self.last_commit
      raise
    return commit

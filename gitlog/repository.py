"""Repository access for the extractor: clone, refs, revision walk and commit lookup."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from git import Repo, RemoteProgress
from git.exc import GitCommandError
from unidiff import PatchSet

from gitlog.diff_parser import diff_trees
from gitlog.exceptions import ExtractError

logger = logging.getLogger(__name__)


@dataclass
class CommitRecord:
  """Raw commit data as stored in the object database."""

  id: str
  tree_id: str
  parent_ids: list[str]
  author_name: Optional[str]
  author_email: Optional[str]
  author_time: int
  message: str


class CloneProgress(RemoteProgress):
  """Logs clone progress to the diagnostic stream."""

  _STAGES = {
    RemoteProgress.COUNTING: "Counting",
    RemoteProgress.COMPRESSING: "Compressing",
    RemoteProgress.WRITING: "Writing",
    RemoteProgress.RECEIVING: "Receiving",
    RemoteProgress.RESOLVING: "Resolving",
    RemoteProgress.FINDING_SOURCES: "Finding sources",
    RemoteProgress.CHECKING_OUT: "Checking out",
  }

  def update(self, op_code, cur_count, max_count=None, message=""):
    stage = self._STAGES.get(op_code & self.OP_MASK, "Unknown")
    total = int(max_count) if max_count else "?"
    text = f"Progress => {stage} {int(cur_count)} of {total}"
    if message:
      text += f", {message}"
    if op_code & self.END:
      logger.info(text)
    else:
      logger.debug(text)

  def line_dropped(self, line):
    logger.debug(f"Sideband => {line}")


def with_basic_auth(url: str, username: str, password: str) -> str:
  """Embed basic credentials into an http(s) URL.

  Other schemes are returned unchanged since git does not read credentials
  from them.
  """
  parts = urlsplit(url)
  if parts.scheme not in ("http", "https"):
    logger.warning(f"Basic credentials ignored for non-http URL {url}")
    return url

  host = parts.netloc.rsplit("@", 1)[-1]
  netloc = f"{quote(username, safe='')}:{quote(password, safe='')}@{host}"
  return urlunsplit(parts._replace(netloc=netloc))


class GitRepository:
  """Read-only view of a cloned repository."""

  def __init__(self, repo: Repo, context_lines: int = 3):
    self.repo = repo
    self.context_lines = context_lines

  @classmethod
  def clone(
    cls,
    url: str,
    to_path: Path,
    credentials: Optional[tuple[str, str]] = None,
    progress: Optional[RemoteProgress] = None,
    context_lines: int = 3,
  ) -> GitRepository:
    """Clone `url` into `to_path`.

    Args:
        url: Remote URL or local path to clone
        to_path: Empty directory receiving the clone
        credentials: Optional (username, password) for http(s) basic auth
        progress: Progress handler, defaults to CloneProgress
        context_lines: Context lines used for later diffs

    Raises:
        ExtractError: With source "transport" when the clone fails
    """
    clone_url = url
    if credentials is not None:
      username, password = credentials
      logger.info(f"Credentials for url={url} username={username} method=basic")
      clone_url = with_basic_auth(url, username, password)
    else:
      logger.info(f"Credentials for url={url} method=ssh-agent/credential-helper")

    try:
      repo = Repo.clone_from(
        clone_url,
        to_path,
        progress=progress or CloneProgress(),
        env={"GIT_TERMINAL_PROMPT": "0"},
      )
    except (GitCommandError, OSError) as e:
      # GitCommandError carries the command line; keep credentials out of it
      message = str(e).replace(clone_url, url)
      raise ExtractError(
        description=f"Failed to clone {url}: {message}",
        name="CLONE_FAILED",
        source="transport",
        caused_by=f"{e.__class__.__name__}: {message}",
      ) from None

    return cls(repo, context_lines=context_lines)

  def resolve_head(self) -> str:
    """Return the commit id HEAD points at."""
    return self.repo.head.commit.hexsha

  def list_branches(self) -> Iterator[tuple[str, str]]:
    """Yield (name, commit id) for every branch tip except the checked-out one.

    Covers local heads and remote-tracking refs. Symbolic remote HEAD refs
    and refs that do not resolve to a commit are skipped.
    """
    try:
      checked_out = self.repo.head.ref.path
    except TypeError:
      # Detached HEAD
      checked_out = None

    refs = list(self.repo.heads)
    for remote in self.repo.remotes:
      refs.extend(remote.refs)

    for ref in refs:
      if ref.path == checked_out:
        continue
      if ref.name.endswith("/HEAD"):
        logger.info(f"No valid oid for symbolic ref {ref.name}, skipping")
        continue
      try:
        target = ref.commit.hexsha
      except ValueError as e:
        logger.info(f"No valid oid for {ref.name}: {e}")
        continue
      yield ref.name, target

  def walk(self, tips: list[str]) -> Iterator[str]:
    """Yield commit ids reachable from `tips`, newest commit time first.

    Each commit is yielded once however many tips reach it. The sequence is
    read lazily from a single rev-list process and cannot be restarted.
    """
    proc = self.repo.git.rev_list(*tips, "--", as_process=True)
    for line in proc.stdout:
      commit_id = line.decode("ascii").strip()
      if commit_id:
        yield commit_id
    proc.wait()

  def get_commit(self, commit_id: str) -> CommitRecord:
    """Load a commit and its metadata."""
    commit = self.repo.commit(commit_id)
    raw_message = commit.message
    message = (
      raw_message.decode("utf-8", errors="replace")
      if isinstance(raw_message, bytes)
      else raw_message
    )
    return CommitRecord(
      id=commit.hexsha,
      tree_id=commit.tree.hexsha,
      parent_ids=[parent.hexsha for parent in commit.parents],
      author_name=commit.author.name,
      author_email=commit.author.email,
      author_time=int(commit.authored_date),
      message=message,
    )

  def tree_of(self, commit_id: str) -> str:
    """Return the tree id of a commit."""
    return self.repo.commit(commit_id).tree.hexsha

  def diff_trees(self, old_tree: Optional[str], new_tree: str) -> PatchSet:
    return diff_trees(self.repo, old_tree, new_tree, self.context_lines)

  def close(self) -> None:
    """Release git processes and file handles held for the clone."""
    self.repo.close()

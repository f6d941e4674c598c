"""Tree-to-tree diffs using GitPython and unidiff."""

import logging
import os
from io import StringIO
from typing import Callable, Optional

from git import Repo
from git.diff import decode_path
from unidiff import PatchSet
from unidiff.patch import PatchedFile

logger = logging.getLogger(__name__)

FileCallback = Callable[[str], None]
HunkCallback = Callable[[int, int], None]
LineCallback = Callable[[Optional[int], Optional[int]], None]


def empty_tree(repo: Repo) -> str:
  """Return the id of the empty tree in the repository's hash format."""
  return repo.git.hash_object("-t", "tree", os.devnull)


def diff_trees(
  repo: Repo, old_tree: Optional[str], new_tree: str, context_lines: int = 3
) -> PatchSet:
  """Diff two trees and parse the unified diff.

  Args:
      repo: Repository holding both trees
      old_tree: Tree id of the old side, or None to diff against the empty tree
      new_tree: Tree id of the new side
      context_lines: Context lines around each hunk

  Returns:
      unidiff PatchSet with one PatchedFile per touched path
  """
  if old_tree is None:
    old_tree = empty_tree(repo)

  # --no-ext-diff bypasses external diff tools (e.g., difftastic); the explicit
  # prefixes override diff.noprefix / diff.mnemonicPrefix from user config.
  # quotePath=false keeps non-ASCII names unescaped; names with quotes,
  # backslashes or control characters are still C-quoted (see unquote_name)
  diff_text = repo.git(c="core.quotePath=false").diff(
    f"--unified={context_lines}",
    old_tree,
    new_tree,
    no_ext_diff=True,
    no_textconv=True,
    no_renames=True,
    no_color=True,
    src_prefix="a/",
    dst_prefix="b/",
  )
  return PatchSet(StringIO(diff_text))


def unquote_name(name: Optional[str], prefix: str) -> Optional[str]:
  """Turn a diff header file name into a repository-relative path.

  Undoes git's C-style quoting ("b/tab\\there") and strips the a/ or b/
  prefix. Returns None for /dev/null.
  """
  if not name:
    return None
  raw = decode_path(name.encode("utf-8", "surrogateescape"), has_ab_prefix=False)
  if raw is None:
    return None
  path = raw.decode("utf-8", "replace")
  if path.startswith(prefix):
    path = path[len(prefix):]
  return path


def post_change_path(patched_file: PatchedFile) -> str:
  """Path of the file after the change, falling back to the old path for deletes."""
  return (
    unquote_name(patched_file.target_file, "b/")
    or unquote_name(patched_file.source_file, "a/")
    or patched_file.path
  )


def foreach_diff(
  patch_set: PatchSet,
  file_cb: FileCallback,
  hunk_cb: Optional[HunkCallback] = None,
  line_cb: Optional[LineCallback] = None,
) -> None:
  """Push every file, hunk and line of a diff to the given callbacks.

  Events are delivered in nesting order: a file, then each of its hunks, each
  hunk followed by its lines. Hunk callbacks receive the old and new side
  lengths; line callbacks receive the old and new line numbers, either of
  which may be None.
  """
  for patched_file in patch_set:
    file_cb(post_change_path(patched_file))
    for hunk in patched_file:
      if hunk_cb is not None:
        hunk_cb(hunk.source_length, hunk.target_length)
      if line_cb is None:
        continue
      for line in hunk:
        line_cb(line.source_line_no, line.target_line_no)

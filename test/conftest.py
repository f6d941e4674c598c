"""Shared fixtures: small git repositories built with GitPython."""

from pathlib import Path

import pytest
from git import Actor, Repo

ALICE = Actor("Alice", "alice@example.com")
BOB = Actor("Bob", "bob@example.com")


class RepoBuilder:
  """Creates commits with fixed authors and dates in a scratch repository."""

  def __init__(self, path: Path):
    self.path = path
    self.repo = Repo.init(path)

  def write(self, relpath: str, content: str) -> None:
    target = self.path / relpath
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    self.repo.index.add([relpath])

  def remove(self, relpath: str) -> None:
    self.repo.index.remove([relpath], working_tree=True)

  def commit(
    self,
    message: str,
    when: int,
    author: Actor = ALICE,
    authored: int | None = None,
    parents=None,
  ) -> str:
    commit = self.repo.index.commit(
      message,
      parent_commits=parents,
      author=author,
      committer=author,
      author_date=f"{authored or when} +0000",
      commit_date=f"{when} +0000",
    )
    return commit.hexsha

  def branch(self, name: str, at: str):
    return self.repo.create_head(name, at)

  def checkout(self, name: str) -> None:
    self.repo.heads[name].checkout()

  @property
  def default_branch(self) -> str:
    return self.repo.active_branch.name


@pytest.fixture
def repo_builder(tmp_path):
  """Empty repository under tmp_path/origin."""
  builder = RepoBuilder(tmp_path / "origin")
  yield builder
  builder.repo.close()


@pytest.fixture
def clone_root(tmp_path):
  return tmp_path / "clones"

"""Tests for the commit walk and merge / normal handling."""

from io import StringIO
from unittest.mock import MagicMock

import pytest
from unidiff import PatchSet

from gitlog.diff_types import CommitType, FileChange
from gitlog.exceptions import ExtractError
from gitlog.repository import CommitRecord, GitRepository
from gitlog.walker import CommitWalker

from conftest import ALICE, BOB

REPO_URL = "https://example.com/acme/widgets.git"

ADD_PATCH = """--- /dev/null
+++ b/README.md
@@ -0,0 +1,2 @@
+# Widgets
+
"""


def record(commit_id, parents, tree="t0", **overrides) -> CommitRecord:
  values = dict(
    id=commit_id,
    tree_id=tree,
    parent_ids=parents,
    author_name="Alice",
    author_email="alice@example.com",
    author_time=1700000000,
    message="Initial commit\n",
  )
  values.update(overrides)
  return CommitRecord(**values)


def fake_repository(records, walk_order, branches=()):
  repository = MagicMock(spec=GitRepository)
  repository.resolve_head.return_value = walk_order[0]
  repository.list_branches.return_value = list(branches)
  repository.walk.return_value = iter(walk_order)
  repository.get_commit.side_effect = lambda commit_id: records[commit_id]
  repository.tree_of.side_effect = lambda commit_id: f"tree-of-{commit_id}"
  repository.diff_trees.side_effect = lambda old, new: PatchSet(StringIO(ADD_PATCH))
  return repository


class TestCommitWalkerUnit:
  """Walker behaviour against a stubbed repository."""

  def test_tips_are_head_then_branches(self):
    repository = fake_repository(
      {"c1": record("c1", [])},
      ["c1"],
      branches=[("origin/feature", "f1"), ("origin/fix", "x1")],
    )
    walker = CommitWalker(repository, REPO_URL)

    list(walker.iter_commits())

    repository.walk.assert_called_once_with(["c1", "f1", "x1"])

  def test_root_commit_diffs_against_empty_tree(self):
    repository = fake_repository({"c1": record("c1", [], tree="t1")}, ["c1"])
    [commit] = CommitWalker(repository, REPO_URL).iter_commits()

    repository.diff_trees.assert_called_once_with(None, "t1")
    assert commit.type is CommitType.NORMAL
    assert commit.changes == [
      FileChange(path="README.md", lines_added=2, hunks_added=1)
    ]

  def test_single_parent_diffs_against_parent_tree(self):
    records = {"c2": record("c2", ["c1"], tree="t2"), "c1": record("c1", [])}
    repository = fake_repository(records, ["c2", "c1"])

    commits = list(CommitWalker(repository, REPO_URL).iter_commits())

    assert [c.id for c in commits] == ["c2", "c1"]
    assert repository.diff_trees.call_args_list[0].args == ("tree-of-c1", "t2")

  def test_merge_has_no_changes_and_is_not_diffed(self):
    records = {"m1": record("m1", ["c2", "c1"])}
    repository = fake_repository(records, ["m1"])
    walker = CommitWalker(repository, REPO_URL)

    [commit] = walker.iter_commits()

    assert commit.type is CommitType.MERGE
    assert commit.changes == []
    repository.diff_trees.assert_not_called()
    assert walker.merges == 1

  def test_missing_metadata_defaults_to_unknown(self):
    records = {
      "c1": record("c1", [], author_name=None, author_email=None, message="")
    }
    [commit] = CommitWalker(fake_repository(records, ["c1"]), REPO_URL).iter_commits()

    assert commit.author_name == "unknown"
    assert commit.author_email == "unknown"
    assert commit.message == "unknown"

  def test_commit_fields_copied_from_record(self):
    records = {"c1": record("c1", [], author_time=1234, message="Fix bug\n")}
    [commit] = CommitWalker(fake_repository(records, ["c1"]), REPO_URL).iter_commits()

    assert commit.repo_url == REPO_URL
    assert commit.timestamp == 1234
    assert commit.message == "Fix bug\n"

  def test_resolution_failure_aborts_with_last_commit(self):
    records = {"c3": record("c3", ["c2"])}
    repository = fake_repository(records, ["c3", "c2", "c1"])

    def get_commit(commit_id):
      if commit_id not in records:
        raise ValueError(f"bad object {commit_id}")
      return records[commit_id]

    repository.get_commit.side_effect = get_commit
    seen = []

    with pytest.raises(ExtractError) as exc_info:
      for commit in CommitWalker(repository, REPO_URL).iter_commits():
        seen.append(commit.id)

    assert seen == ["c3"]
    assert exc_info.value.source == "resolution"
    assert exc_info.value.name == "COMMIT_UNRESOLVED"
    assert exc_info.value.last_commit == "c3"
    assert "c2" in exc_info.value.description

  def test_unresolvable_head(self):
    repository = fake_repository({}, ["c1"])
    repository.resolve_head.side_effect = ValueError("Reference does not exist")

    with pytest.raises(ExtractError) as exc_info:
      list(CommitWalker(repository, REPO_URL).iter_commits())

    assert exc_info.value.name == "HEAD_UNRESOLVED"
    assert exc_info.value.last_commit is None


class TestCommitWalkerGit:
  """Walker behaviour against real repositories."""

  def test_branches_merges_and_order(self, repo_builder, tmp_path):
    b = repo_builder
    b.write("a.txt", "1\n2\n3\n")
    root = b.commit("root", when=1000)
    main = b.default_branch

    b.branch("feature", root)
    b.checkout("feature")
    b.write("b.txt", "feature\n")
    feature = b.commit("feature work", when=2000, author=BOB)

    b.checkout(main)
    b.write("c.txt", "main\n")
    mainline = b.commit("main work", when=3000)
    merge = b.commit(
      "merge feature",
      when=4000,
      parents=[b.repo.heads[main].commit, b.repo.heads.feature.commit],
    )

    repository = GitRepository.clone(str(b.path), tmp_path / "clone")
    try:
      commits = list(CommitWalker(repository, str(b.path)).iter_commits())
    finally:
      repository.close()

    assert [c.id for c in commits] == [merge, mainline, feature, root]
    assert commits[0].type is CommitType.MERGE
    assert commits[0].changes == []
    assert [c.path for c in commits[1].changes] == ["c.txt"]
    assert commits[2].author_name == "Bob"
    assert [c.path for c in commits[2].changes] == ["b.txt"]
    assert commits[3].changes == [FileChange(path="a.txt", lines_added=3, hunks_added=1)]

  def test_timestamp_is_author_time(self, repo_builder, tmp_path):
    repo_builder.write("a.txt", "x\n")
    repo_builder.commit("first", when=5000, authored=4000)

    repository = GitRepository.clone(str(repo_builder.path), tmp_path / "clone")
    try:
      [commit] = CommitWalker(repository, "origin").iter_commits()
    finally:
      repository.close()

    assert commit.timestamp == 4000
    assert commit.author_email == ALICE.email
    assert commit.message.strip() == "first"

  def test_modify_and_delete(self, repo_builder, tmp_path):
    b = repo_builder
    b.write("data.txt", "1\n2\n3\n4\n5\n")
    b.write("old.txt", "x\ny\n")
    b.commit("seed", when=1000)
    b.write("data.txt", "1\n2\nthree\n4\n5\n")
    b.remove("old.txt")
    b.commit("edit", when=2000)

    repository = GitRepository.clone(str(b.path), tmp_path / "clone", context_lines=0)
    try:
      edit, _seed = CommitWalker(repository, "origin").iter_commits()
    finally:
      repository.close()

    assert edit.changes == [
      FileChange(path="data.txt", lines_added=1, lines_removed=1, hunks_modified=1),
      FileChange(path="old.txt", lines_removed=2, hunks_removed=1),
    ]

  def test_unmerged_branch_newer_than_head(self, repo_builder, tmp_path):
    b = repo_builder
    b.write("a.txt", "base\n")
    root = b.commit("root", when=1000)
    main = b.default_branch

    b.branch("side", root)
    b.checkout("side")
    b.write("side.txt", "side\n")
    side = b.commit("side work", when=3000)

    b.checkout(main)
    b.write("main.txt", "main\n")
    mainline = b.commit("main work", when=2000)

    repository = GitRepository.clone(str(b.path), tmp_path / "clone")
    try:
      branches = list(repository.list_branches())
      ids = [c.id for c in CommitWalker(repository, str(b.path)).iter_commits()]
    finally:
      repository.close()

    names = sorted(name for name, _ in branches)
    assert names == sorted([f"origin/{main}", "origin/side"])
    assert "origin/HEAD" not in names
    assert main not in names
    assert dict(branches)["origin/side"] == side
    assert ids == [side, mainline, root]
    assert len(ids) == len(set(ids))

  @pytest.mark.parametrize("name", ["café.txt", 'quote"d.txt'])
  def test_path_with_special_characters(self, repo_builder, tmp_path, name):
    b = repo_builder
    b.write(name, "1\n2\n")
    b.write("keep.txt", "k\n")
    b.commit("add", when=1000)
    b.remove(name)
    b.commit("delete", when=2000)

    repository = GitRepository.clone(str(b.path), tmp_path / "clone")
    try:
      delete, add = CommitWalker(repository, "origin").iter_commits()
    finally:
      repository.close()

    assert [c.path for c in add.changes] == sorted([name, "keep.txt"])
    assert delete.changes == [FileChange(path=name, lines_removed=2, hunks_removed=1)]

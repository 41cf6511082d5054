"""Tests for the source tree walker."""

import inspect
import os
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from treecopy.exceptions import ConfigurationError
from treecopy.file_system_tree.permission_action import PermissionAction
from treecopy.file_system_tree.tree_walker import TraversalWarning, TreeWalker, walk
from treecopy.selection_rules.git_rules import GitIgnoreExclusionRules


def make_symlink(target, link, target_is_directory=False):
    try:
        os.symlink(target, link, target_is_directory=target_is_directory)
    except (OSError, NotImplementedError):
        pytest.skip("Symlink creation not supported on this platform/environment")


def as_strings(paths):
    return [p.as_posix() for p in paths]


@pytest.fixture
def ordered_tree(tmp_path):
    """A tree whose traversal order is fully determined by sorting."""
    root = tmp_path / "root"
    for directory in ["b_dir/inner", "a_dir", "c_dir"]:
        (root / directory).mkdir(parents=True)
    for file_path in ["z.txt", "a.txt", "b_dir/b1.txt", "b_dir/inner/deep.txt", "a_dir/a1.txt", "c_dir/c1.txt"]:
        (root / file_path).write_text(file_path)
    return root


def test_walk_without_rules_yields_every_file(source_tree):
    assert sorted(as_strings(walk(source_tree))) == [
        "child/child_file.txt",
        "ignored_dir/ignored_file.txt",
        "root_file.txt",
    ]


def test_walk_excludes_directory(source_tree):
    paths = as_strings(walk(source_tree, exclusion_rules=[source_tree / "ignored_dir"]))
    assert paths == ["root_file.txt", "child/child_file.txt"]


def test_walk_excludes_nested_directories(source_tree):
    (source_tree / "ignored_dir" / "deeper").mkdir()
    (source_tree / "ignored_dir" / "deeper" / "x.txt").write_text("x")

    paths = as_strings(walk(source_tree, exclusion_rules=[source_tree / "ignored_dir"]))

    assert all(not p.startswith("ignored_dir") for p in paths)


def test_excluding_root_yields_nothing(source_tree):
    assert list(walk(source_tree, exclusion_rules=[source_tree])) == []


def test_walk_filters_by_suffix(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    (root / "a.txt").write_text("a")
    (root / "b.jpg").write_text("b")

    assert as_strings(walk(root, [".txt"])) == ["a.txt"]
    assert as_strings(walk(root, [".jpg"])) == ["b.jpg"]
    assert as_strings(walk(root, [])) == ["a.txt", "b.jpg"]


def test_walk_suffix_rules_apply_to_names_not_directories(tmp_path):
    root = tmp_path / "root"
    (root / "notes.txt").mkdir(parents=True)
    (root / "notes.txt" / "readme.md").write_text("x")
    (root / "notes.txt" / "inner.txt").write_text("y")

    assert as_strings(walk(root, [".txt"])) == ["notes.txt/inner.txt"]


def test_walk_order_is_files_first_then_sorted_subdirectories(ordered_tree):
    assert as_strings(walk(ordered_tree)) == [
        "a.txt",
        "z.txt",
        "a_dir/a1.txt",
        "b_dir/b1.txt",
        "b_dir/inner/deep.txt",
        "c_dir/c1.txt",
    ]


def test_walk_is_deterministic(ordered_tree):
    assert list(walk(ordered_tree)) == list(walk(ordered_tree))


def test_walk_yields_relative_paths(source_tree):
    for path in walk(source_tree):
        assert not path.is_absolute()
        assert (source_tree / path).is_file()


def test_walk_is_lazy(ordered_tree):
    iterator = walk(ordered_tree)
    assert next(iterator) == Path("a.txt")


def test_walk_empty_directory(tmp_path):
    assert list(walk(tmp_path)) == []


def test_walk_missing_root(tmp_path):
    with pytest.raises(ConfigurationError, match="does not exist"):
        list(walk(tmp_path / "missing"))


def test_walk_root_is_file(tmp_path):
    a_file = tmp_path / "file.txt"
    a_file.write_text("x")
    with pytest.raises(ConfigurationError, match="not a directory"):
        list(walk(a_file))


def test_invalid_exclusion_fails_before_walking(source_tree):
    with pytest.raises(ConfigurationError, match="does not exist"):
        TreeWalker(source_tree, exclusion_rules=[source_tree / "missing_dir"])


def test_invalid_suffix_fails_before_walking(source_tree):
    with pytest.raises(ConfigurationError):
        TreeWalker(source_tree, suffix_rules=[""])


def test_relative_root_is_made_absolute(source_tree, monkeypatch):
    monkeypatch.chdir(source_tree.parent)
    walker = TreeWalker(source_tree.name)
    assert walker.root_path == source_tree.resolve()
    assert "root_file.txt" in as_strings(walker.walk())


def test_deep_tree_does_not_hit_recursion_limit(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    current = root
    depth = 150
    for _ in range(depth):
        current = current / "d"
        current.mkdir()
    (current / "leaf.txt").write_text("leaf")

    old_limit = sys.getrecursionlimit()
    sys.setrecursionlimit(len(inspect.stack(0)) + 100)
    try:
        paths = list(walk(root))
    finally:
        sys.setrecursionlimit(old_limit)

    assert paths == [Path(*["d"] * depth, "leaf.txt")]


def test_ignore_rules_prune_directories_and_files(source_tree):
    (source_tree / "child" / "scratch.tmp").write_text("tmp")
    ignore_rules = GitIgnoreExclusionRules()
    ignore_rules.add_rule("ignored_dir/")
    ignore_rules.add_rule("*.tmp")

    walker = TreeWalker(source_tree, ignore_rules=ignore_rules)

    assert as_strings(walker.walk()) == ["root_file.txt", "child/child_file.txt"]


def test_ignore_rules_combine_with_suffixes(source_tree):
    (source_tree / "child" / "draft_notes.txt").write_text("draft")
    ignore_rules = GitIgnoreExclusionRules()
    ignore_rules.add_rule("draft_*")

    walker = TreeWalker(source_tree, suffix_rules=[".txt"], ignore_rules=ignore_rules)

    assert "child/draft_notes.txt" not in as_strings(walker.walk())


class TestUnreadableDirectories:
    @pytest.fixture
    def locked_tree(self, source_tree):
        (source_tree / "locked").mkdir()
        (source_tree / "locked" / "secret.txt").write_text("secret")
        return source_tree

    @staticmethod
    def deny_locked(real_scandir):
        def fake_scandir(path):
            if Path(path).name == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        return fake_scandir

    def test_warn_skips_subtree_and_records_warning(self, locked_tree):
        walker = TreeWalker(locked_tree)
        with patch("os.scandir", side_effect=self.deny_locked(os.scandir)):
            paths = as_strings(walker.walk())

        assert "locked/secret.txt" not in paths
        assert "child/child_file.txt" in paths
        assert "ignored_dir/ignored_file.txt" in paths
        assert len(walker.warnings) == 1
        warning = walker.warnings[0]
        assert isinstance(warning, TraversalWarning)
        assert warning.path.endswith("locked")
        assert "Cannot read directory" in warning.message
        assert "Permission denied" in str(warning)

    def test_raise_stops_the_walk(self, locked_tree):
        walker = TreeWalker(locked_tree, permission_action=PermissionAction.RAISE)
        with patch("os.scandir", side_effect=self.deny_locked(os.scandir)):
            with pytest.raises(PermissionError, match="Access denied") as exc_info:
                list(walker.walk())
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_raise_mode_warns_about_vanished_directory(self, locked_tree):
        real_scandir = os.scandir

        def vanished_scandir(path):
            if Path(path).name == "locked":
                raise FileNotFoundError(2, "No such file or directory", str(path))
            return real_scandir(path)

        walker = TreeWalker(locked_tree, permission_action=PermissionAction.RAISE)
        with patch("os.scandir", side_effect=vanished_scandir):
            paths = as_strings(walker.walk())

        assert "child/child_file.txt" in paths
        assert len(walker.warnings) == 1
        assert "No such file or directory" in walker.warnings[0].message

    @pytest.mark.skipif(not hasattr(os, "geteuid") or os.geteuid() == 0, reason="root can read any directory")
    def test_real_unreadable_directory(self, locked_tree):
        locked = locked_tree / "locked"
        locked.chmod(0)
        try:
            walker = TreeWalker(locked_tree)
            paths = as_strings(walker.walk())
        finally:
            locked.chmod(0o755)

        assert "locked/secret.txt" not in paths
        assert len(walker.warnings) == 1

    def test_warnings_reset_between_walks(self, locked_tree):
        walker = TreeWalker(locked_tree)
        with patch("os.scandir", side_effect=self.deny_locked(os.scandir)):
            list(walker.walk())
        assert len(walker.warnings) == 1

        list(walker.walk())
        assert walker.warnings == []


class TestSymlinks:
    def test_symlinks_skipped_by_default(self, source_tree, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "outside.txt").write_text("outside")
        make_symlink(outside, source_tree / "link_dir", target_is_directory=True)
        make_symlink(source_tree / "root_file.txt", source_tree / "link_file.txt")

        walker = TreeWalker(source_tree)
        paths = as_strings(walker.walk())

        assert "link_file.txt" not in paths
        assert "link_dir/outside.txt" not in paths
        assert walker.skipped_symlink_count == 2

    def test_follow_symlinks(self, source_tree, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "outside.txt").write_text("outside")
        make_symlink(outside, source_tree / "link_dir", target_is_directory=True)
        make_symlink(source_tree / "root_file.txt", source_tree / "link_file.txt")

        walker = TreeWalker(source_tree, follow_symlinks=True)
        paths = as_strings(walker.walk())

        assert "link_file.txt" in paths
        assert "link_dir/outside.txt" in paths
        assert walker.skipped_symlink_count == 0

    def test_symlink_loop_is_entered_once(self, source_tree):
        make_symlink(source_tree, source_tree / "child" / "loop", target_is_directory=True)

        walker = TreeWalker(source_tree, follow_symlinks=True)
        paths = as_strings(walker.walk())

        assert paths.count("child/child_file.txt") == 1
        assert not any(p.startswith("child/loop/") for p in paths)
        assert any("symlink loop" in w.message for w in walker.warnings)

    def test_followed_symlink_into_excluded_directory(self, source_tree):
        make_symlink(source_tree / "ignored_dir", source_tree / "alias", target_is_directory=True)

        walker = TreeWalker(source_tree, exclusion_rules=[source_tree / "ignored_dir"], follow_symlinks=True)
        paths = as_strings(walker.walk())

        assert not any(p.startswith("alias/") for p in paths)
        assert not any(p.startswith("ignored_dir/") for p in paths)

    def test_broken_symlink_warns_when_following(self, source_tree):
        make_symlink(source_tree / "nowhere.txt", source_tree / "broken.txt")

        walker = TreeWalker(source_tree, follow_symlinks=True)
        paths = as_strings(walker.walk())

        assert "broken.txt" not in paths
        assert any("Broken symbolic link" in w.message for w in walker.warnings)

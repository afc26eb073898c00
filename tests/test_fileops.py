"""Tests for the copy/delete primitives and their dry-run classification."""

import os

import pytest

from gitskel import OperationKind, Outcome, Risk, TargetTree
from gitskel._fileops import copy, delete, differs

from conftest import commit_target


@pytest.fixture
def source(tmp_path):
    d = tmp_path / "source"
    d.mkdir()
    (d / "a.txt").write_text("alpha")
    (d / "sub").mkdir()
    (d / "sub" / "b.txt").write_text("beta")
    os.symlink("a.txt", d / "link")
    return d


@pytest.fixture
def plain(tmp_path):
    """A target directory without version control."""
    d = tmp_path / "plain"
    d.mkdir()
    return TargetTree(d)


# ---------------------------------------------------------------------------
# Outcome rendering
# ---------------------------------------------------------------------------

class TestOutcome:
    @pytest.mark.parametrize("kind, risk, line", [
        (OperationKind.COPY, Risk.CLEAN, "   copy  : p"),
        (OperationKind.COPY, Risk.LOCALLY_MODIFIED, "  !copy  : p"),
        (OperationKind.COPY, Risk.UNTRACKED, "  !copy  : p"),
        (OperationKind.DELETE, Risk.CLEAN, "   delete: p"),
        (OperationKind.DELETE, Risk.LOCALLY_MODIFIED, "  !delete: p"),
        (OperationKind.DELETE, Risk.MISSING, "  missing: p"),
        (OperationKind.COPY, Risk.IGNORED, "   ignore: p"),
    ])
    def test_report_line(self, kind, risk, line):
        assert str(Outcome(kind, "p", risk)) == line

    def test_unsafe(self):
        assert Outcome(OperationKind.COPY, "p", Risk.UNTRACKED).unsafe
        assert not Outcome(OperationKind.DELETE, "p", Risk.MISSING).unsafe
        assert not Outcome(OperationKind.COPY, "p", Risk.IGNORED).unsafe


# ---------------------------------------------------------------------------
# differs
# ---------------------------------------------------------------------------

class TestDiffers:
    def test_missing_target(self, source, tmp_path):
        assert differs(source / "a.txt", tmp_path / "nope") is True

    def test_identical(self, source, tmp_path):
        (tmp_path / "same.txt").write_text("alpha")
        assert differs(source / "a.txt", tmp_path / "same.txt") is False

    def test_different_content(self, source, tmp_path):
        (tmp_path / "other.txt").write_text("ALPHA")
        assert differs(source / "a.txt", tmp_path / "other.txt") is True

    def test_symlink_vs_file(self, source, tmp_path):
        (tmp_path / "link").write_text("a.txt")
        assert differs(source / "link", tmp_path / "link") is True

    def test_symlinks_compare_targets(self, source, tmp_path):
        os.symlink("a.txt", tmp_path / "link")
        assert differs(source / "link", tmp_path / "link") is False


# ---------------------------------------------------------------------------
# copy
# ---------------------------------------------------------------------------

class TestCopy:
    def test_identical_is_none(self, source, plain):
        (plain.root / "a.txt").write_text("alpha")
        assert copy(source, plain, "a.txt", dry_run=True, ignored=False) is None
        assert copy(source, plain, "a.txt", dry_run=False, ignored=False) is None

    def test_dry_run_does_not_write(self, source, plain):
        out = copy(source, plain, "sub/b.txt", dry_run=True, ignored=False)
        assert out == Outcome(OperationKind.COPY, "sub/b.txt", Risk.CLEAN)
        assert not (plain.root / "sub").exists()

    def test_apply_creates_parents(self, source, plain):
        copy(source, plain, "sub/b.txt", dry_run=False, ignored=False)
        assert (plain.root / "sub" / "b.txt").read_text() == "beta"

    def test_apply_reproduces_symlink(self, source, plain):
        copy(source, plain, "link", dry_run=False, ignored=False)
        link = plain.root / "link"
        assert link.is_symlink()
        assert os.readlink(link) == "a.txt"

    def test_apply_overwrites(self, source, plain):
        (plain.root / "a.txt").write_text("local")
        copy(source, plain, "a.txt", dry_run=False, ignored=False)
        assert (plain.root / "a.txt").read_text() == "alpha"

    def test_apply_replaces_symlink_without_following(self, source, plain, tmp_path):
        outside = tmp_path / "outside.txt"
        outside.write_text("keep me")
        os.symlink(outside, plain.root / "a.txt")
        copy(source, plain, "a.txt", dry_run=False, ignored=False)
        assert not (plain.root / "a.txt").is_symlink()
        assert outside.read_text() == "keep me"

    def test_ignored_dry_run_and_apply(self, source, plain):
        out = copy(source, plain, "a.txt", dry_run=True, ignored=True)
        assert out.risk is Risk.IGNORED
        copy(source, plain, "a.txt", dry_run=False, ignored=True)
        assert not (plain.root / "a.txt").exists()

    def test_fallback_existing_path_is_unsafe(self, source, plain):
        (plain.root / "a.txt").write_text("local")
        out = copy(source, plain, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.UNTRACKED
        assert out.unsafe

    def test_fallback_broken_symlink_exists(self, source, plain):
        os.symlink("nowhere", plain.root / "a.txt")
        out = copy(source, plain, "a.txt", dry_run=True, ignored=False)
        assert out.unsafe

    def test_file_in_place_of_parent_is_unsafe(self, source, plain):
        (plain.root / "sub").write_text("mine")
        out = copy(source, plain, "sub/b.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.UNTRACKED
        assert (plain.root / "sub").read_text() == "mine"

    def test_symlink_in_place_of_parent_is_unsafe(self, source, plain, tmp_path):
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        os.symlink(elsewhere, plain.root / "sub")
        out = copy(source, plain, "sub/b.txt", dry_run=True, ignored=False)
        assert out.unsafe

    def test_modified_parent_file_in_repo(self, source, target):
        (target.root / "sub").write_text("v1")
        commit_target(target)
        (target.root / "sub").write_text("edited")
        out = copy(source, target, "sub/b.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.LOCALLY_MODIFIED

    def test_committed_parent_file_is_replaced(self, source, target):
        (target.root / "sub").write_text("v1")
        commit_target(target)
        out = copy(source, target, "sub/b.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.CLEAN
        copy(source, target, "sub/b.txt", dry_run=False, ignored=False)
        assert (target.root / "sub" / "b.txt").read_text() == "beta"

    def test_repo_status_clean(self, source, target):
        (target.root / "a.txt").write_text("old")
        commit_target(target)
        out = copy(source, target, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.CLEAN

    def test_repo_status_modified(self, source, target):
        (target.root / "a.txt").write_text("old")
        commit_target(target)
        (target.root / "a.txt").write_text("edited")
        out = copy(source, target, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.LOCALLY_MODIFIED

    def test_repo_status_untracked(self, source, target):
        (target.root / "a.txt").write_text("mine")
        out = copy(source, target, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.UNTRACKED


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

class TestDelete:
    def test_missing(self, plain):
        out = delete(plain, "gone.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.MISSING
        assert not out.unsafe

    def test_fallback_existing_is_unsafe(self, plain):
        (plain.root / "a.txt").write_text("a")
        out = delete(plain, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.UNTRACKED
        assert (plain.root / "a.txt").exists()

    def test_ignored(self, plain):
        (plain.root / "a.txt").write_text("a")
        out = delete(plain, "a.txt", dry_run=True, ignored=True)
        assert out.risk is Risk.IGNORED
        delete(plain, "a.txt", dry_run=False, ignored=True)
        assert (plain.root / "a.txt").exists()

    def test_apply_prunes_empty_parents(self, plain):
        deep = plain.root / "x" / "y"
        deep.mkdir(parents=True)
        (deep / "f.txt").write_text("f")
        (plain.root / "keep.txt").write_text("k")
        delete(plain, "x/y/f.txt", dry_run=False, ignored=False)
        assert not (plain.root / "x").exists()
        assert plain.root.exists()
        assert (plain.root / "keep.txt").exists()

    def test_apply_stops_at_non_empty_parent(self, plain):
        (plain.root / "x" / "y").mkdir(parents=True)
        (plain.root / "x" / "y" / "f.txt").write_text("f")
        (plain.root / "x" / "other.txt").write_text("o")
        delete(plain, "x/y/f.txt", dry_run=False, ignored=False)
        assert not (plain.root / "x" / "y").exists()
        assert (plain.root / "x" / "other.txt").exists()

    def test_apply_never_removes_root(self, plain):
        (plain.root / "only.txt").write_text("o")
        delete(plain, "only.txt", dry_run=False, ignored=False)
        assert plain.root.is_dir()

    def test_apply_unlinks_symlink_not_target(self, plain, tmp_path):
        outside = tmp_path / "outside"
        outside.mkdir()
        (outside / "keep.txt").write_text("k")
        os.symlink(outside, plain.root / "linked")
        delete(plain, "linked", dry_run=False, ignored=False)
        assert not os.path.lexists(plain.root / "linked")
        assert (outside / "keep.txt").exists()

    def test_apply_broken_symlink(self, plain):
        os.symlink("nowhere", plain.root / "dangling")
        out = delete(plain, "dangling", dry_run=True, ignored=False)
        assert out.risk is Risk.UNTRACKED
        delete(plain, "dangling", dry_run=False, ignored=False)
        assert not os.path.lexists(plain.root / "dangling")

    def test_repo_status_clean(self, target):
        (target.root / "a.txt").write_text("a")
        commit_target(target)
        out = delete(target, "a.txt", dry_run=True, ignored=False)
        assert out.risk is Risk.CLEAN
        assert str(out) == "   delete: a.txt"

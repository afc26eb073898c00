"""Throwaway checkouts of the upstream skeleton repository.

:func:`acquire` clones the upstream into a temporary directory, checks
out the commit a :class:`~gitskel.record.Selector` resolves to, and
removes the directory again when the ``with`` block exits, however it
exits.
"""

from __future__ import annotations

import io
import os
import re
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from dulwich import porcelain
from dulwich.diff_tree import CHANGE_ADD, CHANGE_DELETE, CHANGE_MODIFY, tree_changes
from dulwich.errors import GitProtocolError, NotGitRepository
from dulwich.index import build_index_from_tree
from dulwich.objects import Commit, Tag
from dulwich.repo import Repo

from .exceptions import (
    BranchNotFound,
    RepoCloneFailed,
    RevisionNotFound,
    TagNotFound,
    UnsupportedChange,
)
from .record import Selector, SelectorKind

S_IFGITLINK = 0o160000
_HEXSHA = re.compile(r"[0-9a-f]{40}")


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class DiffStatus(str, Enum):
    """Upstream-side change kind: ``ADDED``, ``DELETED``, or ``MODIFIED``."""
    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"

    def __str__(self) -> str:          # noqa: D105
        return self.value


_CHANGE_TO_STATUS = {
    CHANGE_ADD: DiffStatus.ADDED,
    CHANGE_DELETE: DiffStatus.DELETED,
    CHANGE_MODIFY: DiffStatus.MODIFIED,
}


@dataclass
class DiffEntry:
    status: DiffStatus
    path: str


def _file_type(entry) -> int | None:
    if entry is None or entry.mode is None:
        return None
    return stat.S_IFMT(entry.mode)


@dataclass
class Snapshot:
    """A checkout of the upstream at one commit.

    Attributes:
        root: Working directory of the checkout.
        head: Hex commit id checked out (HEAD is detached there).
        files: Paths from the checked-out index, in index order.
    """
    root: Path
    head: str
    files: list[str] = field(default_factory=list)
    _repo: Repo | None = field(default=None, repr=False, compare=False)

    def diff(self, from_revision: str) -> list[DiffEntry]:
        """Tree-level changes from *from_revision* to this snapshot.

        Rename detection is off: a rename is one ``DELETED`` plus one
        ``ADDED`` entry.  Submodule entries are skipped.  A path whose
        type changed (file, symlink, submodule) raises
        :class:`UnsupportedChange`.
        """
        repo = self._repo
        old_tree = _commit(repo, from_revision).tree
        new_tree = repo[self.head.encode("ascii")].tree

        entries: list[DiffEntry] = []
        for change in tree_changes(repo.object_store, old_tree, new_tree,
                                   change_type_same=True):
            side = change.new if change.type != CHANGE_DELETE else change.old
            path = os.fsdecode(side.path)
            kinds = {_file_type(change.old), _file_type(change.new)} - {None}
            if kinds == {S_IFGITLINK}:
                continue
            if len(kinds) > 1:
                raise UnsupportedChange("typechange", path)
            status = _CHANGE_TO_STATUS.get(change.type)
            if status is None:
                raise UnsupportedChange(str(change.type), path)
            entries.append(DiffEntry(status, path))
        return entries


# ---------------------------------------------------------------------------
# Ref resolution
# ---------------------------------------------------------------------------

def _peel(repo: Repo, sha: bytes) -> bytes:
    """Follow annotated tags until a commit is reached."""
    obj = repo[sha]
    while isinstance(obj, Tag):
        obj = repo[obj.object[1]]
    if not isinstance(obj, Commit):
        raise ValueError(f"{sha.decode()} does not point at a commit")
    return obj.id


def _commit(repo: Repo, revision: str) -> Commit:
    """Look up *revision* (full hex id) in *repo*."""
    if not _HEXSHA.fullmatch(revision):
        raise RevisionNotFound(revision)
    try:
        return repo[_peel(repo, revision.encode("ascii"))]
    except (KeyError, ValueError, UnicodeEncodeError) as exc:
        raise RevisionNotFound(revision) from exc


def resolve(repo: Repo, selector: Selector) -> bytes:
    """Resolve *selector* to a commit id in a fresh clone."""
    if selector.kind is SelectorKind.BRANCH:
        ref = b"refs/remotes/origin/" + selector.name.encode("utf-8")
        try:
            return _peel(repo, repo.refs[ref])
        except KeyError as exc:
            raise BranchNotFound(selector.name) from exc
    if selector.kind is SelectorKind.TAG:
        ref = b"refs/tags/" + selector.name.encode("utf-8")
        try:
            return _peel(repo, repo.refs[ref])
        except KeyError as exc:
            raise TagNotFound(selector.name) from exc
    try:
        return _peel(repo, repo.refs[b"HEAD"])
    except KeyError as exc:
        raise RevisionNotFound("HEAD") from exc


# ---------------------------------------------------------------------------
# Acquisition
# ---------------------------------------------------------------------------

def _clone(url: str, path: str) -> Repo:
    try:
        return porcelain.clone(
            url, path, checkout=False, errstream=io.BytesIO(),
        )
    except (GitProtocolError, NotGitRepository, OSError) as exc:
        raise RepoCloneFailed(url) from exc


def _checkout(repo: Repo, commit_id: bytes) -> list[str]:
    """Populate index and working tree from *commit_id*; detach HEAD to it."""
    build_index_from_tree(
        repo.path, repo.index_path(), repo.object_store, repo[commit_id].tree,
    )
    # Drop the symref first so the assignment replaces HEAD itself
    # instead of moving the branch it points at.
    del repo.refs[b"HEAD"]
    repo.refs[b"HEAD"] = commit_id
    index = repo.open_index()
    files: list[str] = []
    for path in index:
        entry = index[path]
        if stat.S_IFMT(entry.mode) == S_IFGITLINK:
            continue
        files.append(os.fsdecode(path))
    return files


@contextmanager
def acquire(url: str, selector: Selector | None = None) -> Iterator[Snapshot]:
    """Clone *url* and check out the commit *selector* resolves to.

    The clone directory is deleted when the block exits.
    """
    selector = selector if selector is not None else Selector.default()
    with tempfile.TemporaryDirectory(prefix="gitskel-") as tmp:
        repo = _clone(url, os.path.join(tmp, "upstream"))
        try:
            commit_id = resolve(repo, selector)
            files = _checkout(repo, commit_id)
            yield Snapshot(
                root=Path(repo.path),
                head=commit_id.decode("ascii"),
                files=files,
                _repo=repo,
            )
        finally:
            repo.close()

"""Working-tree status of the target repository, one path at a time.

Status is computed from three sources, like ``git status`` does for a
single path: the HEAD tree, the index, and the file on disk.  Only the
answer "does this path carry local state that a sync would clobber"
matters here, so staged and unstaged changes both count as modified.
"""

from __future__ import annotations

import hashlib
import os
import stat
from enum import Enum
from pathlib import Path

from dulwich.errors import NotGitRepository, NotTreeError
from dulwich.object_store import tree_lookup_path
from dulwich.repo import Repo

from .exceptions import RepoDiscoveryFailed

S_IFGITLINK = 0o160000


class PathStatus(str, Enum):
    """Per-path working tree status: ``CLEAN``, ``MODIFIED``, ``UNTRACKED``."""
    CLEAN = "clean"
    MODIFIED = "modified"
    UNTRACKED = "untracked"

    def __str__(self) -> str:          # noqa: D105
        return self.value


# ---------------------------------------------------------------------------
# Hashing
# ---------------------------------------------------------------------------

_HASH_CHUNK_SIZE = 65536


def _blob_hasher(size: int) -> hashlib._Hash:
    """Return a SHA-1 hasher pre-loaded with the git blob header.

    Git blob OID = SHA-1(``blob <size>\\0`` + content).
    """
    return hashlib.sha1(f"blob {size}\0".encode())


def local_file_oid(full: Path) -> bytes:
    """Compute the git blob OID (hex bytes) of a file on disk.

    Symlinks hash their target string.  Regular files are streamed in
    chunks to avoid loading entire contents into memory.
    """
    if full.is_symlink():
        data = os.fsencode(os.readlink(full))
        h = _blob_hasher(len(data))
        h.update(data)
        return h.hexdigest().encode("ascii")
    size = full.stat().st_size
    h = _blob_hasher(size)
    with open(full, "rb") as f:
        while True:
            chunk = f.read(_HASH_CHUNK_SIZE)
            if not chunk:
                break
            h.update(chunk)
    return h.hexdigest().encode("ascii")


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------

class TargetTree:
    """A plain directory target with no version control.

    ``status()`` never has an answer, so every classification falls back
    to filesystem existence.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.root)!r})"

    def status(self, rel_path: str) -> PathStatus | None:
        return None


class TargetRepo(TargetTree):
    """A non-bare git repository receiving skeleton files."""

    def __init__(self, repo: Repo):
        super().__init__(repo.path)
        self._repo = repo

    @classmethod
    def discover(cls, start: str | Path = ".") -> TargetRepo:
        """Find the repository enclosing *start*."""
        try:
            repo = Repo.discover(str(start))
        except (NotGitRepository, OSError) as exc:
            raise RepoDiscoveryFailed(str(start)) from exc
        if repo.bare:
            raise RepoDiscoveryFailed(str(start))
        return cls(repo)

    # ------------------------------------------------------------------
    def _index_entry(self, path: bytes):
        if not os.path.exists(self._repo.index_path()):
            return None
        index = self._repo.open_index()
        try:
            return index[path]
        except KeyError:
            return None

    def _head_entry(self, path: bytes) -> tuple[int, bytes] | None:
        try:
            head = self._repo.refs[b"HEAD"]
        except KeyError:
            return None  # unborn branch
        tree_id = self._repo[head].tree
        try:
            return tree_lookup_path(self._repo.__getitem__, tree_id, path)
        except (KeyError, NotTreeError):
            return None

    def _inside_gitlink(self, path: bytes) -> bool:
        """True if *path* lives below a submodule or nested repository."""
        parts = path.split(b"/")
        for depth in range(1, len(parts)):
            parent = b"/".join(parts[:depth])
            entry = self._head_entry(parent)
            if entry is not None and stat.S_IFMT(entry[0]) == S_IFGITLINK:
                return True
            if (self.root / os.fsdecode(parent) / ".git").exists():
                return True
        return False

    def status(self, rel_path: str) -> PathStatus | None:
        """Return the status of *rel_path*, or ``None`` if git cannot tell.

        ``None`` is returned for paths owned by a nested repository.
        An absent, untracked path is ``CLEAN``: there is nothing to lose.
        """
        path = os.fsencode(rel_path)
        if self._inside_gitlink(path):
            return None

        full = self.root / rel_path
        on_disk = os.path.lexists(full)
        staged = self._index_entry(path)
        committed = self._head_entry(path)

        if staged is None:
            if committed is not None:
                return PathStatus.MODIFIED  # deletion staged
            return PathStatus.UNTRACKED if on_disk else PathStatus.CLEAN

        sha = getattr(staged, "sha", None)
        if sha is None:
            return PathStatus.MODIFIED  # merge conflict entry
        if stat.S_IFMT(staged.mode) == S_IFGITLINK:
            return None
        if committed is None or committed[1] != sha:
            return PathStatus.MODIFIED
        if not on_disk or (full.is_dir() and not full.is_symlink()):
            return PathStatus.MODIFIED
        if local_file_oid(full) != sha:
            return PathStatus.MODIFIED
        return PathStatus.CLEAN

"""Shared fixtures for gitskel tests.

Upstream repositories are built directly from dulwich objects so tests
control every commit, branch and tag.  Target repositories are ordinary
non-bare repositories committed with ``dulwich.porcelain``.
"""

import hashlib
import os
import stat
import time

import pytest
from click.testing import CliRunner
from dulwich import porcelain
from dulwich.objects import Blob, Commit, Tag, Tree
from dulwich.repo import Repo

from gitskel import TargetRepo

IDENTITY = b"Test <test@example.com>"


class Link(str):
    """Marks a file value as a symlink pointing at the string."""


def _build_tree(store, files):
    """Write nested trees for ``{path: bytes | Link}``; return the root id."""
    root: dict = {}
    for path, value in files.items():
        parts = path.split("/")
        node = root
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    def write(node):
        tree = Tree()
        for name, value in node.items():
            if isinstance(value, dict):
                tree.add(name.encode(), stat.S_IFDIR, write(value))
                continue
            if isinstance(value, Link):
                blob, mode = Blob.from_string(value.encode()), 0o120000
            else:
                blob, mode = Blob.from_string(value), 0o100644
            store.add_object(blob)
            tree.add(name.encode(), mode, blob.id)
        store.add_object(tree)
        return tree.id

    return write(root)


class Upstream:
    """A skeleton repository whose branches hold complete file sets."""

    def __init__(self, path):
        self.path = path
        self.repo = Repo.init(str(path), mkdir=True)
        self.repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")

    @property
    def url(self) -> str:
        return str(self.path)

    def commit(self, files, branch="main", message=b"update skeleton") -> str:
        """Commit *files* as the complete content of *branch*."""
        ref = b"refs/heads/" + branch.encode()
        c = Commit()
        c.tree = _build_tree(self.repo.object_store, files)
        c.parents = [self.repo.refs[ref]] if ref in self.repo.refs else []
        c.author = c.committer = IDENTITY
        c.author_time = c.commit_time = int(time.time())
        c.author_timezone = c.commit_timezone = 0
        c.encoding = b"UTF-8"
        c.message = message
        self.repo.object_store.add_object(c)
        self.repo.refs[ref] = c.id
        return c.id.decode()

    def tag(self, name, commit_id, annotated=False):
        sha = commit_id.encode()
        if annotated:
            tag = Tag()
            tag.name = name.encode()
            tag.object = (Commit, sha)
            tag.tagger = IDENTITY
            tag.tag_time = int(time.time())
            tag.tag_timezone = 0
            tag.message = b"release\n"
            self.repo.object_store.add_object(tag)
            sha = tag.id
        self.repo.refs[b"refs/tags/" + name.encode()] = sha

    def head(self, branch="main") -> str:
        return self.repo.refs[b"refs/heads/" + branch.encode()].decode()


def commit_target(target: TargetRepo, message=b"sync skeleton"):
    """Stage every file of the target working tree and commit it."""
    paths = []
    for dirpath, dirnames, filenames in os.walk(target.root):
        if ".git" in dirnames:
            dirnames.remove(".git")
        paths.extend(os.path.join(dirpath, f) for f in filenames)
    porcelain.add(str(target.root), paths=paths)
    porcelain.commit(str(target.root), message=message,
                     author=IDENTITY, committer=IDENTITY)


def tree_digest(root) -> str:
    """Hash every path, link target and file content under *root*."""
    entries = []
    for dirpath, dirnames, filenames in os.walk(root):
        if ".git" in dirnames:
            dirnames.remove(".git")
        entries.append((os.path.relpath(dirpath, root), dirpath, sorted(filenames)))

    h = hashlib.sha256()
    for rel_dir, dirpath, filenames in sorted(entries):
        h.update(rel_dir.encode() + b"/\0")
        for name in filenames:
            full = os.path.join(dirpath, name)
            h.update(name.encode() + b"\0")
            if os.path.islink(full):
                h.update(b"link:" + os.readlink(full).encode())
            else:
                with open(full, "rb") as f:
                    h.update(f.read())
    return h.hexdigest()


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

SKELETON = {
    "README": b"skeleton readme\n",
    "ci.yml": b"ci: v1\n",
}


@pytest.fixture
def upstream(tmp_path):
    """An upstream repository with README and ci.yml on 'main'."""
    up = Upstream(tmp_path / "skeleton")
    up.commit(SKELETON, message=b"initial skeleton")
    return up


@pytest.fixture
def target(tmp_path):
    """An empty, freshly initialized target repository."""
    path = tmp_path / "project"
    Repo.init(str(path), mkdir=True)
    return TargetRepo.discover(path)


@pytest.fixture
def runner():
    return CliRunner()

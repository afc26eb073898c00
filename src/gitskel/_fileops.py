"""Copy/delete primitives with a dry-run variant.

Each primitive classifies its risk against the target's working tree
when ``dry_run`` is set, and mutates the target otherwise.  Existence is
always decided by ``lstat``: a dangling symlink counts as present.
"""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from ._status import PathStatus, TargetTree, local_file_oid


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class OperationKind(str, Enum):
    """Kind of file operation: ``COPY`` or ``DELETE``."""
    COPY = "copy"
    DELETE = "delete"

    def __str__(self) -> str:          # noqa: D105
        return self.value


class Risk(str, Enum):
    """Risk of applying an operation to the target."""
    CLEAN = "clean"
    UNTRACKED = "untracked"
    LOCALLY_MODIFIED = "locally-modified"
    IGNORED = "ignored"
    MISSING = "missing"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @property
    def unsafe(self) -> bool:
        """``True`` when applying would clobber unreviewed target content."""
        return self in (Risk.UNTRACKED, Risk.LOCALLY_MODIFIED)


@dataclass
class Outcome:
    """Dry-run classification of one operation.

    Attributes:
        kind: :class:`OperationKind` of the operation.
        path: Relative path (forward slashes).
        risk: :class:`Risk` of applying it.
    """
    kind: OperationKind
    path: str
    risk: Risk

    @property
    def unsafe(self) -> bool:
        return self.risk.unsafe

    @property
    def indicator(self) -> str:
        if self.risk is Risk.IGNORED:
            return " ignore"
        if self.risk is Risk.MISSING:
            return "missing"
        mark = "!" if self.unsafe else " "
        return f"{mark}{self.kind.value:<6}"

    def __str__(self) -> str:
        return f"  {self.indicator}: {self.path}"


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

def _risk_from_status(status: PathStatus) -> Risk:
    if status is PathStatus.CLEAN:
        return Risk.CLEAN
    if status is PathStatus.MODIFIED:
        return Risk.LOCALLY_MODIFIED
    return Risk.UNTRACKED


def _risk_without_status(full: Path) -> Risk:
    """Classify by existence alone when no status oracle can answer.

    Anything already on disk is treated as unreviewed content.
    """
    return Risk.UNTRACKED if os.path.lexists(full) else Risk.CLEAN


def classify(target: TargetTree, rel_path: str) -> Risk:
    """Risk of overwriting or removing *rel_path* in *target*."""
    status = target.status(rel_path)
    if status is None:
        return _risk_without_status(target.root / rel_path)
    return _risk_from_status(status)


def _blocking_ancestor(root: Path, rel_path: str) -> str | None:
    """Nearest existing non-directory parent of *rel_path*, if any."""
    parts = rel_path.split("/")
    for depth in range(len(parts) - 1, 0, -1):
        parent = "/".join(parts[:depth])
        full = root / parent
        if os.path.lexists(full) and (full.is_symlink() or not full.is_dir()):
            return parent
    return None


def _copy_risk(target: TargetTree, rel_path: str) -> Risk:
    """Risk of the destination itself, or of a file that must make way for it."""
    risk = classify(target, rel_path)
    blocker = _blocking_ancestor(target.root, rel_path)
    if blocker is not None and not risk.unsafe:
        risk = classify(target, blocker)
    return risk


def differs(src: Path, dst: Path) -> bool:
    """True if *dst* is missing or its content differs from *src*.

    Symlinks compare by link target, regular files by blob id.
    """
    if not os.path.lexists(dst):
        return True
    if src.is_symlink() != dst.is_symlink():
        return True
    if dst.is_dir() and not dst.is_symlink():
        return True
    return local_file_oid(src) != local_file_oid(dst)


# ---------------------------------------------------------------------------
# Primitives
# ---------------------------------------------------------------------------

def copy(source_root: Path, target: TargetTree, rel_path: str, *,
         dry_run: bool, ignored: bool) -> Outcome | None:
    """Copy *rel_path* from *source_root* into *target*.

    Returns ``None`` when the two sides are already identical.
    """
    src = Path(source_root) / rel_path
    dst = target.root / rel_path
    if not differs(src, dst):
        return None

    if dry_run:
        risk = Risk.IGNORED if ignored else _copy_risk(target, rel_path)
        return Outcome(OperationKind.COPY, rel_path, risk)

    if not ignored:
        _materialize(src, dst, target.root)
    return Outcome(OperationKind.COPY, rel_path,
                   Risk.IGNORED if ignored else Risk.CLEAN)


def delete(target: TargetTree, rel_path: str, *,
           dry_run: bool, ignored: bool) -> Outcome:
    """Remove *rel_path* from *target* and prune emptied parents."""
    dst = target.root / rel_path

    if dry_run:
        if ignored:
            risk = Risk.IGNORED
        elif not os.path.lexists(dst):
            risk = Risk.MISSING
        else:
            risk = classify(target, rel_path)
        return Outcome(OperationKind.DELETE, rel_path, risk)

    if ignored:
        return Outcome(OperationKind.DELETE, rel_path, Risk.IGNORED)
    if not os.path.lexists(dst):
        return Outcome(OperationKind.DELETE, rel_path, Risk.MISSING)
    _remove(dst)
    _prune_empty_parents(dst, target.root)
    return Outcome(OperationKind.DELETE, rel_path, Risk.CLEAN)


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------

def _materialize(src: Path, dst: Path, root: Path) -> None:
    """Write *src* to *dst*, reproducing symlinks as symlinks.

    Blocking paths are cleared first: a file or link where a parent
    directory must go, or a directory where the file must go.
    """
    for parent in dst.parents:
        if parent == root:
            break
        if os.path.lexists(parent) and (parent.is_symlink() or not parent.is_dir()):
            parent.unlink()
            break
    if dst.is_dir() and not dst.is_symlink():
        shutil.rmtree(dst)
    dst.parent.mkdir(parents=True, exist_ok=True)
    if os.path.lexists(dst):
        dst.unlink()
    if src.is_symlink():
        os.symlink(os.readlink(src), dst)
    else:
        shutil.copy(src, dst)


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _prune_empty_parents(path: Path, root: Path) -> None:
    """Remove now-empty directories above *path*, stopping at *root*."""
    for parent in path.parents:
        if parent == root or root not in parent.parents:
            break
        if any(parent.iterdir()):
            break
        parent.rmdir()

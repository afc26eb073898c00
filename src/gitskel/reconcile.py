"""Reconciliation engine: plan file operations and run them in two passes.

The plan is a list of :class:`Change` (copy or delete of one path).  It
is executed twice: a dry-run pass classifies and reports every change,
then, unless an unsafe change was found and ``force`` is off, an apply
pass performs them.  Nothing is cached between the passes; the only
shared state is whether the dry run saw anything unsafe.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from . import _fileops
from ._fileops import OperationKind, Outcome, Risk
from ._ignore import IgnorePolicy
from ._status import TargetTree
from .exceptions import AbortByConflict, UnsupportedChange
from .snapshot import DiffEntry, DiffStatus, Snapshot


class State(str, Enum):
    IDLE = "idle"
    DRY_RUN = "dry-run"
    ABORTED = "aborted"
    APPLYING = "applying"
    DONE = "done"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True)
class Change:
    """A pending copy or delete of one path."""
    kind: OperationKind
    path: str


@dataclass
class SyncResult:
    """What a reconciliation did.

    Attributes:
        operations: Dry-run outcomes, one per reported path.
        applied: Number of operations performed by the apply pass.
        state: Final :class:`State`.
    """
    operations: list[Outcome] = field(default_factory=list)
    applied: int = 0
    state: State = State.IDLE

    @property
    def unsafe(self) -> list[Outcome]:
        return [op for op in self.operations if op.unsafe]

    @property
    def in_sync(self) -> bool:
        return not self.operations


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

def plan_init(snapshot: Snapshot) -> list[Change]:
    """Copy every file of the snapshot."""
    return [Change(OperationKind.COPY, p) for p in snapshot.files]


def plan_clean(snapshot: Snapshot) -> list[Change]:
    """Delete every file of the snapshot."""
    return [Change(OperationKind.DELETE, p) for p in snapshot.files]


def plan_from_diff(entries: Iterable[DiffEntry]) -> list[Change]:
    """Map upstream changes to target operations.

    Added and modified paths are copied, deleted paths are deleted.
    """
    changes: list[Change] = []
    for entry in entries:
        if entry.status in (DiffStatus.ADDED, DiffStatus.MODIFIED):
            changes.append(Change(OperationKind.COPY, entry.path))
        elif entry.status is DiffStatus.DELETED:
            changes.append(Change(OperationKind.DELETE, entry.path))
        else:
            raise UnsupportedChange(str(entry.status), entry.path)
    return changes


def plan_update(snapshot: Snapshot, revision: str) -> list[Change]:
    """Changes from the tracked *revision* to the snapshot head."""
    return plan_from_diff(snapshot.diff(revision))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class Reconciler:
    """Run a plan against a target in dry-run then apply passes."""

    def __init__(
        self,
        source_root: str | Path,
        target: TargetTree,
        changes: list[Change],
        *,
        policy: IgnorePolicy | None = None,
        force: bool = False,
        progress: Callable[[str], None] | None = None,
    ):
        self.source_root = Path(source_root)
        self.target = target
        self.changes = changes
        self.policy = policy if policy is not None else IgnorePolicy.from_roots(
            self.source_root, target.root,
        )
        self.force = force
        self._progress = progress
        self.state = State.IDLE

    def _emit(self, msg: str) -> None:
        if self._progress is not None:
            self._progress(msg)

    def _run_one(self, change: Change, dry_run: bool) -> Outcome | None:
        ignored = self.policy.matches(change.path)
        if change.kind is OperationKind.COPY:
            return _fileops.copy(self.source_root, self.target, change.path,
                                 dry_run=dry_run, ignored=ignored)
        return _fileops.delete(self.target, change.path,
                               dry_run=dry_run, ignored=ignored)

    def dry_run(self) -> list[Outcome]:
        """Classify and report every change without touching the target."""
        self.state = State.DRY_RUN
        self._emit("Detect changes")
        outcomes: list[Outcome] = []
        for change in self.changes:
            outcome = self._run_one(change, dry_run=True)
            if outcome is None:
                continue
            outcomes.append(outcome)
            self._emit(str(outcome))
        return outcomes

    def apply(self) -> int:
        """Perform every change; return how many actually touched the target."""
        self.state = State.APPLYING
        self._emit("Apply changes")
        applied = 0
        for change in self.changes:
            outcome = self._run_one(change, dry_run=False)
            if outcome is not None and outcome.risk not in (Risk.IGNORED, Risk.MISSING):
                applied += 1
        self.state = State.DONE
        return applied

    def run(self) -> SyncResult:
        """Dry run, gate on unsafe operations, then apply.

        Raises :class:`AbortByConflict` before any mutation when the dry
        run found unsafe operations and ``force`` is off.
        """
        result = SyncResult(operations=self.dry_run())
        unsafe = result.unsafe
        if unsafe and not self.force:
            self.state = result.state = State.ABORTED
            raise AbortByConflict([op.path for op in unsafe])
        result.applied = self.apply()
        result.state = self.state
        return result

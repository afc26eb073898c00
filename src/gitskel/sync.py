"""Command flows: init, update, branch, tag, clean.

Each flow loads (or creates) the tracking record, acquires a snapshot of
the upstream, reconciles the target against it, and writes the record
back only after the apply pass has completed.
"""

from __future__ import annotations

from collections.abc import Callable

from ._status import TargetTree
from .reconcile import Change, Reconciler, SyncResult, plan_clean, plan_init, plan_update
from .record import Selector, TrackingRecord
from .snapshot import Snapshot, acquire

Progress = Callable[[str], None]


def _reconcile(snapshot: Snapshot, target: TargetTree, changes: list[Change],
               force: bool, progress: Progress | None) -> SyncResult:
    return Reconciler(snapshot.root, target, changes,
                      force=force, progress=progress).run()


def init(
    target: TargetTree,
    url: str,
    selector: Selector | None = None,
    *,
    force: bool = False,
    progress: Progress | None = None,
) -> tuple[TrackingRecord, SyncResult]:
    """Install the skeleton at *url* into *target* and start tracking it."""
    TrackingRecord.check_absent(target.root)
    selector = selector if selector is not None else Selector.default()
    with acquire(url, selector) as snapshot:
        result = _reconcile(snapshot, target, plan_init(snapshot), force, progress)
        record = TrackingRecord(url=url, selector=selector, revision=snapshot.head)
    record.save(target.root)
    return record, result


def _advance(
    target: TargetTree,
    record: TrackingRecord,
    previous: TrackingRecord,
    force: bool,
    progress: Progress | None,
) -> tuple[TrackingRecord, SyncResult]:
    """Reconcile from ``record.revision`` to the head *record* selects."""
    with acquire(record.url, record.selector) as snapshot:
        changes = plan_update(snapshot, record.revision)
        result = _reconcile(snapshot, target, changes, force, progress)
        record = record.with_revision(snapshot.head)
    if record != previous:
        record.save(target.root)
    return record, result


def update(
    target: TargetTree,
    *,
    force: bool = False,
    progress: Progress | None = None,
) -> tuple[TrackingRecord, SyncResult]:
    """Move *target* to the latest upstream commit of its selector."""
    record = TrackingRecord.load(target.root)
    return _advance(target, record, record, force, progress)


def switch_branch(
    target: TargetTree,
    name: str,
    *,
    force: bool = False,
    progress: Progress | None = None,
) -> tuple[TrackingRecord, SyncResult]:
    """Track branch *name* and reconcile from the current revision."""
    record = TrackingRecord.load(target.root)
    return _advance(target, record.with_branch(name), record, force, progress)


def switch_tag(
    target: TargetTree,
    name: str,
    *,
    force: bool = False,
    progress: Progress | None = None,
) -> tuple[TrackingRecord, SyncResult]:
    """Track tag *name* and reconcile from the current revision."""
    record = TrackingRecord.load(target.root)
    return _advance(target, record.with_tag(name), record, force, progress)


def clean(
    target: TargetTree,
    *,
    force: bool = False,
    progress: Progress | None = None,
) -> tuple[TrackingRecord, SyncResult]:
    """Remove every skeleton file and stop tracking."""
    record = TrackingRecord.load(target.root)
    with acquire(record.url, record.selector) as snapshot:
        result = _reconcile(snapshot, target, plan_clean(snapshot), force, progress)
    TrackingRecord.delete(target.root)
    return record, result

from ._fileops import OperationKind, Outcome, Risk
from ._ignore import IGNORE_FILE, RECORD_FILE, IgnorePolicy, Side
from ._status import PathStatus, TargetRepo, TargetTree
from .exceptions import (
    AbortByConfigExists,
    AbortByConflict,
    BranchNotFound,
    ConfigLoadFailed,
    ConfigSaveFailed,
    GitSkelError,
    RepoCloneFailed,
    RepoDiscoveryFailed,
    RevisionNotFound,
    TagNotFound,
    UnsupportedChange,
)
from .reconcile import Change, Reconciler, State, SyncResult
from .record import Selector, SelectorKind, TrackingRecord
from .snapshot import DiffEntry, DiffStatus, Snapshot, acquire
from .sync import clean, init, switch_branch, switch_tag, update

__all__ = [
    "OperationKind", "Outcome", "Risk",
    "IGNORE_FILE", "RECORD_FILE", "IgnorePolicy", "Side",
    "PathStatus", "TargetRepo", "TargetTree",
    "GitSkelError", "RepoDiscoveryFailed", "RepoCloneFailed",
    "BranchNotFound", "TagNotFound", "RevisionNotFound",
    "ConfigLoadFailed", "ConfigSaveFailed",
    "AbortByConflict", "AbortByConfigExists", "UnsupportedChange",
    "Change", "Reconciler", "State", "SyncResult",
    "Selector", "SelectorKind", "TrackingRecord",
    "DiffEntry", "DiffStatus", "Snapshot", "acquire",
    "init", "update", "switch_branch", "switch_tag", "clean",
]

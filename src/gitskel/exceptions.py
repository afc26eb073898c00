"""Exceptions for gitskel.

Every failure surfaces as a :class:`GitSkelError` subclass.  Layers that
wrap a lower-level failure chain it with ``raise ... from exc`` so the
CLI can print the full cause chain.
"""

from __future__ import annotations


class GitSkelError(Exception):
    """Base class for all gitskel errors."""


class RepoDiscoveryFailed(GitSkelError):
    """Raised when no git working tree encloses the target directory."""

    def __init__(self, start: str):
        super().__init__("failed to discover current repository")
        self.start = start


class RepoCloneFailed(GitSkelError):
    def __init__(self, url: str):
        super().__init__(f"failed to clone upstream repository: {url}")
        self.url = url


class BranchNotFound(GitSkelError):
    def __init__(self, name: str):
        super().__init__(f"failed to find branch: {name}")
        self.name = name


class TagNotFound(GitSkelError):
    def __init__(self, name: str):
        super().__init__(f"failed to find tag: {name}")
        self.name = name


class RevisionNotFound(GitSkelError):
    """Raised when the tracked revision no longer resolves upstream."""

    def __init__(self, revision: str):
        super().__init__(f"failed to find revision: {revision}")
        self.revision = revision


class ConfigLoadFailed(GitSkelError):
    def __init__(self, path: str):
        super().__init__(f"failed to load config: {path}")
        self.path = path


class ConfigSaveFailed(GitSkelError):
    def __init__(self, path: str):
        super().__init__(f"failed to save config: {path}")
        self.path = path


class AbortByConflict(GitSkelError):
    """Raised after a dry run found unsafe operations and force was not set.

    Nothing in the target has been modified when this is raised.
    """

    def __init__(self, paths: list[str]):
        super().__init__(
            "aborted because some files are modified locally or not "
            "committed (marked by !)\n"
            "       If you will ignore it, use `--force` option."
        )
        self.paths = paths


class AbortByConfigExists(GitSkelError):
    def __init__(self, path: str):
        super().__init__(f"aborted because config file exists: {path}")
        self.path = path


class UnsupportedChange(GitSkelError):
    """Raised for tree-diff change kinds other than add, modify, delete."""

    def __init__(self, kind: str, path: str):
        super().__init__(f"unsupported change {kind!r} for path: {path}")
        self.kind = kind
        self.path = path

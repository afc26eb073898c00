"""Tracking record: upstream URL, selector, and last synchronized revision.

The record lives in ``.gitskel.toml`` at the target repository root::

    url = "https://example.com/skeleton.git"
    branch = "main"          # or: tag = "v1.0"  (never both)
    revision = "3f2c..."
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

import tomli_w

from ._ignore import RECORD_FILE
from .exceptions import AbortByConfigExists, ConfigLoadFailed, ConfigSaveFailed


class SelectorKind(str, Enum):
    """Kind of upstream ref: ``BRANCH``, ``TAG``, or ``DEFAULT`` (remote HEAD)."""
    BRANCH = "branch"
    TAG = "tag"
    DEFAULT = "default"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True)
class Selector:
    """Which upstream commit to track.

    Attributes:
        kind: :class:`SelectorKind` value.
        name: Branch or tag name; ``None`` for ``DEFAULT``.
    """
    kind: SelectorKind = SelectorKind.DEFAULT
    name: str | None = None

    def __post_init__(self) -> None:
        if self.kind is SelectorKind.DEFAULT:
            if self.name is not None:
                raise ValueError("Default selector takes no name")
        elif not self.name:
            raise ValueError(f"{self.kind} selector requires a name")

    @classmethod
    def branch(cls, name: str) -> Selector:
        return cls(SelectorKind.BRANCH, name)

    @classmethod
    def tag(cls, name: str) -> Selector:
        return cls(SelectorKind.TAG, name)

    @classmethod
    def default(cls) -> Selector:
        return cls()

    @classmethod
    def from_options(cls, branch: str | None = None,
                     tag: str | None = None) -> Selector:
        """Build a selector from optional branch/tag values (at most one)."""
        if branch is not None and tag is not None:
            raise ValueError("branch and tag are mutually exclusive")
        if branch is not None:
            return cls.branch(branch)
        if tag is not None:
            return cls.tag(tag)
        return cls.default()

    def __str__(self) -> str:
        if self.kind is SelectorKind.DEFAULT:
            return "HEAD"
        return f"{self.kind} {self.name}"


@dataclass(frozen=True)
class TrackingRecord:
    """Persisted synchronization state of a target repository."""
    url: str
    selector: Selector
    revision: str

    # -- selector changes ---------------------------------------------------

    def with_branch(self, name: str) -> TrackingRecord:
        """Return a copy tracking branch *name* (any tag is cleared)."""
        return replace(self, selector=Selector.branch(name))

    def with_tag(self, name: str) -> TrackingRecord:
        """Return a copy tracking tag *name* (any branch is cleared)."""
        return replace(self, selector=Selector.tag(name))

    def with_revision(self, revision: str) -> TrackingRecord:
        return replace(self, revision=revision)

    # -- serialization ------------------------------------------------------

    def to_dict(self) -> dict[str, str]:
        data = {"url": self.url}
        if self.selector.kind is SelectorKind.BRANCH:
            data["branch"] = self.selector.name
        elif self.selector.kind is SelectorKind.TAG:
            data["tag"] = self.selector.name
        data["revision"] = self.revision
        return data

    @classmethod
    def from_dict(cls, data: dict) -> TrackingRecord:
        for key in ("url", "revision"):
            if not isinstance(data.get(key), str):
                raise ValueError(f"missing or invalid key: {key}")
        selector = Selector.from_options(data.get("branch"), data.get("tag"))
        return cls(url=data["url"], selector=selector, revision=data["revision"])

    # -- persistence --------------------------------------------------------

    @staticmethod
    def path_for(root: str | Path) -> Path:
        """Location of the record file under the target *root*."""
        return Path(root) / RECORD_FILE

    @classmethod
    def exists(cls, root: str | Path) -> bool:
        return cls.path_for(root).exists()

    @classmethod
    def check_absent(cls, root: str | Path) -> None:
        """Raise :class:`AbortByConfigExists` if a record is already present."""
        if cls.exists(root):
            raise AbortByConfigExists(str(cls.path_for(root)))

    @classmethod
    def load(cls, root: str | Path) -> TrackingRecord:
        path = cls.path_for(root)
        try:
            with open(path, "rb") as f:
                return cls.from_dict(tomllib.load(f))
        except (OSError, tomllib.TOMLDecodeError, ValueError) as exc:
            raise ConfigLoadFailed(str(path)) from exc

    def save(self, root: str | Path) -> None:
        path = self.path_for(root)
        try:
            path.write_bytes(tomli_w.dumps(self.to_dict()).encode("utf-8"))
        except OSError as exc:
            raise ConfigSaveFailed(str(path)) from exc

    @classmethod
    def delete(cls, root: str | Path) -> None:
        cls.path_for(root).unlink()

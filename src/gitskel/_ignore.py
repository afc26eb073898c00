"""Ignore policy for both sides of a synchronization.

Each repository root may carry a ``.gitskelignore`` file.  Its patterns
follow gitignore rules (implemented by ``dulwich.ignore.IgnoreFilter``).
The tracking record and the ignore file itself are always ignored.

A path is skipped when *either* side ignores it.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Sequence

from dulwich.ignore import IgnoreFilter

IGNORE_FILE = ".gitskelignore"
RECORD_FILE = ".gitskel.toml"

# Patterns applied on both sides regardless of the ignore files.
_IMPLICIT = (f"/{RECORD_FILE}", f"/{IGNORE_FILE}")


class Side(str, Enum):
    """Which repository an ignore rule set belongs to."""
    SOURCE = "source"
    TARGET = "target"

    def __str__(self) -> str:          # noqa: D105
        return self.value


def _read_patterns(path: Path) -> list[bytes]:
    """Read non-empty, non-comment lines from an ignore file."""
    lines: list[bytes] = []
    for raw in path.read_bytes().splitlines():
        line = raw.rstrip(b"\r")
        if line.strip() and not line.startswith(b"#"):
            lines.append(line)
    return lines


class RuleSet:
    """Gitignore-style rules of one repository root."""

    def __init__(self, patterns: Sequence[str | bytes] = ()) -> None:
        # Implicit rules go last so no user negation can re-include them.
        lines = [p.encode("utf-8") if isinstance(p, str) else p
                 for p in (*patterns, *_IMPLICIT)]
        self._filter = IgnoreFilter(lines)

    @classmethod
    def from_root(cls, root: str | Path) -> RuleSet:
        """Load ``.gitskelignore`` from *root* if it exists."""
        path = Path(root) / IGNORE_FILE
        if path.is_file():
            return cls(_read_patterns(path))
        return cls()

    def matches(self, rel_path: str) -> bool:
        """Check *rel_path* and every parent directory against the rules.

        Parents are checked root first; a parent match ignores everything
        below it, an explicit negation on the path itself re-includes it.
        """
        parts = rel_path.strip("/").split("/")
        for depth in range(1, len(parts)):
            parent = "/".join(parts[:depth]) + "/"
            if self._filter.is_ignored(parent) is True:
                return True
        return self._filter.is_ignored("/".join(parts)) is True


class IgnorePolicy:
    """Union of the source-side and target-side rule sets."""

    def __init__(self, source: RuleSet | None = None,
                 target: RuleSet | None = None) -> None:
        self._sides = {
            Side.SOURCE: source if source is not None else RuleSet(),
            Side.TARGET: target if target is not None else RuleSet(),
        }

    @classmethod
    def from_roots(cls, source_root: str | Path,
                   target_root: str | Path) -> IgnorePolicy:
        return cls(RuleSet.from_root(source_root), RuleSet.from_root(target_root))

    def is_ignored(self, side: Side, rel_path: str) -> bool:
        """True if *side*'s rules ignore *rel_path*."""
        return self._sides[Side(side)].matches(rel_path)

    def matches(self, rel_path: str) -> bool:
        """True if either side ignores *rel_path*."""
        return any(rules.matches(rel_path) for rules in self._sides.values())

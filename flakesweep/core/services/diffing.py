"""
Line diffs for the proposed flake.nix rewrite.

``line_diff`` produces the full line-level diff; ``reduce_context`` keeps
only the changed lines and a window of unchanged lines around each, the
way ``diff -U`` does, but without hunk headers.
"""

from __future__ import annotations

import difflib
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum


class LineKind(StrEnum):
    REMOVED = "-"
    ADDED = "+"
    UNCHANGED = " "


@dataclass(frozen=True, eq=False)
class DiffLine:
    """One line of a diff. Compared by identity: equal text at two
    positions is two different lines."""

    kind: LineKind
    text: str

    @property
    def changed(self) -> bool:
        return self.kind is not LineKind.UNCHANGED

    def render(self) -> str:
        return f"{self.kind.value}{self.text}"


def line_diff(old: str, new: str) -> list[DiffLine]:
    """Full line diff of ``old`` against ``new``, removals before additions."""
    a = old.splitlines()
    b = new.splitlines()
    result: list[DiffLine] = []

    matcher = difflib.SequenceMatcher(None, a, b, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            result.extend(DiffLine(LineKind.UNCHANGED, line) for line in a[i1:i2])
            continue
        if tag in ("replace", "delete"):
            result.extend(DiffLine(LineKind.REMOVED, line) for line in a[i1:i2])
        if tag in ("replace", "insert"):
            result.extend(DiffLine(LineKind.ADDED, line) for line in b[j1:j2])

    return result


def reduce_context(diff: Sequence[DiffLine], context: int) -> list[DiffLine]:
    """Keep changed lines plus up to ``context`` lines either side of each.

    Overlapping windows merge; every input line appears at most once and
    in its original order. Empty iff ``diff`` has no changes.
    """
    if context < 0:
        raise ValueError(f"context must be >= 0, got {context}")

    keep: set[int] = set()
    for idx, line in enumerate(diff):
        if line.changed:
            keep.update(range(max(0, idx - context), min(len(diff), idx + context + 1)))

    return [diff[idx] for idx in sorted(keep)]


def windowed_diff(old: str, new: str, context: int) -> list[DiffLine]:
    return reduce_context(line_diff(old, new), context)

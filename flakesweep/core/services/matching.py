"""
Match engine — does a workspace's locked input already satisfy the target?

Three independent axes plus a freshness rule:

    ref   original ref (branch/tag) equals the target's
    rev   locked revision equals the target's
    url   locked tarball URL equals the target's (git kinds have none)

Revision and URL are content- or commit-addressed, so either one alone
settles it. A matching ref only counts when the lock was updated within
the freshness window: a branch name says nothing about where it pointed
when the lock was written.

Pure logic — no side effects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from flakesweep.core.errors import FormatError
from flakesweep.core.models.lockfile import LockedState, LockfileNode
from flakesweep.core.models.target import MatchTarget

logger = logging.getLogger(__name__)


class RenderState(StrEnum):
    """How a compared field should be shown."""

    AGREE = "agree"
    DISAGREE = "disagree"
    HIDDEN = "hidden"


@dataclass(frozen=True)
class MatchResult:
    """Per-axis verdicts for one workspace against the target."""

    ref_ok: bool
    rev_ok: bool
    url_ok: bool
    ref_fresh_ok: bool

    @property
    def overall(self) -> bool:
        return (self.ref_ok and self.ref_fresh_ok) or self.rev_ok or self.url_ok

    def render_states(self) -> dict[str, RenderState]:
        """Colour slot per field.

        ``ref`` and ``rev`` share a slot: once ref agreed, an agreeing rev
        is not shown again. Disagreement always shows.
        """
        if not self.rev_ok:
            rev = RenderState.DISAGREE
        elif self.ref_ok:
            rev = RenderState.HIDDEN
        else:
            rev = RenderState.AGREE

        return {
            "ref": RenderState.AGREE if self.ref_ok else RenderState.DISAGREE,
            "rev": rev,
            "url": RenderState.AGREE if self.url_ok else RenderState.DISAGREE,
        }

    def to_dict(self) -> dict:
        return {
            "ref_ok": self.ref_ok,
            "rev_ok": self.rev_ok,
            "url_ok": self.url_ok,
            "ref_fresh_ok": self.ref_fresh_ok,
            "overall": self.overall,
        }


def last_modified_at(locked: LockedState) -> datetime | None:
    """``lastModified`` as an aware datetime.

    Raises:
        FormatError: If the timestamp cannot be represented.
    """
    if locked.last_modified is None:
        return None
    try:
        return datetime.fromtimestamp(locked.last_modified, UTC)
    except (OverflowError, OSError, ValueError) as e:
        raise FormatError(f"lastModified {locked.last_modified} is out of range: {e}") from e


def _both_equal(candidate: str | None, target: str | None) -> bool:
    return candidate is not None and candidate == target


def match_node(
    candidate: LockfileNode,
    target: MatchTarget,
    freshness_window: timedelta,
    now: datetime | None = None,
) -> MatchResult:
    """Compare a workspace's input node against the target."""
    now = now or datetime.now(UTC)

    ref_ok = _both_equal(candidate.original.git_ref(), target.original().git_ref())
    rev_ok = _both_equal(candidate.locked.rev, target.locked().rev)
    url_ok = _both_equal(candidate.locked.url_excluding_git(), target.locked().url_excluding_git())

    modified = last_modified_at(candidate.locked)
    ref_fresh_ok = modified is not None and (now - modified) < freshness_window

    result = MatchResult(ref_ok=ref_ok, rev_ok=rev_ok, url_ok=url_ok, ref_fresh_ok=ref_fresh_ok)
    logger.debug("Match %s", result.to_dict())
    return result

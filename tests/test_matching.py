"""
Tests for the match engine.
"""

from datetime import UTC, datetime, timedelta

import pytest

from flakesweep.core.errors import FormatError
from flakesweep.core.models.lockfile import LockfileNode, decode_locked, decode_original
from flakesweep.core.models.target import NestedInputTarget, RootTarget
from flakesweep.core.services.matching import (
    MatchResult,
    RenderState,
    last_modified_at,
    match_node,
)

from tests.lockdocs import NIXPKGS_REV, OLD_REV, TARGET_URL, github_node

MODIFIED = 1_700_000_000
MODIFIED_AT = datetime.fromtimestamp(MODIFIED, UTC)
WINDOW = timedelta(days=30)


def _target(rev: str = NIXPKGS_REV, ref: str | None = "nixos-24.11") -> NestedInputTarget:
    return NestedInputTarget(
        node=LockfileNode.from_json(github_node(rev, ref=ref)),
        canonical_url=TARGET_URL,
    )


def _candidate(rev: str = OLD_REV, ref: str | None = "nixos-24.11", modified: int = MODIFIED) -> LockfileNode:
    return LockfileNode.from_json(github_node(rev, ref=ref, last_modified=modified))


def _tarball(url: str) -> LockfileNode:
    return LockfileNode.from_json(
        {
            "locked": {"type": "tarball", "url": url, "lastModified": MODIFIED},
            "original": {"type": "tarball", "url": url},
        }
    )


# ── Axes ─────────────────────────────────────────────────────────


class TestMatchNode:
    def test_same_rev_matches(self):
        result = match_node(_candidate(rev=NIXPKGS_REV, ref=None), _target(), WINDOW, now=MODIFIED_AT)
        assert result.rev_ok
        assert not result.ref_ok
        assert result.overall

    def test_fresh_ref_matches(self):
        now = MODIFIED_AT + timedelta(days=1)
        result = match_node(_candidate(), _target(), WINDOW, now=now)
        assert result.ref_ok
        assert result.ref_fresh_ok
        assert not result.rev_ok
        assert result.overall

    def test_stale_ref_does_not_match(self):
        now = MODIFIED_AT + timedelta(days=60)
        result = match_node(_candidate(), _target(), WINDOW, now=now)
        assert result.ref_ok
        assert not result.ref_fresh_ok
        assert not result.overall

    def test_window_boundary(self):
        just_inside = match_node(_candidate(), _target(), WINDOW, now=MODIFIED_AT + WINDOW - timedelta(seconds=1))
        at_edge = match_node(_candidate(), _target(), WINDOW, now=MODIFIED_AT + WINDOW)
        assert just_inside.ref_fresh_ok
        assert not at_edge.ref_fresh_ok

    def test_future_lock_is_fresh(self):
        result = match_node(_candidate(), _target(), WINDOW, now=MODIFIED_AT - timedelta(days=1))
        assert result.ref_fresh_ok

    def test_different_ref(self):
        result = match_node(_candidate(ref="nixos-24.05"), _target(), WINDOW, now=MODIFIED_AT)
        assert not result.ref_ok
        assert not result.overall

    def test_both_without_ref_is_not_a_match(self):
        result = match_node(_candidate(ref=None), _target(ref=None), WINDOW, now=MODIFIED_AT)
        assert not result.ref_ok

    def test_tarball_url(self):
        url = "https://github.com/NixOS/nixpkgs/archive/abc.tar.gz"
        target = NestedInputTarget(node=_tarball(url), canonical_url=url)
        result = match_node(_tarball(url), target, WINDOW, now=MODIFIED_AT)
        assert result.url_ok
        assert result.overall

    def test_git_urls_never_compared(self):
        result = match_node(_candidate(), _target(), WINDOW, now=MODIFIED_AT)
        assert not result.url_ok

    def test_root_target(self):
        target = RootTarget(
            locked_state=decode_locked({"type": "github", "owner": "NixOS", "repo": "nixpkgs", "rev": NIXPKGS_REV}),
            resolved=decode_original({"type": "github", "owner": "NixOS", "repo": "nixpkgs", "ref": "nixos-24.11"}),
            resolved_url=TARGET_URL,
        )
        result = match_node(_candidate(rev=NIXPKGS_REV), target, WINDOW, now=MODIFIED_AT)
        assert result.rev_ok and result.ref_ok

    def test_target_built_from_candidate_matches(self):
        candidate = _candidate()
        target = NestedInputTarget(node=candidate, canonical_url=TARGET_URL)
        result = match_node(candidate, target, WINDOW, now=MODIFIED_AT + timedelta(days=1))
        assert result.rev_ok and result.ref_ok and result.ref_fresh_ok
        assert result.overall

    def test_idempotent(self):
        candidate, target = _candidate(), _target()
        first = match_node(candidate, target, WINDOW, now=MODIFIED_AT)
        second = match_node(candidate, target, WINDOW, now=MODIFIED_AT)
        assert first == second


class TestLastModified:
    def test_converts_to_utc(self):
        assert last_modified_at(_candidate().locked) == MODIFIED_AT

    def test_absent(self):
        locked = decode_locked({"type": "tarball", "url": "https://example.org/x.tar.gz"})
        assert last_modified_at(locked) is None

    def test_absent_is_never_fresh(self):
        node = LockfileNode.from_json(
            {
                "locked": {"type": "github", "owner": "NixOS", "repo": "nixpkgs", "rev": OLD_REV},
                "original": {"type": "github", "owner": "NixOS", "repo": "nixpkgs", "ref": "nixos-24.11"},
            }
        )
        result = match_node(node, _target(), WINDOW, now=MODIFIED_AT)
        assert result.ref_ok
        assert not result.ref_fresh_ok

    def test_out_of_range(self):
        with pytest.raises(FormatError):
            last_modified_at(_candidate(modified=10**15).locked)


# ── Result ───────────────────────────────────────────────────────


class TestMatchResult:
    @pytest.mark.parametrize(
        "ref_ok,rev_ok,url_ok,fresh,expected",
        [
            (False, False, False, False, False),
            (True, False, False, False, False),
            (False, False, False, True, False),
            (True, False, False, True, True),
            (False, True, False, False, True),
            (False, False, True, False, True),
        ],
    )
    def test_overall(self, ref_ok, rev_ok, url_ok, fresh, expected):
        result = MatchResult(ref_ok=ref_ok, rev_ok=rev_ok, url_ok=url_ok, ref_fresh_ok=fresh)
        assert result.overall is expected

    def test_rev_hidden_after_ref(self):
        states = MatchResult(ref_ok=True, rev_ok=True, url_ok=False, ref_fresh_ok=True).render_states()
        assert states["ref"] is RenderState.AGREE
        assert states["rev"] is RenderState.HIDDEN
        assert states["url"] is RenderState.DISAGREE

    def test_rev_shown_without_ref(self):
        states = MatchResult(ref_ok=False, rev_ok=True, url_ok=False, ref_fresh_ok=False).render_states()
        assert states["rev"] is RenderState.AGREE

    def test_rev_disagreement_always_shown(self):
        states = MatchResult(ref_ok=True, rev_ok=False, url_ok=False, ref_fresh_ok=True).render_states()
        assert states["rev"] is RenderState.DISAGREE

    def test_to_dict(self):
        data = MatchResult(ref_ok=False, rev_ok=True, url_ok=False, ref_fresh_ok=False).to_dict()
        assert data["overall"] is True
        assert data["rev_ok"] is True

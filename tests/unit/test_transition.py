# tests/unit/test_transition.py
"""Transition engine: legality table, transformations and CLI request mapping."""

from __future__ import annotations

import itertools

import pytest

from goosectl import errors
from goosectl.version import transition as tr
from goosectl.version.semantic_version import ReleaseLevel, SemanticVersion
from goosectl.version.transition import (
    LEGALITY,
    BumpRelease,
    FinalizeRelease,
    IncrementPrerelease,
    StartPrerelease,
    State,
    TransitionKind,
    TransitionPrerelease,
    apply,
    classify,
    request_from_args,
)


def sv(text: str) -> SemanticVersion:
    return SemanticVersion.parse(text)


# --- worked scenarios --------------------------------------------------------


def test_start_prerelease_from_release():
    nxt = apply(sv("1.2.3"), StartPrerelease(level=ReleaseLevel.MINOR, pre_ident="alpha"))
    assert str(nxt) == "1.3.0-alpha.1"


def test_increment_prerelease_updates_metadata():
    nxt = apply(sv("1.2.3-alpha.1"), IncrementPrerelease(build="build.9"))
    assert str(nxt) == "1.2.3-alpha.2+build.9"


def test_transition_prerelease_forward():
    assert str(apply(sv("1.2.3-alpha.3"), TransitionPrerelease(pre_ident="beta"))) == "1.2.3-beta.1"


def test_finalize_release():
    assert str(apply(sv("1.2.3-rc.4"), FinalizeRelease())) == "1.2.3"


def test_bump_release_major():
    assert str(apply(sv("1.2.3"), BumpRelease(level=ReleaseLevel.MAJOR))) == "2.0.0"


def test_bump_release_fails_on_prerelease():
    with pytest.raises(errors.BumpReleaseFromPrerelease) as exc:
        apply(sv("1.2.3-alpha.1"), BumpRelease(level=ReleaseLevel.MINOR))
    assert "pre-release" in str(exc.value)


# --- more transformations ----------------------------------------------------


def test_increment_prerelease_clears_existing_build():
    assert str(apply(sv("1.2.3-alpha.1+old"), IncrementPrerelease())) == "1.2.3-alpha.2"


def test_finalize_with_build():
    assert str(apply(sv("1.2.3-rc.4"), FinalizeRelease(build="build.1"))) == "1.2.3+build.1"


def test_bump_release_with_build():
    assert str(apply(sv("1.2.3"), BumpRelease(level=ReleaseLevel.PATCH, build="build.7"))) == "1.2.4+build.7"


def test_start_prerelease_replaces_build():
    nxt = apply(sv("1.2.3+ci.1"), StartPrerelease(level=ReleaseLevel.PATCH, pre_ident="rc", build="ci.2"))
    assert str(nxt) == "1.2.4-rc.1+ci.2"


@pytest.mark.parametrize("current", ["1.2.3-beta.2", "1.2.3-beta.1", "1.2.3-rc.1"])
def test_transition_prerelease_rejects_same_or_lower(current):
    with pytest.raises(errors.PrereleaseNotAdvancing):
        apply(sv(current), TransitionPrerelease(pre_ident="beta"))


def test_not_advancing_is_an_advancement_error():
    with pytest.raises(errors.AdvancementError) as exc:
        apply(sv("1.2.3-beta.2"), TransitionPrerelease(pre_ident="beta"))
    assert exc.value.current == "beta.2"
    assert exc.value.target == "beta.1"


def test_invalid_build_is_reported():
    with pytest.raises(errors.MalformedBuild):
        apply(sv("1.2.3"), BumpRelease(level=ReleaseLevel.PATCH, build="not valid"))


def test_invalid_prerelease_identifier_is_reported():
    with pytest.raises(errors.MalformedPrerelease):
        apply(sv("1.2.3"), StartPrerelease(level=ReleaseLevel.PATCH, pre_ident="alpha.1"))


def test_apply_is_deterministic():
    v = sv("0.9.0-rc.1")
    assert apply(v, FinalizeRelease()) == apply(v, FinalizeRelease())
    assert str(v) == "0.9.0-rc.1"


# --- legality grammar --------------------------------------------------------

ILLEGAL = {
    (State.RELEASE, TransitionKind.INCREMENT_PRERELEASE): errors.IncrementPrereleaseFromRelease,
    (State.RELEASE, TransitionKind.TRANSITION_PRERELEASE): errors.TransitionPrereleaseFromRelease,
    (State.RELEASE, TransitionKind.FINALIZE_RELEASE): errors.FinalizeReleaseFromRelease,
    (State.PRERELEASE, TransitionKind.START_PRERELEASE): errors.StartPrereleaseFromPrerelease,
    (State.PRERELEASE, TransitionKind.BUMP_RELEASE): errors.BumpReleaseFromPrerelease,
}


def test_grammar_is_total():
    cells = set(itertools.product(State, TransitionKind))
    assert set(LEGALITY) == cells
    assert len(cells) == 10


@pytest.mark.parametrize("state, kind", list(itertools.product(State, TransitionKind)))
def test_each_cell_is_legal_or_has_its_own_error(state, kind):
    expected = ILLEGAL.get((state, kind))
    if expected is None:
        assert tr.is_legal(state, kind)
        tr.check(state, kind)
    else:
        assert not tr.is_legal(state, kind)
        with pytest.raises(expected):
            tr.check(state, kind)


def test_illegal_errors_are_distinct():
    assert len(set(ILLEGAL.values())) == len(ILLEGAL)
    messages = {cls().args[0] for cls in ILLEGAL.values()}
    assert len(messages) == len(ILLEGAL)


SAMPLE_REQUESTS = [
    StartPrerelease(level=ReleaseLevel.PATCH, pre_ident="alpha"),
    IncrementPrerelease(),
    TransitionPrerelease(pre_ident="zeta"),
    FinalizeRelease(),
    BumpRelease(level=ReleaseLevel.PATCH),
]


@pytest.mark.parametrize("text", ["1.2.3", "1.2.3-alpha.1"])
@pytest.mark.parametrize("request_", SAMPLE_REQUESTS, ids=lambda r: r.kind.value)
def test_apply_follows_the_table(text, request_):
    version = sv(text)
    error = LEGALITY[(classify(version), request_.kind)]
    if error is None:
        assert isinstance(apply(version, request_), SemanticVersion)
    else:
        with pytest.raises(error):
            apply(version, request_)


def test_missing_cell_is_an_internal_error(monkeypatch):
    table = dict(LEGALITY)
    del table[(State.RELEASE, TransitionKind.BUMP_RELEASE)]
    monkeypatch.setattr(tr, "LEGALITY", table)
    with pytest.raises(errors.InternalInvariantError):
        apply(sv("1.2.3"), BumpRelease(level=ReleaseLevel.PATCH))


def test_internal_error_is_not_a_user_error():
    assert not issubclass(errors.InternalInvariantError, errors.GooseError)


def test_classify():
    assert classify(sv("1.0.0")) is State.RELEASE
    assert classify(sv("1.0.0-rc.1")) is State.PRERELEASE


# --- CLI vocabulary ----------------------------------------------------------


def test_request_from_args_mapping():
    assert request_from_args("version", level=ReleaseLevel.MINOR) == BumpRelease(level=ReleaseLevel.MINOR)
    assert request_from_args("version", level="major", pre="rc", build="b.1") == StartPrerelease(
        level=ReleaseLevel.MAJOR, pre_ident="rc", build="b.1"
    )
    assert request_from_args("prerelease") == IncrementPrerelease()
    assert request_from_args("prerelease", pre="beta") == TransitionPrerelease(pre_ident="beta")
    assert request_from_args("release", build="x") == FinalizeRelease(build="x")


def test_request_from_args_rejects_unknown_target():
    with pytest.raises(errors.InternalInvariantError):
        request_from_args("sideways")
    with pytest.raises(errors.InternalInvariantError):
        request_from_args("version")

"""
goosectl.version.transition - semantic-version transition engine

A caller builds one of five transition requests and hands it to
:func:`apply` together with the current version:

    StartPrerelease(level, pre_ident)   1.2.3          -> 1.3.0-alpha.1
    IncrementPrerelease()               1.3.0-alpha.1  -> 1.3.0-alpha.2
    TransitionPrerelease(pre_ident)     1.3.0-alpha.2  -> 1.3.0-beta.1
    FinalizeRelease()                   1.3.0-beta.1   -> 1.3.0
    BumpRelease(level)                  1.3.0          -> 1.3.1

Every request carries an optional ``build`` that replaces the build
metadata of the result (``None`` clears it).

Legality is decided by a single table over (State, TransitionKind); the
transformation runs only after the table says yes. Everything here is pure:
failures are raised, nothing outside the returned value changes.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import ClassVar, Dict, Optional, Tuple, Type

from goosectl.errors import (
    BumpReleaseFromPrerelease,
    FinalizeReleaseFromRelease,
    IncrementPrereleaseFromRelease,
    InternalInvariantError,
    PrereleaseNotAdvancing,
    StartPrereleaseFromPrerelease,
    TransitionError,
    TransitionPrereleaseFromRelease,
)
from goosectl.version.semantic_version import Prerelease, ReleaseLevel, SemanticVersion, State


# -----------------------------------------------------------------------------
# Transition kinds
# -----------------------------------------------------------------------------
class TransitionKind(enum.Enum):
    START_PRERELEASE = "start-prerelease"
    INCREMENT_PRERELEASE = "increment-prerelease"
    TRANSITION_PRERELEASE = "transition-prerelease"
    FINALIZE_RELEASE = "finalize-release"
    BUMP_RELEASE = "bump-release"


def classify(version: SemanticVersion) -> State:
    return version.state


# -----------------------------------------------------------------------------
# Legality grammar: None means legal, otherwise the error raised
# -----------------------------------------------------------------------------
LEGALITY: Dict[Tuple[State, TransitionKind], Optional[Type[TransitionError]]] = {
    (State.RELEASE, TransitionKind.START_PRERELEASE): None,
    (State.RELEASE, TransitionKind.INCREMENT_PRERELEASE): IncrementPrereleaseFromRelease,
    (State.RELEASE, TransitionKind.TRANSITION_PRERELEASE): TransitionPrereleaseFromRelease,
    (State.RELEASE, TransitionKind.FINALIZE_RELEASE): FinalizeReleaseFromRelease,
    (State.RELEASE, TransitionKind.BUMP_RELEASE): None,
    (State.PRERELEASE, TransitionKind.START_PRERELEASE): StartPrereleaseFromPrerelease,
    (State.PRERELEASE, TransitionKind.INCREMENT_PRERELEASE): None,
    (State.PRERELEASE, TransitionKind.TRANSITION_PRERELEASE): None,
    (State.PRERELEASE, TransitionKind.FINALIZE_RELEASE): None,
    (State.PRERELEASE, TransitionKind.BUMP_RELEASE): BumpReleaseFromPrerelease,
}


def is_legal(state: State, kind: TransitionKind) -> bool:
    return _lookup(state, kind) is None


def check(state: State, kind: TransitionKind) -> None:
    """Raise the TransitionError registered for ``(state, kind)``, if any."""
    error = _lookup(state, kind)
    if error is not None:
        raise error()


def _lookup(state: State, kind: TransitionKind) -> Optional[Type[TransitionError]]:
    try:
        return LEGALITY[(state, kind)]
    except KeyError:
        raise InternalInvariantError(f"No legality rule for {state.name} -> {kind.name}") from None


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------
class TransitionRequest:
    """Base for the five request types. ``transform`` assumes legality was checked."""

    kind: ClassVar[TransitionKind]

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        raise NotImplementedError


@dataclass(frozen=True)
class StartPrerelease(TransitionRequest):
    level: ReleaseLevel
    pre_ident: str
    build: Optional[str] = None

    kind: ClassVar[TransitionKind] = TransitionKind.START_PRERELEASE

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        return (
            version.bump_level(self.level)
            .with_prerelease(Prerelease(ident=self.pre_ident, iteration=1))
            .with_build(self.build)
        )


@dataclass(frozen=True)
class IncrementPrerelease(TransitionRequest):
    build: Optional[str] = None

    kind: ClassVar[TransitionKind] = TransitionKind.INCREMENT_PRERELEASE

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        current = _require_prerelease(version)
        return version.with_prerelease(current.increment()).with_build(self.build)


@dataclass(frozen=True)
class TransitionPrerelease(TransitionRequest):
    pre_ident: str
    build: Optional[str] = None

    kind: ClassVar[TransitionKind] = TransitionKind.TRANSITION_PRERELEASE

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        current = _require_prerelease(version)
        target = Prerelease(ident=self.pre_ident, iteration=1)
        if not target > current:
            raise PrereleaseNotAdvancing(str(current), str(target))
        return version.with_prerelease(target).with_build(self.build)


@dataclass(frozen=True)
class FinalizeRelease(TransitionRequest):
    build: Optional[str] = None

    kind: ClassVar[TransitionKind] = TransitionKind.FINALIZE_RELEASE

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        return version.clear_prerelease().with_build(self.build)


@dataclass(frozen=True)
class BumpRelease(TransitionRequest):
    level: ReleaseLevel
    build: Optional[str] = None

    kind: ClassVar[TransitionKind] = TransitionKind.BUMP_RELEASE

    def transform(self, version: SemanticVersion) -> SemanticVersion:
        return version.bump_level(self.level).with_build(self.build)


def _require_prerelease(version: SemanticVersion) -> Prerelease:
    if version.prerelease is None:
        raise InternalInvariantError(f"{version} reached a prerelease-only transformation")
    return version.prerelease


# -----------------------------------------------------------------------------
# Engine
# -----------------------------------------------------------------------------
def apply(version: SemanticVersion, request: TransitionRequest) -> SemanticVersion:
    """Check ``request`` against the legality table, then compute the next version."""
    check(classify(version), request.kind)
    return request.transform(version)


def request_from_args(
    target: str,
    *,
    level: Optional[ReleaseLevel] = None,
    pre: Optional[str] = None,
    build: Optional[str] = None,
) -> TransitionRequest:
    """
    Translate the ``bump`` command vocabulary into a request.

      version LEVEL        -> BumpRelease
      version LEVEL PRE    -> StartPrerelease
      prerelease           -> IncrementPrerelease
      prerelease PRE       -> TransitionPrerelease
      release              -> FinalizeRelease
    """
    if target == "version":
        if level is None:
            raise InternalInvariantError("`version` bumps need a release level")
        if pre is None:
            return BumpRelease(level=ReleaseLevel(level), build=build)
        return StartPrerelease(level=ReleaseLevel(level), pre_ident=pre, build=build)
    if target == "prerelease":
        if pre is None:
            return IncrementPrerelease(build=build)
        return TransitionPrerelease(pre_ident=pre, build=build)
    if target == "release":
        return FinalizeRelease(build=build)
    raise InternalInvariantError(f"Unknown bump target `{target}`")


__all__ = [
    "State",
    "TransitionKind",
    "LEGALITY",
    "classify",
    "is_legal",
    "check",
    "TransitionRequest",
    "StartPrerelease",
    "IncrementPrerelease",
    "TransitionPrerelease",
    "FinalizeRelease",
    "BumpRelease",
    "apply",
    "request_from_args",
]

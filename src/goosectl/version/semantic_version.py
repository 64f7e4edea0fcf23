"""
goosectl.version.semantic_version - immutable semantic version value type

A ``SemanticVersion`` is ``MAJOR.MINOR.PATCH[-IDENT.ITERATION][+BUILD]``.
goosectl only understands prereleases of the two-component shape
``<ident>.<iteration>`` (``alpha.1``, ``rc.4``); anything else that the
SemVer grammar would allow (``beta``, ``beta.1.x``) is rejected at parse
time so the transition engine never sees it.

Grammar and precedence come from the ``semver`` library: identifiers are
validated by ``semver.Version.parse`` and ordering uses ``Version.compare``,
which is the SemVer 2.0 comparator Cargo also implements.

Values are frozen dataclasses; every ``with_*`` / ``bump_*`` call returns
a new instance.
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass
from typing import Optional

import semver

from goosectl.errors import (
    MalformedBuild,
    MalformedPrerelease,
    MalformedVersion,
    VersionOverflowError,
)

# Cargo stores version components as u64.
U64_MAX = 2**64 - 1


# -----------------------------------------------------------------------------
# Release levels
# -----------------------------------------------------------------------------
class ReleaseLevel(str, enum.Enum):
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


# -----------------------------------------------------------------------------
# Version state
# -----------------------------------------------------------------------------
class State(enum.Enum):
    RELEASE = "release"
    PRERELEASE = "prerelease"


# -----------------------------------------------------------------------------
# Validation helpers
# -----------------------------------------------------------------------------
def _has_whitespace(text: str) -> bool:
    return any(ch.isspace() for ch in text)


def validate_build(value: str) -> str:
    """Return ``value`` if it is valid SemVer build metadata, else raise MalformedBuild."""
    if not value:
        raise MalformedBuild("Build metadata must not be empty.")
    if _has_whitespace(value):
        raise MalformedBuild(f"Invalid build metadata `{value}`: whitespace is not allowed.")
    try:
        semver.Version.parse(f"0.0.0+{value}")
    except ValueError:
        raise MalformedBuild(
            f"Invalid build metadata `{value}`: use ASCII alphanumerics and hyphens, "
            f"in dot-separated identifiers."
        ) from None
    return value


def _validate_ident(ident: str) -> None:
    if not ident:
        raise MalformedPrerelease("Invalid prerelease: identifier must not be empty.")
    if "." in ident or _has_whitespace(ident):
        raise MalformedPrerelease(
            f"Invalid prerelease identifier `{ident}`: expected a single identifier such as `alpha`."
        )
    try:
        semver.Version.parse(f"0.0.0-{ident}")
    except ValueError:
        raise MalformedPrerelease(
            f"Invalid prerelease identifier `{ident}`: use ASCII alphanumerics and hyphens."
        ) from None


# -----------------------------------------------------------------------------
# Prerelease
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Prerelease:
    """A ``<ident>.<iteration>`` prerelease such as ``beta.2``."""

    ident: str
    iteration: int = 1

    def __post_init__(self) -> None:
        _validate_ident(self.ident)
        if isinstance(self.iteration, bool) or not isinstance(self.iteration, int) or self.iteration < 0:
            raise MalformedPrerelease(
                f"Invalid prerelease `{self.ident}.{self.iteration}`: counter must be a non-negative integer."
            )

    @classmethod
    def parse(cls, text: str) -> "Prerelease":
        parts = text.split(".")
        if not parts[0]:
            raise MalformedPrerelease(f"Invalid prerelease `{text}`")
        if len(parts) < 2:
            raise MalformedPrerelease(f"Invalid prerelease `{text}`: missing counter")
        if len(parts) > 2:
            raise MalformedPrerelease(f"Invalid prerelease `{text}`: too many components")
        counter = parts[1]
        if not (counter.isascii() and counter.isdigit()):
            raise MalformedPrerelease(f"Invalid prerelease `{text}`: counter must be numeric")
        return cls(ident=parts[0], iteration=int(counter))

    def increment(self) -> "Prerelease":
        return Prerelease(ident=self.ident, iteration=self.iteration + 1)

    def __str__(self) -> str:
        return f"{self.ident}.{self.iteration}"

    # Precedence is the semver library's prerelease comparator applied to
    # the serialised form, so numeric-looking identifiers order the same way
    # Cargo orders them.
    def compare(self, other: "Prerelease") -> int:
        left = semver.Version(0, 0, 0, prerelease=str(self))
        right = semver.Version(0, 0, 0, prerelease=str(other))
        return left.compare(right)

    def __lt__(self, other: "Prerelease") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "Prerelease") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "Prerelease") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "Prerelease") -> bool:
        return self.compare(other) >= 0


# -----------------------------------------------------------------------------
# SemanticVersion
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class SemanticVersion:
    """
    Parsed semantic version.

    Equality is structural (build metadata included). Ordering follows
    SemVer precedence, where build metadata is ignored.
    """

    major: int
    minor: int
    patch: int
    prerelease: Optional[Prerelease] = None
    build: Optional[str] = None

    def __post_init__(self) -> None:
        for name in ("major", "minor", "patch"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise MalformedVersion(f"Version {name} must be a non-negative integer, got {value!r}.")
        if self.prerelease is not None and not isinstance(self.prerelease, Prerelease):
            raise MalformedPrerelease(f"Expected a Prerelease, got {self.prerelease!r}.")
        if self.build is not None:
            validate_build(self.build)

    # -- construction ---------------------------------------------------------
    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parse ``MAJOR.MINOR.PATCH[-IDENT.ITERATION][+BUILD]``.

        Raises MalformedBuild, MalformedPrerelease or MalformedVersion, in
        that order of precedence.
        """
        if not isinstance(text, str) or not text:
            raise MalformedVersion(f"Invalid version `{text}`")

        head, plus, build = text.partition("+")
        if plus:
            validate_build(build)

        core, dash, pre = head.partition("-")
        prerelease = Prerelease.parse(pre) if dash else None
        if _has_whitespace(core):
            raise MalformedVersion(f"Invalid version `{text}`: whitespace is not allowed")

        try:
            parsed = semver.Version.parse(text)
        except ValueError as exc:
            raise MalformedVersion(f"Invalid version `{text}`: {exc}") from None

        return cls(
            major=parsed.major,
            minor=parsed.minor,
            patch=parsed.patch,
            prerelease=prerelease,
            build=build if plus else None,
        )

    @classmethod
    def from_semver(cls, version: semver.Version) -> "SemanticVersion":
        """Adopt a ``semver.Version``, enforcing the two-component prerelease shape."""
        return cls.parse(str(version))

    def to_semver(self) -> semver.Version:
        return semver.Version(
            self.major,
            self.minor,
            self.patch,
            prerelease=str(self.prerelease) if self.prerelease is not None else None,
            build=self.build,
        )

    # -- accessors ------------------------------------------------------------
    def is_prerelease(self) -> bool:
        return self.prerelease is not None

    @property
    def state(self) -> State:
        return State.PRERELEASE if self.prerelease is not None else State.RELEASE

    # -- pure transformations -------------------------------------------------
    def bump_level(self, level: ReleaseLevel) -> "SemanticVersion":
        """
        Move to the next version line. Lower components reset to zero and
        prerelease/build are cleared; callers re-apply build metadata.
        """
        level = ReleaseLevel(level)
        if level is ReleaseLevel.MAJOR:
            major, minor, patch = _increment("major", self.major), 0, 0
        elif level is ReleaseLevel.MINOR:
            major, minor, patch = self.major, _increment("minor", self.minor), 0
        else:
            major, minor, patch = self.major, self.minor, _increment("patch", self.patch)
        return SemanticVersion(major, minor, patch)

    def with_prerelease(self, prerelease: Prerelease) -> "SemanticVersion":
        return dataclasses.replace(self, prerelease=prerelease)

    def clear_prerelease(self) -> "SemanticVersion":
        return dataclasses.replace(self, prerelease=None)

    def with_build(self, build: Optional[str]) -> "SemanticVersion":
        # replaces, never merges; None clears
        return dataclasses.replace(self, build=build)

    # -- rendering & ordering -------------------------------------------------
    def __str__(self) -> str:
        return str(self.to_semver())

    def compare(self, other: "SemanticVersion") -> int:
        return self.to_semver().compare(other.to_semver())

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self.compare(other) < 0

    def __le__(self, other: "SemanticVersion") -> bool:
        return self.compare(other) <= 0

    def __gt__(self, other: "SemanticVersion") -> bool:
        return self.compare(other) > 0

    def __ge__(self, other: "SemanticVersion") -> bool:
        return self.compare(other) >= 0


def _increment(name: str, value: int) -> int:
    if value >= U64_MAX:
        raise VersionOverflowError(f"Cannot bump {name} version {value}: it would exceed {U64_MAX}.")
    return value + 1


__all__ = [
    "U64_MAX",
    "ReleaseLevel",
    "State",
    "Prerelease",
    "SemanticVersion",
    "validate_build",
]

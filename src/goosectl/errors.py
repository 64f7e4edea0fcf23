"""
goosectl.errors - exception taxonomy

Every user-facing failure derives from :class:`GooseError` so the CLI can
surface the message verbatim and exit non-zero. Library code raises, it
never prints.

    GooseError
    ├── ParseError
    │   ├── MalformedVersion
    │   ├── MalformedPrerelease
    │   └── MalformedBuild
    ├── VersionOverflowError
    ├── TransitionError          (one subclass per illegal grammar cell)
    ├── AdvancementError
    │   └── PrereleaseNotAdvancing
    ├── SelectionError
    ├── ManifestError
    └── ConfigError

InternalInvariantError is a RuntimeError. It signals a bug in
goosectl itself, not bad input.
"""

from __future__ import annotations


class GooseError(Exception):
    """Base class for all reported goosectl failures."""


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------
class ParseError(GooseError, ValueError):
    """Version, prerelease or build text does not match its grammar."""


class MalformedVersion(ParseError):
    pass


class MalformedPrerelease(ParseError):
    pass


class MalformedBuild(ParseError):
    pass


class VersionOverflowError(GooseError, OverflowError):
    """A bump would push a component past the u64 ceiling Cargo accepts."""


# -----------------------------------------------------------------------------
# Transitions
# -----------------------------------------------------------------------------
class TransitionError(GooseError):
    """A transition kind is not legal from the version's current state."""

    message = "Illegal version transition."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class StartPrereleaseFromPrerelease(TransitionError):
    message = "You can only start a new pre-release from a release-level version (e.g., 1.2.3)."


class IncrementPrereleaseFromRelease(TransitionError):
    message = "You can only increment a pre-release from an existing pre-release version."


class TransitionPrereleaseFromRelease(TransitionError):
    message = "You can only transition from one prerelease to another prerelease."


class FinalizeReleaseFromRelease(TransitionError):
    message = "Can only finalize release from a prerelease version."


class BumpReleaseFromPrerelease(TransitionError):
    message = "Cannot bump version line of a pre-release version."


class AdvancementError(GooseError):
    """A prerelease transition does not move forward."""


class PrereleaseNotAdvancing(AdvancementError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"New prerelease must be further than old prerelease "
            f"(`{target}` does not come after `{current}`)."
        )


# -----------------------------------------------------------------------------
# Workspace, manifests, configuration
# -----------------------------------------------------------------------------
class SelectionError(GooseError):
    """Package selection is empty, ambiguous or inconsistent."""


class ManifestError(GooseError):
    """A manifest cannot be read, understood or written."""


class ConfigError(GooseError):
    """The goose configuration is invalid."""


class InternalInvariantError(RuntimeError):
    """goosectl reached a state its own tables say cannot happen."""


__all__ = [
    "GooseError",
    "ParseError",
    "MalformedVersion",
    "MalformedPrerelease",
    "MalformedBuild",
    "VersionOverflowError",
    "TransitionError",
    "StartPrereleaseFromPrerelease",
    "IncrementPrereleaseFromRelease",
    "TransitionPrereleaseFromRelease",
    "FinalizeReleaseFromRelease",
    "BumpReleaseFromPrerelease",
    "AdvancementError",
    "PrereleaseNotAdvancing",
    "SelectionError",
    "ManifestError",
    "ConfigError",
    "InternalInvariantError",
]

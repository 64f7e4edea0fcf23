"""
goosectl.version - semantic version value type and transition engine

Exposes:
    SemanticVersion, Prerelease, ReleaseLevel
        Immutable version model (``semantic_version``).
    State
        Release or prerelease, derived from a version.
    apply, request_from_args, TransitionKind and the five requests
        Legality table and pure transformations (``transition``).
"""

from __future__ import annotations

from .semantic_version import Prerelease, ReleaseLevel, SemanticVersion, State
from .transition import (
    BumpRelease,
    FinalizeRelease,
    IncrementPrerelease,
    StartPrerelease,
    TransitionKind,
    TransitionPrerelease,
    TransitionRequest,
    apply,
    classify,
    request_from_args,
)

__all__ = [
    "SemanticVersion",
    "Prerelease",
    "ReleaseLevel",
    "State",
    "TransitionKind",
    "TransitionRequest",
    "StartPrerelease",
    "IncrementPrerelease",
    "TransitionPrerelease",
    "FinalizeRelease",
    "BumpRelease",
    "apply",
    "classify",
    "request_from_args",
]

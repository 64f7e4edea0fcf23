"""
goosectl - Workspace-aware Version Bumping

Applies validated semantic-version transitions (start, advance and finalize
prereleases, bump release levels) to the packages of a Cargo workspace and
propagates the new versions into in-repository path dependencies.

Exposes:
    __version__ : str
        Package version identifier.
    __all__ : list[str]
        Public submodules.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "version",
    "workspace",
    "manifest",
    "bump",
    "report",
    "config",
    "errors",
]

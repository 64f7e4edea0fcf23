"""
goosectl.report - human and machine-readable output

``Reporter`` is the sink the bump phases talk to: one line per applied
version change and per propagated dependency requirement. In dry-run mode
the same lines are printed with a ``[dry-run]`` prefix.

``VersionRecord`` is the structured view used by ``current-version
--format json``.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text

from goosectl.version.semantic_version import SemanticVersion


# -----------------------------------------------------------------------------
# Records
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class VersionRecord:
    version: str
    major: int
    minor: int
    patch: int
    pre: Optional[str]
    iteration: Optional[int]
    build: Optional[str]
    is_prerelease: bool

    @classmethod
    def from_version(cls, version: SemanticVersion) -> "VersionRecord":
        pre = version.prerelease
        return cls(
            version=str(version),
            major=version.major,
            minor=version.minor,
            patch=version.patch,
            pre=pre.ident if pre is not None else None,
            iteration=pre.iteration if pre is not None else None,
            build=version.build,
            is_prerelease=version.is_prerelease(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def package_record(name: str, version: SemanticVersion) -> Dict[str, Any]:
    """Record for one package: ``package`` plus the flattened version fields."""
    return {"package": name, **VersionRecord.from_version(version).to_dict()}


def packages_document(entries: Iterable[Tuple[str, SemanticVersion]]) -> Dict[str, List[Dict[str, Any]]]:
    return {"packages": [package_record(name, version) for name, version in entries]}


# -----------------------------------------------------------------------------
# Console sink
# -----------------------------------------------------------------------------
class Reporter:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console(highlight=False, soft_wrap=True)

    def _line(self, message: str, *, dry_run: bool) -> None:
        text = Text.assemble(("[dry-run] ", "dim"), message) if dry_run else Text(message)
        self.console.print(text, soft_wrap=True)

    def version_changed(
        self, package: str, old: SemanticVersion, new: SemanticVersion, *, dry_run: bool = False
    ) -> None:
        self._line(f"Updated package {package} from version {old} to {new}", dry_run=dry_run)

    def dependency_updated(
        self,
        dependency: str,
        owner: str,
        table: str,
        old: str,
        new: str,
        *,
        dry_run: bool = False,
    ) -> None:
        self._line(f"Updated dependency {dependency} in {owner} ({table}) from {old} to {new}", dry_run=dry_run)

    def dry_run_notice(self) -> None:
        self.console.print(Text("Dry run: no manifests were written.", style="yellow"), soft_wrap=True)

    def plain(self, value: Any) -> None:
        self.console.print(Text(str(value)), soft_wrap=True)

    def json(self, payload: Any) -> None:
        self.console.print(Text(json.dumps(payload)), soft_wrap=True)

    def versions_table(self, entries: Iterable[Tuple[str, SemanticVersion]]) -> None:
        table = Table(title="Workspace versions", show_header=True)
        table.add_column("Package", style="bold cyan", no_wrap=True)
        table.add_column("Version", style="white")
        table.add_column("State", style="dim")
        for name, version in entries:
            table.add_row(name, str(version), "prerelease" if version.is_prerelease() else "release")
        self.console.print(table)


__all__ = ["VersionRecord", "package_record", "packages_document", "Reporter"]

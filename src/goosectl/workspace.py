"""
goosectl.workspace - Cargo workspace discovery and package selection

Discovery
---------
1. The invoked manifest is ``--manifest-path`` or the nearest ``Cargo.toml``
   found walking up from the working directory.
2. Its workspace root is the manifest itself when it has ``[workspace]``,
   the manifest named by ``package.workspace``, or the nearest ancestor
   ``Cargo.toml`` with ``[workspace]`` whose members include it. Otherwise
   the package is a workspace of one.
3. Members are the root ``[package]`` (if any) plus every directory matched
   by ``workspace.members`` that holds a ``[package]`` manifest, minus
   ``workspace.exclude``. Order: root first, then declaration order with
   each glob's matches sorted.

Selection
---------
    --workspace             all members
    --package A -p B        exactly A and B (unknown names fail)
    (nothing)               the package owning the invoked manifest,
                            or every member for a virtual manifest
    --workspace + --package rejected
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from goosectl.errors import ManifestError, SelectionError
from goosectl.logging_utils import get_logger
from goosectl.manifest import MANIFEST_NAME, load_manifest, read_package, read_workspace_version
from goosectl.version.semantic_version import SemanticVersion

# Cargo's implicit version when [package] omits one.
DEFAULT_VERSION = "0.0.0"

log = get_logger("workspace")


# -----------------------------------------------------------------------------
# Model
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Package:
    name: str
    version: str
    manifest_path: Path
    inherits_version: bool = False

    @property
    def directory(self) -> Path:
        return self.manifest_path.parent

    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)


@dataclass
class Workspace:
    root_manifest: Path
    members: List[Package] = field(default_factory=list)
    current: Optional[Package] = None

    @property
    def root(self) -> Path:
        return self.root_manifest.parent

    # -- discovery ------------------------------------------------------------
    @classmethod
    def discover(cls, manifest_path: Optional[Path] = None, cwd: Optional[Path] = None) -> "Workspace":
        invoked = _resolve_manifest(manifest_path, cwd)
        root_manifest = _find_workspace_root(invoked)
        log.debug("invoked manifest %s, workspace root %s", invoked, root_manifest)

        members = _load_members(root_manifest)
        current = next((p for p in members if p.manifest_path == invoked), None)
        if current is None and invoked != root_manifest:
            raise ManifestError(f"{invoked} is not a member of the workspace at {root_manifest}")
        return cls(root_manifest=root_manifest, members=members, current=current)

    # -- queries --------------------------------------------------------------
    def find(self, name: str) -> Optional[Package]:
        return next((p for p in self.members if p.name == name), None)

    def manifests(self) -> List[Path]:
        """Every manifest in the workspace, root first, without duplicates."""
        seen: List[Path] = [self.root_manifest]
        for package in self.members:
            if package.manifest_path not in seen:
                seen.append(package.manifest_path)
        return seen

    def version_location(self, package: Package) -> Tuple[Path, bool]:
        """Manifest holding ``package``'s version and whether it is the workspace-level field."""
        if package.inherits_version:
            return self.root_manifest, True
        return package.manifest_path, False

    def select_packages(self, workspace: bool, names: Sequence[str]) -> List[Package]:
        if workspace and names:
            raise SelectionError("cannot use --workspace with --package")
        if workspace:
            return list(self.members)
        if names:
            selected: List[Package] = []
            for name in names:
                package = self.find(name)
                if package is None:
                    raise SelectionError(f"package `{name}` not found")
                if package not in selected:
                    selected.append(package)
            return selected
        if self.current is not None:
            return [self.current]
        return list(self.members)


def select_single_version(versions: Iterable[Union[str, SemanticVersion]]) -> SemanticVersion:
    """Return the one version shared by every entry of ``versions``."""
    parsed = [v if isinstance(v, SemanticVersion) else SemanticVersion.parse(v) for v in versions]
    if not parsed:
        raise SelectionError("No packages found")
    distinct: List[str] = []
    for version in parsed:
        if str(version) not in distinct:
            distinct.append(str(version))
    if len(distinct) > 1:
        raise SelectionError(f"Selected packages have different versions: {', '.join(distinct)}")
    return parsed[0]


# -----------------------------------------------------------------------------
# Discovery helpers
# -----------------------------------------------------------------------------
def _resolve_manifest(manifest_path: Optional[Path], cwd: Optional[Path]) -> Path:
    if manifest_path is not None:
        path = Path(manifest_path)
        if path.is_dir():
            path = path / MANIFEST_NAME
        if not path.is_file():
            raise ManifestError(f"manifest path `{manifest_path}` does not exist")
        return path.resolve()

    start = (cwd or Path.cwd()).resolve()
    for directory in (start, *start.parents):
        candidate = directory / MANIFEST_NAME
        if candidate.is_file():
            return candidate
    raise ManifestError(f"could not find `{MANIFEST_NAME}` in `{start}` or any parent directory")


def _find_workspace_root(invoked: Path) -> Path:
    doc = load_manifest(invoked)
    if "workspace" in doc:
        return invoked

    section = read_package(doc, invoked)
    if section is not None and section.workspace:
        explicit = (invoked.parent / section.workspace).resolve() / MANIFEST_NAME
        if not explicit.is_file():
            raise ManifestError(f"{invoked}: package.workspace points at missing `{explicit}`")
        return explicit

    for directory in invoked.parent.parents:
        candidate = directory / MANIFEST_NAME
        if not candidate.is_file():
            continue
        if "workspace" not in load_manifest(candidate):
            continue
        if invoked.parent in _member_directories(candidate):
            return candidate
    return invoked


def _patterns(doc, key: str) -> List[str]:
    table = doc.get("workspace", {})
    value = table.get(key, []) if hasattr(table, "get") else []
    return [str(v) for v in value] if isinstance(value, list) else []


def _expand(root: Path, pattern: str) -> List[Path]:
    if pattern in ("", "."):
        return [root]
    return sorted(p.resolve() for p in root.glob(pattern) if p.is_dir())


def _member_directories(root_manifest: Path) -> List[Path]:
    doc = load_manifest(root_manifest)
    root = root_manifest.parent
    excluded = {p for pattern in _patterns(doc, "exclude") for p in _expand(root, pattern)}

    directories: List[Path] = []
    for pattern in _patterns(doc, "members"):
        for directory in _expand(root, pattern):
            if directory in excluded or directory in directories:
                continue
            if (directory / MANIFEST_NAME).is_file():
                directories.append(directory)
    return directories


def _load_members(root_manifest: Path) -> List[Package]:
    root_doc = load_manifest(root_manifest)
    workspace_version = read_workspace_version(root_doc)

    manifests: List[Path] = [root_manifest]
    if "workspace" in root_doc:
        for directory in _member_directories(root_manifest):
            candidate = directory / MANIFEST_NAME
            if candidate not in manifests:
                manifests.append(candidate)

    members: List[Package] = []
    for manifest in manifests:
        doc = root_doc if manifest == root_manifest else load_manifest(manifest)
        section = read_package(doc, manifest)
        if section is None:
            continue
        if section.inherits_version:
            if workspace_version is None:
                raise ManifestError(
                    f"{manifest}: package `{section.name}` inherits its version but "
                    f"{root_manifest} has no [workspace.package] version"
                )
            version = workspace_version
        else:
            version = section.version or DEFAULT_VERSION

        if any(p.name == section.name for p in members):
            raise ManifestError(f"two workspace members are named `{section.name}`")
        members.append(
            Package(
                name=section.name,
                version=version,
                manifest_path=manifest,
                inherits_version=section.inherits_version,
            )
        )
        log.debug("member %s %s (%s)", section.name, version, manifest)
    return members


__all__ = ["DEFAULT_VERSION", "Package", "Workspace", "select_single_version"]

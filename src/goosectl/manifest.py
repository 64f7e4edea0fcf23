"""
goosectl.manifest - format-preserving Cargo.toml reads and edits

Edits go through ``tomlkit`` so comments, key order, quoting and inline
tables survive untouched; only the value being replaced changes.

Two kinds of edit exist:

• the package version: ``[package] version`` or, for packages declaring
  ``version.workspace = true``, ``[workspace.package] version`` in the
  workspace root;
• the ``version`` sub-field of a path dependency, in any of

      [dependencies] / [dev-dependencies] / [build-dependencies]
      [target.'<cfg>'.<kind>]
      [workspace.dependencies]

Registry dependencies (no ``path``) and path dependencies without a
``version`` key are never modified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional, Tuple

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from goosectl.errors import ManifestError
from goosectl.logging_utils import get_logger
from goosectl.version.semantic_version import SemanticVersion

MANIFEST_NAME = "Cargo.toml"
DEPENDENCY_KINDS = (
    "dependencies",
    "dev-dependencies",
    "build-dependencies",
    "dev_dependencies",
    "build_dependencies",
)

_REQUIREMENT_RE = re.compile(r"^(?P<op>\s*(?:>=|<=|=|\^|~|>|<)?\s*)(?P<version>\S+?)\s*$")

log = get_logger("manifest")


# -----------------------------------------------------------------------------
# Documents
# -----------------------------------------------------------------------------
def load_manifest(path: Path) -> TOMLDocument:
    try:
        return tomlkit.parse(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ManifestError(f"Cannot read manifest {path}: {exc}") from None
    except TOMLKitError as exc:
        raise ManifestError(f"Invalid TOML in {path}: {exc}") from None


def save_manifest(path: Path, doc: TOMLDocument) -> None:
    try:
        Path(path).write_text(tomlkit.dumps(doc), encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Cannot write manifest {path}: {exc}") from None


def _table(doc: Mapping[str, Any], *keys: str) -> Optional[Mapping[str, Any]]:
    node: Any = doc
    for key in keys:
        if not isinstance(node, Mapping) or key not in node:
            return None
        node = node[key]
    return node if isinstance(node, Mapping) else None


# -----------------------------------------------------------------------------
# Package section
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class PackageSection:
    name: str
    version: Optional[str]
    inherits_version: bool
    workspace: Optional[str]


def read_package(doc: Mapping[str, Any], path: Path) -> Optional[PackageSection]:
    """Return the ``[package]`` section of ``doc`` or None for virtual manifests."""
    package = _table(doc, "package")
    if package is None:
        return None
    name = package.get("name")
    if not isinstance(name, str):
        raise ManifestError(f"{path}: [package] has no name")

    raw = package.get("version")
    inherits = isinstance(raw, Mapping) and bool(raw.get("workspace"))
    if raw is not None and not inherits and not isinstance(raw, str):
        raise ManifestError(f"{path}: package `{name}` has an unsupported version value")

    workspace = package.get("workspace")
    return PackageSection(
        name=str(name),
        version=str(raw) if isinstance(raw, str) else None,
        inherits_version=inherits,
        workspace=str(workspace) if isinstance(workspace, str) else None,
    )


def read_workspace_version(doc: Mapping[str, Any]) -> Optional[str]:
    table = _table(doc, "workspace", "package")
    value = table.get("version") if table is not None else None
    return str(value) if isinstance(value, str) else None


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class DependencyRef:
    """One dependency entry as declared in a manifest."""

    table: Tuple[str, ...]
    key: str
    name: str
    path: Optional[str]
    version: Optional[str]

    @property
    def table_name(self) -> str:
        return ".".join(self.table)

    @property
    def is_path(self) -> bool:
        return self.path is not None


def _dependency_tables(doc: Mapping[str, Any]) -> Iterator[Tuple[Tuple[str, ...], Mapping[str, Any]]]:
    for kind in DEPENDENCY_KINDS:
        table = _table(doc, kind)
        if table is not None:
            yield (kind,), table
    targets = _table(doc, "target")
    if targets is not None:
        for cfg in targets:
            for kind in DEPENDENCY_KINDS:
                table = _table(targets, cfg, kind)
                if table is not None:
                    yield ("target", str(cfg), kind), table
    workspace_deps = _table(doc, "workspace", "dependencies")
    if workspace_deps is not None:
        yield ("workspace", "dependencies"), workspace_deps


def iter_dependencies(doc: Mapping[str, Any]) -> Iterator[DependencyRef]:
    for table_path, table in _dependency_tables(doc):
        for key, spec in table.items():
            if isinstance(spec, str):
                yield DependencyRef(table_path, str(key), str(key), path=None, version=spec)
                continue
            if not isinstance(spec, Mapping):
                continue
            alias = spec.get("package")
            path = spec.get("path")
            version = spec.get("version")
            yield DependencyRef(
                table=table_path,
                key=str(key),
                name=str(alias) if isinstance(alias, str) else str(key),
                path=str(path) if isinstance(path, str) else None,
                version=str(version) if isinstance(version, str) else None,
            )


def rewrite_requirement(requirement: str, version: SemanticVersion) -> str:
    """
    Point ``requirement`` at ``version``, keeping a single leading operator.

    Build metadata is dropped because Cargo rejects it in requirements.
    Compound or wildcard requirements are replaced by the bare version.
    """
    target = str(version.with_build(None))
    if "," in requirement or "*" in requirement:
        return target
    match = _REQUIREMENT_RE.match(requirement)
    if match is None:
        return target
    return f"{match.group('op').strip()}{target}"


# -----------------------------------------------------------------------------
# Editing
# -----------------------------------------------------------------------------
class ManifestEditor:
    """Load a manifest once, apply several edits, save once."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.doc = load_manifest(self.path)
        self.dirty = False

    def set_version(self, version: str, *, inherited: bool = False) -> None:
        section = ("workspace", "package") if inherited else ("package",)
        table = _table(self.doc, *section)
        if table is None:
            raise ManifestError(f"{self.path}: no [{'.'.join(section)}] table to write a version into")
        table["version"] = version
        self.dirty = True
        log.debug("%s: [%s] version = %s", self.path, ".".join(section), version)

    def set_dependency_requirement(self, table: Tuple[str, ...], key: str, requirement: str) -> None:
        deps = _table(self.doc, *table)
        entry = deps.get(key) if deps is not None else None
        if not isinstance(entry, Mapping) or "version" not in entry:
            raise ManifestError(f"{self.path}: [{'.'.join(table)}] has no versioned entry `{key}`")
        entry["version"] = requirement
        self.dirty = True
        log.debug("%s: [%s] %s.version = %s", self.path, ".".join(table), key, requirement)

    def save(self) -> None:
        if self.dirty:
            save_manifest(self.path, self.doc)
            self.dirty = False


def write_version(path: Path, version: str, *, inherited: bool = False) -> None:
    """Rewrite only the package version field of the manifest at ``path``."""
    editor = ManifestEditor(path)
    editor.set_version(version, inherited=inherited)
    editor.save()


def write_dependency_version(path: Path, dependency: str, version: SemanticVersion) -> int:
    """
    Rewrite the ``version`` of every path dependency on ``dependency`` in the
    manifest at ``path``. Returns how many entries changed.
    """
    editor = ManifestEditor(path)
    changed = 0
    for ref in list(iter_dependencies(editor.doc)):
        if ref.name != dependency or not ref.is_path or ref.version is None:
            continue
        editor.set_dependency_requirement(ref.table, ref.key, rewrite_requirement(ref.version, version))
        changed += 1
    editor.save()
    return changed


__all__ = [
    "MANIFEST_NAME",
    "DEPENDENCY_KINDS",
    "PackageSection",
    "DependencyRef",
    "ManifestEditor",
    "load_manifest",
    "save_manifest",
    "read_package",
    "read_workspace_version",
    "iter_dependencies",
    "rewrite_requirement",
    "write_version",
    "write_dependency_version",
]

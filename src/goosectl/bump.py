"""
goosectl.bump - two-phase batch bump

Phase 1 (compute) parses every selected package's version, runs the
transition engine on it and works out every path-dependency requirement
that has to follow. Any failure aborts here, before a single file is
touched.

Phase 2 (write) groups the edits per manifest, loads each manifest once,
applies its edits and saves it once. With ``dry_run`` the phase is skipped;
the reporter still receives every line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from goosectl.config import RunOptions
from goosectl.errors import ManifestError
from goosectl.logging_utils import get_logger
from goosectl.manifest import ManifestEditor, iter_dependencies, load_manifest, read_package, rewrite_requirement
from goosectl.report import Reporter
from goosectl.version.semantic_version import SemanticVersion
from goosectl.version.transition import TransitionRequest, apply
from goosectl.workspace import Package, Workspace

log = get_logger("bump")


@dataclass(frozen=True)
class VersionChange:
    package: Package
    old: SemanticVersion
    new: SemanticVersion
    manifest_path: Path
    inherited: bool = False


@dataclass(frozen=True)
class DependencyUpdate:
    manifest_path: Path
    owner: str
    dependency: str
    table: Tuple[str, ...]
    key: str
    old_requirement: str
    new_requirement: str

    @property
    def table_name(self) -> str:
        return ".".join(self.table)


@dataclass
class BumpPlan:
    changes: List[VersionChange] = field(default_factory=list)
    updates: List[DependencyUpdate] = field(default_factory=list)

    def manifests(self) -> List[Path]:
        paths: List[Path] = []
        for path in [c.manifest_path for c in self.changes] + [u.manifest_path for u in self.updates]:
            if path not in paths:
                paths.append(path)
        return paths


# -----------------------------------------------------------------------------
# Phase 1: compute
# -----------------------------------------------------------------------------
def compute_change(workspace: Workspace, package: Package, request: TransitionRequest) -> VersionChange:
    current = package.semantic_version()
    following = apply(current, request)
    manifest_path, inherited = workspace.version_location(package)
    return VersionChange(package=package, old=current, new=following, manifest_path=manifest_path, inherited=inherited)


def _shared_version_followers(workspace: Workspace, changes: List[VersionChange]) -> List[VersionChange]:
    """
    Validate the selected packages that inherit ``[workspace.package] version``
    and return changes for the unselected members inheriting it. Writing the
    shared field moves them too.
    """
    shared = [c for c in changes if c.inherited]
    if len({str(c.new) for c in shared}) > 1:
        names = ", ".join(c.package.name for c in shared)
        raise ManifestError(f"packages {names} share [workspace.package] version but would diverge")
    if not shared:
        return []

    selected = {c.package.name for c in changes}
    followers = [
        VersionChange(
            package=p,
            old=p.semantic_version(),
            new=shared[0].new,
            manifest_path=shared[0].manifest_path,
            inherited=True,
        )
        for p in workspace.members
        if p.inherits_version and p.name not in selected
    ]
    if followers:
        log.warning(
            "[workspace.package] version is shared; %s will move to %s as well",
            ", ".join(c.package.name for c in followers),
            shared[0].new,
        )
    return followers


def plan_propagation(workspace: Workspace, changes: List[VersionChange]) -> List[DependencyUpdate]:
    """Find every versioned path dependency on a bumped package, across all manifests."""
    bumped: Dict[str, VersionChange] = {c.package.name: c for c in changes}
    updates: List[DependencyUpdate] = []
    for manifest in workspace.manifests():
        doc = load_manifest(manifest)
        section = read_package(doc, manifest)
        owner = section.name if section is not None else "workspace"
        for ref in iter_dependencies(doc):
            change = bumped.get(ref.name)
            if change is None or not ref.is_path or ref.version is None:
                continue
            if (manifest.parent / ref.path).resolve() != change.package.directory:
                log.debug("%s: %s points outside the bumped package, skipped", manifest, ref.key)
                continue
            requirement = rewrite_requirement(ref.version, change.new)
            if requirement == ref.version:
                continue
            updates.append(
                DependencyUpdate(
                    manifest_path=manifest,
                    owner=owner,
                    dependency=ref.name,
                    table=ref.table,
                    key=ref.key,
                    old_requirement=ref.version,
                    new_requirement=requirement,
                )
            )
    return updates


def plan_bump(workspace: Workspace, request: TransitionRequest, options: RunOptions) -> BumpPlan:
    packages = workspace.select_packages(options.workspace, options.packages)
    changes = [compute_change(workspace, package, request) for package in packages]
    changes += _shared_version_followers(workspace, changes)
    updates = plan_propagation(workspace, changes) if options.propagate else []
    log.info("planned %d version change(s), %d dependency update(s)", len(changes), len(updates))
    return BumpPlan(changes=changes, updates=updates)


# -----------------------------------------------------------------------------
# Phase 2: write
# -----------------------------------------------------------------------------
def write_plan(plan: BumpPlan) -> None:
    editors: Dict[Path, ManifestEditor] = {}

    def editor(path: Path) -> ManifestEditor:
        if path not in editors:
            editors[path] = ManifestEditor(path)
        return editors[path]

    written = set()
    for change in plan.changes:
        location = (change.manifest_path, change.inherited)
        if location in written:
            continue
        editor(change.manifest_path).set_version(str(change.new), inherited=change.inherited)
        written.add(location)
    for update in plan.updates:
        editor(update.manifest_path).set_dependency_requirement(update.table, update.key, update.new_requirement)

    for path, ed in editors.items():
        ed.save()
        log.debug("saved %s", path)


def execute_plan(plan: BumpPlan, *, dry_run: bool, reporter: Reporter) -> None:
    if not dry_run:
        write_plan(plan)
    for change in plan.changes:
        reporter.version_changed(change.package.name, change.old, change.new, dry_run=dry_run)
    for update in plan.updates:
        reporter.dependency_updated(
            update.dependency,
            update.owner,
            update.table_name,
            update.old_requirement,
            update.new_requirement,
            dry_run=dry_run,
        )
    if dry_run:
        reporter.dry_run_notice()


def run_bump(
    request: TransitionRequest,
    options: RunOptions,
    *,
    workspace: Optional[Workspace] = None,
    reporter: Optional[Reporter] = None,
) -> BumpPlan:
    """Discover (unless given), plan and execute a bump; returns the plan."""
    workspace = workspace or Workspace.discover(options.manifest_path)
    reporter = reporter or Reporter()
    plan = plan_bump(workspace, request, options)
    execute_plan(plan, dry_run=options.dry_run, reporter=reporter)
    return plan


__all__ = [
    "VersionChange",
    "DependencyUpdate",
    "BumpPlan",
    "compute_change",
    "plan_propagation",
    "plan_bump",
    "write_plan",
    "execute_plan",
    "run_bump",
]

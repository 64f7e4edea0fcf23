# tests/unit/test_workspace.py
"""Workspace discovery, member loading and package selection."""

from __future__ import annotations

from pathlib import Path

import pytest

from goosectl.errors import ManifestError, SelectionError
from goosectl.version.semantic_version import SemanticVersion
from goosectl.workspace import DEFAULT_VERSION, Workspace, select_single_version


def names(packages):
    return [p.name for p in packages]


# --- discovery -----------------------------------------------------------------


def test_discover_virtual_workspace(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace / "Cargo.toml")
    assert ws.root_manifest == (cargo_workspace / "Cargo.toml").resolve()
    assert names(ws.members) == ["app", "engine", "shared"]
    assert ws.current is None


def test_inherited_version_comes_from_workspace_package(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    shared = ws.find("shared")
    assert shared.inherits_version
    assert shared.version == "0.5.0"
    assert ws.version_location(shared) == (ws.root_manifest, True)
    engine = ws.find("engine")
    assert ws.version_location(engine) == (engine.manifest_path, False)


def test_discover_from_member_manifest_sets_current(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace / "crates/engine/Cargo.toml")
    assert ws.root_manifest == (cargo_workspace / "Cargo.toml").resolve()
    assert ws.current.name == "engine"


def test_discover_walks_up_from_cwd(cargo_workspace: Path):
    nested = cargo_workspace / "crates/app/src/bin"
    nested.mkdir(parents=True)
    ws = Workspace.discover(cwd=nested)
    assert ws.current.name == "app"


def test_discover_single_package(single_package: Path):
    ws = Workspace.discover(single_package / "Cargo.toml")
    assert names(ws.members) == ["solo"]
    assert ws.current.name == "solo"
    assert ws.manifests() == [ws.root_manifest]


def test_root_package_comes_first(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": """\
            [package]
            name = "top"
            version = "2.0.0"

            [workspace]
            members = ["b", "a"]
            """,
            "a/Cargo.toml": '[package]\nname = "a"\nversion = "0.1.0"\n',
            "b/Cargo.toml": '[package]\nname = "b"\nversion = "0.2.0"\n',
        }
    )
    ws = Workspace.discover(root)
    assert names(ws.members) == ["top", "b", "a"]
    assert ws.current.name == "top"


def test_exclude_and_non_package_directories(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": '[workspace]\nmembers = ["crates/*"]\nexclude = ["crates/legacy"]\n',
            "crates/one/Cargo.toml": '[package]\nname = "one"\nversion = "1.0.0"\n',
            "crates/legacy/Cargo.toml": '[package]\nname = "legacy"\nversion = "0.1.0"\n',
            "crates/docs/README.md": "not a crate\n",
        }
    )
    assert names(Workspace.discover(root).members) == ["one"]


def test_missing_version_defaults(make_workspace):
    root = make_workspace({"Cargo.toml": '[package]\nname = "bare"\n'})
    assert Workspace.discover(root).find("bare").version == DEFAULT_VERSION


def test_package_workspace_key_points_at_root(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": '[workspace]\nmembers = ["tools/gen"]\n',
            "tools/gen/Cargo.toml": '[package]\nname = "gen"\nversion = "0.3.0"\nworkspace = "../.."\n',
        }
    )
    ws = Workspace.discover(root / "tools/gen/Cargo.toml")
    assert ws.root_manifest == (root / "Cargo.toml").resolve()
    assert ws.current.name == "gen"


def test_excluded_package_is_its_own_workspace(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": '[workspace]\nmembers = ["crates/*"]\nexclude = ["crates/legacy"]\n',
            "crates/legacy/Cargo.toml": '[package]\nname = "legacy"\nversion = "0.1.0"\n',
        }
    )
    ws = Workspace.discover(root / "crates/legacy/Cargo.toml")
    assert ws.root_manifest == (root / "crates/legacy/Cargo.toml").resolve()
    assert names(ws.members) == ["legacy"]


def test_inherited_version_without_workspace_version_fails(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": '[workspace]\nmembers = ["x"]\n',
            "x/Cargo.toml": '[package]\nname = "x"\nversion.workspace = true\n',
        }
    )
    with pytest.raises(ManifestError, match="inherits its version"):
        Workspace.discover(root)


def test_duplicate_member_names_fail(make_workspace):
    root = make_workspace(
        {
            "Cargo.toml": '[workspace]\nmembers = ["a", "b"]\n',
            "a/Cargo.toml": '[package]\nname = "dup"\nversion = "0.1.0"\n',
            "b/Cargo.toml": '[package]\nname = "dup"\nversion = "0.2.0"\n',
        }
    )
    with pytest.raises(ManifestError, match="dup"):
        Workspace.discover(root)


def test_missing_manifest_path(tmp_path: Path):
    with pytest.raises(ManifestError, match="does not exist"):
        Workspace.discover(tmp_path / "nowhere" / "Cargo.toml")


def test_manifests_lists_root_then_members(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    paths = ws.manifests()
    assert paths[0] == ws.root_manifest
    assert len(paths) == 4


# --- selection -----------------------------------------------------------------


def test_default_selection_is_current_package(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace / "crates/app")
    assert names(ws.select_packages(False, [])) == ["app"]


def test_default_selection_for_virtual_manifest_is_everything(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    assert names(ws.select_packages(False, [])) == ["app", "engine", "shared"]


def test_select_named_packages_in_request_order(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    assert names(ws.select_packages(False, ["shared", "engine", "shared"])) == ["shared", "engine"]


def test_select_workspace(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace / "crates/engine/Cargo.toml")
    assert names(ws.select_packages(True, [])) == ["app", "engine", "shared"]


def test_select_unknown_package(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    with pytest.raises(SelectionError, match="package `nope` not found"):
        ws.select_packages(False, ["nope"])


def test_workspace_and_package_conflict(cargo_workspace: Path):
    ws = Workspace.discover(cargo_workspace)
    with pytest.raises(SelectionError, match="--workspace"):
        ws.select_packages(True, ["engine"])


# --- single version --------------------------------------------------------------


def test_select_single_version_shared():
    assert select_single_version(["1.2.3", SemanticVersion.parse("1.2.3")]) == SemanticVersion.parse("1.2.3")


def test_select_single_version_disagreement():
    with pytest.raises(SelectionError, match="different versions: 1.2.3, 1.3.0"):
        select_single_version(["1.2.3", "1.3.0", "1.2.3"])


def test_select_single_version_empty():
    with pytest.raises(SelectionError, match="No packages found"):
        select_single_version([])

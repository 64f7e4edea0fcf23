# tests/conftest.py
"""
Global pytest fixtures for goosectl.

- Temporary Cargo workspaces written from inline TOML (no cargo binary needed).
- Typer CliRunner bound to the goosectl app.
- Logger cache reset between tests so handler setup never leaks.
"""

from __future__ import annotations

import os
import textwrap
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from hypothesis import HealthCheck, settings
from typer.testing import CliRunner

from goosectl.logging_utils import reset_logging

# -----------------------------------------------------------------------------
# Workspace layouts
# -----------------------------------------------------------------------------
ROOT_MANIFEST = """\
[workspace]
members = ["crates/*"]
resolver = "2"

[workspace.package]
version = "0.5.0"
edition = "2021"

[workspace.dependencies]
engine = { path = "crates/engine", version = "1.2.3" }
serde = "1.0"
"""

ENGINE_MANIFEST = """\
[package]
name = "engine"
version = "1.2.3" # released line
edition = "2021"

[dependencies]
serde = { workspace = true }
"""

APP_MANIFEST = """\
[package]
name = "app"
version = "0.4.0-beta.2"
edition = "2021"

[dependencies]
engine = { path = "../engine", version = "^1.2.3" }
serde = "1.0"

[dev-dependencies.engine]
path = "../engine"
version = "=1.2.3"

[target.'cfg(unix)'.dependencies]
engine = { path = "../engine", version = "1.2.3", features = ["std"] }
"""

SHARED_MANIFEST = """\
[package]
name = "shared"
version.workspace = true
edition.workspace = true

[dependencies]
engine = { workspace = true }
"""


def _write(root: Path, files: Dict[str, str]) -> None:
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")


@pytest.fixture()
def make_workspace(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: toml}`` under a temp dir and return the root."""

    def _make(files: Dict[str, str]) -> Path:
        _write(tmp_path, files)
        return tmp_path

    return _make


@pytest.fixture()
def cargo_workspace(make_workspace) -> Path:
    """Virtual workspace with a released crate, a prerelease crate and an inheriting crate."""
    return make_workspace(
        {
            "Cargo.toml": ROOT_MANIFEST,
            "crates/engine/Cargo.toml": ENGINE_MANIFEST,
            "crates/app/Cargo.toml": APP_MANIFEST,
            "crates/shared/Cargo.toml": SHARED_MANIFEST,
        }
    )


@pytest.fixture()
def single_package(make_workspace) -> Path:
    return make_workspace(
        {
            "Cargo.toml": """\
            [package]
            name = "solo"
            version = "1.2.3"
            """
        }
    )


# -----------------------------------------------------------------------------
# Logging isolation
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


# -----------------------------------------------------------------------------
# CLI helpers
# -----------------------------------------------------------------------------
@pytest.fixture()
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def run_cli(cli_runner: CliRunner):
    """
    Invoke goosectl against a workspace root:

        result = run_cli(root, ["bump", "release"], ["-p", "app"])
    """
    from goosectl.cli import app

    def _run(root: Path, args: List[str], global_args: Optional[List[str]] = None):
        argv = ["--manifest-path", str(root / "Cargo.toml"), *(global_args or []), *args]
        # handlers bind to the runner's stderr, which is replaced per invoke
        reset_logging()
        return cli_runner.invoke(app, argv)

    return _run


# -----------------------------------------------------------------------------
# Hypothesis profile for fast & stable property tests
# -----------------------------------------------------------------------------
settings.register_profile(
    "goosectl_fast",
    deadline=None,
    max_examples=100,
    suppress_health_check=(HealthCheck.too_slow,),
    print_blob=True,
)
settings.load_profile(os.environ.get("HYPOTHESIS_PROFILE", "goosectl_fast"))

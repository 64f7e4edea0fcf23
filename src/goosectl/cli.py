#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
goosectl - workspace-aware version bumping for Cargo workspaces (Typer CLI)

Commands:
  bump version LEVEL [PRE]   Bump the release line; with PRE start a prerelease
  bump prerelease [PRE]      Increment the prerelease counter, or move to PRE
  bump release               Finalize the current prerelease
  current-version            Print the selected version(s) (plaintext/json/table)

Global options select packages (--package/-p, --workspace), the manifest
(--manifest-path) and behaviour (--dry-run, --log-level, --no-rich). They
go before the command:

  goosectl -p core --dry-run bump version minor alpha
  cargo goose --workspace current-version -f json
"""

from __future__ import annotations

import enum
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.text import Text

from goosectl import __version__
from goosectl.bump import run_bump
from goosectl.config import RunOptions, load_config
from goosectl.errors import GooseError
from goosectl.logging_utils import init_logger
from goosectl.report import Reporter, VersionRecord, packages_document
from goosectl.version.semantic_version import ReleaseLevel
from goosectl.version.transition import request_from_args
from goosectl.workspace import Workspace, select_single_version

# -----------------------------------------------------------------------------
# Typer apps
# -----------------------------------------------------------------------------
app = typer.Typer(
    name="goosectl",
    help="Workspace-aware semantic version bumping for Cargo workspaces.",
    add_completion=False,
    no_args_is_help=True,
)
bump_app = typer.Typer(help="Bump the version of the selected packages.", no_args_is_help=True)
app.add_typer(bump_app, name="bump")

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


class OutputFormat(str, enum.Enum):
    PLAINTEXT = "plaintext"
    JSON = "json"
    TABLE = "table"


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _options(ctx: typer.Context) -> RunOptions:
    if not isinstance(ctx.obj, RunOptions):
        ctx.obj = RunOptions()
    return ctx.obj


@contextmanager
def _reported_errors() -> Iterator[None]:
    """Print goosectl errors verbatim and exit 1."""
    try:
        yield
    except GooseError as exc:
        err_console.print(Text(f"error: {exc}", style="bold red"), soft_wrap=True)
        raise typer.Exit(code=1) from None


def _run_bump(
    ctx: typer.Context,
    target: str,
    *,
    level: Optional[ReleaseLevel] = None,
    pre: Optional[str] = None,
    metadata: Optional[str] = None,
) -> None:
    options = _options(ctx)
    with _reported_errors():
        request = request_from_args(target, level=level, pre=pre, build=metadata)
        workspace = Workspace.discover(options.manifest_path)
        config = load_config(workspace.root)
        options.propagate = options.propagate and config.project.propagate
        run_bump(request, options, workspace=workspace, reporter=Reporter(console))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"goosectl {__version__}")
        raise typer.Exit()


# -----------------------------------------------------------------------------
# Global options
# -----------------------------------------------------------------------------
@app.callback()
def _root_callback(
    ctx: typer.Context,
    package: Optional[List[str]] = typer.Option(
        None, "--package", "-p", help="Package to operate on (repeatable)"
    ),
    workspace: bool = typer.Option(False, "--workspace", help="Operate on every workspace member"),
    manifest_path: Optional[Path] = typer.Option(
        None, "--manifest-path", help="Path to Cargo.toml (default: nearest one upwards)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without writing manifests"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    no_rich: bool = typer.Option(False, "--no-rich", help="Plain log output"),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True, help="Show goosectl version"
    ),
) -> None:
    init_logger(level=log_level, rich=not no_rich)
    ctx.obj = RunOptions(
        packages=list(package or []),
        workspace=workspace,
        manifest_path=manifest_path,
        dry_run=dry_run,
    )


# -----------------------------------------------------------------------------
# bump
# -----------------------------------------------------------------------------
@bump_app.callback()
def _bump_callback(
    ctx: typer.Context,
    no_propagate: bool = typer.Option(
        False, "--no-propagate", help="Do not update workspace dependency versions when bumping a package"
    ),
) -> None:
    _options(ctx).propagate = not no_propagate


@bump_app.command("version")
def bump_version(
    ctx: typer.Context,
    level: ReleaseLevel = typer.Argument(..., case_sensitive=False, help="Release level to bump"),
    pre: Optional[str] = typer.Argument(
        None,
        metavar="PRERELEASE",
        help="Start a prerelease on the new version line using the given identifier (e.g. `alpha`, `beta`, `rc`).",
    ),
    metadata: Optional[str] = typer.Option(None, "--metadata", help="Build metadata"),
) -> None:
    """Bump MAJOR/MINOR/PATCH of a release version (1.2.3 -> 1.3.0 or 1.3.0-alpha.1)."""
    _run_bump(ctx, "version", level=level, pre=pre, metadata=metadata)


@bump_app.command("prerelease")
def bump_prerelease(
    ctx: typer.Context,
    pre: Optional[str] = typer.Argument(
        None,
        metavar="PRERELEASE",
        help="Increment the current prerelease counter, or transition to a new prerelease identifier "
        "(e.g. `alpha`, `beta`, `rc`).",
    ),
    metadata: Optional[str] = typer.Option(None, "--metadata", help="Build metadata"),
) -> None:
    """Advance a prerelease (alpha.1 -> alpha.2, or alpha.3 -> beta.1)."""
    _run_bump(ctx, "prerelease", pre=pre, metadata=metadata)


@bump_app.command("release")
def bump_release(
    ctx: typer.Context,
    metadata: Optional[str] = typer.Option(None, "--metadata", help="Build metadata"),
) -> None:
    """Finalize a prerelease (1.3.0-rc.2 -> 1.3.0)."""
    _run_bump(ctx, "release", metadata=metadata)


# -----------------------------------------------------------------------------
# current-version
# -----------------------------------------------------------------------------
@app.command("current-version")
def current_version(
    ctx: typer.Context,
    fmt: OutputFormat = typer.Option(
        OutputFormat.PLAINTEXT, "--format", "-f", case_sensitive=False, help="Output format"
    ),
    force_single_version: bool = typer.Option(
        False, "--force-single-version", help="Assert all selected packages share the same version"
    ),
) -> None:
    """Print the current version of the selected packages."""
    options = _options(ctx)
    reporter = Reporter(console)
    with _reported_errors():
        ws = Workspace.discover(options.manifest_path)
        packages = ws.select_packages(options.workspace, options.packages)
        entries = [(p.name, p.semantic_version()) for p in packages]

        # plaintext stays strict
        if force_single_version or fmt is OutputFormat.PLAINTEXT:
            version = select_single_version(v for _, v in entries)
            if fmt is OutputFormat.JSON:
                reporter.json(VersionRecord.from_version(version).to_dict())
            elif fmt is OutputFormat.TABLE:
                reporter.versions_table(entries)
            else:
                reporter.plain(version)
            return

        if fmt is OutputFormat.JSON:
            reporter.json(packages_document(entries))
        else:
            reporter.versions_table(entries)


# -----------------------------------------------------------------------------
# Entry points
# -----------------------------------------------------------------------------
def main() -> None:
    app(prog_name="goosectl")


def cargo_main() -> None:
    """``cargo goose ...``: Cargo passes the subcommand name as the first argument."""
    args = sys.argv[1:]
    if args[:1] == ["goose"]:
        args = args[1:]
    app(args=args, prog_name="cargo goose")


if __name__ == "__main__":
    main()

"""
goosectl.config - workspace configuration and per-run options

Configuration is optional and looked up at the workspace root, first match
wins:

    1. goose.toml
    2. [workspace.metadata.goose] in Cargo.toml
    3. [package.metadata.goose]   in Cargo.toml

The schema is an OmegaConf structured config, so unknown keys and wrong
types are rejected instead of silently ignored:

    version = 1

    [project]
    propagate = true     # rewrite path-dependency requirements after a bump

    [rust]               # language table, no keys yet

``RunOptions`` carries what the command line selected for one invocation.
It is handed to both bump phases; nothing is kept in module state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

import tomlkit
from omegaconf import OmegaConf
from omegaconf.errors import OmegaConfBaseException
from tomlkit.exceptions import TOMLKitError

from goosectl.errors import ConfigError
from goosectl.logging_utils import get_logger

CONFIG_FILE = "goose.toml"
SUPPORTED_CONFIG_VERSION = 1

log = get_logger("config")


# -----------------------------------------------------------------------------
# Schema
# -----------------------------------------------------------------------------
@dataclass
class ProjectConfig:
    propagate: bool = True


@dataclass
class LanguageConfig:
    pass


@dataclass
class GooseConfig:
    version: int = SUPPORTED_CONFIG_VERSION
    project: ProjectConfig = field(default_factory=ProjectConfig)
    rust: LanguageConfig = field(default_factory=LanguageConfig)


@dataclass
class RunOptions:
    """Selection and behaviour flags for a single CLI invocation."""

    packages: List[str] = field(default_factory=list)
    workspace: bool = False
    manifest_path: Optional[Path] = None
    dry_run: bool = False
    propagate: bool = True


# -----------------------------------------------------------------------------
# Loading
# -----------------------------------------------------------------------------
def build_config(data: Optional[Mapping[str, Any]] = None) -> GooseConfig:
    """Validate a plain mapping against the schema and return a GooseConfig."""
    schema = OmegaConf.structured(GooseConfig)
    try:
        merged = OmegaConf.merge(schema, dict(data or {}))
        config = OmegaConf.to_object(merged)
    except OmegaConfBaseException as exc:
        raise ConfigError(f"Invalid goose configuration: {exc}") from None
    if config.version != SUPPORTED_CONFIG_VERSION:
        raise ConfigError(
            f"Unsupported goose configuration version {config.version} "
            f"(expected {SUPPORTED_CONFIG_VERSION})."
        )
    return config


def _read_toml(path: Path) -> dict:
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8")).unwrap()
    except (OSError, TOMLKitError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from None


def _metadata_table(manifest: Mapping[str, Any], section: str) -> Optional[Mapping[str, Any]]:
    table = manifest.get(section, {})
    metadata = table.get("metadata", {}) if isinstance(table, Mapping) else {}
    goose = metadata.get("goose") if isinstance(metadata, Mapping) else None
    return goose if isinstance(goose, Mapping) else None


def load_config(root: Path) -> GooseConfig:
    """Load the configuration for the workspace rooted at ``root`` (defaults if none)."""
    config_file = root / CONFIG_FILE
    if config_file.is_file():
        log.debug("loading configuration from %s", config_file)
        return build_config(_read_toml(config_file))

    manifest_file = root / "Cargo.toml"
    if manifest_file.is_file():
        manifest = _read_toml(manifest_file)
        for section in ("workspace", "package"):
            table = _metadata_table(manifest, section)
            if table is not None:
                log.debug("loading configuration from [%s.metadata.goose] in %s", section, manifest_file)
                return build_config(table)

    return build_config()


__all__ = [
    "CONFIG_FILE",
    "ProjectConfig",
    "LanguageConfig",
    "GooseConfig",
    "RunOptions",
    "build_config",
    "load_config",
]

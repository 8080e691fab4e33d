"""Load and merge configuration from .gitgutter.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from gitgutter.config.schema import (
    OUTPUT_FORMATS,
    BlameConfig,
    ConflictConfig,
    DiffConfig,
    GitGutterConfig,
    NavigationConfig,
    OutputConfig,
    SignsConfig,
)

CONFIG_FILENAME = ".gitgutter.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _merge_env_overrides(cfg: GitGutterConfig) -> None:
    """Apply GITGUTTER_* environment variable overrides."""
    if (val := os.environ.get("GITGUTTER_REVISION")) is not None:
        cfg.diff.revision = val.strip()
    if val := os.environ.get("GITGUTTER_FORMAT"):
        if val in OUTPUT_FORMATS:
            cfg.output.format = val  # type: ignore[assignment]
    if val := os.environ.get("GITGUTTER_WRAPSCAN"):
        cfg.navigation.wrapscan = val.lower() not in ("0", "false", "no")


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    filtered = {k: v for k, v in raw.items() if k in valid_fields}
    return cls(**filtered)


def _validate(cfg: GitGutterConfig) -> None:
    if cfg.output.format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Invalid output.format {cfg.output.format!r}; expected one of {', '.join(OUTPUT_FORMATS)}"
        )
    if not isinstance(cfg.diff.revision, str):
        raise ConfigError("diff.revision must be a string")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> GitGutterConfig:
    """Load, validate, and return a GitGutterConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = GitGutterConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = GitGutterConfig(
            version=raw.get("version", "1.0"),
            diff=_build_section(raw, DiffConfig, "diff"),
            signs=_build_section(raw, SignsConfig, "signs"),
            blame=_build_section(raw, BlameConfig, "blame"),
            conflict=_build_section(raw, ConflictConfig, "conflict"),
            navigation=_build_section(raw, NavigationConfig, "navigation"),
            output=_build_section(raw, OutputConfig, "output"),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg

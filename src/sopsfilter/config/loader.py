"""Load and merge configuration from .sopsfilter.toml and env vars."""

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

from sopsfilter.config.schema import (
    LOG_LEVELS,
    FilterConfig,
    LogConfig,
    SopsConfig,
    SopsFilterConfig,
)

CONFIG_FILE_NAME = ".sopsfilter.toml"


class ConfigError(Exception):
    """Raised when config is malformed or unreadable."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Locate the config file. *override* takes precedence."""
    if override:
        p = Path(override)
        if not p.is_file():
            raise ConfigError(f"Config file not found: {override}")
        return p
    candidate = repo_root / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def _parse_toml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Failed to parse {path}: {exc}") from exc


def _build_section(data: Dict[str, Any], cls: type, section: str):
    """Build a dataclass from a TOML section dict, ignoring unknown keys."""
    raw = data.get(section, {})
    if not isinstance(raw, dict):
        raise ConfigError(f"[{section}] must be a table")
    valid_fields = {f.name for f in dataclasses.fields(cls)}
    return cls(**{k: v for k, v in raw.items() if k in valid_fields})


def _merge_env_overrides(cfg: SopsFilterConfig) -> None:
    """Apply SOPSFILTER_* environment variable overrides."""
    if val := os.environ.get("SOPSFILTER_SOPS_BINARY"):
        cfg.sops.binary = val
    if val := os.environ.get("SOPSFILTER_SOPS_CONFIG"):
        cfg.sops.config_file = val
    if val := os.environ.get("SOPSFILTER_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.log.level = val.lower()  # type: ignore[assignment]


def _validate(cfg: SopsFilterConfig) -> None:
    if cfg.log.level not in LOG_LEVELS:
        raise ConfigError(f"Invalid log level: {cfg.log.level!r}")
    if not cfg.filter.name or any(c in cfg.filter.name for c in " .\"'"):
        raise ConfigError(f"Invalid filter name: {cfg.filter.name!r}")
    if not isinstance(cfg.filter.patterns, list):
        raise ConfigError("[filter] patterns must be a list")


def load_config(
    repo_root: Path,
    config_override: Optional[str] = None,
) -> SopsFilterConfig:
    """Load, validate, and return a SopsFilterConfig."""
    config_path = find_config_file(repo_root, config_override)

    if config_path is None:
        cfg = SopsFilterConfig()
    else:
        raw = _parse_toml(config_path)
        cfg = SopsFilterConfig(
            version=str(raw.get("version", "1.0")),
            sops=_build_section(raw, SopsConfig, "sops"),
            filter=_build_section(raw, FilterConfig, "filter"),
            log=_build_section(raw, LogConfig, "log"),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg


def resolve_sops_config(cfg: SopsFilterConfig, repo_root: Path) -> Optional[Path]:
    """Return the sops --config path relative to *repo_root*, if configured."""
    if not cfg.sops.config_file:
        return None
    p = Path(cfg.sops.config_file)
    return p if p.is_absolute() else repo_root / p

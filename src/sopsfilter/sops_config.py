"""Discovery and inspection of the ``.sops.yaml`` creation rules."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

SOPS_CONFIG_NAME = ".sops.yaml"

KEY_SOURCES = frozenset(
    {"age", "pgp", "kms", "gcp_kms", "azure_keyvault", "hc_vault_transit_uri", "key_groups"}
)


class SopsConfigError(Exception):
    """Raised when .sops.yaml cannot be read or parsed."""


@dataclass
class CreationRule:
    index: int
    path_regex: Optional[str] = None
    keys: Dict[str, Any] = field(default_factory=dict)
    pattern: Optional[re.Pattern[str]] = field(default=None, repr=False)

    def matches(self, path: str) -> bool:
        # A rule without path_regex applies to every file
        if self.pattern is None:
            return True
        return self.pattern.search(path) is not None

    @property
    def key_types(self) -> List[str]:
        return sorted(self.keys)


def find_sops_config(start: Path) -> Optional[Path]:
    """Walk up from *start* and return the first .sops.yaml found."""
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / SOPS_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def load_creation_rules(config_path: Path) -> List[CreationRule]:
    """Parse the creation_rules list from a .sops.yaml file."""
    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise SopsConfigError(f"Failed to parse {config_path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise SopsConfigError(f"{config_path}: top level must be a mapping")

    rules: List[CreationRule] = []
    for idx, entry in enumerate(raw.get("creation_rules") or []):
        if not isinstance(entry, dict):
            raise SopsConfigError(f"{config_path}: creation_rules[{idx}] must be a mapping")
        keys = {k: v for k, v in entry.items() if k in KEY_SOURCES}
        path_regex = entry.get("path_regex")
        pattern = None
        if path_regex is not None:
            try:
                pattern = re.compile(str(path_regex))
            except re.error as exc:
                raise SopsConfigError(
                    f"{config_path}: creation_rules[{idx}] path_regex: {exc}"
                ) from exc
        rules.append(CreationRule(index=idx, path_regex=path_regex, keys=keys, pattern=pattern))
    return rules


def matching_rule(rules: List[CreationRule], path: str) -> Optional[CreationRule]:
    """Return the first rule whose path_regex matches *path*, like sops does."""
    for rule in rules:
        if rule.matches(path):
            return rule
    return None

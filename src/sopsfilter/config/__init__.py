"""Configuration loading, schema, and defaults."""

from sopsfilter.config.loader import ConfigError, load_config, resolve_sops_config
from sopsfilter.config.schema import SopsFilterConfig

__all__ = [
    "ConfigError",
    "SopsFilterConfig",
    "load_config",
    "resolve_sops_config",
]

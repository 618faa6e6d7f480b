"""Configuration schema — dataclasses for every config section."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal, Optional

LogLevel = Literal["debug", "info", "warning", "error"]

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")


@dataclass
class SopsConfig:
    binary: str = "sops"
    config_file: Optional[str] = None  # passed to sops as --config


@dataclass
class FilterConfig:
    name: str = "sops"  # git filter/diff driver name
    patterns: List[str] = field(default_factory=list)  # used by `install` when none given


@dataclass
class LogConfig:
    level: LogLevel = "warning"


@dataclass
class SopsFilterConfig:
    version: str = "1.0"
    sops: SopsConfig = field(default_factory=SopsConfig)
    filter: FilterConfig = field(default_factory=FilterConfig)
    log: LogConfig = field(default_factory=LogConfig)

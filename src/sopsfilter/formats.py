"""Content formats understood by sops, and inference from file names."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath
from typing import Optional, Union


class Format(str, Enum):
    BINARY = "binary"
    DOTENV = "dotenv"
    INI = "ini"
    JSON = "json"
    YAML = "yaml"


_SUFFIX_FORMATS: dict[str, Format] = {
    ".yaml": Format.YAML,
    ".yml": Format.YAML,
    ".json": Format.JSON,
    ".env": Format.DOTENV,
    ".ini": Format.INI,
}


def format_for_path(path: str) -> Format:
    """Infer the format from the file's final suffix; binary when unknown."""
    name = PurePosixPath(path).name
    # ".env" alone has no suffix in pathlib terms
    suffix = name if name.startswith(".") and name.count(".") == 1 else PurePosixPath(name).suffix
    return _SUFFIX_FORMATS.get(suffix, Format.BINARY)


def format_for_path_or_string(path: str, explicit: Optional[Union[Format, str]] = None) -> Format:
    """Return *explicit* when given, otherwise infer from *path*.

    Raises ValueError for an explicit format sops does not know.
    """
    if explicit:
        return Format(explicit)
    return format_for_path(path)

"""Filter driver installer — sopsfilter install / uninstall.

Registers ``filter.<name>`` and ``diff.<name>`` in the repository's local
git config and tags the matching paths in ``.gitattributes``. Every
attribute line written here is preceded by a marker comment so uninstall
removes exactly what install added.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Tuple

from sopsfilter.formats import Format
from sopsfilter.git.adapter import get_config, remove_config_section, set_config

_MARKER_PREFIX = "# sopsfilter-driver: "
_EXECUTABLE = "sopsfilter"


def driver_name(base: str, fmt: Optional[Format] = None) -> str:
    """Return the driver name, suffixed with the format when one is pinned."""
    return f"{base}-{fmt.value}" if fmt else base


def _type_flags(fmt: Optional[Format], *, output: bool = True) -> str:
    if fmt is None:
        return ""
    flags = f" --input-type {fmt.value}"
    if output:
        flags += f" --output-type {fmt.value}"
    return flags


def _driver_config(name: str, fmt: Optional[Format]) -> List[Tuple[str, str]]:
    return [
        (f"filter.{name}.clean", f"{_EXECUTABLE} clean{_type_flags(fmt)} %f"),
        (f"filter.{name}.smudge", f"{_EXECUTABLE} smudge{_type_flags(fmt)} %f"),
        (f"filter.{name}.required", "true"),
        (f"diff.{name}.textconv", f"{_EXECUTABLE} diff{_type_flags(fmt, output=False)}"),
    ]


def _attribute_line(pattern: str, name: str) -> str:
    return f"{pattern} filter={name} diff={name}"


def _read_lines(path: Path) -> List[str]:
    if not path.exists():
        return []
    return path.read_text(encoding="utf-8").splitlines()


def _write_lines(path: Path, lines: List[str]) -> None:
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def install_driver(
    repo_root: Path,
    name: str,
    patterns: List[str],
    *,
    fmt: Optional[Format] = None,
    force: bool = False,
) -> Tuple[bool, str]:
    """Install the clean/smudge/textconv driver *name* for *patterns*.

    Returns (success, message).
    """
    if not (repo_root / ".git").exists():
        return False, f"Not a git repository: {repo_root}"

    wanted = _driver_config(name, fmt)
    existing_clean = get_config(repo_root, f"filter.{name}.clean")
    if existing_clean is not None and existing_clean != wanted[0][1] and not force:
        return (
            False,
            f"A filter named '{name}' is already configured ({existing_clean}). "
            "Use --force to overwrite, or pick another --name.",
        )

    for key, value in wanted:
        set_config(repo_root, key, value)

    attributes = repo_root / ".gitattributes"
    lines = _read_lines(attributes)
    marker = f"{_MARKER_PREFIX}{name}"
    added = 0
    for pattern in patterns:
        line = _attribute_line(pattern, name)
        if line in lines:
            continue
        lines += [marker, line]
        added += 1
    if added:
        _write_lines(attributes, lines)

    return True, f"Installed filter '{name}' ({added} new attribute pattern(s))"


def uninstall_driver(repo_root: Path, name: str) -> Tuple[bool, str]:
    """Remove driver *name* and the attribute lines install added.

    Returns (success, message).
    """
    removed_filter = remove_config_section(repo_root, f"filter.{name}")
    removed_diff = remove_config_section(repo_root, f"diff.{name}")

    attributes = repo_root / ".gitattributes"
    lines = _read_lines(attributes)
    marker = f"{_MARKER_PREFIX}{name}"
    suffix = _attribute_line("", name)
    kept: List[str] = []
    removed_lines = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        following = lines[i + 1] if i + 1 < len(lines) else None
        # A marker only claims the next line while it still tags this driver
        if line == marker and following is not None and following.rstrip().endswith(suffix):
            removed_lines += 1
            i += 2
            continue
        kept.append(line)
        i += 1
    if removed_lines:
        _write_lines(attributes, kept)

    if not (removed_filter or removed_diff or removed_lines):
        return True, f"No filter named '{name}' found — nothing to remove."
    return True, f"Removed filter '{name}' ({removed_lines} attribute pattern(s))"

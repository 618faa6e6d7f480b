"""Status classifier — combined index/worktree state of a single path.

Built on ``git status --porcelain=v1 -z``. The X column becomes the staging
state and the Y column the worktree state. Before asking git, the clean
filter configured for the path is replaced by ``cat`` so computing status
never re-enters the filter that is currently running.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional, Tuple

from sopsfilter.git.adapter import get_attribute, run_git
from sopsfilter.git.models import FileState, ObjectStatus

_STATE_CODES: dict[str, FileState] = {
    " ": FileState.UNMODIFIED,
    "M": FileState.MODIFIED,
    "T": FileState.MODIFIED,
    "A": FileState.ADDED,
    "D": FileState.DELETED,
    "R": FileState.RENAMED,
    "C": FileState.COPIED,
    "?": FileState.UNTRACKED,
    "U": FileState.UPDATED_BUT_UNMERGED,
}

_UNMERGED_PAIRS = frozenset({"DD", "AU", "UD", "UA", "DU", "AA", "UU"})

_CLEAN = ObjectStatus(staging=FileState.UNMODIFIED, worktree=FileState.UNMODIFIED)


def parse_porcelain(output: bytes) -> Iterator[Tuple[str, str, Optional[str]]]:
    """Yield ``(xy, path, orig_path)`` records from ``status --porcelain=v1 -z``."""
    records = output.split(b"\0")
    idx = 0
    while idx < len(records):
        record = records[idx]
        idx += 1
        if len(record) < 4:
            continue
        xy = record[:2].decode("ascii")
        path = record[3:].decode("utf-8", errors="surrogateescape")
        orig_path: Optional[str] = None
        if xy[0] in "RC" or xy[1] in "RC":
            # rename/copy source follows as its own NUL-terminated field
            if idx < len(records):
                orig_path = records[idx].decode("utf-8", errors="surrogateescape")
                idx += 1
        yield xy, path, orig_path


def status_from_code(xy: str) -> ObjectStatus:
    """Translate a porcelain XY code into an ObjectStatus."""
    if xy in _UNMERGED_PAIRS:
        return ObjectStatus(
            staging=FileState.UPDATED_BUT_UNMERGED,
            worktree=FileState.UPDATED_BUT_UNMERGED,
        )
    if xy == "??":
        return ObjectStatus(staging=FileState.UNTRACKED, worktree=FileState.UNTRACKED)
    return ObjectStatus(
        staging=_STATE_CODES.get(xy[0], FileState.UNMODIFIED),
        worktree=_STATE_CODES.get(xy[1], FileState.UNMODIFIED),
    )


def _filter_overrides(repo_root: Path, path: str) -> list[str]:
    driver = get_attribute(repo_root, path, "filter")
    if driver is None:
        return []
    return [
        "-c", f"filter.{driver}.clean=cat",
        "-c", f"filter.{driver}.required=false",
    ]


def classify(repo_root: Path, path: str) -> ObjectStatus:
    """Return the ObjectStatus of *path*. Raises RepositoryUnavailable."""
    out = run_git(
        [
            *_filter_overrides(repo_root, path),
            "status",
            "--porcelain=v1",
            "-z",
            "--untracked-files=all",
            "--ignore-submodules=all",
            "--",
            path,
        ],
        cwd=repo_root,
    )
    for xy, entry_path, orig_path in parse_porcelain(out):
        if entry_path == path or orig_path == path:
            return status_from_code(xy)
    return _CLEAN

"""Object locator — fetch the stored bytes for a path from the index or HEAD."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sopsfilter.git.adapter import (
    GitError,
    ReadFailure,
    RepositoryUnavailable,
    probe_git,
    read_blob,
    run_git,
)
from sopsfilter.git.models import GitArea, StoredObject


def _list(args: list[str], repo_root: Path) -> bytes:
    try:
        return run_git(args, cwd=repo_root)
    except RepositoryUnavailable:
        raise
    except GitError as exc:
        raise ReadFailure(str(exc)) from exc


def _parse_stage_entries(output: bytes, path: str) -> Optional[str]:
    """Return the object id of the stage-0 index entry for *path*."""
    # ls-files -s -z: <mode> SP <object> SP <stage> TAB <path> NUL
    for record in output.split(b"\0"):
        if not record:
            continue
        meta, _, name = record.partition(b"\t")
        if name.decode("utf-8", errors="surrogateescape") != path:
            continue
        _mode, object_id, stage = meta.decode("ascii").split(" ")
        if stage == "0":
            return object_id
    return None


def _parse_tree_entry(output: bytes, path: str) -> Optional[str]:
    """Return the blob id for *path* from ls-tree output, ignoring non-blobs."""
    # ls-tree -z: <mode> SP <type> SP <object> TAB <path> NUL
    for record in output.split(b"\0"):
        if not record:
            continue
        meta, _, name = record.partition(b"\t")
        if name.decode("utf-8", errors="surrogateescape") != path:
            continue
        _mode, kind, object_id = meta.decode("ascii").split(" ")
        return object_id if kind == "blob" else None
    return None


def head_commit(repo_root: Path) -> Optional[str]:
    """Return the commit id HEAD points at, or None for an unborn branch."""
    out = probe_git(["rev-parse", "--verify", "--quiet", "HEAD^{commit}"], cwd=repo_root)
    if out is None:
        return None
    return out.decode("ascii").strip() or None


def locate_staged(repo_root: Path, path: str) -> Optional[StoredObject]:
    out = _list(["ls-files", "--stage", "-z", "--", path], repo_root)
    object_id = _parse_stage_entries(out, path)
    if object_id is None:
        return None
    return StoredObject(path=path, data=read_blob(repo_root, object_id), area=GitArea.STAGING)


def locate_committed(repo_root: Path, path: str) -> Optional[StoredObject]:
    commit = head_commit(repo_root)
    if commit is None:
        # Empty repository: nothing to walk
        return None
    out = _list(["ls-tree", "-z", "--full-tree", commit, "--", path], repo_root)
    object_id = _parse_tree_entry(out, path)
    if object_id is None:
        return None
    return StoredObject(path=path, data=read_blob(repo_root, object_id), area=GitArea.COMMITTED)


def locate(repo_root: Path, path: str, area: GitArea) -> Optional[StoredObject]:
    """Return the object stored for *path* in *area*, or None if there is none.

    Raises RepositoryUnavailable if *repo_root* is not a repository and
    ReadFailure if the object store is unreadable.
    """
    if area is GitArea.STAGING:
        return locate_staged(repo_root, path)
    return locate_committed(repo_root, path)

"""Data models for repository state — areas, file states, stored objects."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class GitArea(str, Enum):
    STAGING = "staging"
    COMMITTED = "committed"


# Most recent intent first
GIT_AREAS: tuple[GitArea, ...] = (GitArea.STAGING, GitArea.COMMITTED)


class FileState(str, Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"
    ADDED = "added"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    UNTRACKED = "untracked"
    UPDATED_BUT_UNMERGED = "updated_but_unmerged"


@dataclass(frozen=True, slots=True)
class ObjectStatus:
    """Combined index/worktree status of a single path."""

    staging: FileState
    worktree: FileState


@dataclass(frozen=True)
class StoredObject:
    """Raw bytes recorded for a path in one area of the repository."""

    path: str
    data: bytes
    area: GitArea

"""Git interface layer — adapter, object locator, status classifier, models."""

from sopsfilter.git.adapter import (
    GitError,
    ReadFailure,
    RepositoryUnavailable,
    get_repo_root,
)
from sopsfilter.git.locator import locate
from sopsfilter.git.models import GIT_AREAS, FileState, GitArea, ObjectStatus, StoredObject
from sopsfilter.git.repository import Repository
from sopsfilter.git.status import classify

__all__ = [
    "GIT_AREAS",
    "FileState",
    "GitArea",
    "GitError",
    "ObjectStatus",
    "ReadFailure",
    "Repository",
    "RepositoryUnavailable",
    "StoredObject",
    "classify",
    "get_repo_root",
    "locate",
]

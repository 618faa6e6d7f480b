"""Read-only view of one work tree, bound to its root directory."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sopsfilter.git.adapter import get_repo_root
from sopsfilter.git.locator import locate
from sopsfilter.git.models import GitArea, ObjectStatus, StoredObject
from sopsfilter.git.status import classify


class Repository:
    """Object locator and status classifier for paths relative to ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = root

    @classmethod
    def open(cls, cwd: Optional[Path] = None) -> "Repository":
        """Discover the work tree containing *cwd*. Raises RepositoryUnavailable."""
        return cls(get_repo_root(cwd))

    def locate(self, path: str, area: GitArea) -> Optional[StoredObject]:
        return locate(self.root, path, area)

    def classify(self, path: str) -> ObjectStatus:
        return classify(self.root, path)

    def __repr__(self) -> str:
        return f"Repository({str(self.root)!r})"

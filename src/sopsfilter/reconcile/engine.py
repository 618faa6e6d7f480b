"""Reconciliation engine — reuse the stored ciphertext when nothing changed.

sops re-encrypts identical plaintext to different bytes (fresh data keys,
IVs and MAC), so the clean filter would rewrite every tracked secret file
on each ``git add``. The engine looks for a ciphertext already recorded for
the path, decrypts it and, when its plaintext equals what git handed us,
returns those stored bytes instead of the freshly encrypted ones.

Candidates are tried in order: the index first, then the HEAD commit. A
candidate that cannot be decrypted is skipped. Status combinations whose
meaning depends on rename, copy, delete or merge bookkeeping are refused
with UnhandledStatusError rather than guessed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol

from sopsfilter.formats import Format
from sopsfilter.git.models import GIT_AREAS, FileState, GitArea, ObjectStatus, StoredObject
from sopsfilter.reconcile.models import Fresh, ReconciliationInput, ReconciliationResult, Reuse
from sopsfilter.sops import DecodeFailure


class UnhandledStatusError(Exception):
    """Raised when the path's status makes reuse ambiguous (merge, rename, ...)."""

    def __init__(self, path: str, status: ObjectStatus) -> None:
        self.path = path
        self.status = status
        super().__init__(
            f"{path}: worktree status '{status.worktree.value}' "
            f"(staging '{status.staging.value}') is not handled; "
            "resolve it and re-run the command"
        )


class ObjectSource(Protocol):
    def locate(self, path: str, area: GitArea) -> Optional[StoredObject]: ...

    def classify(self, path: str) -> ObjectStatus: ...


class Recoverer(Protocol):
    def recover(
        self, data: bytes, ciphertext_format: Format, plaintext_format: Optional[Format] = None
    ) -> bytes: ...


class Policy(str, Enum):
    COMPARE = "compare"
    NO_COMPARISON = "no_comparison"
    UNHANDLED = "unhandled"


# One entry per FileState; a missing entry is a KeyError, not a silent default
WORKTREE_POLICY: dict[FileState, Policy] = {
    FileState.ADDED: Policy.COMPARE,
    FileState.MODIFIED: Policy.COMPARE,
    FileState.UNTRACKED: Policy.NO_COMPARISON,
    FileState.UNMODIFIED: Policy.NO_COMPARISON,
    FileState.UPDATED_BUT_UNMERGED: Policy.UNHANDLED,
    FileState.RENAMED: Policy.UNHANDLED,
    FileState.COPIED: Policy.UNHANDLED,
    FileState.DELETED: Policy.UNHANDLED,
}


def _never(status: ObjectStatus) -> bool:
    return False


def _newly_added(status: ObjectStatus) -> bool:
    # an added path has no history worth comparing against
    return status.worktree is FileState.ADDED


_AREA_SKIP: dict[GitArea, Callable[[ObjectStatus], bool]] = {
    GitArea.STAGING: _never,
    GitArea.COMMITTED: _newly_added,
}

# (area, skip predicate), tried in GIT_AREAS order
AREA_PLAN: tuple[tuple[GitArea, Callable[[ObjectStatus], bool]], ...] = tuple(
    (area, _AREA_SKIP[area]) for area in GIT_AREAS
)


class Outcome(str, Enum):
    MATCHED = "matched"
    MISMATCHED = "mismatched"
    UNDECODABLE = "undecodable"
    ABSENT = "absent"


@dataclass(frozen=True)
class Comparison:
    outcome: Outcome
    stored: Optional[StoredObject] = None


class Reconciler:
    """Decide between the stored and the freshly encrypted ciphertext."""

    def __init__(
        self,
        source: ObjectSource,
        recoverer: Recoverer,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.source = source
        self.recoverer = recoverer
        self.log = logger or logging.getLogger("sopsfilter.reconcile")

    def decide(self, request: ReconciliationInput) -> ReconciliationResult:
        """Return Reuse(stored bytes) or Fresh(request.fresh_ciphertext).

        Raises UnhandledStatusError, RepositoryUnavailable or ReadFailure.
        """
        status = self.source.classify(request.path)
        policy = WORKTREE_POLICY[status.worktree]
        self.log.debug(
            "%s: staging=%s worktree=%s policy=%s",
            request.path, status.staging.value, status.worktree.value, policy.value,
        )

        if policy is Policy.UNHANDLED:
            raise UnhandledStatusError(request.path, status)
        if policy is Policy.NO_COMPARISON:
            return Fresh(request.fresh_ciphertext)

        for area, skip in AREA_PLAN:
            if skip(status):
                self.log.debug("%s: skipping %s area", request.path, area.value)
                continue
            comparison = self.compare(request, area)
            self.log.debug("%s: %s area -> %s", request.path, area.value, comparison.outcome.value)
            if comparison.outcome is Outcome.MATCHED and comparison.stored is not None:
                self.log.info("%s: plaintext unchanged, reusing %s ciphertext", request.path, area.value)
                return Reuse(comparison.stored.data)

        self.log.info("%s: emitting freshly encrypted content", request.path)
        return Fresh(request.fresh_ciphertext)

    def compare(self, request: ReconciliationInput, area: GitArea) -> Comparison:
        """Compare the input plaintext with the object stored in *area*."""
        stored = self.source.locate(request.path, area)
        if stored is None:
            return Comparison(Outcome.ABSENT)
        try:
            plaintext = self.recoverer.recover(
                stored.data, request.ciphertext_format, request.plaintext_format
            )
        except DecodeFailure as exc:
            self.log.info("%s: stored %s object is not decryptable: %s", request.path, area.value, exc)
            return Comparison(Outcome.UNDECODABLE, stored)
        if plaintext == request.plaintext:
            return Comparison(Outcome.MATCHED, stored)
        return Comparison(Outcome.MISMATCHED, stored)

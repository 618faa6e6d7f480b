"""Git subprocess wrapper — repository discovery and raw plumbing calls."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Optional

_NOT_A_REPO_MARKERS = ("not a git repository", "not a work tree")


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class RepositoryUnavailable(GitError):
    """Raised when no usable repository exists at the working directory."""


class ReadFailure(GitError):
    """Raised when the object store cannot be read (distinct from not-found)."""


def _git_env() -> dict[str, str]:
    env = dict(os.environ)
    # Paths handed to git are file names, never globs
    env["GIT_LITERAL_PATHSPECS"] = "1"
    # Never refresh/write the index as a side effect of a read
    env["GIT_OPTIONAL_LOCKS"] = "0"
    return env


def _exec_git(
    args: list[str], cwd: Path, timeout: Optional[int]
) -> subprocess.CompletedProcess[bytes]:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            env=_git_env(),
            timeout=timeout,
        )
    except FileNotFoundError:
        raise RepositoryUnavailable("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")


def _stderr_text(result: subprocess.CompletedProcess[bytes]) -> str:
    return result.stderr.decode("utf-8", errors="replace").strip()


def run_git(args: list[str], cwd: Path, timeout: Optional[int] = None) -> bytes:
    """Run a git command and return raw stdout. Raises GitError on failure."""
    result = _exec_git(args, cwd, timeout)
    if result.returncode != 0:
        stderr = _stderr_text(result)
        if any(marker in stderr.lower() for marker in _NOT_A_REPO_MARKERS):
            raise RepositoryUnavailable(f"not inside a git repository: {cwd}")
        raise GitError(f"git error: {stderr or f'git {args[0]} exited {result.returncode}'}")
    return result.stdout


def probe_git(args: list[str], cwd: Path, timeout: Optional[int] = None) -> Optional[bytes]:
    """Run a git query whose non-zero exit means "no such thing".

    Returns stdout on success and None on a non-zero exit. Repository-level
    failures still raise RepositoryUnavailable.
    """
    result = _exec_git(args, cwd, timeout)
    if result.returncode != 0:
        stderr = _stderr_text(result)
        if any(marker in stderr.lower() for marker in _NOT_A_REPO_MARKERS):
            raise RepositoryUnavailable(f"not inside a git repository: {cwd}")
        return None
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git work tree."""
    cwd = cwd or Path.cwd()
    try:
        out = run_git(["rev-parse", "--show-toplevel"], cwd=cwd)
    except RepositoryUnavailable:
        raise
    except GitError as exc:
        raise RepositoryUnavailable(str(exc)) from exc
    root = out.decode("utf-8", errors="surrogateescape").strip()
    if not root:
        # bare repository: no work tree to filter
        raise RepositoryUnavailable(f"no work tree for repository at {cwd}")
    return Path(root)


def read_blob(repo_root: Path, object_id: str) -> bytes:
    """Return the raw content of a blob. Raises ReadFailure if unreadable."""
    try:
        return run_git(["cat-file", "blob", object_id], cwd=repo_root)
    except RepositoryUnavailable:
        raise
    except GitError as exc:
        raise ReadFailure(f"failed to read blob {object_id}: {exc}") from exc


def get_attribute(repo_root: Path, path: str, attribute: str) -> Optional[str]:
    """Return the value of a gitattribute for *path*, or None if unspecified."""
    out = run_git(["check-attr", "-z", attribute, "--", path], cwd=repo_root)
    # -z output: <path> NUL <attribute> NUL <value> NUL
    fields = out.decode("utf-8", errors="surrogateescape").split("\0")
    if len(fields) < 3:
        return None
    value = fields[2]
    if value in ("unspecified", "unset", ""):
        return None
    return value


def set_config(repo_root: Path, key: str, value: str) -> None:
    """Write a key to the repository-local git config."""
    run_git(["config", "--local", key, value], cwd=repo_root)


def get_config(repo_root: Path, key: str) -> Optional[str]:
    """Read a key from git config, or None if unset."""
    out = probe_git(["config", "--get", key], cwd=repo_root)
    if out is None:
        return None
    return out.decode("utf-8", errors="replace").strip()


def remove_config_section(repo_root: Path, section: str) -> bool:
    """Remove a section from the local git config. Returns False if absent."""
    return probe_git(["config", "--local", "--remove-section", section], cwd=repo_root) is not None

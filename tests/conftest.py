"""Shared test fixtures — temp git repos, object staging, a fake sops codec."""

from __future__ import annotations

import base64
import os
import subprocess
from pathlib import Path
from typing import Callable, Optional

import pytest

from sopsfilter import sops
from sopsfilter.formats import Format


def _git(repo: Path, *args: str, input: Optional[bytes] = None) -> bytes:
    result = subprocess.run(
        ["git", *args], cwd=repo, input=input, capture_output=True, check=True,
    )
    return result.stdout


def _init_repo(path: Path) -> Path:
    _git(path, "init", "-q", str(path))
    _git(path, "config", "user.email", "test@test.com")
    _git(path, "config", "user.name", "Test")
    _git(path, "config", "commit.gpgsign", "false")
    return path


@pytest.fixture
def empty_git_repo(tmp_path: Path) -> Path:
    """A git repository without any commit."""
    repo = tmp_path / "empty"
    repo.mkdir()
    return _init_repo(repo)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with an initial commit."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _init_repo(repo)
    (repo / "README.md").write_text("# Test\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "init")
    return repo


@pytest.fixture
def git() -> Callable[..., bytes]:
    """Run a git command in a repo: ``git(repo, "status")``."""
    return _git


@pytest.fixture
def stage_bytes() -> Callable[[Path, str, bytes], str]:
    """Put exact bytes into the index for a path, bypassing any filter."""

    def _stage(repo: Path, path: str, data: bytes) -> str:
        object_id = _git(repo, "hash-object", "-w", "--no-filters", "--stdin", input=data)
        object_id_text = object_id.decode().strip()
        _git(repo, "update-index", "--add", "--cacheinfo", f"100644,{object_id_text},{path}")
        return object_id_text

    return _stage


class FakeSops:
    """Stand-in for the sops binary.

    Ciphertext is ``ENC:<nonce>:<base64 plaintext>``; every encryption uses
    a new nonce, so equal plaintext never gives equal ciphertext.
    """

    def __init__(self) -> None:
        self.encrypt_calls = 0
        self.decrypt_calls = 0

    def encrypt(
        self,
        data: bytes,
        path: str,
        input_format: Format,
        output_format: Optional[Format] = None,
        **kwargs,
    ) -> bytes:
        self.encrypt_calls += 1
        nonce = os.urandom(6).hex().encode()
        return b"ENC:" + nonce + b":" + base64.b64encode(data)

    def decrypt(
        self,
        data: bytes,
        input_format: Format,
        output_format: Optional[Format] = None,
        **kwargs,
    ) -> bytes:
        self.decrypt_calls += 1
        parts = data.split(b":", 2)
        if len(parts) != 3 or parts[0] != b"ENC":
            raise sops.DecodeFailure("not a sops document")
        try:
            return base64.b64decode(parts[2], validate=True)
        except ValueError as exc:
            raise sops.DecodeFailure(str(exc)) from exc

    def recover(self, data: bytes, ciphertext_format: Format, plaintext_format: Optional[Format] = None) -> bytes:
        return self.decrypt(data, ciphertext_format, plaintext_format)


@pytest.fixture
def fake_sops(monkeypatch) -> FakeSops:
    """Patch the sops wrapper with a reversible, non-deterministic codec."""
    fake = FakeSops()
    monkeypatch.setattr(sops, "encrypt", fake.encrypt)
    monkeypatch.setattr(sops, "decrypt", fake.decrypt)
    return fake


@pytest.fixture
def codec() -> FakeSops:
    """A FakeSops instance that is not patched into the sops module."""
    return FakeSops()

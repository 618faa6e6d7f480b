"""sops CLI wrapper — encrypt and decrypt byte streams.

Data always travels through stdin/stdout; nothing is written to disk. No
timeout is applied: key services behind sops fail fast on their own.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Optional

from sopsfilter.formats import Format

_STDIN = "/dev/stdin"


class SopsError(Exception):
    """Raised when sops is unavailable or refuses an operation."""


class DecodeFailure(SopsError):
    """Raised when bytes are not a ciphertext sops can decrypt."""


def _base_args(binary: str, config_file: Optional[Path]) -> list[str]:
    args = [binary]
    if config_file is not None:
        args += ["--config", str(config_file)]
    return args


def _run_sops(args: list[str], data: bytes, cwd: Optional[Path]) -> subprocess.CompletedProcess[bytes]:
    try:
        return subprocess.run(args, input=data, capture_output=True, cwd=cwd)
    except FileNotFoundError:
        raise SopsError(f"sops is not installed or not on PATH ({args[0]})")


def _stderr_text(result: subprocess.CompletedProcess[bytes]) -> str:
    return result.stderr.decode("utf-8", errors="replace").strip()


def is_sops_available(binary: str = "sops") -> bool:
    """Return True when the sops binary can be executed."""
    try:
        result = subprocess.run([binary, "--version"], capture_output=True)
    except FileNotFoundError:
        return False
    return result.returncode == 0


def decrypt(
    data: bytes,
    input_format: Format,
    output_format: Optional[Format] = None,
    *,
    binary: str = "sops",
    config_file: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> bytes:
    """Decrypt *data* (a sops document in *input_format*).

    Raises DecodeFailure if sops rejects the input and SopsError if sops
    itself cannot be run.
    """
    output_format = output_format or input_format
    args = _base_args(binary, config_file) + [
        "--decrypt",
        "--input-type", input_format.value,
        "--output-type", output_format.value,
        _STDIN,
    ]
    result = _run_sops(args, data, cwd)
    if result.returncode != 0:
        raise DecodeFailure(f"sops could not decrypt {input_format.value} data: {_stderr_text(result)}")
    return result.stdout


def encrypt(
    data: bytes,
    path: str,
    input_format: Format,
    output_format: Optional[Format] = None,
    *,
    binary: str = "sops",
    config_file: Optional[Path] = None,
    cwd: Optional[Path] = None,
) -> bytes:
    """Encrypt plaintext *data*; *path* selects the sops creation rule."""
    output_format = output_format or input_format
    args = _base_args(binary, config_file) + [
        "--encrypt",
        "--input-type", input_format.value,
        "--output-type", output_format.value,
        "--filename-override", path,
        _STDIN,
    ]
    result = _run_sops(args, data, cwd)
    if result.returncode != 0:
        raise SopsError(f"sops could not encrypt {path}: {_stderr_text(result)}")
    return result.stdout

"""Plaintext recoverer — decrypt a stored object for comparison."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sopsfilter import sops
from sopsfilter.formats import Format


@dataclass
class PlaintextRecoverer:
    """Decrypt stored ciphertext through the sops CLI.

    ``recover`` raises sops.DecodeFailure for anything that is not a valid
    envelope; SopsError (sops missing) propagates unchanged.
    """

    binary: str = "sops"
    config_file: Optional[Path] = None
    cwd: Optional[Path] = None

    def recover(self, data: bytes, ciphertext_format: Format, plaintext_format: Optional[Format] = None) -> bytes:
        return sops.decrypt(
            data,
            ciphertext_format,
            plaintext_format,
            binary=self.binary,
            config_file=self.config_file,
            cwd=self.cwd,
        )

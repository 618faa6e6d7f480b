"""Reconciliation input and the two possible results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from sopsfilter.formats import Format, format_for_path_or_string


@dataclass(frozen=True)
class ReconciliationInput:
    """Everything the clean filter knows about one invocation.

    ``input_format``/``output_format`` of None mean "infer from path".
    """

    path: str
    plaintext: bytes
    fresh_ciphertext: bytes
    input_format: Optional[Format] = None
    output_format: Optional[Format] = None

    @property
    def plaintext_format(self) -> Format:
        return format_for_path_or_string(self.path, self.input_format)

    @property
    def ciphertext_format(self) -> Format:
        return format_for_path_or_string(self.path, self.output_format or self.input_format)


@dataclass(frozen=True)
class Reuse:
    """The ciphertext already stored in the repository decrypts to the input."""

    data: bytes

    @property
    def reused(self) -> bool:
        return True


@dataclass(frozen=True)
class Fresh:
    """No stored ciphertext matched; the freshly produced one is emitted."""

    data: bytes

    @property
    def reused(self) -> bool:
        return False


ReconciliationResult = Union[Reuse, Fresh]

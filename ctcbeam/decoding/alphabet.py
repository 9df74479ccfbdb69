from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from ctcbeam.errors import ConfigurationError, VocabularyMismatchError

BLANK_IDX = 0


@dataclass(frozen=True)
class Alphabet:
    """
    Index <-> symbol table. Index 0 is always the CTC blank.

    A plain string is split into one symbol per character, a sequence of
    strings (e.g. idx2char from a vocab.json) is taken as is.
    """

    symbols: tuple[str, ...]

    def __init__(self, symbols: str | Sequence[str]):
        symbols = tuple(symbols)
        if len(symbols) == 0:
            raise ConfigurationError("Alphabet needs at least the blank symbol at index 0")
        if symbols[BLANK_IDX] in symbols[BLANK_IDX + 1 :]:
            # last_label after a blank step is the blank symbol itself
            raise ConfigurationError(
                f"Blank symbol {symbols[BLANK_IDX]!r} also appears as a non-blank symbol",
                expected="unique blank",
                actual=symbols.index(symbols[BLANK_IDX], BLANK_IDX + 1),
            )
        object.__setattr__(self, "symbols", symbols)

    @classmethod
    def coerce(cls, alphabet: Alphabet | str | Sequence[str]) -> Alphabet:
        if isinstance(alphabet, Alphabet):
            return alphabet
        return cls(alphabet)

    @classmethod
    def from_vocab_file(cls, path: str | Path) -> Alphabet:
        path = Path(path)
        vocab = json.loads(path.read_text())
        if "idx2char" not in vocab:
            raise ConfigurationError(f"Invalid vocab.json at {path}: missing idx2char")
        if vocab.get("blank_idx", BLANK_IDX) != BLANK_IDX:
            raise ConfigurationError(f"Expected blank_idx=0 in {path}, got {vocab['blank_idx']}")
        return cls([str(s) for s in vocab["idx2char"]])

    def __len__(self) -> int:
        return len(self.symbols)

    def __iter__(self) -> Iterator[str]:
        return iter(self.symbols)

    @property
    def blank(self) -> str:
        return self.symbols[BLANK_IDX]

    def symbol_at(self, index: int) -> str:
        return self.symbols[index]

    def is_blank(self, index: int) -> bool:
        return index == BLANK_IDX

    def check_vocab_size(self, voc_size: int) -> None:
        if voc_size != len(self.symbols):
            raise VocabularyMismatchError(
                f"Expected voc_size ({voc_size}) == alphabet size ({len(self.symbols)})",
                expected=voc_size,
                actual=len(self.symbols),
            )

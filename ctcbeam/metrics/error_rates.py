from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from rapidfuzz.distance import Levenshtein


@dataclass(frozen=True)
class ErrorStats:
    """Edit distance totals over a corpus; `rate` is edits per reference unit."""

    total_edits: int
    total_units: int

    @property
    def rate(self) -> float:
        return float(self.total_edits) / float(max(1, self.total_units))


@dataclass(frozen=True)
class ExactMatchStats:
    correct: int
    total: int

    @property
    def acc(self) -> float:
        return float(self.correct) / float(max(1, self.total))


def _corpus_edits(pairs: Iterable[tuple[list[str] | str, list[str] | str]]) -> ErrorStats:
    edits = 0
    units = 0
    for hyp, ref in pairs:
        edits += int(Levenshtein.distance(hyp, ref))
        units += len(ref)
    return ErrorStats(total_edits=edits, total_units=units)


def cer_corpus(preds: Iterable[str], refs: Iterable[str]) -> ErrorStats:
    return _corpus_edits(zip(preds, refs))


def wer_corpus(preds: Iterable[str], refs: Iterable[str]) -> ErrorStats:
    # rapidfuzz compares any sequences of hashables, so word lists work directly
    return _corpus_edits((p.split(), r.split()) for p, r in zip(preds, refs))


def exact_match_corpus(preds: Iterable[str], refs: Iterable[str]) -> ExactMatchStats:
    pairs = list(zip(preds, refs))
    return ExactMatchStats(correct=sum(p == r for p, r in pairs), total=len(pairs))

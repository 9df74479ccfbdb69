from __future__ import annotations

from enum import Enum
from typing import Sequence

from ctcbeam.decoding.alphabet import BLANK_IDX, Alphabet
from ctcbeam.decoding.frontier import MergeFn, merge_log_sum, merge_max, merge_sum
from ctcbeam.decoding.hypothesis import Hypothesis


class ScoreDomain(str, Enum):
    """
    PROBABILITY: scores are path probabilities, extended by multiplication,
    blank steps are tracked in last_label.
    LOG: scores are summed row values, the blank column is never visited.
    """

    PROBABILITY = "prob"
    LOG = "log"

    @property
    def seed_score(self) -> float:
        return 1.0 if self is ScoreDomain.PROBABILITY else 0.0

    @property
    def first_index(self) -> int:
        return BLANK_IDX if self is ScoreDomain.PROBABILITY else BLANK_IDX + 1

    def combine(self, parent_score: float, p: float) -> float:
        if self is ScoreDomain.PROBABILITY:
            return parent_score * p
        return parent_score + p

    def merge_fn(self, policy: str) -> MergeFn:
        if policy == "max":
            return merge_max
        return merge_sum if self is ScoreDomain.PROBABILITY else merge_log_sum


def expand(
    parent: Hypothesis,
    row: Sequence[float],
    alphabet: Alphabet,
    domain: ScoreDomain = ScoreDomain.PROBABILITY,
    skip_leading_space: bool = False,
) -> list[Hypothesis]:
    """
    All successors of `parent` for one time step, one per visited vocabulary index.

    CTC collapse: a blank keeps the text and sets last_label to blank, a symbol
    equal to last_label keeps the text, anything else is appended.
    """
    out: list[Hypothesis] = []
    for j in range(domain.first_index, len(alphabet)):
        symbol = alphabet.symbol_at(j)
        score = domain.combine(parent.score, float(row[j]))

        if alphabet.is_blank(j):
            out.append(Hypothesis(score, parent.text, symbol))
        elif symbol == parent.last_label:
            out.append(Hypothesis(score, parent.text, symbol))
        else:
            if skip_leading_space and not parent.text and symbol == " ":
                continue
            out.append(Hypothesis(score, parent.text + symbol, symbol))
    return out

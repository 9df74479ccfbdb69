from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

# last_label of the seed hypothesis; never equal to a real symbol
START: Optional[str] = None

HypothesisKey = tuple[str, Optional[str]]
HypothesisTuple = tuple[float, str, Optional[str]]


@dataclass(frozen=True)
class Hypothesis:
    score: float
    text: str = ""
    last_label: Optional[str] = START

    @property
    def key(self) -> HypothesisKey:
        return (self.text, self.last_label)

    def with_score(self, score: float) -> Hypothesis:
        return replace(self, score=score)

    def as_tuple(self) -> HypothesisTuple:
        return (self.score, self.text, self.last_label)


def seed_hypothesis(score: float) -> Hypothesis:
    return Hypothesis(score=score, text="", last_label=START)

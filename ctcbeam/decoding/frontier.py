from __future__ import annotations

import heapq
import itertools
import math
from typing import Callable, Iterator

from ctcbeam.decoding.hypothesis import Hypothesis, HypothesisKey

MergeFn = Callable[[float, float], float]


def merge_sum(a: float, b: float) -> float:
    return a + b


def merge_log_sum(a: float, b: float) -> float:
    # log(exp(a) + exp(b)), the sum of probability mass in log space
    if a == -math.inf:
        return b
    if b == -math.inf:
        return a
    m = a if a > b else b
    return m + math.log(math.exp(a - m) + math.exp(b - m))


def merge_max(a: float, b: float) -> float:
    return a if a >= b else b


class Frontier:
    """
    At most `beam_size` hypotheses, unique by (text, last_label).

    Two indexes are kept in sync: a dict from identity key to the current
    hypothesis, and a min-heap of (score, seq, key) entries. A heap entry is
    live only while `_live_seq[key] == seq`; merges and evictions just bump or
    drop that sequence number and leave the old entry to be skipped later.
    """

    def __init__(self, beam_size: int, merge: MergeFn = merge_sum):
        if beam_size < 1:
            raise ValueError(f"beam_size must be >= 1, got {beam_size}")
        self.beam_size = beam_size
        self._merge = merge
        self._members: dict[HypothesisKey, Hypothesis] = {}
        self._live_seq: dict[HypothesisKey, int] = {}
        self._heap: list[tuple[float, int, HypothesisKey]] = []
        self._seq = itertools.count()

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, key: HypothesisKey) -> bool:
        return key in self._members

    def __iter__(self) -> Iterator[Hypothesis]:
        return iter(self._members.values())

    def get(self, key: HypothesisKey) -> Hypothesis | None:
        return self._members.get(key)

    def hypotheses(self) -> list[Hypothesis]:
        return list(self._members.values())

    def min_score(self) -> float:
        if not self._members:
            raise IndexError("min_score of empty frontier")
        return self._peek_min()[0]

    def upsert(self, candidate: Hypothesis) -> bool:
        """
        Returns True if the candidate was merged or inserted, False if it was pruned.
        """
        key = candidate.key
        existing = self._members.get(key)
        if existing is not None:
            self._put(existing.with_score(self._merge(existing.score, candidate.score)))
            return True

        if len(self._members) < self.beam_size:
            self._put(candidate)
            return True

        min_score, _, min_key = self._peek_min()
        if candidate.score > min_score:  # ties keep the existing member
            heapq.heappop(self._heap)
            del self._members[min_key]
            del self._live_seq[min_key]
            self._put(candidate)
            return True
        return False

    def _put(self, hypo: Hypothesis) -> None:
        key = hypo.key
        seq = next(self._seq)
        self._members[key] = hypo
        self._live_seq[key] = seq
        heapq.heappush(self._heap, (hypo.score, seq, key))
        if len(self._heap) > 2 * len(self._members) + 32:
            self._compact()

    def _peek_min(self) -> tuple[float, int, HypothesisKey]:
        heap = self._heap
        while heap:
            score, seq, key = heap[0]
            if self._live_seq.get(key) == seq:
                return heap[0]
            heapq.heappop(heap)
        raise IndexError("peek on empty frontier")

    def _compact(self) -> None:
        self._heap = [
            (h.score, self._live_seq[k], k) for k, h in self._members.items()
        ]
        heapq.heapify(self._heap)

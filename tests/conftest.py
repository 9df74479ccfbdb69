from __future__ import annotations

from typing import Callable

import numpy as np
import pytest

from ctcbeam.decoding.alphabet import Alphabet


class CountingLM:
    """Constant log-probability LM that records every text it was asked about."""

    def __init__(self, log_prob: float = -1.0, fail_on_call: int | None = None):
        self.log_prob = log_prob
        self.fail_on_call = fail_on_call
        self.texts: list[str] = []

    def score(self, text: str) -> float:
        self.texts.append(text)
        if self.fail_on_call is not None and len(self.texts) >= self.fail_on_call:
            raise ConnectionError("lm server went away")
        return self.log_prob


@pytest.fixture
def alphabet() -> Alphabet:
    return Alphabet("^ab")


@pytest.fixture
def a_then_blank() -> np.ndarray:
    # row 0 strongly favours "a", row 1 strongly favours blank
    return np.array(
        [
            [0.05, 0.90, 0.05],
            [0.90, 0.05, 0.05],
        ],
        dtype=np.float32,
    )


@pytest.fixture
def random_probs() -> Callable[..., np.ndarray]:
    rng = np.random.default_rng(1234)

    def make(T: int = 6, V: int = 4) -> np.ndarray:
        return rng.dirichlet(np.ones(V), size=T)

    return make


@pytest.fixture
def counting_lm() -> CountingLM:
    return CountingLM()

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
import torch

from ctcbeam.decoding.alphabet import BLANK_IDX, Alphabet
from ctcbeam.decoding.hypothesis import Hypothesis
from ctcbeam.errors import ShapeError


def ctc_collapse(indices: Sequence[int], *, blank_idx: int = BLANK_IDX) -> list[int]:
    """Drop blanks, then repeats that are not separated by a blank."""
    out: list[int] = []
    prev = None
    for idx in indices:
        if idx != blank_idx and idx != prev:
            out.append(idx)
        prev = idx
    return out


def greedy_search(probs: Any, alphabet: Alphabet | str | Sequence[str]) -> Hypothesis:
    """
    Best path decoding of a [T,V] matrix: argmax per step, then collapse.
    The score is the product of the chosen row entries (probability domain).
    """
    probs = np.asarray(probs)
    if probs.ndim != 2:
        raise ShapeError(f"Expected probs to be 2-d, got {probs.ndim}-d", expected=2, actual=probs.ndim)
    alphabet = Alphabet.coerce(alphabet)
    alphabet.check_vocab_size(probs.shape[1])

    if probs.shape[0] == 0:
        return Hypothesis(score=1.0)
    path = probs.argmax(axis=1)
    score = float(np.prod(probs[np.arange(len(path)), path]))
    text = "".join(alphabet.symbol_at(i) for i in ctc_collapse(path.tolist()))
    return Hypothesis(score=score, text=text, last_label=alphabet.symbol_at(int(path[-1])))


def greedy_decode(
    log_probs: torch.Tensor,  # [T,B,C]
    idx2char: Alphabet | Sequence[str],
) -> list[str]:
    if log_probs.dim() != 3:
        raise ShapeError(f"Expected log_probs [T,B,C], got {tuple(log_probs.shape)}", expected=3, actual=log_probs.dim())
    alphabet = Alphabet.coerce(idx2char)
    alphabet.check_vocab_size(log_probs.shape[-1])

    preds = torch.argmax(log_probs, dim=-1)  # [T,B]
    return [
        "".join(alphabet.symbol_at(i) for i in ctc_collapse(preds[:, b].tolist()))
        for b in range(preds.shape[1])
    ]

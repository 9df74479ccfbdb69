from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional, Sequence

import numpy as np
import torch

from ctcbeam.decoding.alphabet import Alphabet
from ctcbeam.decoding.expand import ScoreDomain, expand
from ctcbeam.decoding.frontier import Frontier
from ctcbeam.decoding.hypothesis import Hypothesis, HypothesisTuple, seed_hypothesis
from ctcbeam.decoding.rescoring import LanguageModelLike, Rescorer
from ctcbeam.errors import ConfigurationError, ShapeError

logger = logging.getLogger(__name__)

MERGE_POLICIES = ("sum", "max")


@dataclass(frozen=True)
class BeamDecoderConfig:
    beam_size: int = 100
    domain: str = "prob"  # prob|log
    merge: str = "sum"  # sum|max, how candidates with the same (text, last_label) combine
    lm_weight: float = 1.0
    time_weight: float = 0.0
    skip_leading_space: bool = False

    def validate(self) -> None:
        if isinstance(self.beam_size, bool) or not isinstance(self.beam_size, int):
            raise ConfigurationError(f"beam_size must be an int, got {self.beam_size!r}", expected="int", actual=self.beam_size)
        if self.beam_size < 1:
            raise ConfigurationError(f"beam_size must be >= 1, got {self.beam_size}", expected=">= 1", actual=self.beam_size)
        if self.domain not in [d.value for d in ScoreDomain]:
            raise ConfigurationError(f"Unknown score domain {self.domain!r}", expected="prob|log", actual=self.domain)
        if self.merge not in MERGE_POLICIES:
            raise ConfigurationError(f"Unknown merge policy {self.merge!r}", expected="sum|max", actual=self.merge)

    @property
    def score_domain(self) -> ScoreDomain:
        return ScoreDomain(self.domain)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _check_inputs(probs: Any, alphabet: Alphabet | str | Sequence[str], cfg: BeamDecoderConfig) -> tuple[np.ndarray, Alphabet]:
    cfg.validate()
    try:
        probs = np.asarray(probs)
    except ValueError as e:  # ragged nested lists
        raise ShapeError(f"probs is not a rectangular array: {e}") from e
    if probs.ndim != 2:
        raise ShapeError(
            f"Expected probs to be 2-d, got {probs.ndim}-d (shape={probs.shape})",
            expected=2,
            actual=probs.ndim,
        )
    alphabet = Alphabet.coerce(alphabet)
    alphabet.check_vocab_size(probs.shape[1])
    return probs, alphabet


def ctc_beam_search(
    probs: Any,
    alphabet: Alphabet | str | Sequence[str],
    cfg: BeamDecoderConfig = BeamDecoderConfig(),
    lm: Optional[LanguageModelLike] = None,
) -> list[Hypothesis]:
    """
    CTC beam search over a [T,V] matrix, blank at column 0.

    Returns at most cfg.beam_size hypotheses in no particular order, use
    rank_hypotheses() for a sorted result. All validation happens before
    the first time step; an LM failure aborts the whole call.
    """
    probs, alphabet = _check_inputs(probs, alphabet, cfg)
    domain = cfg.score_domain
    merge = domain.merge_fn(cfg.merge)
    rescorer = Rescorer(lm, cfg.lm_weight, cfg.time_weight) if lm is not None else None

    hypos = [seed_hypothesis(domain.seed_score)]
    for t in range(probs.shape[0]):
        row = probs[t].tolist()
        frontier = Frontier(cfg.beam_size, merge)
        for parent in hypos:
            for cand in expand(parent, row, alphabet, domain, cfg.skip_leading_space):
                if rescorer is not None:
                    cand = rescorer.rescore(cand, t)
                frontier.upsert(cand)
        hypos = frontier.hypotheses()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("step %d: %d hypotheses, min score %.6g", t, len(frontier), frontier.min_score() if hypos else float("nan"))

    return hypos


def beam_search(
    probs: Any,
    alphabet: Alphabet | str | Sequence[str],
    beam_size: int = 100,
    lm: Optional[LanguageModelLike] = None,
    **options: Any,
) -> list[HypothesisTuple]:
    """
    Tuple-level entry point: [(score, text, last_label), ...], unordered.
    Extra keyword options are BeamDecoderConfig fields.
    """
    try:
        cfg = BeamDecoderConfig(beam_size=beam_size, **options)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e
    return [h.as_tuple() for h in ctc_beam_search(probs, alphabet, cfg, lm)]


def rank_hypotheses(hypos: Iterable[Hypothesis]) -> list[Hypothesis]:
    return sorted(hypos, key=lambda h: h.score, reverse=True)


def best_hypothesis(hypos: Iterable[Hypothesis]) -> Optional[Hypothesis]:
    """None when nothing survived, e.g. log mode over a blank-only alphabet."""
    return max(hypos, key=lambda h: h.score, default=None)


def best_text(hypos: Iterable[Hypothesis]) -> str:
    best = best_hypothesis(hypos)
    return best.text if best is not None else ""


def decode_batch(
    matrices: Sequence[Any],
    alphabet: Alphabet | str | Sequence[str],
    cfg: BeamDecoderConfig = BeamDecoderConfig(),
    lm: Optional[LanguageModelLike] = None,
    num_workers: int = 1,
) -> list[list[Hypothesis]]:
    """
    One independent decode per matrix, results in input order.
    The alphabet is the only thing shared between workers; a shared lm must be thread-safe.
    """
    cfg.validate()
    alphabet = Alphabet.coerce(alphabet)
    if num_workers < 1:
        raise ConfigurationError(f"num_workers must be >= 1, got {num_workers}", expected=">= 1", actual=num_workers)
    logger.debug("decoding %d matrices with beam_size=%d on %d worker(s)", len(matrices), cfg.beam_size, num_workers)

    if num_workers == 1:
        return [ctc_beam_search(m, alphabet, cfg, lm) for m in matrices]
    with ThreadPoolExecutor(max_workers=num_workers) as pool:
        return list(pool.map(lambda m: ctc_beam_search(m, alphabet, cfg, lm), matrices))


def beam_decode(
    log_probs: torch.Tensor,  # [T,B,C]
    idx2char: Alphabet | Sequence[str],
    cfg: BeamDecoderConfig = BeamDecoderConfig(),
    lm: Optional[LanguageModelLike] = None,
    num_workers: int = 1,
) -> list[str]:
    """
    Best text per batch item from model output log-probs.
    In probability mode the log-probs are exponentiated first.
    """
    if log_probs.dim() != 3:
        raise ShapeError(f"Expected log_probs [T,B,C], got {tuple(log_probs.shape)}", expected=3, actual=log_probs.dim())

    cfg.validate()
    scores = log_probs.detach().float().cpu()
    if cfg.score_domain is ScoreDomain.PROBABILITY:
        scores = scores.exp()
    matrices = [scores[:, b, :].numpy() for b in range(scores.shape[1])]

    results = decode_batch(matrices, idx2char, cfg, lm, num_workers)
    return [best_text(hypos) for hypos in results]

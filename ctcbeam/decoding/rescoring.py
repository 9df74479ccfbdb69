from __future__ import annotations

import importlib
import logging
import math
import numbers
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Callable, Protocol, Union, runtime_checkable

from ctcbeam.decoding.hypothesis import Hypothesis
from ctcbeam.errors import ConfigurationError, ExternalScoringError, ScoringTimeoutError

logger = logging.getLogger(__name__)


@runtime_checkable
class LanguageModel(Protocol):
    def score(self, text: str) -> float:
        """log probability of `text`"""
        ...


LanguageModelLike = Union[LanguageModel, Callable[[str], float]]


class _CallableLanguageModel:
    def __init__(self, fn: Callable[[str], float]):
        self._fn = fn

    def score(self, text: str) -> float:
        return self._fn(text)


def as_language_model(lm: LanguageModelLike) -> LanguageModel:
    if isinstance(lm, LanguageModel):
        return lm
    if callable(lm):
        return _CallableLanguageModel(lm)
    raise ConfigurationError(f"Expected an object with score(text) or a callable, got {type(lm).__name__}")


class TimeoutLanguageModel:
    """
    Runs every score() call on a worker thread and gives up after `timeout` seconds.
    The abandoned call keeps running in the background; only the decode is aborted.

    Each calling thread gets its own single-worker executor, so callers sharing
    one wrapper (decode_batch with num_workers > 1) never queue behind each other.
    """

    def __init__(self, lm: LanguageModelLike, timeout: float):
        if timeout <= 0:
            raise ConfigurationError(f"timeout must be > 0, got {timeout}")
        self._lm = as_language_model(lm)
        self.timeout = timeout
        self._local = threading.local()
        self._executors: list[ThreadPoolExecutor] = []
        self._lock = threading.Lock()

    def _executor(self) -> ThreadPoolExecutor:
        executor = getattr(self._local, "executor", None)
        if executor is None:
            executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="lm-score")
            self._local.executor = executor
            with self._lock:
                self._executors.append(executor)
        return executor

    def score(self, text: str) -> float:
        future = self._executor().submit(self._lm.score, text)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            raise ScoringTimeoutError(
                f"language model did not answer within {self.timeout}s for text={text!r}"
            ) from e

    def close(self) -> None:
        with self._lock:
            executors, self._executors = self._executors, []
        for executor in executors:
            executor.shutdown(wait=False)

    def __enter__(self) -> TimeoutLanguageModel:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


class Rescorer:
    """
    Blends a language model into candidate scores:

        adjusted = acoustic + (lm_weight * exp(lm_log_prob) + time_weight * time_index)

    This mixes a probability with a linear step bonus; treat both weights as
    tuning knobs, not as a calibrated model.
    """

    def __init__(self, lm: LanguageModelLike, lm_weight: float = 1.0, time_weight: float = 0.0):
        self.lm = as_language_model(lm)
        self.lm_weight = lm_weight
        self.time_weight = time_weight
        self.num_calls = 0

    def lm_log_prob(self, text: str) -> float:
        self.num_calls += 1
        try:
            value = self.lm.score(text)
        except ExternalScoringError:
            raise
        except Exception as e:
            raise ExternalScoringError(f"language model failed on text={text!r}: {e}") from e

        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise ExternalScoringError(
                f"language model returned non-numeric {type(value).__name__} for text={text!r}"
            )
        value = float(value)
        if math.isnan(value):
            raise ExternalScoringError(f"language model returned NaN for text={text!r}")
        return value

    def rescore(self, candidate: Hypothesis, time_index: int) -> Hypothesis:
        lm_log_prob = self.lm_log_prob(candidate.text)
        bonus = self.lm_weight * math.exp(lm_log_prob) + self.time_weight * time_index
        return candidate.with_score(candidate.score + bonus)


def load_language_model(target: str, **kwargs: Any) -> LanguageModel:
    """
    Import `package.module:factory` and call it to build a language model.
    """
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Expected 'module:factory', got {target!r}")
    module = importlib.import_module(module_name)
    try:
        factory = getattr(module, attr)
    except AttributeError as e:
        raise ConfigurationError(f"{module_name} has no attribute {attr}") from e
    lm = factory(**kwargs)
    logger.info("loaded language model %s from %s", type(lm).__name__, target)
    return as_language_model(lm)

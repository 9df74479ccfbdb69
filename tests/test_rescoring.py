import math
import threading
import time

import numpy as np
import pytest

from ctcbeam.decoding.beam import BeamDecoderConfig, best_hypothesis, decode_batch
from ctcbeam.decoding.hypothesis import Hypothesis
from ctcbeam.decoding.rescoring import (
    Rescorer,
    TimeoutLanguageModel,
    as_language_model,
    load_language_model,
)
from ctcbeam.errors import ConfigurationError, ExternalScoringError, ScoringTimeoutError


def test_blend_formula(counting_lm):
    rescorer = Rescorer(counting_lm, lm_weight=2.0, time_weight=0.5)
    out = rescorer.rescore(Hypothesis(0.3, "ab", "b"), time_index=4)
    assert out.score == pytest.approx(0.3 + 2.0 * math.exp(-1.0) + 0.5 * 4)
    assert out.text == "ab"
    assert out.last_label == "b"
    assert counting_lm.texts == ["ab"]
    assert rescorer.num_calls == 1


def test_plain_callable_is_adapted():
    rescorer = Rescorer(lambda text: -float(len(text)), lm_weight=1.0)
    out = rescorer.rescore(Hypothesis(0.0, "abc", "c"), time_index=0)
    assert out.score == pytest.approx(math.exp(-3.0))


def test_numpy_scalars_are_accepted():
    rescorer = Rescorer(lambda text: np.float32(-0.5))
    assert rescorer.lm_log_prob("a") == pytest.approx(-0.5)


def test_lm_exception_is_wrapped():
    def broken(text):
        raise KeyError(text)

    rescorer = Rescorer(broken)
    with pytest.raises(ExternalScoringError) as exc:
        rescorer.rescore(Hypothesis(1.0, "a", "a"), 0)
    assert isinstance(exc.value.__cause__, KeyError)


@pytest.mark.parametrize("value", ["-1.0", None, True, float("nan"), [1.0]])
def test_non_numeric_results_are_rejected(value):
    rescorer = Rescorer(lambda text: value)
    with pytest.raises(ExternalScoringError):
        rescorer.lm_log_prob("a")


def test_as_language_model_rejects_garbage():
    with pytest.raises(ConfigurationError):
        as_language_model(42)


def test_timeout_language_model():
    release = threading.Event()

    def slow(text):
        release.wait(5.0)
        return -1.0

    with TimeoutLanguageModel(slow, timeout=0.05) as lm:
        with pytest.raises(ScoringTimeoutError):
            lm.score("a")
        release.set()

    rescorer = Rescorer(TimeoutLanguageModel(lambda text: -1.0, timeout=5.0))
    assert rescorer.lm_log_prob("a") == -1.0


def test_timeout_surfaces_through_rescorer():
    release = threading.Event()
    lm = TimeoutLanguageModel(lambda text: release.wait(5.0), timeout=0.05)
    try:
        with pytest.raises(ExternalScoringError):
            Rescorer(lm).rescore(Hypothesis(1.0, "a", "a"), 0)
    finally:
        release.set()
        lm.close()


def test_timeout_must_be_positive():
    with pytest.raises(ConfigurationError):
        TimeoutLanguageModel(lambda text: 0.0, timeout=0)


def test_load_language_model(tmp_path, monkeypatch):
    (tmp_path / "my_lm.py").write_text(
        "class UnigramLM:\n"
        "    def __init__(self, penalty=-1.0):\n"
        "        self.penalty = penalty\n"
        "    def score(self, text):\n"
        "        return self.penalty * len(text)\n"
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    lm = load_language_model("my_lm:UnigramLM", penalty=-2.0)
    assert lm.score("abc") == -6.0


@pytest.mark.parametrize("target", ["my_lm", ":UnigramLM", "my_lm:"])
def test_load_language_model_bad_target(target):
    with pytest.raises(ConfigurationError):
        load_language_model(target)


def test_load_language_model_missing_attribute():
    with pytest.raises(ConfigurationError):
        load_language_model("math:no_such_factory")


def test_timeout_wrapper_shared_across_batch_workers():
    def slow_but_in_time(text):
        time.sleep(0.03)
        return -1.0

    probs = np.array([[0.1, 0.6, 0.3], [0.6, 0.2, 0.2]])
    with TimeoutLanguageModel(slow_but_in_time, timeout=0.12) as lm:
        results = decode_batch([probs] * 8, "^ab", BeamDecoderConfig(beam_size=4), lm=lm, num_workers=8)
    assert len(results) == 8
    assert all(best_hypothesis(r).text == "a" for r in results)


def test_timeout_wrapper_uses_one_worker_per_calling_thread():
    lm = TimeoutLanguageModel(lambda text: threading.get_ident(), timeout=5.0)
    try:
        idents = set()
        threads = [threading.Thread(target=lambda: idents.add(lm.score("a"))) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(idents) == 3
        assert lm.score("a") == lm.score("b")
    finally:
        lm.close()

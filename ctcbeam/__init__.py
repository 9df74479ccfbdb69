from ctcbeam.decoding.alphabet import Alphabet
from ctcbeam.decoding.beam import (
    BeamDecoderConfig,
    beam_search,
    best_hypothesis,
    best_text,
    ctc_beam_search,
    decode_batch,
    rank_hypotheses,
)
from ctcbeam.decoding.hypothesis import Hypothesis
from ctcbeam.errors import (
    ConfigurationError,
    CTCDecodeError,
    ExternalScoringError,
    ShapeError,
    ShapeMismatch,
    VocabularyMismatchError,
)

__all__ = [
    "Alphabet",
    "BeamDecoderConfig",
    "ConfigurationError",
    "CTCDecodeError",
    "ExternalScoringError",
    "Hypothesis",
    "ShapeError",
    "ShapeMismatch",
    "VocabularyMismatchError",
    "beam_search",
    "best_hypothesis",
    "best_text",
    "ctc_beam_search",
    "decode_batch",
    "rank_hypotheses",
]

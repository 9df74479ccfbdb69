from __future__ import annotations

from typing import Any


class CTCDecodeError(Exception):
    """
    Base class for every error raised by the decoder. `expected` and `actual`
    hold the offending values where there are any.
    """

    def __init__(self, message: str, expected: Any = None, actual: Any = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ShapeError(CTCDecodeError, ValueError):
    pass


class VocabularyMismatchError(ShapeError):
    """Matrix vocabulary size and alphabet length disagree."""


# Name used by the alphabet table
ShapeMismatch = VocabularyMismatchError


class ConfigurationError(CTCDecodeError, ValueError):
    pass


class ExternalScoringError(CTCDecodeError, RuntimeError):
    """The rescoring language model failed or returned garbage."""


class ScoringTimeoutError(ExternalScoringError):
    pass

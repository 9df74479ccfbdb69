import dataclasses
import json

import pytest

from ctcbeam.decoding.alphabet import Alphabet
from ctcbeam.errors import ConfigurationError, ShapeError, ShapeMismatch, VocabularyMismatchError


def test_symbols_and_blank(alphabet):
    assert len(alphabet) == 3
    assert alphabet.blank == "^"
    assert alphabet.symbol_at(1) == "a"
    assert alphabet.symbol_at(2) == "b"
    assert alphabet.is_blank(0)
    assert not alphabet.is_blank(1)
    assert list(alphabet) == ["^", "a", "b"]


def test_sequence_of_strings():
    alphabet = Alphabet(["<b>", "th", "e"])
    assert len(alphabet) == 3
    assert alphabet.symbol_at(1) == "th"


def test_coerce_keeps_instances(alphabet):
    assert Alphabet.coerce(alphabet) is alphabet
    assert Alphabet.coerce("^ab") == alphabet


def test_vocab_size_mismatch(alphabet):
    alphabet.check_vocab_size(3)
    with pytest.raises(VocabularyMismatchError) as exc:
        alphabet.check_vocab_size(4)
    assert exc.value.expected == 4
    assert exc.value.actual == 3
    assert isinstance(exc.value, ShapeMismatch)
    assert isinstance(exc.value, ShapeError)
    assert isinstance(exc.value, ValueError)


def test_empty_alphabet_is_rejected():
    with pytest.raises(ConfigurationError):
        Alphabet("")


def test_immutable(alphabet):
    with pytest.raises(dataclasses.FrozenInstanceError):
        alphabet.symbols = ("x",)


def test_from_vocab_file(tmp_path):
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"idx2char": ["", "a", "b"], "char2idx": {"a": 1, "b": 2}, "blank_idx": 0}))
    alphabet = Alphabet.from_vocab_file(path)
    assert alphabet.blank == ""
    assert alphabet.symbols == ("", "a", "b")


def test_from_vocab_file_rejects_other_blank(tmp_path):
    path = tmp_path / "vocab.json"
    path.write_text(json.dumps({"idx2char": ["a", ""], "blank_idx": 1}))
    with pytest.raises(ConfigurationError):
        Alphabet.from_vocab_file(path)


@pytest.mark.parametrize("symbols", [" a ", ["", "a", ""], "^a^b"])
def test_blank_symbol_must_be_unique(symbols):
    with pytest.raises(ConfigurationError) as exc:
        Alphabet(symbols)
    assert exc.value.actual == list(symbols).index(symbols[0], 1)


def test_repeated_non_blank_symbols_are_allowed():
    assert len(Alphabet("^aa")) == 3

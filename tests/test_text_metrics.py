from __future__ import annotations

import pytest

from summarize_mate.text_metrics import (
    MAX_WORDS,
    MIN_WORDS,
    EmptyInputError,
    TextValidationError,
    TooLongError,
    TooShortError,
    clean_text,
    validate,
    word_count,
)


def test_word_count_ignores_whitespace_runs():
    assert word_count("  one   two\tthree\n\nfour  ") == 4
    assert word_count("") == 0


def test_clean_text_collapses_internal_whitespace():
    assert clean_text("  alpha \n\n beta\t gamma ") == "alpha beta gamma"


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_validate_rejects_blank_text(text):
    with pytest.raises(EmptyInputError):
        validate(text)


@pytest.mark.parametrize("count", [1, MIN_WORDS - 1])
def test_validate_rejects_short_text(count):
    with pytest.raises(TooShortError) as excinfo:
        validate(" ".join(["word"] * count))
    assert excinfo.value.word_count == count


def test_validate_rejects_long_text():
    with pytest.raises(TooLongError) as excinfo:
        validate(" ".join(["word"] * (MAX_WORDS + 1)))
    assert isinstance(excinfo.value, TextValidationError)
    assert isinstance(excinfo.value, ValueError)


@pytest.mark.parametrize("count", [MIN_WORDS, 250, MAX_WORDS])
def test_validate_accepts_bounds(count):
    validated = validate(" ".join(["word"] * count))
    assert validated.word_count == count


def test_validate_keeps_original_and_cleaned_text():
    text = "  The   quick brown fox jumps over the lazy dog twice today.  "
    validated = validate(text)
    assert validated.original == text
    assert validated.cleaned == "The quick brown fox jumps over the lazy dog twice today."

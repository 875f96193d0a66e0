"""Word counting and input-length checks shared by the summaries feature."""
from __future__ import annotations

import re
from dataclasses import dataclass

MIN_WORDS = 10
MAX_WORDS = 1000

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidatedText:
    """Text that passed the length checks, plus its whitespace-normalized form."""

    original: str
    cleaned: str
    word_count: int


class TextValidationError(ValueError):
    """Raised when submitted text cannot be summarized."""

    def __init__(self, message: str, word_count: int = 0) -> None:
        super().__init__(message)
        self.word_count = word_count


class EmptyInputError(TextValidationError):
    """Raised when the text is blank."""


class TooShortError(TextValidationError):
    """Raised when the text has fewer than ``MIN_WORDS`` words."""


class TooLongError(TextValidationError):
    """Raised when the text has more than ``MAX_WORDS`` words."""


def word_count(text: str) -> int:
    return len(text.split())


def clean_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim both ends."""
    return _WHITESPACE_RE.sub(" ", text).strip()


def validate(text: str) -> ValidatedText:
    if not text or not text.strip():
        raise EmptyInputError("Please enter some text to summarize.")

    count = word_count(text)
    if count < MIN_WORDS:
        raise TooShortError(
            f"Text is too short to summarize ({count} words). Please enter at least {MIN_WORDS} words.",
            count,
        )
    if count > MAX_WORDS:
        raise TooLongError(
            f"Text is too long ({count} words). Please limit to {MAX_WORDS} words or less.",
            count,
        )
    return ValidatedText(original=text, cleaned=clean_text(text), word_count=count)

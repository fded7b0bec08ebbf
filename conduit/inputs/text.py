"""
Conduit - Plain-text helpers.

Whitespace cleanup, counts and sanity checks for typed or decoded text.
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

MAX_TEXT_LENGTH = 10000

_WHITESPACE_RUN = re.compile(r"\s+")
_SENTENCE_END = re.compile(r"[.!?]+")


class TextIssue(str, Enum):
    """Problems ``validate_text`` can report."""

    EMPTY = "empty"
    TOO_LONG = "too_long"
    EXCESSIVE_WHITESPACE = "excessive_whitespace"
    ENCODING_ISSUES = "encoding_issues"


@dataclass
class TextStatistics:
    character_count: int
    character_count_no_spaces: int
    word_count: int
    sentence_count: int
    average_words_per_sentence: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def clean_text(text: str) -> str:
    """Collapse whitespace runs to single spaces and trim the ends."""
    return _WHITESPACE_RUN.sub(" ", text).strip()


def text_statistics(text: str) -> TextStatistics:
    """
    Count characters, words and sentences.

    Words are whitespace-separated tokens. Sentences are the non-blank
    segments between runs of ``.``, ``!`` or ``?``, so text without
    terminal punctuation still counts as one sentence.
    """
    words = text.split()
    sentences = [s for s in _SENTENCE_END.split(text) if s.strip()]
    return TextStatistics(
        character_count=len(text),
        character_count_no_spaces=len(text.replace(" ", "")),
        word_count=len(words),
        sentence_count=len(sentences),
        average_words_per_sentence=len(words) / len(sentences) if sentences else 0.0,
    )


def validate_text(text: str) -> list[TextIssue]:
    """Return the issues found in ``text``; an empty list means it is usable."""
    issues = []
    if not text:
        issues.append(TextIssue.EMPTY)
    elif len(text) > MAX_TEXT_LENGTH:
        issues.append(TextIssue.TOO_LONG)
    if text.strip() != text:
        issues.append(TextIssue.EXCESSIVE_WHITESPACE)
    if "\ufffd" in text:
        issues.append(TextIssue.ENCODING_ISSUES)
    return issues

"""Deterministic, offline summarizer used when no remote model answers.

The same module derives history metadata (title, tags, read time) for every
stored summary, whichever stage of the fallback chain produced it.
"""
from __future__ import annotations

import math
import re
from typing import Dict, List, Sequence, Union

from ..text_metrics import word_count
from .types import SummaryKind

STOP_WORDS = frozenset(
    [
        "the", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
        "is", "are", "was", "were", "be", "been", "have", "has", "had", "do", "does",
        "did", "will", "would", "could", "should", "may", "might", "can", "this",
        "that", "these", "those", "a", "an",
    ]
)

WORDS_PER_MINUTE = 200
MAX_TOPICS = 3
MAX_TAGS = 3
FALLBACK_TAG = "summary"

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_CAPITALIZED_RUN_RE = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_WORD_RE = re.compile(r"\b\w+\b")

_LEAD_IN_RES = [
    re.compile(r"^This text discusses\s*", re.I),
    re.compile(r"^This comprehensive text\s*", re.I),
    re.compile(r"^•\s*Primary Focus:\s*", re.I),
    re.compile(r"^•\s*Main Topic:\s*", re.I),
    re.compile(r"^The key insight is that\s*", re.I),
    re.compile(r"^Overall,\s*", re.I),
]
_SUBJECT_CLAUSE_RE = re.compile(
    r"\b(?:discusses|about|focuses on|examines|explores|analyzes)\s+(.+?)(?:\.|,|$)",
    re.I,
)
_GENERIC_TITLE_PHRASES = ("important information", "valuable perspective", "the main topic")


def split_sentences(text: str) -> List[str]:
    return [fragment.strip() for fragment in _SENTENCE_SPLIT_RE.split(text) if fragment.strip()]


def frequent_words(text: str, limit: int) -> List[str]:
    """Return the ``limit`` most frequent content words, ties by first appearance."""
    counts: Dict[str, int] = {}
    for word in _WORD_RE.findall(text.lower()):
        if len(word) > 3 and word not in STOP_WORDS:
            counts[word] = counts.get(word, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [word for word, _ in ranked[:limit]]


def extract_key_topics(text: str) -> List[str]:
    topics: List[str] = []
    seen = set()
    covered_words = set()

    for match in _CAPITALIZED_RUN_RE.finditer(text):
        words = match.group(0).split()
        while words and words[0].lower() in STOP_WORDS:
            words.pop(0)
        if not words:
            continue
        phrase = " ".join(words[:2])
        key = phrase.lower()
        if key in seen:
            continue
        seen.add(key)
        covered_words.update(word.lower() for word in words[:2])
        topics.append(phrase)

    for word in frequent_words(text, MAX_TOPICS):
        if word in seen or word in covered_words:
            continue
        seen.add(word)
        topics.append(word)

    return topics[:MAX_TOPICS]


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _as_sentence(text: str) -> str:
    return text if text.endswith(".") else f"{text}."


def _join_topics(topics: Sequence[str]) -> str:
    if len(topics) <= 1:
        return "".join(topics)
    return ", ".join(topics[:-1]) + " and " + topics[-1]


def generate(text: str, kind: Union[SummaryKind, str]) -> str:
    """Build a template summary of ``text`` for the requested kind."""
    sentences = split_sentences(text)
    topics = extract_key_topics(text)
    total_words = word_count(text)
    top_topic = topics[0] if topics else None
    lead = sentences[0] if sentences else text.strip()

    try:
        kind = SummaryKind(kind)
    except ValueError:
        return f"{top_topic or 'Content'} summary generated successfully."

    if kind is SummaryKind.BRIEF:
        closing = _join_topics(topics[:2]) or "the subject matter"
        return (
            f"This text focuses on {top_topic or 'the main topic'}. "
            f"{_as_sentence(_truncate(lead, 100))} "
            f"Overall, it highlights {closing}."
        )

    if kind is SummaryKind.DETAILED:
        excerpt = _truncate(". ".join(sentences[:3]), 200)
        covered = _join_topics(topics) or "several important aspects"
        return (
            f"This comprehensive text contains approximately {total_words} words and covers {covered}. "
            f"{_as_sentence(excerpt)} "
            "Together these points give a fuller understanding of the subject."
        )

    supporting = ", ".join(topics[1:3]) or "Additional context and details"
    return "\n".join(
        [
            f"• Primary Focus: {top_topic or 'Primary subject discussed'}",
            f"• Key Content: {_truncate(lead, 80)}",
            f"• Supporting Topics: {supporting}",
            f"• Word Count: Approximately {total_words} words",
            "• Conclusion: Key points condensed from the original text",
        ]
    )


def derive_title(summary: str) -> str:
    cleaned = summary
    for lead_in in _LEAD_IN_RES:
        cleaned = lead_in.sub("", cleaned)

    subject = _SUBJECT_CLAUSE_RE.search(cleaned)
    if subject:
        subject_words = subject.group(1).split()
        title = " ".join(subject_words[:4])
        return title + ("..." if len(subject_words) > 4 else "")

    title = " ".join(cleaned.split()[:6])
    if any(phrase in title.lower() for phrase in _GENERIC_TITLE_PHRASES):
        capitalized = _CAPITALIZED_RUN_RE.findall(summary)
        if capitalized:
            title = " ".join(capitalized[:3])

    return title + ("..." if len(summary.split()) > 6 else "")


def derive_tags(original_text: str, summary: str) -> List[str]:
    tags = frequent_words(f"{original_text} {summary}", MAX_TAGS)
    return tags or [FALLBACK_TAG]


def estimate_read_time(text: str) -> int:
    return max(1, math.ceil(word_count(text) / WORDS_PER_MINUTE))


class HeuristicSummarizer:
    """Object facade over the module functions, injectable into services."""

    def generate(self, text: str, kind: Union[SummaryKind, str]) -> str:
        return generate(text, kind)

    def derive_title(self, summary: str) -> str:
        return derive_title(summary)

    def derive_tags(self, original_text: str, summary: str) -> List[str]:
        return derive_tags(original_text, summary)

    def estimate_read_time(self, text: str) -> int:
        return estimate_read_time(text)

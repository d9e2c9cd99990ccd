"""Keyword extraction from requirement text."""

from __future__ import annotations

import re

MIN_KEYWORD_LENGTH = 4
MAX_KEYWORDS = 3

STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "from", "as", "is", "was", "are", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "should", "could",
        "may", "might", "must", "can", "system",
    }
)

NON_WORD_PATTERN = re.compile(r"[^a-z0-9\s]")


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> list[str]:
    """
    Search keywords for a requirement.

    Lower-cases, strips non-alphanumerics, drops short words and stop
    words, dedupes, then keeps the longest ``limit`` words. Ties keep
    first-seen order.
    """
    words = NON_WORD_PATTERN.sub(" ", text.lower()).split()
    unique: list[str] = []
    for word in words:
        if len(word) < MIN_KEYWORD_LENGTH or word in STOP_WORDS or word in unique:
            continue
        unique.append(word)
    return sorted(unique, key=len, reverse=True)[:limit]

"""
Near-duplicate detection for question stems.

Two stems are near-duplicates when they normalize to the same text, when
a long stem (>= 90 chars) contains the other, or when their content-token
overlap |A & B| / max(|A|, |B|) reaches the threshold.
"""

from __future__ import annotations

import re

DEFAULT_SIMILARITY_THRESHOLD = 0.68
CONTAINMENT_MIN_CHARS = 90
MIN_TOKEN_CHARS = 3

STEM_STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "have",
    "in", "into", "is", "it", "its", "of", "on", "or", "that", "the", "their", "then",
    "there", "these", "this", "to", "was", "were", "which", "with", "patient", "most",
    "likely", "following", "best", "next", "step", "regarding", "shows", "showing",
    "findings", "presentation", "clinical", "diagnosis", "management", "question",
})

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_stem(stem: str | None) -> str:
    """Lowercase, replace non-alphanumerics with spaces, collapse whitespace."""
    text = _NON_ALNUM.sub(" ", str(stem or "").lower())
    return _WHITESPACE.sub(" ", text).strip()


def stem_tokens(stem: str | None) -> frozenset[str]:
    """Content tokens: normalized words longer than two chars, minus stop words."""
    return frozenset(
        token
        for token in normalize_stem(stem).split(" ")
        if len(token) >= MIN_TOKEN_CHARS and token not in STEM_STOP_WORDS
    )


def stem_similarity(stem_a: str | None, stem_b: str | None) -> float:
    """Token overlap ratio in [0, 1]; 0 when either stem has no content tokens."""
    a = stem_tokens(stem_a)
    b = stem_tokens(stem_b)
    if not a or not b:
        return 0.0
    return len(a & b) / max(len(a), len(b))


def is_near_duplicate_stem(
    stem_a: str | None,
    stem_b: str | None,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> bool:
    a = normalize_stem(stem_a)
    b = normalize_stem(stem_b)
    if not a or not b:
        return False
    if a == b:
        return True
    if (len(a) >= CONTAINMENT_MIN_CHARS or len(b) >= CONTAINMENT_MIN_CHARS) and (a in b or b in a):
        return True
    return stem_similarity(a, b) >= threshold

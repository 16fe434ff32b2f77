"""Flesch reading-ease scoring."""
from __future__ import annotations

import re

from .statistics import count_words

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NON_LETTERS_RE = re.compile(r"[^a-z]")
_VOWELS = "aeiouy"

_RATINGS = (
    (90, "Very Easy"),
    (80, "Easy"),
    (70, "Fairly Easy"),
    (60, "Standard"),
    (50, "Fairly Difficult"),
    (30, "Difficult"),
)


def count_syllables(word: str) -> int:
    """Estimate syllables from vowel groups, with silent-e and consonant-le rules."""

    clean = _NON_LETTERS_RE.sub("", word.lower())
    if not clean:
        return 0
    if len(clean) == 1:
        return 1

    syllables = 0
    previous_was_vowel = False
    for char in clean:
        is_vowel = char in _VOWELS
        if is_vowel and not previous_was_vowel:
            syllables += 1
        previous_was_vowel = is_vowel

    if clean.endswith("e") and syllables > 1:
        syllables -= 1
    if clean.endswith("le") and syllables > 1 and len(clean) > 2 and clean[-3] not in "aeiou":
        syllables += 1
    return max(1, syllables)


def calculate_flesch_score(text: str) -> float:
    """Return the reading-ease score clamped to 0..100; blank text scores 0."""

    if not text.strip():
        return 0.0

    sentences = max(1, len([s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]))
    words = count_words(text)
    if words == 0:
        return 0.0
    syllables = max(1, sum(count_syllables(word) for word in text.split()))

    score = 206.835 - 1.015 * (words / sentences) - 84.6 * (syllables / words)
    return max(0.0, min(100.0, round(score * 10) / 10))


def get_flesch_rating(score: float) -> str:
    for threshold, label in _RATINGS:
        if score >= threshold:
            return label
    return "Very Difficult"

"""Word, sentence and paragraph counting shared by the extractor and the API."""
from __future__ import annotations

import re

from medwriter.errors import InvalidInputError

from .models import TextStatistics

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")


def count_words(text: str) -> int:
    """Count whitespace-delimited, non-empty tokens."""

    return len(text.split())


def get_text_statistics(text: str) -> TextStatistics:
    if not isinstance(text, str):
        raise InvalidInputError(f"Expected text to be str, got {type(text).__name__}")

    sentences = [segment for segment in _SENTENCE_SPLIT_RE.split(text) if segment.strip()]
    paragraphs = [segment for segment in _PARAGRAPH_SPLIT_RE.split(text) if segment.strip()]
    return TextStatistics(
        word_count=count_words(text),
        character_count=len(text),
        sentence_count=len(sentences),
        paragraph_count=len(paragraphs),
    )

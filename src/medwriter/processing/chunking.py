"""Sentence-aligned chunking of text for independent analysis calls."""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from typing import Iterator, List

from medwriter.errors import InvalidInputError

from .models import TextChunk

DEFAULT_MAX_CHUNK_SIZE = 500

_SENTENCE_BOUNDARY_RE = re.compile(r"[.!?]+\s+")
_SENTENCE_TERMINATORS = (".", "!", "?")
_TRAILING_WORD_RE = re.compile(r"(\S+?)[.!?]+\s+$")
# Words after which a period does not end a sentence when abbreviation
# handling is enabled. Kept to titles and Latin shorthand; unit abbreviations
# such as "mg." frequently end sentences in clinical notes.
_ABBREVIATIONS = frozenset(
    {"dr", "mr", "mrs", "ms", "prof", "sr", "jr", "st", "vs", "e.g", "i.e", "approx", "fig", "no"}
)
LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SentenceSpan:
    """A trimmed sentence and the span it occupies in the source text."""

    text: str
    start: int
    end: int


def _require_text(text: object) -> str:
    if not isinstance(text, str):
        raise InvalidInputError(f"Expected text to be str, got {type(text).__name__}")
    return text


class SentenceChunker:
    """Greedily pack whole sentences into chunks of a target size.

    The size limit is soft: a sentence longer than ``max_chunk_size`` is
    emitted as its own chunk rather than split.
    """

    def __init__(self, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE, *, respect_abbreviations: bool = False) -> None:
        if isinstance(max_chunk_size, bool) or not isinstance(max_chunk_size, int):
            raise InvalidInputError(
                f"max_chunk_size must be an int, got {type(max_chunk_size).__name__}"
            )
        if max_chunk_size <= 0:
            raise InvalidInputError("max_chunk_size must be a positive integer")
        self.max_chunk_size = max_chunk_size
        self.respect_abbreviations = respect_abbreviations

    def split_sentences(self, text: str) -> List[SentenceSpan]:
        text = _require_text(text)
        sentences: List[SentenceSpan] = []
        start = 0
        for match in _SENTENCE_BOUNDARY_RE.finditer(text):
            if self.respect_abbreviations and self._is_abbreviation(text[start : match.end()]):
                continue
            sentences.append(SentenceSpan(text[start : match.end()].strip(), start, match.end()))
            start = match.end()
        remainder = text[start:]
        if remainder.strip():
            sentences.append(SentenceSpan(remainder.strip(), start, len(text)))
        return sentences

    @staticmethod
    def _is_abbreviation(segment: str) -> bool:
        match = _TRAILING_WORD_RE.search(segment)
        if match is None:
            return False
        word = match.group(1).lower().lstrip("([\"'")
        return word in _ABBREVIATIONS

    def iter_chunks(self, text: str) -> Iterator[TextChunk]:
        sentences = self.split_sentences(text)
        if not sentences:
            return

        generation = int(time.time() * 1000)
        index = 0
        buffer = ""
        buffer_start = 0
        buffer_sentences = 0
        previous_end = 0

        for sentence in sentences:
            candidate = f"{buffer} {sentence.text}" if buffer else sentence.text
            if buffer and len(candidate) > self.max_chunk_size:
                yield self._make_chunk(generation, index, buffer, buffer_start, previous_end, buffer_sentences)
                index += 1
                buffer = sentence.text
                buffer_start = sentence.start
                buffer_sentences = 1
            else:
                if not buffer:
                    buffer_start = sentence.start
                buffer = candidate
                buffer_sentences += 1
            previous_end = sentence.end

        if buffer:
            yield self._make_chunk(generation, index, buffer, buffer_start, len(text), buffer_sentences)

    def chunk(self, text: str) -> List[TextChunk]:
        chunks = list(self.iter_chunks(text))
        LOGGER.debug("Split %s chars into %s chunks (max %s)", len(text), len(chunks), self.max_chunk_size)
        return chunks

    @staticmethod
    def _make_chunk(generation: int, index: int, buffer: str, start: int, end: int, sentences: int) -> TextChunk:
        return TextChunk(
            id=f"chunk_{generation}_{index}",
            text=buffer.strip(),
            start_offset=start,
            end_offset=end,
            sentence_count=sentences,
            is_complete=True,
        )


def chunk_text(text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> List[TextChunk]:
    """Split ``text`` into sentence-aligned chunks of roughly ``max_chunk_size`` characters."""

    return SentenceChunker(max_chunk_size).chunk(text)


def ends_with_complete_sentence(text: str) -> bool:
    return _require_text(text).strip().endswith(_SENTENCE_TERMINATORS)


def get_last_incomplete_sentence(text: str) -> str:
    """Return the trailing fragment that is still being typed.

    Empty when the text already ends with a sentence terminator.
    """

    stripped = _require_text(text).strip()
    if not stripped or stripped.endswith(_SENTENCE_TERMINATORS):
        return ""
    last_boundary = 0
    for match in _SENTENCE_BOUNDARY_RE.finditer(stripped):
        last_boundary = match.end()
    return stripped[last_boundary:].strip()

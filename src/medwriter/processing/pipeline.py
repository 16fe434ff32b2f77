"""High level text-processing entry point used by the API."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional

from medwriter.errors import InvalidInputError, TextTooLongError

from .changes import detect_changes
from .chunking import DEFAULT_MAX_CHUNK_SIZE, SentenceChunker
from .extraction import ContentTreeNode, extract_plain_text, parse_html
from .language import LanguageDetector
from .medical_terms import analyze_medical_context, extract_medical_terms
from .models import (
    AnalysisBatch,
    AnalysisRequest,
    AnnotationAdjustment,
    PlainTextResult,
    PositionValidation,
    TextChange,
    TextChunk,
    TextStatistics,
    TrackedAnnotation,
)
from .normalization import clean_for_ai, normalize_text
from .positions import DEFAULT_SEARCH_RADIUS, adjust_annotations, validate_annotation_position
from .statistics import get_text_statistics

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("medwriter.analysis.audit")

DEFAULT_MAX_ANALYSIS_CHARS = 10_000


def _int_from_env(name: str, default: int, *, minimum: Optional[int] = None) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default
    if minimum is not None and parsed < minimum:
        LOGGER.warning("%s must be at least %s, got %s; using default %s", name, minimum, parsed, default)
        return default
    return parsed


def _bool_from_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


@dataclass(slots=True)
class ProcessorConfig:
    max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE
    max_analysis_chars: int = DEFAULT_MAX_ANALYSIS_CHARS
    search_radius: int = DEFAULT_SEARCH_RADIUS
    respect_abbreviations: bool = False

    @classmethod
    def from_env(cls) -> "ProcessorConfig":
        return cls(
            max_chunk_size=_int_from_env("MEDWRITER_MAX_CHUNK_SIZE", DEFAULT_MAX_CHUNK_SIZE, minimum=1),
            max_analysis_chars=_int_from_env(
                "MEDWRITER_MAX_ANALYSIS_CHARS", DEFAULT_MAX_ANALYSIS_CHARS, minimum=1
            ),
            search_radius=_int_from_env("MEDWRITER_SEARCH_RADIUS", DEFAULT_SEARCH_RADIUS, minimum=0),
            respect_abbreviations=_bool_from_env("MEDWRITER_RESPECT_ABBREVIATIONS", False),
        )


class TextProcessor:
    """Facade over the extraction, normalisation, chunking and diff functions.

    Holds configuration only, so one shared instance can serve concurrent
    requests.
    """

    def __init__(self, config: Optional[ProcessorConfig] = None) -> None:
        self.config = config or ProcessorConfig()
        self.language_detector = LanguageDetector()

    def process_html(self, markup: str) -> PlainTextResult:
        return self.extract(parse_html(markup))

    def extract(self, root: ContentTreeNode) -> PlainTextResult:
        result = extract_plain_text(root)
        LOGGER.info("Extracted %s words / %s chars", result.word_count, result.character_count)
        return result

    def normalize(self, text: str) -> str:
        return normalize_text(text)

    def clean_for_ai(self, text: str) -> str:
        return clean_for_ai(text)

    def chunk(self, text: str, max_chunk_size: Optional[int] = None) -> List[TextChunk]:
        size = self.config.max_chunk_size if max_chunk_size is None else max_chunk_size
        chunker = SentenceChunker(size, respect_abbreviations=self.config.respect_abbreviations)
        return chunker.chunk(text)

    def detect_changes(self, old_text: str, new_text: str) -> List[TextChange]:
        return detect_changes(old_text, new_text)

    def statistics(self, text: str) -> TextStatistics:
        return get_text_statistics(text)

    def reanchor(
        self, old_text: str, new_text: str, annotations: Iterable[TrackedAnnotation]
    ) -> tuple[Optional[TextChange], AnnotationAdjustment]:
        """Detect the edit between two snapshots and move annotations accordingly."""

        annotations = tuple(annotations)
        changes = detect_changes(old_text, new_text)
        if not changes:
            return None, AnnotationAdjustment(adjusted=annotations, invalidated=(), recalculation_needed=False)
        change = changes[0]
        return change, adjust_annotations(change, annotations)

    def validate(self, annotation: TrackedAnnotation, text: str) -> PositionValidation:
        return validate_annotation_position(annotation, text, self.config.search_radius)

    def prepare_analysis(self, text: str, medical_context: Optional[bool] = None) -> AnalysisBatch:
        """Clean and chunk ``text`` into requests for the grammar collaborator.

        When ``medical_context`` is not given it is enabled whenever the text
        contains any known medical terminology.
        """

        if not isinstance(text, str):
            raise InvalidInputError(f"Expected text to be str, got {type(text).__name__}")
        if len(text) > self.config.max_analysis_chars:
            raise TextTooLongError(len(text), self.config.max_analysis_chars)

        cleaned = clean_for_ai(text)
        if not cleaned:
            return AnalysisBatch(text="")

        terms = extract_medical_terms(cleaned)
        medical = analyze_medical_context(cleaned)
        flag = bool(terms.all_terms()) if medical_context is None else medical_context
        requests = tuple(
            AnalysisRequest(
                chunk_id=chunk.id,
                text=chunk.text,
                start_offset=chunk.start_offset,
                end_offset=chunk.end_offset,
                medical_context=flag,
            )
            for chunk in self.chunk(cleaned)
        )
        language = self.language_detector.detect(cleaned)

        AUDIT_LOGGER.info(
            {
                "event": "analysis.prepared",
                "chars": len(cleaned),
                "chunks": len(requests),
                "medical_context": flag,
                "medical_confidence": round(medical.confidence, 3),
                "language": language,
            }
        )
        return AnalysisBatch(
            text=cleaned,
            requests=requests,
            medical=medical,
            language=language,
            medical_terms=terms.all_terms(),
        )


@lru_cache()
def get_text_processor() -> TextProcessor:
    """Return the shared :class:`TextProcessor` configured from the environment."""

    return TextProcessor(ProcessorConfig.from_env())

"""Text extraction, normalisation, chunking and change tracking for the editor."""
from __future__ import annotations

from .changes import detect_changes
from .chunking import (
    DEFAULT_MAX_CHUNK_SIZE,
    SentenceChunker,
    chunk_text,
    ends_with_complete_sentence,
    get_last_incomplete_sentence,
)
from .extraction import ContentNode, ContentTreeNode, extract_plain_text, parse_html
from .models import (
    AnalysisBatch,
    AnalysisRequest,
    AnnotationAdjustment,
    MedicalContext,
    PlainTextResult,
    PositionEntry,
    PositionValidation,
    TextChange,
    TextChunk,
    TextStatistics,
    TrackedAnnotation,
)
from .normalization import clean_for_ai, normalize_text
from .pipeline import ProcessorConfig, TextProcessor, get_text_processor
from .positions import adjust_annotations, clamp_position, is_position_valid, validate_annotation_position
from .readability import calculate_flesch_score, get_flesch_rating
from .statistics import get_text_statistics

__all__ = [
    "AnalysisBatch",
    "AnalysisRequest",
    "AnnotationAdjustment",
    "ContentNode",
    "ContentTreeNode",
    "DEFAULT_MAX_CHUNK_SIZE",
    "MedicalContext",
    "PlainTextResult",
    "PositionEntry",
    "PositionValidation",
    "ProcessorConfig",
    "SentenceChunker",
    "TextChange",
    "TextChunk",
    "TextProcessor",
    "TextStatistics",
    "TrackedAnnotation",
    "adjust_annotations",
    "calculate_flesch_score",
    "chunk_text",
    "clamp_position",
    "clean_for_ai",
    "detect_changes",
    "ends_with_complete_sentence",
    "extract_plain_text",
    "get_flesch_rating",
    "get_last_incomplete_sentence",
    "get_text_processor",
    "get_text_statistics",
    "is_position_valid",
    "normalize_text",
    "parse_html",
    "validate_annotation_position",
]

"""Value objects produced by the text-processing core."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional, Tuple

NodeType = Literal["text", "element"]
ChangeType = Literal["insert", "delete", "replace"]


@dataclass(frozen=True, slots=True)
class PositionEntry:
    """Anchors a visited tree node to an offset in the derived plain text."""

    dom_offset: int
    text_offset: int
    node_index: int
    node_type: NodeType


@dataclass(frozen=True, slots=True)
class PlainTextResult:
    """Plain text extracted from a content tree together with its position map."""

    plain_text: str
    position_map: Tuple[PositionEntry, ...]
    word_count: int
    character_count: int
    has_changes: bool = True


@dataclass(frozen=True, slots=True)
class TextChunk:
    """Sentence-aligned slice of a source text submitted for analysis."""

    id: str
    text: str
    start_offset: int
    end_offset: int
    sentence_count: int
    is_complete: bool = True


@dataclass(frozen=True, slots=True)
class TextChange:
    """Single contiguous edit between two text snapshots; ``end`` is exclusive."""

    type: ChangeType
    start: int
    end: int
    old_text: str
    new_text: str
    timestamp: datetime

    @property
    def length_delta(self) -> int:
        return len(self.new_text) - len(self.old_text)

    def apply(self, text: str) -> str:
        """Replay the change on ``text`` (normally the old snapshot)."""

        return text[: self.start] + self.new_text + text[self.end :]


@dataclass(frozen=True, slots=True)
class TextStatistics:
    word_count: int
    character_count: int
    sentence_count: int
    paragraph_count: int


@dataclass(frozen=True, slots=True)
class TrackedAnnotation:
    """An error span reported by the grammar collaborator, tracked across edits."""

    id: str
    start: int
    end: int
    original: str = ""

    def moved(self, delta: int) -> "TrackedAnnotation":
        return TrackedAnnotation(id=self.id, start=self.start + delta, end=self.end + delta, original=self.original)


@dataclass(frozen=True, slots=True)
class AnnotationAdjustment:
    """Outcome of re-anchoring annotations after a text change."""

    adjusted: Tuple[TrackedAnnotation, ...]
    invalidated: Tuple[str, ...]
    recalculation_needed: bool


@dataclass(frozen=True, slots=True)
class PositionValidation:
    is_valid: bool
    actual_text: str
    expected_text: str
    adjusted_span: Optional[Tuple[int, int]] = None
    error: Optional[str] = None


@dataclass(frozen=True, slots=True)
class MedicalTerms:
    """Medical vocabulary found in a text, grouped by category."""

    abbreviations: Tuple[str, ...] = ()
    anatomical_terms: Tuple[str, ...] = ()
    general_terms: Tuple[str, ...] = ()
    latin_terms: Tuple[str, ...] = ()

    def all_terms(self) -> Tuple[str, ...]:
        return self.abbreviations + self.anatomical_terms + self.general_terms + self.latin_terms


@dataclass(frozen=True, slots=True)
class MedicalContext:
    terms_found: Tuple[str, ...]
    abbreviations_used: Tuple[str, ...]
    special_terms: Tuple[str, ...]
    confidence: float


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """Payload for one call to the external grammar-analysis collaborator."""

    chunk_id: str
    text: str
    start_offset: int
    end_offset: int
    medical_context: bool


@dataclass(frozen=True, slots=True)
class AnalysisBatch:
    """All analysis requests prepared for one document snapshot."""

    text: str
    requests: Tuple[AnalysisRequest, ...] = ()
    medical: Optional[MedicalContext] = None
    language: Optional[str] = None
    medical_terms: Tuple[str, ...] = field(default_factory=tuple)

"""Keep grammar annotations anchored to the text while it is being edited."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Tuple

from medwriter.errors import InvalidInputError

from .models import AnnotationAdjustment, PositionValidation, TextChange, TrackedAnnotation

LOGGER = logging.getLogger(__name__)

RECALC_LENGTH_DELTA = 50
RECALC_ANNOTATION_COUNT = 10
DEFAULT_SEARCH_RADIUS = 50


def is_position_valid(start: int, end: int, text_length: int) -> bool:
    return 0 <= start < end <= text_length


def clamp_position(start: int, end: int, text_length: int) -> Tuple[int, int]:
    clamped_start = max(0, min(start, text_length))
    return clamped_start, max(clamped_start, min(end, text_length))


def adjust_annotations(
    change: TextChange,
    annotations: Iterable[TrackedAnnotation],
    *,
    recalc_length_delta: int = RECALC_LENGTH_DELTA,
    recalc_annotation_count: int = RECALC_ANNOTATION_COUNT,
) -> AnnotationAdjustment:
    """Re-anchor annotations against the text produced by ``change``.

    Annotations entirely before the edited span keep their offsets, those
    entirely after it move by the change's length delta, and any annotation
    the edit touches from the inside is invalidated. An annotation that ends
    exactly where text is inserted is left as is.
    """

    if not isinstance(change, TextChange):
        raise InvalidInputError(f"Expected a TextChange, got {type(change).__name__}")

    delta = change.length_delta
    adjusted: List[TrackedAnnotation] = []
    invalidated: List[str] = []

    for annotation in annotations:
        if annotation.end <= change.start:
            adjusted.append(annotation)
        elif annotation.start >= change.end:
            adjusted.append(annotation.moved(delta))
        else:
            invalidated.append(annotation.id)

    recalculation_needed = (
        bool(invalidated) or abs(delta) > recalc_length_delta or len(adjusted) > recalc_annotation_count
    )
    LOGGER.debug(
        "Re-anchored annotations after %s: %s kept, %s invalidated",
        change.type,
        len(adjusted),
        len(invalidated),
    )
    return AnnotationAdjustment(
        adjusted=tuple(adjusted),
        invalidated=tuple(invalidated),
        recalculation_needed=recalculation_needed,
    )


def find_nearby_match(
    search_text: str, full_text: str, approximate_start: int, search_radius: int = DEFAULT_SEARCH_RADIUS
) -> Optional[Tuple[int, int]]:
    if not search_text:
        return None
    window_start = max(0, approximate_start - search_radius)
    window_end = min(len(full_text), approximate_start + search_radius + len(search_text))
    found = full_text.find(search_text, window_start, window_end)
    if found == -1:
        return None
    return found, found + len(search_text)


def validate_annotation_position(
    annotation: TrackedAnnotation, text: str, search_radius: int = DEFAULT_SEARCH_RADIUS
) -> PositionValidation:
    """Check that an annotation still points at the text it was reported for.

    When the span has drifted, the original text is searched for around the
    reported start and the corrected span is returned in ``adjusted_span``.
    """

    if not is_position_valid(annotation.start, annotation.end, len(text)):
        return PositionValidation(
            is_valid=False,
            actual_text="",
            expected_text=annotation.original,
            error="Position out of bounds",
        )

    actual = text[annotation.start : annotation.end]
    if actual == annotation.original:
        return PositionValidation(is_valid=True, actual_text=actual, expected_text=annotation.original)

    LOGGER.info("Annotation %s drifted: expected %r, found %r", annotation.id, annotation.original, actual)
    return PositionValidation(
        is_valid=False,
        actual_text=actual,
        expected_text=annotation.original,
        adjusted_span=find_nearby_match(annotation.original, text, annotation.start, search_radius),
        error=f'Text mismatch: expected "{annotation.original}", found "{actual}"',
    )

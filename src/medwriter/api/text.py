"""API router exposing the text-processing operations to the editor."""
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from medwriter.errors import TextTooLongError
from medwriter.processing import (
    TextChange,
    TextProcessor,
    TrackedAnnotation,
    calculate_flesch_score,
    ends_with_complete_sentence,
    get_flesch_rating,
    get_last_incomplete_sentence,
    get_text_processor,
)

router = APIRouter(prefix="/text", tags=["text"])


class HTMLRequest(BaseModel):
    html: str = Field(..., description="innerHTML of the editable surface.")


class TextRequest(BaseModel):
    text: str


class NormalizeRequest(BaseModel):
    text: str
    for_ai: bool = Field(False, description="Apply the stricter cleaning used before AI analysis.")


class ChunkRequest(BaseModel):
    text: str
    max_chunk_size: int | None = Field(None, ge=1, description="Soft upper bound on chunk length.")


class ChangeRequest(BaseModel):
    old_text: str
    new_text: str


class AnnotationModel(BaseModel):
    id: str
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    original: str = ""


class AdjustRequest(ChangeRequest):
    annotations: list[AnnotationModel] = Field(default_factory=list)


class ValidateRequest(BaseModel):
    text: str
    annotation: AnnotationModel


class AnalysisRequestBody(BaseModel):
    text: str
    medical_context: bool | None = None


class PositionEntryModel(BaseModel):
    dom_offset: int
    text_offset: int
    node_index: int
    node_type: Literal["text", "element"]


class ExtractResponse(BaseModel):
    plain_text: str
    position_map: list[PositionEntryModel]
    word_count: int
    character_count: int
    has_changes: bool


class NormalizeResponse(BaseModel):
    text: str


class ChunkModel(BaseModel):
    id: str
    text: str
    start_offset: int
    end_offset: int
    sentence_count: int
    is_complete: bool


class ChunkResponse(BaseModel):
    chunks: list[ChunkModel]


class ChangeModel(BaseModel):
    type: Literal["insert", "delete", "replace"]
    start: int
    end: int
    old_text: str
    new_text: str
    timestamp: str


class ChangeResponse(BaseModel):
    changes: list[ChangeModel]


class StatisticsResponse(BaseModel):
    word_count: int
    character_count: int
    sentence_count: int
    paragraph_count: int
    flesch_score: float
    flesch_rating: str


class AdjustResponse(BaseModel):
    change: ChangeModel | None
    annotations: list[AnnotationModel]
    invalidated: list[str]
    recalculation_needed: bool


class AnalysisItem(BaseModel):
    chunk_id: str
    text: str
    start_offset: int
    end_offset: int
    medical_context: bool


class AnalysisResponse(BaseModel):
    text: str
    language: str | None
    medical_confidence: float
    medical_terms: list[str]
    requests: list[AnalysisItem]


class ValidateResponse(BaseModel):
    is_valid: bool
    actual_text: str
    expected_text: str
    adjusted_span: tuple[int, int] | None = None
    error: str | None = None


class SentenceStateResponse(BaseModel):
    complete: bool
    pending: str


def _change_model(change: TextChange) -> ChangeModel:
    return ChangeModel(
        type=change.type,
        start=change.start,
        end=change.end,
        old_text=change.old_text,
        new_text=change.new_text,
        timestamp=change.timestamp.isoformat(),
    )


@router.post("/extract", response_model=ExtractResponse)
def extract_text(request: HTMLRequest, processor: TextProcessor = Depends(get_text_processor)) -> ExtractResponse:
    """Convert editor HTML into plain text with its position map."""

    result = processor.process_html(request.html)
    return ExtractResponse(
        plain_text=result.plain_text,
        position_map=[
            PositionEntryModel(
                dom_offset=entry.dom_offset,
                text_offset=entry.text_offset,
                node_index=entry.node_index,
                node_type=entry.node_type,
            )
            for entry in result.position_map
        ],
        word_count=result.word_count,
        character_count=result.character_count,
        has_changes=result.has_changes,
    )


@router.post("/normalize", response_model=NormalizeResponse)
def normalize(request: NormalizeRequest, processor: TextProcessor = Depends(get_text_processor)) -> NormalizeResponse:
    text = processor.clean_for_ai(request.text) if request.for_ai else processor.normalize(request.text)
    return NormalizeResponse(text=text)


@router.post("/chunks", response_model=ChunkResponse)
def chunk(request: ChunkRequest, processor: TextProcessor = Depends(get_text_processor)) -> ChunkResponse:
    chunks = processor.chunk(request.text, request.max_chunk_size)
    return ChunkResponse(
        chunks=[
            ChunkModel(
                id=item.id,
                text=item.text,
                start_offset=item.start_offset,
                end_offset=item.end_offset,
                sentence_count=item.sentence_count,
                is_complete=item.is_complete,
            )
            for item in chunks
        ]
    )


@router.post("/changes", response_model=ChangeResponse)
def changes(request: ChangeRequest, processor: TextProcessor = Depends(get_text_processor)) -> ChangeResponse:
    detected = processor.detect_changes(request.old_text, request.new_text)
    return ChangeResponse(changes=[_change_model(change) for change in detected])


@router.post("/statistics", response_model=StatisticsResponse)
def statistics(request: TextRequest, processor: TextProcessor = Depends(get_text_processor)) -> StatisticsResponse:
    stats = processor.statistics(request.text)
    score = calculate_flesch_score(request.text)
    return StatisticsResponse(
        word_count=stats.word_count,
        character_count=stats.character_count,
        sentence_count=stats.sentence_count,
        paragraph_count=stats.paragraph_count,
        flesch_score=score,
        flesch_rating=get_flesch_rating(score),
    )


@router.post("/annotations/adjust", response_model=AdjustResponse)
def adjust(request: AdjustRequest, processor: TextProcessor = Depends(get_text_processor)) -> AdjustResponse:
    """Move annotations across an edit; overlapped annotations are reported as invalidated."""

    annotations = [
        TrackedAnnotation(id=item.id, start=item.start, end=item.end, original=item.original)
        for item in request.annotations
    ]
    change, adjustment = processor.reanchor(request.old_text, request.new_text, annotations)
    return AdjustResponse(
        change=_change_model(change) if change is not None else None,
        annotations=[
            AnnotationModel(id=item.id, start=item.start, end=item.end, original=item.original)
            for item in adjustment.adjusted
        ],
        invalidated=list(adjustment.invalidated),
        recalculation_needed=adjustment.recalculation_needed,
    )


@router.post("/annotations/validate", response_model=ValidateResponse)
def validate(request: ValidateRequest, processor: TextProcessor = Depends(get_text_processor)) -> ValidateResponse:
    item = request.annotation
    result = processor.validate(
        TrackedAnnotation(id=item.id, start=item.start, end=item.end, original=item.original), request.text
    )
    return ValidateResponse(
        is_valid=result.is_valid,
        actual_text=result.actual_text,
        expected_text=result.expected_text,
        adjusted_span=result.adjusted_span,
        error=result.error,
    )


@router.post("/analysis", response_model=AnalysisResponse)
def analysis(request: AnalysisRequestBody, processor: TextProcessor = Depends(get_text_processor)) -> AnalysisResponse:
    """Prepare the per-chunk requests for the grammar-analysis collaborator."""

    try:
        batch = processor.prepare_analysis(request.text, medical_context=request.medical_context)
    except TextTooLongError as exc:
        raise HTTPException(status_code=413, detail=str(exc)) from exc
    return AnalysisResponse(
        text=batch.text,
        language=batch.language,
        medical_confidence=batch.medical.confidence if batch.medical else 0.0,
        medical_terms=list(batch.medical_terms),
        requests=[
            AnalysisItem(
                chunk_id=item.chunk_id,
                text=item.text,
                start_offset=item.start_offset,
                end_offset=item.end_offset,
                medical_context=item.medical_context,
            )
            for item in batch.requests
        ],
    )


@router.get("/sentence-state", response_model=SentenceStateResponse)
def sentence_state(text: str = Query("", description="Current editor text.")) -> SentenceStateResponse:
    """Report whether the text ends a sentence and which fragment is still being typed."""

    return SentenceStateResponse(
        complete=ends_with_complete_sentence(text),
        pending=get_last_incomplete_sentence(text),
    )

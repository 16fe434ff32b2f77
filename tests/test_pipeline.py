import logging

import pytest

from medwriter.errors import InvalidInputError, TextTooLongError
from medwriter.processing import (
    ProcessorConfig,
    TextProcessor,
    TrackedAnnotation,
    get_text_processor,
)
from medwriter.processing import pipeline

CLINICAL_NOTE = "Dr. Smith saw the patient. BP was 120/80 mmHg. Patient reports mild headache."


def test_config_defaults(monkeypatch) -> None:  # noqa: ANN001
    for name in (
        "MEDWRITER_MAX_CHUNK_SIZE",
        "MEDWRITER_MAX_ANALYSIS_CHARS",
        "MEDWRITER_SEARCH_RADIUS",
        "MEDWRITER_RESPECT_ABBREVIATIONS",
    ):
        monkeypatch.delenv(name, raising=False)

    config = ProcessorConfig.from_env()

    assert config == ProcessorConfig(
        max_chunk_size=500, max_analysis_chars=10_000, search_radius=50, respect_abbreviations=False
    )


def test_config_reads_environment(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_MAX_CHUNK_SIZE", "120")
    monkeypatch.setenv("MEDWRITER_MAX_ANALYSIS_CHARS", "2000")
    monkeypatch.setenv("MEDWRITER_SEARCH_RADIUS", "10")
    monkeypatch.setenv("MEDWRITER_RESPECT_ABBREVIATIONS", "true")

    config = ProcessorConfig.from_env()

    assert config.max_chunk_size == 120
    assert config.max_analysis_chars == 2000
    assert config.search_radius == 10
    assert config.respect_abbreviations is True


def test_invalid_integer_falls_back_to_default(monkeypatch, caplog) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_MAX_CHUNK_SIZE", "lots")

    with caplog.at_level(logging.WARNING, logger="medwriter.processing.pipeline"):
        config = ProcessorConfig.from_env()

    assert config.max_chunk_size == 500
    assert "MEDWRITER_MAX_CHUNK_SIZE" in caplog.text


@pytest.mark.parametrize(
    ("name", "field", "value", "default"),
    [
        ("MEDWRITER_MAX_CHUNK_SIZE", "max_chunk_size", "0", 500),
        ("MEDWRITER_MAX_CHUNK_SIZE", "max_chunk_size", "-20", 500),
        ("MEDWRITER_MAX_ANALYSIS_CHARS", "max_analysis_chars", "0", 10_000),
        ("MEDWRITER_SEARCH_RADIUS", "search_radius", "-1", 50),
    ],
)
def test_out_of_range_integer_falls_back_to_default(
    monkeypatch, caplog, name: str, field: str, value: str, default: int  # noqa: ANN001
) -> None:
    monkeypatch.setenv(name, value)

    with caplog.at_level(logging.WARNING, logger="medwriter.processing.pipeline"):
        config = ProcessorConfig.from_env()

    assert getattr(config, field) == default
    assert name in caplog.text


def test_non_positive_chunk_size_setting_keeps_chunking_usable(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_MAX_CHUNK_SIZE", "0")

    chunks = get_text_processor().chunk("Hello. World.")

    assert [chunk.text for chunk in chunks] == ["Hello. World."]


def test_zero_search_radius_is_allowed(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_SEARCH_RADIUS", "0")
    assert ProcessorConfig.from_env().search_radius == 0


@pytest.mark.parametrize("value", ["0", "false", "No", "off", ""])
def test_false_like_flags(monkeypatch, value: str) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_RESPECT_ABBREVIATIONS", value)
    assert ProcessorConfig.from_env().respect_abbreviations is False


def test_shared_processor_is_cached(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setenv("MEDWRITER_MAX_CHUNK_SIZE", "77")

    first = get_text_processor()

    assert first is get_text_processor()
    assert first.config.max_chunk_size == 77


def test_process_html(processor: TextProcessor) -> None:
    result = processor.process_html("<p>Hello</p><p>World</p>")

    assert result.plain_text == "Hello\nWorld"
    assert len(result.position_map) == 4


def test_chunk_uses_configured_size() -> None:
    processor = TextProcessor(ProcessorConfig(max_chunk_size=40))

    chunks = processor.chunk(CLINICAL_NOTE)

    assert len(chunks) == 3
    assert chunks[0].sentence_count == 2
    assert len(processor.chunk(CLINICAL_NOTE, 1000)) == 1


def test_chunk_honours_abbreviation_setting() -> None:
    processor = TextProcessor(ProcessorConfig(max_chunk_size=40, respect_abbreviations=True))

    chunks = processor.chunk(CLINICAL_NOTE)

    assert chunks[0].text == "Dr. Smith saw the patient."
    assert chunks[0].sentence_count == 1


def test_reanchor_without_edit_keeps_annotations(processor: TextProcessor) -> None:
    annotation = TrackedAnnotation("a1", 0, 3, "The")

    change, adjustment = processor.reanchor("The text.", "The text.", [annotation])

    assert change is None
    assert adjustment.adjusted == (annotation,)
    assert adjustment.invalidated == ()
    assert adjustment.recalculation_needed is False


def test_reanchor_moves_annotations_after_edit(processor: TextProcessor) -> None:
    annotation = TrackedAnnotation("a1", 16, 21, "fever")

    change, adjustment = processor.reanchor(
        "The patient has fever.", "The patient has high fever.", [annotation]
    )

    assert change is not None and change.type == "insert"
    assert [(item.start, item.end) for item in adjustment.adjusted] == [(21, 26)]


def test_validate_uses_configured_radius() -> None:
    annotation = TrackedAnnotation("a1", 16, 21, "fever")

    narrow = TextProcessor(ProcessorConfig(search_radius=0)).validate(annotation, "The patient has high fever.")
    wide = TextProcessor(ProcessorConfig(search_radius=50)).validate(annotation, "The patient has high fever.")

    assert narrow.adjusted_span is None
    assert wide.adjusted_span == (21, 26)


def test_prepare_analysis_cleans_and_chunks(processor: TextProcessor) -> None:
    batch = processor.prepare_analysis("BP was 120/80\u00a0mmHg.   Patient  reports\tmild headache.")

    assert batch.text == "BP was 120/80 mmHg. Patient reports mild headache."
    assert batch.language == "en"
    assert len(batch.requests) == 1
    request = batch.requests[0]
    assert request.text == batch.text
    assert (request.start_offset, request.end_offset) == (0, len(batch.text))
    assert request.medical_context is True
    assert "BP" in batch.medical_terms
    assert batch.medical is not None and batch.medical.confidence > 0


def test_prepare_analysis_respects_explicit_flag(processor: TextProcessor) -> None:
    batch = processor.prepare_analysis(CLINICAL_NOTE, medical_context=False)
    assert all(request.medical_context is False for request in batch.requests)


def test_prepare_analysis_without_medical_terms(processor: TextProcessor) -> None:
    batch = processor.prepare_analysis("We walked to the park after lunch.")

    assert batch.medical_terms == ()
    assert [request.medical_context for request in batch.requests] == [False]


def test_prepare_analysis_of_blank_text(processor: TextProcessor) -> None:
    batch = processor.prepare_analysis(" \n\t ")

    assert batch.text == ""
    assert batch.requests == ()
    assert batch.language is None
    assert processor.language_detector.calls == []


def test_prepare_analysis_rejects_long_text() -> None:
    processor = TextProcessor(ProcessorConfig(max_analysis_chars=10))

    with pytest.raises(TextTooLongError) as excinfo:
        processor.prepare_analysis("This text is longer than ten characters.")

    assert excinfo.value.limit == 10
    assert excinfo.value.length == 40
    assert isinstance(excinfo.value, ValueError)


def test_prepare_analysis_rejects_non_string(processor: TextProcessor) -> None:
    with pytest.raises(InvalidInputError):
        processor.prepare_analysis(None)  # type: ignore[arg-type]


def test_prepare_analysis_writes_audit_entry(processor: TextProcessor, monkeypatch, caplog) -> None:  # noqa: ANN001
    monkeypatch.setattr(pipeline.AUDIT_LOGGER, "propagate", True)

    with caplog.at_level(logging.INFO, logger="medwriter.analysis.audit"):
        processor.prepare_analysis(CLINICAL_NOTE)

    records = [record for record in caplog.records if record.name == "medwriter.analysis.audit"]
    assert records
    record = records[-1]
    assert record.msg["event"] == "analysis.prepared"
    assert record.msg["chunks"] == 1
    assert record.msg["medical_context"] is True
    assert record.msg["language"] == "en"

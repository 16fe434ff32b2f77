"""Shared fixtures for the text-processing tests."""
from __future__ import annotations

from typing import Iterator, Optional

import pytest

from medwriter.processing import ContentNode, ProcessorConfig, TextProcessor, get_text_processor


class _FixedLanguageDetector:
    """Deterministic stand-in for langdetect."""

    def __init__(self, language: Optional[str] = "en") -> None:
        self.language = language
        self.calls: list[str] = []

    def detect(self, text: str) -> Optional[str]:
        self.calls.append(text)
        return self.language


@pytest.fixture(autouse=True)
def _reset_processor_cache() -> Iterator[None]:
    get_text_processor.cache_clear()
    yield
    get_text_processor.cache_clear()


@pytest.fixture()
def processor() -> TextProcessor:
    instance = TextProcessor(ProcessorConfig())
    instance.language_detector = _FixedLanguageDetector()
    return instance


@pytest.fixture()
def paragraphs() -> ContentNode:
    return ContentNode.element(
        "div",
        ContentNode.element("p", ContentNode.text_node("Hello")),
        ContentNode.element("p", ContentNode.text_node("World")),
    )

"""Language detection for documents headed to grammar analysis."""
from __future__ import annotations

import logging
from typing import Optional

from langdetect import DetectorFactory, LangDetectException, detect

LOGGER = logging.getLogger(__name__)
DetectorFactory.seed = 0

# Shorter snippets give langdetect too little signal to be trusted.
MIN_DETECTION_CHARS = 20


class LanguageDetector:
    """Best-effort ISO 639-1 detection; ``None`` when the text is too short or ambiguous."""

    def __init__(self, min_chars: int = MIN_DETECTION_CHARS) -> None:
        self.min_chars = min_chars

    def detect(self, text: str) -> Optional[str]:
        sample = text.strip()
        if len(sample) < self.min_chars:
            return None
        try:
            language = detect(sample)
        except LangDetectException:
            LOGGER.info("Could not detect document language (%s chars)", len(sample))
            return None
        LOGGER.debug("Document language: %s", language)
        return language

"""Text normalisation utilities."""
from __future__ import annotations

import re
import unicodedata

from medwriter.errors import InvalidInputError

_LINE_ENDING_RE = re.compile(r"\r\n?")
_SPACES_RE = re.compile(r" +")
_SPACE_AROUND_NEWLINE_RE = re.compile(r" *\n *")
_MULTIPLE_NEWLINES_RE = re.compile(r"\n{3,}")
_INVISIBLE_RE = re.compile("[\u200b-\u200f\u2060-\u206f\ufeff\u2e00-\u2e7f]")
_SEPARATOR_CATEGORIES = frozenset({"Zs", "Zl", "Zp"})


def _require_text(text: object) -> str:
    if not isinstance(text, str):
        raise InvalidInputError(f"Expected text to be str, got {type(text).__name__}")
    return text


def normalize_text(text: str) -> str:
    """Canonicalise line endings and whitespace.

    Paragraph breaks survive as a single blank line; longer runs of blank
    lines are capped and the whole text is trimmed. The result is stable
    under repeated application.
    """

    normalized = _LINE_ENDING_RE.sub("\n", _require_text(text))
    normalized = normalized.replace("\t", " ")
    normalized = _SPACES_RE.sub(" ", normalized)
    normalized = _SPACE_AROUND_NEWLINE_RE.sub("\n", normalized)
    normalized = _MULTIPLE_NEWLINES_RE.sub("\n\n", normalized)
    return normalized.strip()


def clean_for_ai(text: str) -> str:
    """Normalise text before it is sent to the grammar-analysis collaborator.

    Space, line and paragraph separators become plain spaces; zero-width and
    other invisible formatting characters are dropped.
    """

    cleaned = "".join(
        " " if unicodedata.category(char) in _SEPARATOR_CATEGORIES else char for char in _require_text(text)
    )
    cleaned = _INVISIBLE_RE.sub("", cleaned)
    cleaned = unicodedata.normalize("NFKC", cleaned)
    return normalize_text(cleaned)

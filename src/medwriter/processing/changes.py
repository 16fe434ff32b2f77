"""Single-span change detection between two text snapshots."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List

from medwriter.errors import InvalidInputError

from .models import ChangeType, TextChange

LOGGER = logging.getLogger(__name__)


def detect_changes(old_text: str, new_text: str) -> List[TextChange]:
    """Reduce two snapshots to the one span that differs between them.

    The common prefix and suffix are stripped and whatever remains is
    reported as a single insert, delete or replace. Edits in several places
    collapse into one span covering all of them; this is not a general diff.
    """

    for name, value in (("old_text", old_text), ("new_text", new_text)):
        if not isinstance(value, str):
            raise InvalidInputError(f"Expected {name} to be str, got {type(value).__name__}")

    if old_text == new_text:
        return []

    start = 0
    limit = min(len(old_text), len(new_text))
    while start < limit and old_text[start] == new_text[start]:
        start += 1

    old_end = len(old_text)
    new_end = len(new_text)
    while old_end > start and new_end > start and old_text[old_end - 1] == new_text[new_end - 1]:
        old_end -= 1
        new_end -= 1

    change_type: ChangeType
    if old_end == start:
        change_type = "insert"
    elif new_end == start:
        change_type = "delete"
    else:
        change_type = "replace"

    change = TextChange(
        type=change_type,
        start=start,
        end=old_end,
        old_text=old_text[start:old_end],
        new_text=new_text[start:new_end],
        timestamp=datetime.now(timezone.utc),
    )
    LOGGER.debug("Detected %s at %s-%s", change_type, start, old_end)
    return [change]

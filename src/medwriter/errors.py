"""Common exceptions raised by the text-processing core."""
from __future__ import annotations


class InvalidInputError(TypeError):
    """Raised when an operation receives a malformed input type or value."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class TextTooLongError(ValueError):
    """Raised when text exceeds the configured analysis limit."""

    def __init__(self, length: int, limit: int) -> None:
        super().__init__(f"Text is too long for analysis ({length} > {limit} characters)")
        self.length = length
        self.limit = limit

"""Exceptions raised by offset lookups."""

from __future__ import annotations


class InvalidTextError(ValueError):
    """Raised when cluster counting meets bytes that do not decode as UTF-8."""

    def __init__(
        self,
        message: str,
        *,
        line: int,
        offset: int,
        reason: UnicodeDecodeError | None = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.offset = offset
        self.reason = reason


__all__ = ["InvalidTextError"]

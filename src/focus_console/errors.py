from __future__ import annotations


class FocusConsoleError(Exception):
    """Base class for errors raised by the focus console core."""


class InvalidChunkingConfigError(FocusConsoleError, ValueError):
    """Raised when chunk size / overlap would make the sliding window stall."""


class MalformedInputError(FocusConsoleError, ValueError):
    """Raised when an uploaded compendium cannot be parsed.

    Attributes:
        line: 1-based line of the offending JSON value. For a JSON-array
            payload this is the line of a syntax error, and ``None`` when the
            array decodes but one of its elements is rejected.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        super().__init__(message)
        self.line = line

"""Error taxonomy shared by extraction, retrieval and caching."""

from __future__ import annotations

from dataclasses import dataclass


NO_SEARCHABLE_TEXT_MESSAGE = (
    "No searchable text found - this file may be scanned, corrupted, or password protected"
)


class DocsiftError(Exception):
    """Base class for all engine errors."""


@dataclass(slots=True)
class FormatError(DocsiftError):
    """Container structure is invalid or uses an unsupported feature."""

    message: str
    entry_name: str | None = None

    def __str__(self) -> str:
        if self.entry_name:
            return f"{self.message} (entry={self.entry_name})"
        return self.message


@dataclass(slots=True)
class ExtractionEmptyError(DocsiftError):
    """Extraction ran but did not recover enough text to index."""

    message: str
    format_name: str | None = None

    def __str__(self) -> str:
        if self.format_name:
            return f"{self.message} (format={self.format_name})"
        return self.message


@dataclass(slots=True)
class UnknownToolOrArgumentError(DocsiftError):
    """Caller passed an unsupported format tag or malformed arguments."""

    message: str
    argument: str | None = None

    def __str__(self) -> str:
        if self.argument:
            return f"{self.message} (argument={self.argument})"
        return self.message

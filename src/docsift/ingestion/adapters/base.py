"""Shared adapter contract for per-format text extractors."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ExtractionAdapter(Protocol):
    """Protocol that every format adapter must implement."""

    format_name: str

    def supports(self, raw: bytes) -> bool:
        """Return True when the payload looks like this adapter's format."""

    def extract(self, raw: bytes) -> str:
        """Extract plain text from the raw document bytes."""

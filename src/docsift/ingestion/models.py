"""Canonical data structures shared by extraction, indexing and retrieval."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class RagChunk:
    """Addressable excerpt of a document's flat text."""

    id: str
    start: int
    text: str


@dataclass(slots=True)
class SectionSummary:
    """Per-section digest produced by the summarization collaborator."""

    id: str
    title: str
    summary: str
    key_facts: list[str] = field(default_factory=list)
    monetary_amounts: list[str] = field(default_factory=list)
    compliance_signals: list[str] = field(default_factory=list)
    source_preview: str = ""


@dataclass(slots=True)
class DocumentSummary:
    """Summarizer output attached to a loaded document."""

    summary: str = ""
    highlights: list[str] = field(default_factory=list)
    sections: list[SectionSummary] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ExtractionOutcome:
    """Plain text recovered from one document plus extraction notes."""

    text: str
    format_name: str
    warnings: list[str] = field(default_factory=list)
    used_ocr: bool = False


@dataclass(slots=True)
class LoadedDocument:
    """Fully extracted and indexed document held by the document cache."""

    doc_id: str
    format_name: str
    text: str
    chunks: list[RagChunk]
    page_count: int
    token_estimate: int
    file_name: str | None = None
    summary: str = ""
    highlights: list[str] = field(default_factory=list)
    sections: list[SectionSummary] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    loaded_at: float = 0.0

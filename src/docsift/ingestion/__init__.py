"""Ingestion package interfaces."""

from .errors import DocsiftError, ExtractionEmptyError, FormatError, UnknownToolOrArgumentError
from .ingestor import DocumentIngestor, Summarizer
from .models import DocumentSummary, LoadedDocument, RagChunk, SectionSummary

__all__ = [
    "DocsiftError",
    "DocumentIngestor",
    "DocumentSummary",
    "ExtractionEmptyError",
    "FormatError",
    "LoadedDocument",
    "RagChunk",
    "SectionSummary",
    "Summarizer",
    "UnknownToolOrArgumentError",
]

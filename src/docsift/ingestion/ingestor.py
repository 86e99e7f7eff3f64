"""Routing entrypoint tying extraction, OCR fallback, indexing and caching."""

from __future__ import annotations

import hashlib
import logging
from pathlib import PurePath
import time
from typing import Callable, Protocol, runtime_checkable

from docsift.cache.document_cache import DocumentCache
from docsift.config import EngineSettings
from docsift.ingestion.adapters import build_default_adapters
from docsift.ingestion.adapters.base import ExtractionAdapter
from docsift.ingestion.chunking import build_chunks, estimate_page_count, estimate_tokens
from docsift.ingestion.errors import (
    NO_SEARCHABLE_TEXT_MESSAGE,
    ExtractionEmptyError,
    UnknownToolOrArgumentError,
)
from docsift.ingestion.models import DocumentSummary, ExtractionOutcome, LoadedDocument
from docsift.ingestion.ocr import OcrProvider, OcrStatus, TesseractOcr

logger = logging.getLogger(__name__)

OCR_WARNING = "Text recovered via OCR; accuracy may vary"

_OCR_FORMATS = frozenset({"pdf"})
_CONTENT_TYPE_FORMATS: tuple[tuple[str, str], ...] = (
    ("application/pdf", "pdf"),
    ("wordprocessingml", "docx"),
    ("spreadsheetml", "xlsx"),
    ("text/csv", "csv"),
)
_SUFFIX_FORMATS = {".pdf": "pdf", ".docx": "docx", ".xlsx": "xlsx", ".csv": "csv"}


@runtime_checkable
class Summarizer(Protocol):
    """Collaborator that digests extracted text into summary and sections."""

    def summarize(self, text: str, *, file_name: str | None) -> DocumentSummary:
        """Return the document digest used for context and citation fallback."""


def fingerprint_bytes(raw: bytes) -> str:
    """Stable default cache key for callers that do not supply one."""

    return hashlib.sha256(raw).hexdigest()


class DocumentIngestor:
    """Resolve the right adapter, extract text and keep indexed documents cached."""

    def __init__(
        self,
        *,
        cache: DocumentCache[LoadedDocument] | None = None,
        ocr: OcrProvider | None = None,
        summarizer: Summarizer | None = None,
        min_text_chars: int = 20,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if min_text_chars < 1:
            raise ValueError("min_text_chars must be >= 1")

        self._adapter_map: dict[str, ExtractionAdapter] = {}
        self._cache: DocumentCache[LoadedDocument] = cache if cache is not None else DocumentCache()
        self._ocr = ocr
        self._summarizer = summarizer
        self._min_text_chars = min_text_chars
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        *,
        summarizer: Summarizer | None = None,
    ) -> "DocumentIngestor":
        """Build an ingestor with the default adapters registered."""

        ingestor = cls(
            cache=DocumentCache(ttl_seconds=settings.cache_ttl_seconds),
            ocr=TesseractOcr(lang=settings.ocr_lang) if settings.ocr_enabled else None,
            summarizer=summarizer,
            min_text_chars=settings.min_text_chars,
        )
        for name, adapter in build_default_adapters().items():
            ingestor.register_adapter(name, adapter)
        return ingestor

    @property
    def cache(self) -> DocumentCache[LoadedDocument]:
        return self._cache

    @property
    def adapter_map(self) -> dict[str, ExtractionAdapter]:
        """Registered adapters keyed by format tag."""

        return dict(self._adapter_map)

    def register_adapter(self, name: str, adapter: ExtractionAdapter) -> None:
        """Register an adapter implementation by format tag."""

        if not name:
            raise ValueError("Adapter name cannot be empty")
        self._adapter_map[name.lower()] = adapter

    def detect_format(
        self,
        raw: bytes,
        *,
        content_type: str | None = None,
        filename: str | None = None,
    ) -> str:
        """Pick a format tag from the MIME type, then the file suffix, then magic bytes."""

        if content_type:
            lowered = content_type.lower()
            for marker, format_name in _CONTENT_TYPE_FORMATS:
                if marker in lowered and format_name in self._adapter_map:
                    return format_name

        if filename:
            format_name = _SUFFIX_FORMATS.get(PurePath(filename).suffix.lower())
            if format_name in self._adapter_map:
                return format_name

        for format_name, adapter in self._adapter_map.items():
            if adapter.supports(raw):
                return format_name

        raise UnknownToolOrArgumentError("Could not determine document format", "format")

    def extract(self, raw: bytes, format_name: str) -> ExtractionOutcome:
        """Extract plain text, falling back to OCR for PDFs with no text layer."""

        tag = self._normalize_format(format_name)
        adapter = self._adapter_map[tag]
        warnings: list[str] = []

        try:
            text = adapter.extract(raw)
        except ExtractionEmptyError as exc:
            warnings.append(str(exc))
            text = ""

        if tag in _OCR_FORMATS and len(text.strip()) < self._min_text_chars:
            return self._ocr_fallback(raw, tag, warnings)

        if not text.strip():
            raise ExtractionEmptyError(NO_SEARCHABLE_TEXT_MESSAGE, tag)

        return ExtractionOutcome(text=text, format_name=tag, warnings=warnings)

    def load(
        self,
        raw: bytes,
        format_name: str,
        *,
        key: str | None = None,
        file_name: str | None = None,
        force_reload: bool = False,
    ) -> LoadedDocument:
        """Return the indexed document for *key*, extracting it on a cache miss."""

        tag = self._normalize_format(format_name)
        cache_key = key or fingerprint_bytes(raw)

        def _build() -> LoadedDocument:
            return self._build_document(raw, tag, doc_id=cache_key, file_name=file_name)

        return self._cache.get_or_load(cache_key, _build, force_reload=force_reload)

    def cached(self, key: str) -> LoadedDocument | None:
        return self._cache.get(key)

    def _normalize_format(self, format_name: str) -> str:
        if not isinstance(format_name, str):
            raise UnknownToolOrArgumentError("Format tag must be a string", "format")
        tag = format_name.strip().lower()
        if tag not in self._adapter_map:
            supported = ", ".join(sorted(self._adapter_map)) or "none"
            raise UnknownToolOrArgumentError(
                f"Unsupported format '{format_name}' (supported: {supported})",
                "format",
            )
        return tag

    def _ocr_fallback(self, raw: bytes, tag: str, warnings: list[str]) -> ExtractionOutcome:
        if self._ocr is None:
            raise ExtractionEmptyError(NO_SEARCHABLE_TEXT_MESSAGE, tag)

        result = self._ocr.extract_text(raw)
        if result.status != OcrStatus.OCR_SUCCESS or not result.text.strip():
            logger.warning("OCR fallback produced no text (%s): %s", result.status.value, result.reason)
            raise ExtractionEmptyError(NO_SEARCHABLE_TEXT_MESSAGE, tag)

        return ExtractionOutcome(
            text=result.text,
            format_name=tag,
            warnings=[*warnings, OCR_WARNING],
            used_ocr=True,
        )

    def _summarize(self, text: str, file_name: str | None) -> DocumentSummary:
        if self._summarizer is None:
            return DocumentSummary()
        try:
            return self._summarizer.summarize(text, file_name=file_name)
        except Exception as exc:
            logger.warning("Summarizer failed for %s: %s", file_name or "document", exc)
            return DocumentSummary(warnings=[f"Summary unavailable: {exc}"])

    def _build_document(self, raw: bytes, tag: str, *, doc_id: str, file_name: str | None) -> LoadedDocument:
        outcome = self.extract(raw, tag)
        digest = self._summarize(outcome.text, file_name)

        return LoadedDocument(
            doc_id=doc_id,
            format_name=outcome.format_name,
            text=outcome.text,
            chunks=build_chunks(outcome.text),
            page_count=estimate_page_count(outcome.text),
            token_estimate=estimate_tokens(outcome.text),
            file_name=file_name,
            summary=digest.summary,
            highlights=list(digest.highlights),
            sections=list(digest.sections),
            warnings=[*digest.warnings, *outcome.warnings],
            loaded_at=self._clock(),
        )

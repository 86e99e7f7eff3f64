"""CSV adapter with encoding detection."""

from __future__ import annotations

from charset_normalizer import from_bytes

from docsift.ingestion.container import ZIP_MAGIC
from docsift.ingestion.adapters.pdf_adapter import PDF_MAGIC
from docsift.ingestion.normalization import normalize_newlines


class CSVAdapter:
    """Decode delimited text exports into normalized plain text."""

    format_name = "csv"

    def supports(self, raw: bytes) -> bool:
        sniffed = raw[:4096]
        if sniffed.startswith((PDF_MAGIC, ZIP_MAGIC)):
            return False
        if b"\x00" in sniffed:
            return False
        first_line = sniffed.split(b"\n", 1)[0]
        return b"," in first_line or b";" in first_line or b"\t" in first_line

    def extract(self, raw: bytes) -> str:
        if not raw:
            return ""
        text = raw.decode(self._detect_encoding(raw))
        return normalize_newlines(text).lstrip("\ufeff").strip()

    def _detect_encoding(self, raw: bytes) -> str:
        best = from_bytes(raw).best()
        if best and best.encoding:
            return best.encoding

        for fallback in ("utf-8", "cp1252"):
            try:
                raw.decode(fallback)
                return fallback
            except UnicodeDecodeError:
                continue
        return "latin-1"

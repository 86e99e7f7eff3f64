"""Extraction adapter implementations and contracts."""

from .base import ExtractionAdapter
from .csv_adapter import CSVAdapter
from .docx_adapter import DOCXAdapter
from .pdf_adapter import PDFAdapter
from .xlsx_adapter import XLSXAdapter


def build_default_adapters() -> dict[str, ExtractionAdapter]:
    """Return the default format adapter map keyed by format tag."""
    adapters: list[ExtractionAdapter] = [PDFAdapter(), DOCXAdapter(), XLSXAdapter(), CSVAdapter()]
    return {adapter.format_name: adapter for adapter in adapters}


__all__ = [
    "ExtractionAdapter",
    "PDFAdapter",
    "DOCXAdapter",
    "XLSXAdapter",
    "CSVAdapter",
    "build_default_adapters",
]

"""Tesseract OCR fallback for PDFs without a usable text layer.

pytesseract and Pillow are soft dependencies: they are imported only inside
``_ocr_page()``.  If Tesseract is not installed the module still works:
the first OCR attempt logs a single warning and every later attempt returns
``OcrStatus.OCR_SKIPPED`` without logging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

import pymupdf


logger = logging.getLogger(__name__)

DEFAULT_TESSERACT_LANG = "eng"
_RENDER_DPI = 300

# Three-state flag tracking Tesseract availability for the current process.
#   None  - not yet probed
#   True  - Tesseract executed successfully at least once
#   False - Tesseract is not installed / not in PATH
_tesseract_available: bool | None = None


class OcrStatus(Enum):
    OCR_SUCCESS = "ocr_success"
    OCR_FAILED = "ocr_failed"   # rendering or Tesseract raised an unexpected exception
    OCR_EMPTY = "ocr_empty"     # Tesseract ran but returned no text
    OCR_SKIPPED = "ocr_skipped" # Tesseract not installed, OCR intentionally skipped


@dataclass(slots=True)
class OcrResult:
    status: OcrStatus
    text: str
    reason: str | None = None
    page_count: int = 0


@runtime_checkable
class OcrProvider(Protocol):
    """Collaborator that recovers text from a document with no text layer."""

    def extract_text(self, raw: bytes) -> OcrResult:
        """Return OCR text for the whole document."""


def _is_tesseract_not_found(exc: Exception) -> bool:
    """Return True when *exc* indicates that the Tesseract binary is missing."""
    # Checked by class name to avoid importing pytesseract at module level.
    if "TesseractNotFoundError" in type(exc).__name__:
        return True
    msg = str(exc).lower()
    return "tesseract is not installed" in msg or "tesseract is not in your path" in msg


def _ocr_page(page: pymupdf.Page, lang: str) -> str:
    """Render *page* at 300 DPI and run Tesseract OCR.  Returns raw OCR text."""
    import io

    import pytesseract
    from PIL import Image

    # pymupdf base resolution is 72 DPI
    mat = pymupdf.Matrix(_RENDER_DPI / 72, _RENDER_DPI / 72)
    pix = page.get_pixmap(matrix=mat, colorspace=pymupdf.csRGB)
    image = Image.open(io.BytesIO(pix.tobytes("png")))
    return pytesseract.image_to_string(image, lang=lang, config="--oem 3 --psm 6")


class TesseractOcr:
    """Render each PDF page with PyMuPDF and OCR it with Tesseract."""

    def __init__(self, *, lang: str = DEFAULT_TESSERACT_LANG) -> None:
        if not lang.strip():
            raise ValueError("lang cannot be empty")
        self._lang = lang

    def extract_text(self, raw: bytes) -> OcrResult:
        global _tesseract_available

        if _tesseract_available is False:
            return OcrResult(status=OcrStatus.OCR_SKIPPED, text="", reason="Tesseract unavailable")

        try:
            document = pymupdf.open(stream=raw, filetype="pdf")
        except Exception as exc:
            return OcrResult(status=OcrStatus.OCR_FAILED, text="", reason=f"Cannot open PDF: {exc}")

        page_texts: list[str] = []
        with document:
            page_count = document.page_count
            for page_index, page in enumerate(document, start=1):
                try:
                    page_text = _ocr_page(page, self._lang).strip()
                except Exception as exc:
                    if _is_tesseract_not_found(exc):
                        _tesseract_available = False
                        logger.warning(
                            "Tesseract is not installed or not in PATH - OCR disabled for this run. "
                            "Documents without a text layer will not be searchable."
                        )
                        return OcrResult(
                            status=OcrStatus.OCR_SKIPPED,
                            text="",
                            reason="Tesseract unavailable",
                            page_count=page_count,
                        )
                    return OcrResult(
                        status=OcrStatus.OCR_FAILED,
                        text="",
                        reason=f"page {page_index}: {exc}",
                        page_count=page_count,
                    )

                _tesseract_available = True
                if page_text:
                    page_texts.append(page_text)

        if not page_texts:
            return OcrResult(
                status=OcrStatus.OCR_EMPTY,
                text="",
                reason="Tesseract returned empty output",
                page_count=page_count,
            )

        return OcrResult(
            status=OcrStatus.OCR_SUCCESS,
            text="\n\n".join(page_texts),
            page_count=page_count,
        )

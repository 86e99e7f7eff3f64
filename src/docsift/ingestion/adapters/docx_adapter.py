"""DOCX adapter reading text runs from the document body part."""

from __future__ import annotations

from docsift.ingestion.container import ZIP_MAGIC, OfficeContainer
from docsift.ingestion.errors import FormatError
from docsift.ingestion.normalization import normalize_whitespace, parse_xml_part

DOCUMENT_PART = "word/document.xml"
# Transitional and Strict OOXML bind the w: prefix to different URIs.
_W_NAMESPACES = (
    "http://schemas.openxmlformats.org/wordprocessingml/2006/main",
    "http://purl.oclc.org/ooxml/wordprocessingml/main",
)
_TEXT_TAGS = tuple(f"{{{namespace}}}t" for namespace in _W_NAMESPACES)


def extract_body_text(xml_bytes: bytes) -> str:
    """Join every ``w:t`` run in document order with single spaces."""

    root = parse_xml_part(xml_bytes)
    if root is None:
        return ""

    runs = [node.text or "" for node in root.iter(*_TEXT_TAGS)]
    return normalize_whitespace(" ".join(runs))


class DOCXAdapter:
    """Extract flat paragraph text from WordprocessingML containers."""

    format_name = "docx"

    def supports(self, raw: bytes) -> bool:
        if not raw.startswith(ZIP_MAGIC):
            return False
        try:
            return OfficeContainer(raw).has(DOCUMENT_PART)
        except FormatError:
            return False

    def extract(self, raw: bytes) -> str:
        document_xml = OfficeContainer(raw).read(DOCUMENT_PART)
        # Image-only or template containers may legitimately omit the body.
        if document_xml is None:
            return ""
        return extract_body_text(document_xml)

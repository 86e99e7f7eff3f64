"""Best-effort PDF text recovery by scanning content streams.

No object graph is built: there is no cross-reference walking and no font
or encoding table lookup.  The scanner looks for string operands of the
text-showing operators inside every ``stream``/``endstream`` block (after
inflating it when possible) and in the raw file itself.  Scanned documents
that yield too little text go through the OCR fallback in the ingestor.
"""

from __future__ import annotations

import logging
import re
from typing import Callable
import zlib

from docsift.ingestion.errors import ExtractionEmptyError
from docsift.ingestion.normalization import normalize_whitespace

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF-"

# One EOL after the keyword and at most one before endstream; payload bytes may be CR or LF.
_STREAM_RE = re.compile(r"stream\r?\n([\s\S]*?)(?:\r\n|\r|\n)?endstream")
_STRING_BODY = r"(?:\\[\s\S]|[^\\)])*"
_TEXT_SHOW_RE = re.compile(
    r"\[(?P<array>(?:\\[\s\S]|[^\\\]])*)\]\s*TJ"
    rf"|\((?P<string>{_STRING_BODY})\)\s*T[Jj]"
)
_ARRAY_ITEM_RE = re.compile(rf"\((?P<string>{_STRING_BODY})\)|(?P<number>[-+]?(?:\d+\.?\d*|\.\d+))")
# TJ adjustments are in thousandths of an em; a shift this far right reads as a word gap.
_WORD_GAP_ADJUSTMENT = -200.0

_NAMED_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "f": "\f",
    "b": "\b",
    "(": "(",
    ")": ")",
    "\\": "\\",
}
_OCTAL_DIGITS = frozenset("01234567")


class StreamDecodeError(ValueError):
    """Raised when no decoder strategy could read a stream payload."""


def decode_pdf_string(content: str) -> str:
    """Resolve backslash escapes inside a PDF literal string."""

    result: list[str] = []
    index = 0
    length = len(content)

    while index < length:
        char = content[index]
        if char != "\\":
            result.append(char)
            index += 1
            continue

        if index + 1 >= length:
            break

        following = content[index + 1]
        if following in _NAMED_ESCAPES:
            result.append(_NAMED_ESCAPES[following])
            index += 2
        elif following in _OCTAL_DIGITS:
            digits = following
            cursor = index + 2
            while len(digits) < 3 and cursor < length and content[cursor] in _OCTAL_DIGITS:
                digits += content[cursor]
                cursor += 1
            result.append(chr(int(digits, 8)))
            index = cursor
        else:
            result.append(following)
            index += 2

    return "".join(result)


def _inflate(payload: bytes) -> str:
    decompressor = zlib.decompressobj()
    inflated = decompressor.decompress(payload) + decompressor.flush()
    # A stream cut inside its Adler-32 trailer still holds the whole body.
    if not decompressor.eof and not inflated:
        raise zlib.error("zlib stream incomplete")
    return inflated.decode("latin-1")


def _inflate_raw(payload: bytes) -> str:
    decompressor = zlib.decompressobj(-zlib.MAX_WBITS)
    inflated = decompressor.decompress(payload) + decompressor.flush()
    if not decompressor.eof:
        raise zlib.error("raw deflate stream incomplete")
    return inflated.decode("latin-1")


def _as_plain(payload: bytes) -> str:
    return payload.decode("latin-1")


STREAM_DECODERS: tuple[Callable[[bytes], str], ...] = (_inflate, _inflate_raw, _as_plain)


def decode_stream(
    payload: bytes,
    decoders: tuple[Callable[[bytes], str], ...] = STREAM_DECODERS,
) -> str:
    """Try each decoder in order and return the first successful result."""

    last_error: Exception | None = None
    for decoder in decoders:
        try:
            return decoder(payload)
        except (zlib.error, UnicodeDecodeError) as exc:
            last_error = exc
    raise StreamDecodeError(f"No decoder could read stream: {last_error}") from last_error


def _join_array_items(array_body: str) -> str:
    pieces: list[str] = []
    for item in _ARRAY_ITEM_RE.finditer(array_body):
        if item.group("string") is not None:
            pieces.append(decode_pdf_string(item.group("string")))
        elif pieces and float(item.group("number")) <= _WORD_GAP_ADJUSTMENT:
            pieces.append(" ")
    return "".join(pieces)


def scan_text_operators(content: str) -> list[str]:
    """Return decoded operands of ``Tj``/``TJ`` operators in order."""

    fragments: list[str] = []
    for match in _TEXT_SHOW_RE.finditer(content):
        array_body = match.group("array")
        if array_body is not None:
            fragments.append(_join_array_items(array_body))
        else:
            fragments.append(decode_pdf_string(match.group("string")))
    return fragments


def extract_pdf_text(raw: bytes) -> str:
    """Recover text fragments from *raw*, one fragment per line."""

    # latin-1 maps every byte to one code point, keeping offsets byte-aligned.
    decoded = raw.decode("latin-1")
    parts: list[str] = []

    for index, stream_match in enumerate(_STREAM_RE.finditer(decoded)):
        payload = stream_match.group(1).encode("latin-1")
        try:
            content = decode_stream(payload)
        except StreamDecodeError as exc:
            logger.debug("Stream %d contributed no text: %s", index, exc)
            continue
        parts.extend(scan_text_operators(content))

    parts.extend(scan_text_operators(decoded))

    cleaned = (normalize_whitespace(part) for part in parts)
    return "\n".join(part for part in cleaned if part)


class PDFAdapter:
    """Extract text layers from PDF bytes without a structural parser."""

    format_name = "pdf"

    def supports(self, raw: bytes) -> bool:
        # Some producers emit junk bytes before the header.
        return PDF_MAGIC in raw[:1024]

    def extract(self, raw: bytes) -> str:
        text = extract_pdf_text(raw)
        if not text:
            raise ExtractionEmptyError("No text operators found in PDF content streams", self.format_name)
        return text

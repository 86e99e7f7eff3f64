"""Paragraph chunk builder with stable offsets and page estimates."""

from __future__ import annotations

import math
import re
import uuid

from docsift.ingestion.models import RagChunk

MAX_CHUNK_CHARS = 600
MAX_CHUNKS = 500
AVERAGE_CHARS_PER_PAGE = 1800
CHARS_PER_TOKEN = 4

_PARAGRAPH_BREAK_RE = re.compile(r"\n{2,}")


def _new_chunk_id() -> str:
    return str(uuid.uuid4())


def build_chunks(
    text: str,
    *,
    max_chars: int = MAX_CHUNK_CHARS,
    max_chunks: int = MAX_CHUNKS,
) -> list[RagChunk]:
    """Split *text* on blank lines into offset-tagged excerpts.

    Offsets point into *text* itself, searched forward from the end of the
    previous chunk so repeated paragraphs resolve to distinct positions.
    When no paragraph survives, a single chunk covers the head of the text.
    """

    if max_chars <= 0:
        raise ValueError("max_chars must be positive")
    if max_chunks <= 0:
        raise ValueError("max_chunks must be positive")

    normalized = text.replace("\r\n", "\n")
    chunks: list[RagChunk] = []
    cursor = 0

    for paragraph in _PARAGRAPH_BREAK_RE.split(normalized):
        trimmed = paragraph.strip()
        if not trimmed:
            cursor += len(paragraph) + 2
            continue

        found = text.find(trimmed, cursor)
        start = cursor if found == -1 else found
        cursor = start + len(trimmed)

        chunks.append(RagChunk(id=_new_chunk_id(), start=start, text=trimmed[:max_chars]))
        if len(chunks) >= max_chunks:
            break

    if not chunks:
        chunks.append(RagChunk(id=_new_chunk_id(), start=0, text=text[:max_chars]))

    return chunks


def approximate_page(offset: float) -> int:
    """Estimate a 1-based page number from a character offset."""

    if not math.isfinite(offset) or offset < 0:
        return 1
    return max(1, math.floor(offset / AVERAGE_CHARS_PER_PAGE) + 1)


def estimate_page_count(text: str) -> int:
    if not text:
        return 1
    return max(1, math.floor(len(text) / AVERAGE_CHARS_PER_PAGE + 0.5))


def estimate_tokens(text: str) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)

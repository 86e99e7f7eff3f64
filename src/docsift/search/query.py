"""Lexical chunk retrieval by query-token overlap."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Sequence

from docsift.ingestion.chunking import approximate_page
from docsift.ingestion.errors import UnknownToolOrArgumentError
from docsift.ingestion.models import LoadedDocument, RagChunk

DEFAULT_TOP_K = 8
MIN_TOP_K = 1
MAX_TOP_K = 32
POSITION_BOOST_WEIGHT = 0.05

_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9%]+")
_MIN_TOKEN_CHARS = 3
_MAX_TOKEN_CHARS = 39


@dataclass(slots=True)
class ScoredHit:
    chunk_id: str
    page: int
    score: float
    text: str

    def to_dict(self) -> dict[str, str | int | float]:
        return {
            "chunk_id": self.chunk_id,
            "page": self.page,
            "score": self.score,
            "text": self.text,
        }


def tokenize(text: str) -> list[str]:
    """Lower-case and split on anything but ASCII letters, digits and ``%``."""

    return [
        token
        for token in _TOKEN_SPLIT_RE.split(text.lower())
        if _MIN_TOKEN_CHARS <= len(token) <= _MAX_TOKEN_CHARS
    ]


def score_text(text: str, tokens: Sequence[str]) -> float:
    """Fraction of *tokens* occurring as substrings of the lower-cased text."""

    if not tokens:
        return 0.0
    haystack = text.lower()
    hits = sum(1 for token in tokens if token in haystack)
    return hits / len(tokens)


def clamp_top_k(k: int) -> int:
    return max(MIN_TOP_K, min(k, MAX_TOP_K))


def _hit(chunk: RagChunk, score: float) -> ScoredHit:
    return ScoredHit(chunk_id=chunk.id, page=approximate_page(chunk.start), score=score, text=chunk.text)


def search_chunks(chunks: Sequence[RagChunk], query: str, k: int = DEFAULT_TOP_K) -> list[ScoredHit]:
    """Rank *chunks* against *query*; fall back to the leading chunks on no match.

    The position boost favors chunks near the start of the document.
    """

    limit = clamp_top_k(k)
    tokens = tokenize(query)
    total = len(chunks)

    matched: list[tuple[float, RagChunk]] = []
    for index, chunk in enumerate(chunks):
        overlap = score_text(chunk.text, tokens)
        if overlap <= 0:
            continue
        boost = max(0.0, POSITION_BOOST_WEIGHT * (total - index) / total)
        matched.append((overlap + boost, chunk))

    if matched:
        ranked = sorted(matched, key=lambda item: -item[0])[:limit]
        return [_hit(chunk, round(score, 3)) for score, chunk in ranked]

    return [_hit(chunk, 0.0) for chunk in chunks[:limit]]


def search_document(document: LoadedDocument, query: str, k: int = DEFAULT_TOP_K) -> list[ScoredHit]:
    """Validated retrieval entrypoint for callers passing untrusted arguments."""

    if not isinstance(query, str):
        raise UnknownToolOrArgumentError("query must be a string", "query")
    if isinstance(k, bool) or not isinstance(k, int):
        raise UnknownToolOrArgumentError("k must be an integer", "k")
    if not MIN_TOP_K <= k <= MAX_TOP_K:
        raise UnknownToolOrArgumentError(f"k must be between {MIN_TOP_K} and {MAX_TOP_K}", "k")
    return search_chunks(document.chunks, query, k)

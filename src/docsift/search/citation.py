"""Locate the clause that best supports an answer fragment."""

from __future__ import annotations

from dataclasses import dataclass
import re

from docsift.ingestion.chunking import AVERAGE_CHARS_PER_PAGE, approximate_page
from docsift.ingestion.errors import UnknownToolOrArgumentError
from docsift.ingestion.models import LoadedDocument
from docsift.search.query import score_text, tokenize

MAX_CLAUSE_CHARS = 220
FALLBACK_SUMMARY_CHARS = 200
MAX_SENTENCES = 800

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True, slots=True)
class Citation:
    clause: str
    page: int

    def to_dict(self) -> dict[str, str | int]:
        return {"clause": self.clause, "page": self.page}


@dataclass(frozen=True, slots=True)
class _Candidate:
    text: str
    offset: int
    score: float


def _fallback(document: LoadedDocument) -> Citation:
    if document.highlights:
        return Citation(clause=document.highlights[0][:MAX_CLAUSE_CHARS], page=1)
    return Citation(clause=document.summary[:FALLBACK_SUMMARY_CHARS], page=1)


def _section_candidates(document: LoadedDocument, tokens: list[str]) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    for index, section in enumerate(document.sections):
        offset = index * AVERAGE_CHARS_PER_PAGE
        for text in [section.summary, *section.key_facts, *section.compliance_signals]:
            candidates.append(_Candidate(text=text, offset=offset, score=score_text(text, tokens)))
    return candidates


def _sentence_candidates(text: str, tokens: list[str]) -> list[_Candidate]:
    candidates: list[_Candidate] = []
    search_start = 0
    for sentence in _SENTENCE_SPLIT_RE.split(text)[:MAX_SENTENCES]:
        trimmed = sentence.strip()
        if not trimmed:
            continue
        offset = text.find(trimmed, search_start)
        if offset != -1:
            search_start = offset + len(trimmed)
        candidates.append(
            _Candidate(
                text=trimmed,
                offset=search_start if offset == -1 else offset,
                score=score_text(trimmed, tokens),
            )
        )
    return candidates


def locate_citation(document: LoadedDocument, answer_span: str) -> Citation:
    """Return the best-overlapping section note or sentence for *answer_span*.

    Ties keep the first candidate seen, so the result is deterministic.
    """

    if not isinstance(answer_span, str):
        raise UnknownToolOrArgumentError("answer span must be a string", "answer_span")

    tokens = tokenize(answer_span)
    if not tokens:
        return Citation(clause=document.summary[:FALLBACK_SUMMARY_CHARS], page=1)

    candidates = _section_candidates(document, tokens) + _sentence_candidates(document.text, tokens)

    best: _Candidate | None = None
    for candidate in candidates:
        if best is None or candidate.score > best.score:
            best = candidate

    if best is None or best.score == 0:
        return _fallback(document)

    return Citation(clause=best.text[:MAX_CLAUSE_CHARS].strip(), page=approximate_page(best.offset))


def attach_citations(answer: str, document: LoadedDocument | None) -> str:
    """Append a ``[p.N: clause]`` reference to every non-blank answer line."""

    if document is None:
        return answer

    lines: list[str] = []
    for line in answer.split("\n"):
        if not line.strip():
            lines.append(line)
            continue
        citation = locate_citation(document, line)
        lines.append(f"{line} [p.{citation.page}: {citation.clause}]")
    return "\n".join(lines)

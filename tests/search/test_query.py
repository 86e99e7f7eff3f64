from __future__ import annotations

import pytest

from docsift.ingestion.chunking import build_chunks, estimate_page_count, estimate_tokens
from docsift.ingestion.errors import UnknownToolOrArgumentError
from docsift.ingestion.models import LoadedDocument, RagChunk
from docsift.search.query import (
    MAX_TOP_K,
    clamp_top_k,
    score_text,
    search_chunks,
    search_document,
    tokenize,
)

_PARAGRAPHS = [
    "Quarterly business activity statement prepared for the March quarter.",
    "Wages paid to employees are reported under payroll withholding.",
    "GST obligations must be settled by the 28th day after the quarter ends.",
    "Fuel tax credits are claimed separately on the same form.",
    "Records must be kept for five years from lodgement.",
]


def _document(text: str) -> LoadedDocument:
    return LoadedDocument(
        doc_id="doc-1",
        format_name="docx",
        text=text,
        chunks=build_chunks(text),
        page_count=estimate_page_count(text),
        token_estimate=estimate_tokens(text),
    )


def test_tokenize_keeps_ascii_words_digits_and_percent() -> None:
    assert tokenize("GST obligations, 10% due!") == ["gst", "obligations", "10%", "due"]


def test_tokenize_drops_short_and_overlong_tokens() -> None:
    assert tokenize("a an the") == ["the"]
    assert tokenize("x" * 39 + " " + "y" * 40) == ["x" * 39]


def test_score_text_is_substring_overlap_ratio() -> None:
    assert score_text("Payroll withholding", ["payroll", "gst"]) == 0.5
    assert score_text("anything", []) == 0.0


def test_relevant_paragraph_ranks_first() -> None:
    chunks = build_chunks("\n\n".join(_PARAGRAPHS))

    hits = search_chunks(chunks, "GST obligations", k=3)

    assert len(hits) == 1
    assert hits[0].chunk_id == chunks[2].id
    assert hits[0].score == pytest.approx(1.03)
    assert hits[0].page == 1
    assert hits[0].text.startswith("GST obligations")


def test_partial_matches_are_ordered_by_overlap_then_position() -> None:
    chunks = build_chunks("\n\n".join(_PARAGRAPHS))

    hits = search_chunks(chunks, "quarter records", k=8)

    assert [hit.chunk_id for hit in hits] == [chunks[0].id, chunks[2].id, chunks[4].id]
    assert [hit.score for hit in hits] == [0.55, 0.53, 0.51]



def test_equal_overlap_prefers_earlier_chunk() -> None:
    chunks = build_chunks("Penalty applies.\n\nUnrelated text.\n\nPenalty applies again.")

    hits = search_chunks(chunks, "penalty", k=8)

    assert [hit.chunk_id for hit in hits] == [chunks[0].id, chunks[2].id]
    assert hits[0].score > hits[1].score


def test_no_match_falls_back_to_leading_chunks() -> None:
    chunks = build_chunks("\n\n".join(_PARAGRAPHS))

    for query in ("", "?? !! ##", "zebra crossing"):
        hits = search_chunks(chunks, query, k=3)
        assert [hit.chunk_id for hit in hits] == [chunk.id for chunk in chunks[:3]]
        assert all(hit.score == 0.0 for hit in hits)


def test_k_is_clamped_for_internal_callers() -> None:
    chunks = build_chunks("\n\n".join(f"paragraph {index}" for index in range(50)))

    assert len(search_chunks(chunks, "", k=0)) == 1
    assert len(search_chunks(chunks, "", k=100)) == MAX_TOP_K
    assert clamp_top_k(-3) == 1


def test_hit_page_comes_from_chunk_offset() -> None:
    chunk = RagChunk(id="late", start=3700, text="GST reconciliation")

    hits = search_chunks([chunk], "gst")

    assert hits[0].page == 3
    assert hits[0].to_dict() == {"chunk_id": "late", "page": 3, "score": 1.05, "text": "GST reconciliation"}


def test_search_empty_chunk_list() -> None:
    assert search_chunks([], "gst") == []


@pytest.mark.parametrize("k", [0, 33, -1, "5", 2.0, True])
def test_search_document_rejects_invalid_k(k) -> None:
    document = _document("\n\n".join(_PARAGRAPHS))

    with pytest.raises(UnknownToolOrArgumentError) as excinfo:
        search_document(document, "gst", k)

    assert excinfo.value.argument == "k"


def test_search_document_rejects_non_string_query() -> None:
    document = _document("\n\n".join(_PARAGRAPHS))

    with pytest.raises(UnknownToolOrArgumentError):
        search_document(document, None, 3)  # type: ignore[arg-type]


def test_search_document_returns_ranked_hits() -> None:
    document = _document("\n\n".join(_PARAGRAPHS))

    hits = search_document(document, "fuel tax credits", 2)

    assert hits[0].chunk_id == document.chunks[3].id

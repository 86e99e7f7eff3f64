from __future__ import annotations

import pytest

from docsift.ingestion.chunking import build_chunks, estimate_page_count, estimate_tokens
from docsift.ingestion.errors import UnknownToolOrArgumentError
from docsift.ingestion.models import LoadedDocument, SectionSummary
from docsift.search.citation import MAX_CLAUSE_CHARS, Citation, attach_citations, locate_citation

_FILLER = "Lorem ipsum dolor sit amet. " * 150


def _document(
    text: str,
    *,
    summary: str = "",
    highlights: list[str] | None = None,
    sections: list[SectionSummary] | None = None,
) -> LoadedDocument:
    return LoadedDocument(
        doc_id="doc-1",
        format_name="pdf",
        text=text,
        chunks=build_chunks(text),
        page_count=estimate_page_count(text),
        token_estimate=estimate_tokens(text),
        summary=summary,
        highlights=highlights or [],
        sections=sections or [],
    )


def test_best_sentence_is_cited_with_estimated_page() -> None:
    text = _FILLER + "A late lodgement penalty applies after 28 days. Interest accrues daily."
    document = _document(text)

    citation = locate_citation(document, "late lodgement penalty")

    assert citation == Citation(clause="A late lodgement penalty applies after 28 days.", page=3)


def test_section_notes_are_candidates_with_section_offsets() -> None:
    sections = [
        SectionSummary(id="s1", title="Overview", summary="General business overview."),
        SectionSummary(
            id="s2",
            title="Payroll",
            summary="Payroll obligations.",
            key_facts=["Payroll tax threshold is $1.2m per year"],
        ),
    ]
    document = _document("Unrelated body text.", sections=sections)

    citation = locate_citation(document, "payroll tax threshold")

    assert citation.clause == "Payroll tax threshold is $1.2m per year"
    assert citation.page == 2


def test_first_candidate_wins_ties() -> None:
    document = _document("GST is due monthly. GST is due quarterly.")

    citation = locate_citation(document, "gst due")

    assert citation.clause == "GST is due monthly."


def test_repeated_calls_are_deterministic() -> None:
    document = _document(_FILLER + "Superannuation guarantee is 11.5% of wages.")

    first = locate_citation(document, "superannuation guarantee")
    second = locate_citation(document, "superannuation guarantee")

    assert first == second


def test_span_without_tokens_cites_summary_head() -> None:
    document = _document("Body.", summary="S" * 300, highlights=["unused"])

    citation = locate_citation(document, "?! a b")

    assert citation == Citation(clause="S" * 200, page=1)


def test_no_overlap_falls_back_to_first_highlight() -> None:
    document = _document("Body text about invoices.", summary="Summary text", highlights=["H" * 300, "second"])

    citation = locate_citation(document, "zebra crossing")

    assert citation.clause == "H" * MAX_CLAUSE_CHARS
    assert citation.page == 1


def test_no_overlap_without_highlights_falls_back_to_summary() -> None:
    document = _document("Body text about invoices.", summary="Quarterly summary")

    assert locate_citation(document, "zebra crossing") == Citation(clause="Quarterly summary", page=1)


def test_long_sentences_are_truncated() -> None:
    sentence = "Penalty " + "x" * 400 + "."
    document = _document(sentence)

    citation = locate_citation(document, "penalty")

    assert len(citation.clause) == MAX_CLAUSE_CHARS
    assert citation.clause.startswith("Penalty")


def test_attach_citations_annotates_each_non_blank_line() -> None:
    document = _document("Interest accrues daily. A late lodgement penalty applies.")
    answer = "Interest accrues daily\n\nlodgement penalty applies"

    annotated = attach_citations(answer, document)

    assert annotated.split("\n") == [
        "Interest accrues daily [p.1: Interest accrues daily.]",
        "",
        "lodgement penalty applies [p.1: A late lodgement penalty applies.]",
    ]


def test_attach_citations_without_document_is_identity() -> None:
    assert attach_citations("unchanged answer", None) == "unchanged answer"


def test_citation_to_dict() -> None:
    assert Citation(clause="Clause", page=4).to_dict() == {"clause": "Clause", "page": 4}


def test_non_string_span_is_rejected() -> None:
    with pytest.raises(UnknownToolOrArgumentError):
        locate_citation(_document("Body."), 42)  # type: ignore[arg-type]

"""Lexical retrieval and citation lookup over loaded documents."""

from .citation import Citation, attach_citations, locate_citation
from .query import ScoredHit, search_chunks, search_document, tokenize

__all__ = [
    "Citation",
    "ScoredHit",
    "attach_citations",
    "locate_citation",
    "search_chunks",
    "search_document",
    "tokenize",
]

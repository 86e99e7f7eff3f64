"""In-memory document caching."""

from .document_cache import DEFAULT_TTL_SECONDS, DocumentCache

__all__ = ["DEFAULT_TTL_SECONDS", "DocumentCache"]

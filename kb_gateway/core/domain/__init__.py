"""Domain models for the Knowledge Base Gateway.

All models are re-exported here for convenient importing:

    from kb_gateway.core.domain import DocumentStore, ProviderSource, SearchResult
"""

from .models import (
    Document,
    DocumentChunk,
    DocumentStore,
    ProviderSource,
    SearchResult,
    UpsertOutcome,
    UpsertResult,
)

__all__ = [
    "ProviderSource",
    "DocumentStore",
    "Document",
    "DocumentChunk",
    "SearchResult",
    "UpsertResult",
    "UpsertOutcome",
]

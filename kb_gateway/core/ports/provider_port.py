"""Provider Client Port Interface."""

from abc import ABC, abstractmethod
from typing import Any

from ..domain import Document, DocumentChunk, DocumentStore, ProviderSource, SearchResult, UpsertResult
from ..domain.exceptions import UnsupportedOperationError


class ProviderClientPort(ABC):
    """Abstract interface for a remote vector/document-store backend.

    Implementations are synchronous, perform network I/O on every call,
    never retry, and hold no mutable state shared between calls, so one
    instance can serve concurrent callers.
    """

    source: ProviderSource

    #: True when query/upsert need a precomputed embedding vector.
    uses_embeddings: bool = False

    @abstractmethod
    def list_stores(self) -> list[DocumentStore]:
        """List every store the provider exposes."""
        ...

    @abstractmethod
    def get_store(self, store_id: str) -> DocumentStore:
        """Fetch one store, raising StoreNotFoundError if absent."""
        ...

    @abstractmethod
    def upsert(
        self,
        store_id: str,
        document: Document,
        embedding: list[float] | None = None,
    ) -> UpsertResult:
        """Insert or update a document in a store."""
        ...

    @abstractmethod
    def query(
        self,
        store_id: str,
        query: str,
        embedding: list[float] | None = None,
        top_k: int = 5,
    ) -> list[Any]:
        """Return backend-native match records for a query."""
        ...

    @abstractmethod
    def normalize_match(self, raw: Any, store: DocumentStore) -> SearchResult:
        """Map one backend-native match onto the common SearchResult shape."""
        ...

    @abstractmethod
    def delete_by_id(self, store_id: str | None, document_id: str) -> bool:
        """Delete a document, raising DocumentNotFoundError if absent."""
        ...

    def get_chunks(
        self, store_id: str, document_id: str | None = None, page: int = 1
    ) -> list[DocumentChunk]:
        """List stored chunks of a document."""
        raise UnsupportedOperationError(
            f"{self.source.value} does not support chunk browsing",
            context={"provider": self.source.value},
        )

    def update_chunk(
        self,
        store_id: str,
        document_id: str,
        chunk_id: str,
        content: str,
        metadata: dict[str, Any],
    ) -> dict[str, Any]:
        """Replace the content and metadata of a stored chunk."""
        raise UnsupportedOperationError(
            f"{self.source.value} does not support chunk editing",
            context={"provider": self.source.value},
        )

    def delete_chunk(self, store_id: str, document_id: str, chunk_id: str) -> dict[str, Any]:
        """Delete a stored chunk."""
        raise UnsupportedOperationError(
            f"{self.source.value} does not support chunk editing",
            context={"provider": self.source.value},
        )

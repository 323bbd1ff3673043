"""
Pytest configuration and shared fixtures.
"""

import threading
import time
from typing import Any

import pytest

from kb_gateway.core.domain import (
    Document,
    DocumentStore,
    ProviderSource,
    SearchResult,
    UpsertResult,
)
from kb_gateway.core.domain.exceptions import DocumentNotFoundError, StoreNotFoundError
from kb_gateway.core.ports import EmbeddingPort, ProviderClientPort


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP layer, mocked providers)")
    config.addinivalue_line("markers", "slow: Slow tests (timeouts, threads)")


class FakeProvider(ProviderClientPort):
    """In-memory provider client.

    ``stores`` maps store id to a list of raw matches returned by ``query``;
    ``upsert`` appends to it, so added documents are searchable.
    Set ``fail_on`` to an operation name (``list_stores``, ``query``,
    ``upsert``, ``delete_by_id``) to make that operation raise ``error``.
    """

    def __init__(
        self,
        source: ProviderSource,
        stores: dict[str, list[dict[str, Any]]] | None = None,
        uses_embeddings: bool = False,
        fail_on: set[str] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ) -> None:
        self.source = source
        self.uses_embeddings = uses_embeddings
        self.stores = stores if stores is not None else {}
        self.fail_on = fail_on or set()
        self.error = error or RuntimeError(f"{source.value} is down")
        self.delay = delay
        self.calls: list[tuple[str, tuple]] = []
        self.upserted: list[tuple[str, Document, list[float] | None]] = []
        self._lock = threading.Lock()

    def _record(self, operation: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((operation, args))
        if self.delay:
            time.sleep(self.delay)
        if operation in self.fail_on:
            raise self.error

    def called(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    def list_stores(self) -> list[DocumentStore]:
        self._record("list_stores")
        return [DocumentStore(id=sid, name=f"{sid} store") for sid in self.stores]

    def get_store(self, store_id: str) -> DocumentStore:
        self._record("get_store", store_id)
        if store_id not in self.stores:
            raise StoreNotFoundError(f"{store_id} not found")
        return DocumentStore(id=store_id, name=f"{store_id} store")

    def upsert(self, store_id, document, embedding=None) -> UpsertResult:
        self._record("upsert", store_id)
        with self._lock:
            self.upserted.append((store_id, document, embedding))
            self.stores.setdefault(store_id, []).append(
                {"id": "new-id", "content": document.content, "metadata": dict(document.metadata)}
            )
        return UpsertResult(store_id=store_id, ids=["new-id"])

    def query(self, store_id, query, embedding=None, top_k=5) -> list[Any]:
        self._record("query", store_id, query, embedding)
        return list(self.stores.get(store_id, []))

    def normalize_match(self, raw, store) -> SearchResult:
        return SearchResult(
            content=raw["content"],
            metadata=dict(raw.get("metadata", {})),
            store_id=store.id,
            store_name=store.name or None,
            similarity=raw.get("similarity"),
            provider=self.source,
        )

    def delete_by_id(self, store_id, document_id) -> bool:
        self._record("delete_by_id", store_id, document_id)
        docs = self.stores.get(store_id or "", [])
        if not any(doc.get("id") == document_id for doc in docs):
            raise DocumentNotFoundError(f"{document_id} not found")
        return True


class FakeEmbeddings(EmbeddingPort):
    """Deterministic embedding provider counting its calls."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[str] = []

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail:
            raise RuntimeError("embedding service down")
        return [0.1, 0.2, 0.3]


@pytest.fixture
def embeddings():
    return FakeEmbeddings()


@pytest.fixture
def supabase_provider():
    """Supabase fake with two scored rows in the ``documents`` table."""
    return FakeProvider(
        ProviderSource.SUPABASE,
        stores={
            "documents": [
                {"id": "s1", "content": "Refunds are issued within 14 days.", "similarity": 0.91},
                {"id": "s2", "content": "Refunds require a receipt.", "similarity": 0.72},
            ]
        },
        uses_embeddings=True,
    )


@pytest.fixture
def pinecone_provider():
    """Pinecone fake that fails every query."""
    return FakeProvider(
        ProviderSource.PINECONE,
        stores={"__default__": []},
        uses_embeddings=True,
        fail_on={"query"},
    )


@pytest.fixture
def flowise_provider():
    """Flowise fake with one unscored-looking doc in store ``fs-1``."""
    return FakeProvider(
        ProviderSource.FLOWISE,
        stores={
            "fs-1": [
                {"id": "loader-1", "content": "Our refund policy covers 30 days.", "similarity": 0.0}
            ]
        },
    )


@pytest.fixture
def sample_document():
    """Sample document used for ingestion tests."""
    return {
        "content": "Customers may request a refund within 30 days of purchase.",
        "metadata": {"title": "Refund policy", "source": "handbook"},
    }


@pytest.fixture
def mock_embedding():
    """A mock 1536-dimensional embedding vector."""
    return [0.001 * i for i in range(1536)]

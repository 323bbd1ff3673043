"""Pinecone index client.

One Pinecone index is configured; its namespaces are exposed as stores.
Document text is stored in vector metadata under ``content``.
"""

import json
import logging
import threading
import uuid
from typing import TYPE_CHECKING, Any

from ....core.domain import Document, DocumentStore, ProviderSource, SearchResult, UpsertResult
from ....core.domain.exceptions import (
    DocumentNotFoundError,
    MissingAPIKeyError,
    MissingParameterError,
    ProviderUnavailableError,
    StoreNotFoundError,
)
from ....core.ports.provider_port import ProviderClientPort

if TYPE_CHECKING:
    from pinecone import Pinecone

logger = logging.getLogger(__name__)

# Pinecone reports the default namespace as ""; it needs a routable id.
DEFAULT_NAMESPACE_ID = "__default__"
DEFAULT_NAMESPACE_NAME = "default"
CONTENT_KEY = "content"


def _field(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from an SDK response object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def to_namespace(store_id: str | None) -> str:
    if not store_id or store_id == DEFAULT_NAMESPACE_ID:
        return ""
    return store_id


def flatten_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Coerce metadata into the flat value types Pinecone accepts.

    Strings, numbers, booleans and lists of strings pass through; nested
    structures are stored as JSON strings and ``None`` values are dropped.
    """
    flat: dict[str, Any] = {}
    for key, value in metadata.items():
        if value is None:
            continue
        if isinstance(value, str | int | float | bool):
            flat[key] = value
        elif isinstance(value, list) and all(isinstance(item, str) for item in value):
            flat[key] = value
        else:
            flat[key] = json.dumps(value, default=str)
    return flat


def normalize_namespace(namespace: str, summary: Any) -> DocumentStore:
    """Map a namespace entry of ``describe_index_stats`` onto DocumentStore."""
    is_default = namespace in ("", DEFAULT_NAMESPACE_ID)
    return DocumentStore(
        id=DEFAULT_NAMESPACE_ID if is_default else namespace,
        name=DEFAULT_NAMESPACE_NAME if is_default else namespace,
        document_count=_field(summary, "vector_count") or 0,
        provider=ProviderSource.PINECONE,
    )


def normalize_vector_match(raw: Any, store: DocumentStore) -> SearchResult:
    """Map a Pinecone query match onto SearchResult."""
    metadata = dict(_field(raw, "metadata") or {})
    content = metadata.pop(CONTENT_KEY, "")
    match_id = _field(raw, "id")
    if match_id is not None:
        metadata.setdefault("id", match_id)
    score = _field(raw, "score")
    return SearchResult(
        content=content,
        metadata=metadata,
        store_id=store.id,
        store_name=store.name or None,
        similarity=float(score) if score is not None else None,
        provider=ProviderSource.PINECONE,
    )


class PineconeAdapter(ProviderClientPort):
    """Pinecone index accessed through the pinecone SDK.

    The index handle is resolved on first use. Resolving it costs a control
    plane call, so concurrent first callers share one initialization.
    """

    source = ProviderSource.PINECONE
    uses_embeddings = True

    def __init__(
        self,
        api_key: str,
        index_name: str,
        client: "Pinecone | None" = None,
    ) -> None:
        """Initialize the Pinecone client.

        Args:
            api_key: Pinecone API key.
            index_name: Name of the index whose namespaces are exposed.
            client: Pre-built ``Pinecone`` client (tests inject a mock here).

        Raises:
            MissingAPIKeyError: If the API key or index name is missing.
        """
        if client is None and not api_key:
            raise MissingAPIKeyError("Missing Pinecone API key")
        if not index_name:
            raise MissingAPIKeyError("Missing Pinecone index name")

        self.index_name = index_name
        self._api_key = api_key
        self._client = client
        self._index: Any = None
        self._init_lock = threading.Lock()

    def _get_index(self) -> Any:
        """Get or create the index handle exactly once."""
        if self._index is not None:
            return self._index

        with self._init_lock:
            if self._index is None:
                try:
                    if self._client is None:
                        from pinecone import Pinecone

                        self._client = Pinecone(api_key=self._api_key)
                    self._index = self._client.Index(self.index_name)
                    logger.info("Connected to Pinecone index: %s", self.index_name)
                except Exception as e:
                    raise ProviderUnavailableError(
                        f"Failed to connect to Pinecone index {self.index_name}",
                        cause=e,
                        context={"index": self.index_name},
                    ) from e
        return self._index

    def _call(self, operation: str, func: Any, **kwargs: Any) -> Any:
        try:
            return func(**kwargs)
        except Exception as e:
            raise ProviderUnavailableError(
                f"Pinecone {operation} failed",
                cause=e,
                context={"index": self.index_name, "namespace": kwargs.get("namespace")},
            ) from e

    def list_stores(self) -> list[DocumentStore]:
        index = self._get_index()
        stats = self._call("describe_index_stats", index.describe_index_stats)
        namespaces = _field(stats, "namespaces") or {}
        stores = [normalize_namespace(name, summary) for name, summary in namespaces.items()]
        # Stats omit namespaces without vectors; the default one is always writable.
        if not any(store.id == DEFAULT_NAMESPACE_ID for store in stores):
            stores.insert(0, normalize_namespace("", None))
        return stores

    def get_store(self, store_id: str) -> DocumentStore:
        for store in self.list_stores():
            if store.id == store_id or (store.name == store_id and store_id):
                return store
        raise StoreNotFoundError(
            f"Pinecone namespace '{store_id}' not found in index '{self.index_name}'",
            context={"index": self.index_name},
        )

    def upsert(
        self,
        store_id: str,
        document: Document,
        embedding: list[float] | None = None,
    ) -> UpsertResult:
        if embedding is None:
            raise MissingParameterError("Pinecone upserts require an embedding")
        index = self._get_index()
        vector_id = str(document.metadata.get("id") or uuid.uuid4())
        metadata = flatten_metadata({**document.metadata, CONTENT_KEY: document.content})
        self._call(
            "upsert",
            index.upsert,
            vectors=[{"id": vector_id, "values": embedding, "metadata": metadata}],
            namespace=to_namespace(store_id),
        )
        logger.info("Upserted vector %s into Pinecone namespace %s", vector_id, store_id)
        return UpsertResult(store_id=store_id, ids=[vector_id])

    def query(
        self,
        store_id: str,
        query: str,
        embedding: list[float] | None = None,
        top_k: int = 5,
    ) -> list[Any]:
        if embedding is None:
            raise MissingParameterError("Pinecone queries require an embedding")
        index = self._get_index()
        response = self._call(
            "query",
            index.query,
            vector=embedding,
            top_k=top_k,
            namespace=to_namespace(store_id),
            include_metadata=True,
        )
        return list(_field(response, "matches") or [])

    def normalize_match(self, raw: Any, store: DocumentStore) -> SearchResult:
        return normalize_vector_match(raw, store)

    def delete_by_id(self, store_id: str | None, document_id: str) -> bool:
        index = self._get_index()
        namespace = to_namespace(store_id)
        fetched = self._call("fetch", index.fetch, ids=[document_id], namespace=namespace)
        if document_id not in (_field(fetched, "vectors") or {}):
            raise DocumentNotFoundError(
                f"Vector '{document_id}' not found in Pinecone namespace '{store_id}'",
                context={"index": self.index_name, "id": document_id},
            )
        self._call("delete", index.delete, ids=[document_id], namespace=namespace)
        logger.info("Deleted vector %s from Pinecone namespace %s", document_id, store_id)
        return True

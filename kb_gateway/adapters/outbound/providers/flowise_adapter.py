"""Flowise document-store client.

Wraps the Flowise ``/document-store`` REST API. Flowise embeds queries and
documents server-side, so this client works on plain text and never needs a
precomputed embedding.
"""

import logging
from typing import Any

import requests

from ....core.domain import (
    Document,
    DocumentChunk,
    DocumentStore,
    ProviderSource,
    SearchResult,
    UpsertResult,
)
from ....core.domain.exceptions import (
    DocumentNotFoundError,
    MissingAPIKeyError,
    MissingParameterError,
    NotFoundError,
    ProviderUnavailableError,
    StoreNotFoundError,
)
from ....core.ports.provider_port import ProviderClientPort

logger = logging.getLogger(__name__)

# Constants
REQUEST_TIMEOUT = 30
FLOWISE_PLACEHOLDER_SIMILARITY = 0.0
DEFAULT_DOC_NAME = "LobeChat Document"


def normalize_store(raw: dict[str, Any]) -> DocumentStore:
    """Map a Flowise store record onto DocumentStore."""
    return DocumentStore(
        id=raw["id"],
        name=raw.get("name") or raw["id"],
        description=raw.get("description") or "",
        status=raw.get("status"),
        created_at=raw.get("createdDate"),
        updated_at=raw.get("updatedDate"),
        document_count=raw.get("documentCount"),
        provider=ProviderSource.FLOWISE,
    )


def normalize_doc(
    raw: dict[str, Any],
    store: DocumentStore,
    placeholder_similarity: float = FLOWISE_PLACEHOLDER_SIMILARITY,
) -> SearchResult:
    """Map a Flowise query doc onto SearchResult.

    Flowise does not report a score, so ``similarity`` is the placeholder.
    """
    return SearchResult(
        content=raw.get("pageContent", ""),
        metadata=dict(raw.get("metadata") or {}),
        store_id=store.id,
        store_name=store.name or None,
        similarity=placeholder_similarity,
        provider=ProviderSource.FLOWISE,
    )


def build_upsert_payload(
    content: str,
    metadata: dict[str, Any],
    openai_api_key: str,
    default_doc_name: str = DEFAULT_DOC_NAME,
) -> dict[str, Any]:
    """Build the loader/splitter/embedding payload Flowise's upsert expects.

    The shape mirrors the ingestion pipeline configured in existing Flowise
    deployments and must not change.
    """
    return {
        "metadata": metadata,
        "docStore": {
            "name": metadata.get("title") or default_doc_name,
            "description": metadata.get("description") or "",
        },
        "loader": {
            "name": "text",
            "config": {"text": content},
        },
        "splitter": {
            "name": "recursiveCharacterTextSplitter",
            "config": {},
        },
        "embedding": {
            "name": "openAIEmbeddings",
            "config": {"openAIApiKey": openai_api_key},
        },
    }


class FlowiseAdapter(ProviderClientPort):
    """Client for the Flowise document-store API."""

    source = ProviderSource.FLOWISE
    uses_embeddings = False

    def __init__(
        self,
        api_url: str,
        api_key: str,
        openai_api_key: str = "",
        timeout: float = REQUEST_TIMEOUT,
        placeholder_similarity: float = FLOWISE_PLACEHOLDER_SIMILARITY,
        default_doc_name: str = DEFAULT_DOC_NAME,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: Flowise API base URL (e.g. ``https://flowise.example.com/api/v1``).
            api_key: Flowise API key sent as a bearer token.
            openai_api_key: Key forwarded inside upsert payloads for Flowise's
                own OpenAI embedding node.
            timeout: Per-request timeout in seconds.
            placeholder_similarity: Score assigned to Flowise matches.
            default_doc_name: Document-store name used when metadata has no title.

        Raises:
            MissingAPIKeyError: If the URL or API key is not configured.
        """
        if not api_url or not api_key:
            raise MissingAPIKeyError(
                "Missing Flowise configuration",
                context={"api_url_set": bool(api_url), "api_key_set": bool(api_key)},
            )

        self.base_url = api_url.rstrip("/")
        self.openai_api_key = openai_api_key
        self.timeout = timeout
        self.placeholder_similarity = placeholder_similarity
        self.default_doc_name = default_doc_name
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    def __enter__(self) -> "FlowiseAdapter":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP session."""
        if self.session:
            self.session.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        not_found: type[NotFoundError] = NotFoundError,
    ) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            NotFoundError: (or the given subclass) on HTTP 404.
            ProviderUnavailableError: On any other transport or HTTP failure.
        """
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise ProviderUnavailableError(
                f"Flowise request failed: {method} {path}",
                cause=e,
                context={"url": url},
            ) from e

        if response.status_code == 404:
            raise not_found(
                f"Flowise resource not found: {path}",
                context={"url": url},
            )

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise ProviderUnavailableError(
                f"Flowise returned HTTP {response.status_code} for {method} {path}",
                cause=e,
                context={"url": url, "status": response.status_code},
            ) from e

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                f"Flowise returned a non-JSON body for {method} {path}",
                cause=e,
                context={"url": url},
            ) from e

    def list_stores(self) -> list[DocumentStore]:
        data = self._request("GET", "/document-store/store")
        return [normalize_store(store) for store in data or []]

    def get_store(self, store_id: str) -> DocumentStore:
        data = self._request(
            "GET", f"/document-store/store/{store_id}", not_found=StoreNotFoundError
        )
        return normalize_store(data)

    def upsert(
        self,
        store_id: str,
        document: Document,
        embedding: list[float] | None = None,
    ) -> UpsertResult:
        payload = build_upsert_payload(
            document.content,
            document.metadata,
            self.openai_api_key,
            self.default_doc_name,
        )
        data = self._request(
            "POST",
            f"/document-store/upsert/{store_id}",
            json=payload,
            not_found=StoreNotFoundError,
        )
        doc_id = data.get("docId") if isinstance(data, dict) else None
        logger.info("Upserted document into Flowise store %s", store_id)
        return UpsertResult(
            store_id=store_id,
            ids=[doc_id] if doc_id else [],
            raw=data if isinstance(data, dict) else {},
        )

    def query(
        self,
        store_id: str,
        query: str,
        embedding: list[float] | None = None,
        top_k: int = 5,
    ) -> list[dict[str, Any]]:
        # Flowise applies the store's own topK; top_k is not forwarded.
        data = self._request(
            "POST",
            "/document-store/vectorstore/query",
            json={"storeId": store_id, "query": query},
            not_found=StoreNotFoundError,
        )
        return list(data.get("docs") or [])

    def normalize_match(self, raw: dict[str, Any], store: DocumentStore) -> SearchResult:
        return normalize_doc(raw, store, self.placeholder_similarity)

    def delete_by_id(self, store_id: str | None, document_id: str) -> bool:
        if not store_id:
            raise MissingParameterError("Flowise deletes require a store id")
        self._request(
            "DELETE",
            f"/document-store/loader/{store_id}/{document_id}",
            not_found=DocumentNotFoundError,
        )
        logger.info("Deleted loader %s from Flowise store %s", document_id, store_id)
        return True

    def get_chunks(
        self, store_id: str, document_id: str | None = None, page: int = 1
    ) -> list[DocumentChunk]:
        loader_id = document_id or "all"
        data = self._request(
            "GET",
            f"/document-store/chunks/{store_id}/{loader_id}/{page}",
            not_found=StoreNotFoundError,
        )
        return [
            DocumentChunk(
                id=chunk.get("id", ""),
                content=chunk.get("pageContent", ""),
                metadata=dict(chunk.get("metadata") or {}),
                document_id=chunk.get("docId"),
            )
            for chunk in data.get("chunks") or []
        ]

    def update_chunk(
        self,
        store_id: str,
        document_id: str,
        chunk_id: str,
        content: str,
        metadata: dict[str, Any],
    ) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"/document-store/chunks/{store_id}/{document_id}/{chunk_id}",
            json={"pageContent": content, "metadata": metadata},
            not_found=DocumentNotFoundError,
        )

    def delete_chunk(self, store_id: str, document_id: str, chunk_id: str) -> dict[str, Any]:
        return self._request(
            "DELETE",
            f"/document-store/chunks/{store_id}/{document_id}/{chunk_id}",
            not_found=DocumentNotFoundError,
        )

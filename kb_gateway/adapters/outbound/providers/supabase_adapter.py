"""Supabase pgvector client.

Each configured table is exposed as one store. Similarity queries go
through a Postgres function named ``match_<table>`` taking
``query_embedding``, ``match_threshold`` and ``match_count`` and returning
``id, content, metadata, similarity`` rows.
"""

import logging
from typing import TYPE_CHECKING, Any

from ....core.domain import Document, DocumentStore, ProviderSource, SearchResult, UpsertResult
from ....core.domain.exceptions import (
    DocumentNotFoundError,
    InvalidConfigurationError,
    MissingAPIKeyError,
    MissingParameterError,
    ProviderUnavailableError,
    StoreNotFoundError,
)
from ....core.ports.provider_port import ProviderClientPort

if TYPE_CHECKING:
    from supabase import Client

logger = logging.getLogger(__name__)

# Constants
DEFAULT_MATCH_THRESHOLD = 0.78
DEFAULT_MATCH_COUNT = 5
MATCH_FUNCTION_PREFIX = "match_"


def normalize_row(raw: dict[str, Any], store: DocumentStore) -> SearchResult:
    """Map a ``match_<table>`` row onto SearchResult."""
    metadata = dict(raw.get("metadata") or {})
    if raw.get("id") is not None:
        metadata.setdefault("id", raw["id"])
    similarity = raw.get("similarity")
    return SearchResult(
        content=raw.get("content", ""),
        metadata=metadata,
        store_id=store.id,
        store_name=store.name or None,
        similarity=float(similarity) if similarity is not None else None,
        provider=ProviderSource.SUPABASE,
    )


class SupabaseAdapter(ProviderClientPort):
    """Supabase pgvector store accessed through the supabase client."""

    source = ProviderSource.SUPABASE
    uses_embeddings = True

    def __init__(
        self,
        url: str,
        key: str,
        tables: list[str],
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        match_count: int = DEFAULT_MATCH_COUNT,
        client: "Client | None" = None,
    ) -> None:
        """Initialize the Supabase client.

        Args:
            url: Supabase project URL.
            key: Supabase API key.
            tables: Tables exposed as stores.
            match_threshold: Minimum similarity passed to the match function.
            match_count: Default number of rows requested per query.
            client: Pre-built client (tests inject a mock here).

        Raises:
            MissingAPIKeyError: If URL or key is missing.
            InvalidConfigurationError: If no tables are configured or the
                client rejects the URL.
        """
        if client is None and (not url or not key):
            raise MissingAPIKeyError(
                "Missing Supabase configuration",
                context={"url_set": bool(url), "key_set": bool(key)},
            )
        if not tables:
            raise InvalidConfigurationError("At least one Supabase table must be configured")

        self.url = url
        self.tables = list(tables)
        self.match_threshold = match_threshold
        self.match_count = match_count

        if client is None:
            from supabase import create_client

            try:
                client = create_client(url, key)
            except Exception as e:
                raise InvalidConfigurationError(
                    f"Could not create Supabase client for {url}",
                    cause=e,
                    context={"url": url},
                ) from e
        self._client = client

    def _execute(self, operation: str, builder: Any) -> list[Any]:
        """Execute a query builder and return its rows."""
        try:
            response = builder.execute()
        except Exception as e:
            raise ProviderUnavailableError(
                f"Supabase {operation} failed",
                cause=e,
                context={"url": self.url},
            ) from e
        return list(response.data or [])

    def _table_store(self, table: str) -> DocumentStore:
        return DocumentStore(id=table, name=table, provider=ProviderSource.SUPABASE)

    def _require_table(self, store_id: str | None) -> str:
        table = store_id or self.tables[0]
        if table not in self.tables:
            raise StoreNotFoundError(
                f"Supabase table '{table}' is not configured",
                context={"configured": self.tables},
            )
        return table

    def list_stores(self) -> list[DocumentStore]:
        return [self._table_store(table) for table in self.tables]

    def get_store(self, store_id: str) -> DocumentStore:
        return self._table_store(self._require_table(store_id))

    def upsert(
        self,
        store_id: str,
        document: Document,
        embedding: list[float] | None = None,
    ) -> UpsertResult:
        if embedding is None:
            raise MissingParameterError("Supabase upserts require an embedding")
        table = self._require_table(store_id)
        rows = self._execute(
            f"insert into {table}",
            self._client.table(table).insert(
                {
                    "content": document.content,
                    "metadata": document.metadata,
                    "embedding": embedding,
                }
            ),
        )
        ids = [str(row["id"]) for row in rows if row.get("id") is not None]
        logger.info("Inserted %d row(s) into Supabase table %s", len(rows), table)
        return UpsertResult(store_id=table, ids=ids)

    def query(
        self,
        store_id: str,
        query: str,
        embedding: list[float] | None = None,
        top_k: int | None = None,
    ) -> list[dict[str, Any]]:
        if embedding is None:
            raise MissingParameterError("Supabase queries require an embedding")
        table = self._require_table(store_id)
        function = f"{MATCH_FUNCTION_PREFIX}{table}"
        return self._execute(
            f"rpc {function}",
            self._client.rpc(
                function,
                {
                    "query_embedding": embedding,
                    "match_threshold": self.match_threshold,
                    "match_count": top_k or self.match_count,
                },
            ),
        )

    def normalize_match(self, raw: dict[str, Any], store: DocumentStore) -> SearchResult:
        return normalize_row(raw, store)

    def delete_by_id(self, store_id: str | None, document_id: str) -> bool:
        table = self._require_table(store_id)
        rows = self._execute(
            f"delete from {table}",
            self._client.table(table).delete().eq("id", document_id),
        )
        if not rows:
            raise DocumentNotFoundError(
                f"Document '{document_id}' not found in Supabase table '{table}'",
                context={"table": table, "id": document_id},
            )
        logger.info("Deleted document %s from Supabase table %s", document_id, table)
        return True

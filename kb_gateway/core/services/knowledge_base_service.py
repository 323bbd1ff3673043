"""Knowledge-base aggregation service.

Fans provider-agnostic operations out to the configured provider clients,
normalizes their heterogeneous matches into ``SearchResult`` records and
merges them. Provider clients are synchronous; each call runs in a worker
thread so all calls of one operation are in flight together, and the
operation resumes once every call has settled.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeVar

from ..domain import (
    Document,
    DocumentChunk,
    DocumentStore,
    ProviderSource,
    SearchResult,
    UpsertOutcome,
)
from ..domain.exceptions import (
    ConfigurationError,
    EmptyQueryError,
    MissingParameterError,
    NotFoundError,
    ProviderNotConfiguredError,
    ProviderTimeoutError,
    StoreNotFoundError,
    UnsupportedOperationError,
)
from ..ports.embedding_port import EmbeddingPort
from ..ports.provider_port import ProviderClientPort

logger = logging.getLogger(__name__)

T = TypeVar("T")

TargetsArg = Iterable[ProviderSource | str] | None
StorePair = tuple[ProviderSource, DocumentStore]

DEFAULT_TOP_K = 5
DEFAULT_CALL_TIMEOUT = 5.0


def sort_by_similarity(results: list[SearchResult]) -> list[SearchResult]:
    """Sort results by similarity, highest first.

    Results without a similarity go last. The sort is stable, so ties keep
    the order the providers returned them in.
    """
    return sorted(
        results,
        key=lambda result: (result.similarity is None, -(result.similarity or 0.0)),
    )


class KnowledgeBaseService:
    """Provider-agnostic search, ingestion and store management."""

    def __init__(
        self,
        providers: Mapping[ProviderSource, ProviderClientPort],
        embeddings: EmbeddingPort | None = None,
        top_k: int = DEFAULT_TOP_K,
        call_timeout: float | None = DEFAULT_CALL_TIMEOUT,
    ) -> None:
        """Initialize the service.

        Args:
            providers: Provider client per backend. Only these backends can be
                targeted.
            embeddings: Embedding provider, required when any provider in
                ``providers`` searches by vector.
            top_k: Matches requested from each store.
            call_timeout: Seconds each provider call may take, ``None`` to wait
                indefinitely.
        """
        self._providers = dict(providers)
        self._embeddings = embeddings
        self.top_k = top_k
        self.call_timeout = call_timeout

    @property
    def configured_providers(self) -> list[ProviderSource]:
        return ProviderSource.ordered(self._providers)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _resolve_targets(self, targets: TargetsArg) -> list[ProviderSource]:
        """Parse requested targets; ``None`` means every configured provider."""
        if targets is None:
            return self.configured_providers

        if isinstance(targets, str | ProviderSource):
            targets = [targets]
        requested = ProviderSource.ordered({ProviderSource.parse(t) for t in targets})
        missing = [t.value for t in requested if t not in self._providers]
        if missing:
            raise ProviderNotConfiguredError(
                f"Provider(s) not configured: {', '.join(missing)}",
                context={"configured": [p.value for p in self.configured_providers]},
            )
        return requested

    def _provider(self, target: "ProviderSource | str") -> ProviderClientPort:
        return self._providers[self._resolve_targets([target])[0]]

    async def _call(self, label: str, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking provider call in a worker thread with a timeout.

        A timed-out call keeps running in its thread; only its result is
        discarded.
        """
        call = asyncio.to_thread(func, *args)
        if self.call_timeout is None:
            return await call
        try:
            return await asyncio.wait_for(call, timeout=self.call_timeout)
        except TimeoutError as e:
            raise ProviderTimeoutError(
                f"{label} did not complete within {self.call_timeout}s",
                cause=e,
                context={"call": label, "timeout": self.call_timeout},
            ) from e

    async def _embed(self, text: str) -> list[float]:
        if self._embeddings is None:
            raise ConfigurationError("No embedding provider configured for vector stores")
        return await self._call("embed_query", self._embeddings.embed_query, text)

    async def _list_each(
        self, targets: list[ProviderSource]
    ) -> dict[ProviderSource, "list[DocumentStore] | BaseException"]:
        """List the stores of every target concurrently, keeping failures."""
        listings = await asyncio.gather(
            *(
                self._call(f"{t.value}.list_stores", self._providers[t].list_stores)
                for t in targets
            ),
            return_exceptions=True,
        )
        return dict(zip(targets, listings, strict=True))

    async def _resolve_pairs(
        self, targets: list[ProviderSource], store_id: str | None
    ) -> tuple[list[StorePair], dict[ProviderSource, BaseException]]:
        """Work out which provider/store pairs an operation fans out to.

        With ``store_id`` and a single target the pair is used as given.
        With several targets the owner is the first provider whose listing
        contains the id. Without ``store_id`` every listed store is used.

        Returns:
            The pairs, plus the listing failure of each provider that could
            not be listed.
        """
        if store_id and len(targets) == 1:
            return [(targets[0], DocumentStore(id=store_id, name="", provider=targets[0]))], {}

        listings = await self._list_each(targets)
        failures = {t: r for t, r in listings.items() if isinstance(r, BaseException)}

        if store_id:
            for target in targets:
                listing = listings[target]
                if isinstance(listing, BaseException):
                    continue
                for store in listing:
                    if store.id == store_id:
                        return [(target, store)], {}
            return [], failures

        pairs = [
            (target, store)
            for target in targets
            if not isinstance(listings[target], BaseException)
            for store in listings[target]
        ]
        return pairs, failures

    def _needs_embedding(self, pairs: list[StorePair]) -> bool:
        return any(self._providers[target].uses_embeddings for target, _ in pairs)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def _search_store(
        self,
        target: ProviderSource,
        store: DocumentStore,
        query: str,
        embedding: list[float] | None,
    ) -> list[SearchResult]:
        provider = self._providers[target]
        try:
            matches = await self._call(
                f"{target.value}.query",
                provider.query,
                store.id,
                query,
                embedding if provider.uses_embeddings else None,
                self.top_k,
            )
            return [provider.normalize_match(match, store) for match in matches]
        except Exception as e:
            logger.error(
                "Search failed for %s store %s: %s",
                target.value,
                store.id,
                e,
                extra={"provider": target.value, "store_id": store.id},
            )
            return []

    async def search(
        self,
        query: str,
        targets: TargetsArg = None,
        store_id: str | None = None,
    ) -> list[SearchResult]:
        """Search one store or every store of the requested providers.

        Individual provider failures are logged and contribute no results;
        when every call fails the result is empty.

        Args:
            query: Free-text query.
            targets: Providers to search, ``None`` for all configured ones.
            store_id: Restrict the search to this store.

        Returns:
            Normalized results sorted by similarity, unscored results last.

        Raises:
            EmptyQueryError: If the query is blank.
            ProviderNotConfiguredError: If a requested provider is not enabled.
        """
        if not query or not query.strip():
            raise EmptyQueryError("Query parameter is required")

        resolved = self._resolve_targets(targets)
        pairs, failures = await self._resolve_pairs(resolved, store_id)
        for target, error in failures.items():
            logger.error(
                "Listing %s stores failed: %s", target.value, error, extra={"provider": target.value}
            )

        if not pairs:
            if store_id:
                logger.info("No provider owns store %s; returning no results", store_id)
            return []

        embedding: list[float] | None = None
        if self._needs_embedding(pairs):
            try:
                embedding = await self._embed(query)
            except Exception as e:
                logger.error("Query embedding failed, skipping vector stores: %s", e)
                pairs = [(t, s) for t, s in pairs if not self._providers[t].uses_embeddings]

        batches = await asyncio.gather(
            *(self._search_store(target, store, query, embedding) for target, store in pairs)
        )
        results = [result for batch in batches for result in batch]
        logger.debug("Search over %d store(s) returned %d result(s)", len(pairs), len(results))
        return sort_by_similarity(results)

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def _upsert_store(
        self,
        target: ProviderSource,
        store: DocumentStore,
        document: Document,
        embedding: list[float] | None,
        embedding_error: Exception | None,
    ) -> UpsertOutcome:
        provider = self._providers[target]
        if provider.uses_embeddings and embedding is None:
            return UpsertOutcome(target, store.id, "error", str(embedding_error))
        vector = embedding if provider.uses_embeddings else None
        try:
            await self._call(f"{target.value}.upsert", provider.upsert, store.id, document, vector)
            return UpsertOutcome(target, store.id, "success")
        except Exception as e:
            logger.error(
                "Adding document to %s store %s failed: %s",
                target.value,
                store.id,
                e,
                extra={"provider": target.value, "store_id": store.id},
            )
            return UpsertOutcome(target, store.id, "error", str(e))

    async def add_document(
        self,
        content: str,
        metadata: dict[str, Any] | None = None,
        targets: TargetsArg = None,
        store_id: str | None = None,
    ) -> list[UpsertOutcome]:
        """Add a document to one store or to every store of the targets.

        Best-effort multi-write: each store reports its own outcome and
        nothing is rolled back when another store fails.

        Returns:
            One outcome per target store, plus one error outcome per provider
            whose stores could not be listed, in provider order.

        Raises:
            MissingParameterError: If the content is blank.
            StoreNotFoundError: If ``store_id`` matches no store of the
                (several) targets.
        """
        if not content or not content.strip():
            raise MissingParameterError("Content is required")

        document = Document(content=content, metadata=dict(metadata or {}))
        resolved = self._resolve_targets(targets)
        pairs, failures = await self._resolve_pairs(resolved, store_id)

        if store_id and not pairs and not failures:
            raise StoreNotFoundError(
                f"Store '{store_id}' not found on any targeted provider",
                context={"targets": [t.value for t in resolved]},
            )

        outcomes = []
        for target, error in failures.items():
            logger.error(
                "Listing %s stores failed: %s", target.value, error, extra={"provider": target.value}
            )
            outcomes.append(UpsertOutcome(target, None, "error", str(error)))

        embedding: list[float] | None = None
        embedding_error: Exception | None = None
        if self._needs_embedding(pairs):
            try:
                embedding = await self._embed(content)
            except Exception as e:
                logger.error("Document embedding failed: %s", e)
                embedding_error = e

        outcomes.extend(
            await asyncio.gather(
                *(
                    self._upsert_store(target, store, document, embedding, embedding_error)
                    for target, store in pairs
                )
            )
        )
        outcomes.sort(key=lambda outcome: resolved.index(outcome.target))
        return outcomes

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------

    async def delete_document(
        self,
        document_id: str,
        targets: "Iterable[ProviderSource | str] | ProviderSource | str",
        store_id: str | None = None,
    ) -> bool:
        """Delete a document from exactly one provider.

        Deletes are never broadcast. An empty target set is a no-op.

        Raises:
            MissingParameterError: If the document id is blank.
            UnsupportedOperationError: If more than one target is given.
            NotFoundError: If the provider has no such document.
        """
        if not document_id:
            raise MissingParameterError("documentId is required")

        resolved = self._resolve_targets(targets)
        if not resolved:
            logger.debug("Delete of %s requested with no targets; nothing to do", document_id)
            return False
        if len(resolved) > 1:
            raise UnsupportedOperationError(
                "Deleting from several providers at once is not supported",
                context={"targets": [t.value for t in resolved]},
            )

        target = resolved[0]
        return await self._call(
            f"{target.value}.delete_by_id",
            self._providers[target].delete_by_id,
            store_id,
            document_id,
        )

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    async def list_stores(self, target: "ProviderSource | str | None" = None) -> list[DocumentStore]:
        """List stores of one provider, or of all providers.

        A single target propagates its error. When listing every provider,
        failing providers are logged and skipped.
        """
        if target is not None:
            source = ProviderSource.parse(target)
            stores = await self._call(
                f"{source.value}.list_stores", self._provider(source).list_stores
            )
            return [self._tag(store, source) for store in stores]

        stores: list[DocumentStore] = []
        for source, listing in (await self._list_each(self.configured_providers)).items():
            if isinstance(listing, BaseException):
                logger.error(
                    "Listing %s stores failed: %s",
                    source.value,
                    listing,
                    extra={"provider": source.value},
                )
                continue
            stores.extend(self._tag(store, source) for store in listing)
        return stores

    async def get_store(
        self, store_id: str, target: "ProviderSource | str | None" = None
    ) -> DocumentStore:
        """Fetch one store from a given provider, or from whichever has it.

        Raises:
            MissingParameterError: If the store id is blank.
            StoreNotFoundError: If no provider has the store.
        """
        if not store_id:
            raise MissingParameterError("Store ID is required")

        if target is not None:
            source = ProviderSource.parse(target)
            store = await self._call(
                f"{source.value}.get_store", self._provider(source).get_store, store_id
            )
            return self._tag(store, source)

        sources = self.configured_providers
        lookups = await asyncio.gather(
            *(
                self._call(f"{s.value}.get_store", self._providers[s].get_store, store_id)
                for s in sources
            ),
            return_exceptions=True,
        )
        for source, lookup in zip(sources, lookups, strict=True):
            if isinstance(lookup, DocumentStore):
                return self._tag(lookup, source)

        for lookup in lookups:
            if isinstance(lookup, Exception) and not isinstance(lookup, NotFoundError):
                raise lookup
        raise StoreNotFoundError(
            f"Store '{store_id}' not found",
            context={"providers": [s.value for s in sources]},
        )

    @staticmethod
    def _tag(store: DocumentStore, source: ProviderSource) -> DocumentStore:
        if store.provider is None:
            store.provider = source
        return store

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def get_document_chunks(
        self,
        store_id: str,
        document_id: str | None = None,
        page: int = 1,
        target: "ProviderSource | str" = ProviderSource.FLOWISE,
    ) -> list[DocumentChunk]:
        """List stored chunks of a document (all documents when omitted)."""
        if not store_id:
            raise MissingParameterError("Store ID is required")
        provider = self._provider(target)
        return await self._call(
            f"{provider.source.value}.get_chunks", provider.get_chunks, store_id, document_id, page
        )

    async def update_chunk(
        self,
        store_id: str,
        document_id: str,
        chunk_id: str,
        content: str,
        metadata: dict[str, Any] | None = None,
        target: "ProviderSource | str" = ProviderSource.FLOWISE,
    ) -> dict[str, Any]:
        """Replace the content and metadata of one stored chunk."""
        if not content or not content.strip():
            raise MissingParameterError("Content is required")
        provider = self._provider(target)
        return await self._call(
            f"{provider.source.value}.update_chunk",
            provider.update_chunk,
            store_id,
            document_id,
            chunk_id,
            content,
            dict(metadata or {}),
        )

    async def delete_chunk(
        self,
        store_id: str,
        document_id: str,
        chunk_id: str,
        target: "ProviderSource | str" = ProviderSource.FLOWISE,
    ) -> dict[str, Any]:
        """Delete one stored chunk."""
        provider = self._provider(target)
        return await self._call(
            f"{provider.source.value}.delete_chunk",
            provider.delete_chunk,
            store_id,
            document_id,
            chunk_id,
        )

"""Composition root wiring provider adapters into the knowledge-base service."""

from __future__ import annotations

import logging
import threading

from ..adapters.outbound.embedding import GeminiEmbeddingAdapter, OpenAIEmbeddingAdapter
from ..adapters.outbound.providers import FlowiseAdapter, PineconeAdapter, SupabaseAdapter
from ..config.settings import Settings, settings
from ..core.domain import ProviderSource
from ..core.domain.exceptions import InvalidConfigurationError, InvalidParameterError
from ..core.ports import EmbeddingPort, ProviderClientPort
from ..core.services import KnowledgeBaseService

logger = logging.getLogger(__name__)


def enabled_sources(config: Settings) -> list[ProviderSource]:
    """Providers to build: the explicit list, or every provider with credentials."""
    if config.enabled_provider_list:
        try:
            return ProviderSource.ordered(
                {ProviderSource.parse(name) for name in config.enabled_provider_list}
            )
        except InvalidParameterError as e:
            raise InvalidConfigurationError(
                f"ENABLED_PROVIDERS contains an unknown provider: {config.enabled_providers}",
                cause=e,
            ) from e

    detected = {
        ProviderSource.SUPABASE: config.supabase_configured,
        ProviderSource.PINECONE: config.pinecone_configured,
        ProviderSource.FLOWISE: config.flowise_configured,
    }
    return [source for source, configured in detected.items() if configured]


def build_provider(source: ProviderSource, config: Settings) -> ProviderClientPort:
    """Construct one provider client; missing credentials raise here."""
    if source is ProviderSource.FLOWISE:
        return FlowiseAdapter(
            api_url=config.flowise_api_url,
            api_key=config.flowise_api_key,
            openai_api_key=config.openai_api_key,
            timeout=config.request_timeout_seconds,
            placeholder_similarity=config.flowise_placeholder_similarity,
            default_doc_name=config.flowise_default_doc_name,
        )
    if source is ProviderSource.SUPABASE:
        return SupabaseAdapter(
            url=config.supabase_url,
            key=config.supabase_key,
            tables=config.supabase_table_list,
            match_threshold=config.match_threshold,
            match_count=config.match_count,
        )
    return PineconeAdapter(
        api_key=config.pinecone_api_key,
        index_name=config.pinecone_index_name,
    )


def build_embeddings(config: Settings) -> EmbeddingPort:
    """Construct the embedding provider named by ``EMBEDDING_PROVIDER``."""
    provider = config.embedding_provider.strip().lower()
    if provider == "openai":
        return OpenAIEmbeddingAdapter(config.openai_api_key, config.openai_embedding_model)
    if provider == "gemini":
        return GeminiEmbeddingAdapter(config.google_api_key, config.gemini_embedding_model)
    raise InvalidConfigurationError(
        f"Unknown embedding provider '{config.embedding_provider}'",
        context={"allowed": ["openai", "gemini"]},
    )


def build_service(config: Settings) -> KnowledgeBaseService:
    """Build a fully wired KnowledgeBaseService from settings."""
    providers = {source: build_provider(source, config) for source in enabled_sources(config)}
    if not providers:
        logger.warning("No knowledge-base providers configured")

    embeddings = None
    if any(provider.uses_embeddings for provider in providers.values()):
        embeddings = build_embeddings(config)

    logger.info(
        "Knowledge base providers: %s",
        ", ".join(source.value for source in providers) or "none",
    )
    return KnowledgeBaseService(
        providers,
        embeddings=embeddings,
        top_k=config.match_count,
        call_timeout=config.provider_timeout_seconds,
    )


_service: KnowledgeBaseService | None = None
_service_lock = threading.Lock()


def get_knowledge_base_service() -> KnowledgeBaseService:
    """Return the process-wide service, building it on first use.

    FastAPI resolves sync dependencies in its threadpool, so concurrent first
    requests wait on the lock and share one build (and one set of provider
    clients).
    """
    global _service
    if _service is not None:
        return _service

    with _service_lock:
        if _service is None:
            logger.info("Initializing KnowledgeBaseService (composition root)...")
            _service = build_service(settings)
    return _service


def reset_knowledge_base_service() -> None:
    """Drop the cached service so the next call rebuilds it."""
    global _service
    with _service_lock:
        _service = None

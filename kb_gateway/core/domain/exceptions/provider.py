"""Exceptions raised by provider clients (Flowise, Supabase, Pinecone)."""

from .base import KnowledgeBaseError


class ProviderError(KnowledgeBaseError):
    """Base error for provider operations."""

    error_code = "KB_PRV_001"


class ProviderUnavailableError(ProviderError):
    """Failed to reach a provider or the provider rejected the call.

    Common causes:
    - Invalid URL or API key
    - Network connectivity issues
    - Provider returned a 5xx response
    """

    error_code = "KB_PRV_002"


class ProviderTimeoutError(ProviderUnavailableError):
    """A provider call did not settle within the configured timeout."""

    error_code = "KB_PRV_003"


class NotFoundError(ProviderError):
    """A referenced store, document or id does not exist."""

    error_code = "KB_PRV_004"


class StoreNotFoundError(NotFoundError):
    """Requested store does not exist on the provider."""

    error_code = "KB_PRV_005"


class DocumentNotFoundError(NotFoundError):
    """Requested document id does not exist in the store."""

    error_code = "KB_PRV_006"


class UnsupportedOperationError(ProviderError):
    """The operation is not supported by the targeted provider(s)."""

    error_code = "KB_PRV_007"

"""Embedding exceptions."""

from .base import KnowledgeBaseError


class EmbeddingError(KnowledgeBaseError):
    """Failed to generate embeddings."""

    error_code = "KB_EMB_001"


class EmbeddingAPIError(EmbeddingError):
    """Embedding API returned an error."""

    error_code = "KB_EMB_002"

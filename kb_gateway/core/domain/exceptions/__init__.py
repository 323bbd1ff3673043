"""Exception hierarchy for the Knowledge Base Gateway.

Structured exceptions with automatic context capture. Each exception has an
error code, the location it was raised from, an optional cause and a JSON
form for logs and API responses.

Import from this package directly:

    from kb_gateway.core.domain.exceptions import KnowledgeBaseError, StoreNotFoundError
"""

# Base classes
from .base import ExceptionContext, KnowledgeBaseError

# Configuration exceptions
from .configuration import (
    ConfigurationError,
    InvalidConfigurationError,
    MissingAPIKeyError,
    ProviderNotConfiguredError,
)

# Embedding exceptions
from .embedding import EmbeddingAPIError, EmbeddingError

# Provider exceptions
from .provider import (
    DocumentNotFoundError,
    NotFoundError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    StoreNotFoundError,
    UnsupportedOperationError,
)

# Validation exceptions
from .validation import (
    EmptyQueryError,
    InvalidParameterError,
    MissingParameterError,
    ValidationError,
)

__all__ = [
    # Base
    "ExceptionContext",
    "KnowledgeBaseError",
    # Configuration
    "ConfigurationError",
    "MissingAPIKeyError",
    "InvalidConfigurationError",
    "ProviderNotConfiguredError",
    # Provider
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "NotFoundError",
    "StoreNotFoundError",
    "DocumentNotFoundError",
    "UnsupportedOperationError",
    # Embedding
    "EmbeddingError",
    "EmbeddingAPIError",
    # Validation
    "ValidationError",
    "EmptyQueryError",
    "MissingParameterError",
    "InvalidParameterError",
]

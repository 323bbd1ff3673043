"""Configuration-related exceptions."""

from .base import KnowledgeBaseError


class ConfigurationError(KnowledgeBaseError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing or invalid.
    """

    error_code = "KB_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key or endpoint is not configured."""

    error_code = "KB_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "KB_CFG_003"


class ProviderNotConfiguredError(ConfigurationError):
    """An operation targeted a provider that is not enabled."""

    error_code = "KB_CFG_004"

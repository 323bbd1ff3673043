"""Configuration management for the Knowledge Base Gateway."""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _sanitize_secret(value: str) -> str:
    """Remove BOM characters and whitespace from secrets.

    Secrets copied from dashboards or injected by the platform may contain
    BOM characters that cause encoding errors when used in HTTP headers.
    """
    if not value:
        return value
    return value.lstrip("\ufeff").strip()


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Flowise document-store API
    flowise_api_url: str = ""
    flowise_api_key: str = ""

    # Supabase (pgvector tables queried through match_<table> RPC functions)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_tables: str = "documents"

    # Pinecone
    pinecone_api_key: str = ""
    pinecone_index_name: str = ""

    # Embeddings
    embedding_provider: str = "openai"
    openai_api_key: str = ""
    openai_embedding_model: str = "text-embedding-ada-002"
    google_api_key: str = ""
    gemini_embedding_model: str = "gemini-embedding-001"

    @field_validator(
        "flowise_api_url",
        "flowise_api_key",
        "supabase_url",
        "supabase_key",
        "pinecone_api_key",
        "openai_api_key",
        "google_api_key",
        mode="after",
    )
    @classmethod
    def sanitize_secrets(cls, value: str) -> str:
        """Remove BOM and whitespace from secret values."""
        return _sanitize_secret(value)

    # Nearest-neighbour query settings
    match_threshold: float = 0.78
    match_count: int = 5

    # Fan-out settings
    provider_timeout_seconds: float = 5.0
    request_timeout_seconds: float = 30.0
    enabled_providers: str = ""
    default_delete_target: str = "flowise"

    # Flowise ingestion/normalization
    flowise_placeholder_similarity: float = 0.0
    flowise_default_doc_name: str = "LobeChat Document"

    # API
    cors_origins: str = "*"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    debug: bool = False

    @property
    def supabase_table_list(self) -> list[str]:
        """Configured Supabase tables, each exposed as one store."""
        return _split_csv(self.supabase_tables)

    @property
    def cors_origin_list(self) -> list[str]:
        return _split_csv(self.cors_origins)

    @property
    def enabled_provider_list(self) -> list[str]:
        """Explicitly enabled providers (empty means auto-detect)."""
        return [name.lower() for name in _split_csv(self.enabled_providers)]

    @property
    def flowise_configured(self) -> bool:
        return bool(self.flowise_api_url and self.flowise_api_key)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def pinecone_configured(self) -> bool:
        return bool(self.pinecone_api_key and self.pinecone_index_name)


# Global settings instance
settings = Settings()

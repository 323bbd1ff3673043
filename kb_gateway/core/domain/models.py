"""Domain models shared by the provider clients and the aggregation service."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from .exceptions import InvalidParameterError


class ProviderSource(str, Enum):
    """Backends a knowledge-base operation can target.

    Declaration order is the tie-break order used when several providers
    could answer the same request.
    """

    SUPABASE = "supabase"
    PINECONE = "pinecone"
    FLOWISE = "flowise"

    @classmethod
    def parse(cls, value: "str | ProviderSource") -> "ProviderSource":
        """Parse a provider name case-insensitively.

        Raises:
            InvalidParameterError: If the name is not a known provider.
        """
        if isinstance(value, ProviderSource):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError as e:
            raise InvalidParameterError(
                f"Unknown provider '{value}'",
                context={"allowed": [p.value for p in cls]},
            ) from e

    @classmethod
    def ordered(cls, sources: "set[ProviderSource] | list[ProviderSource]") -> list["ProviderSource"]:
        """Return the given sources in declaration order."""
        wanted = set(sources)
        return [source for source in cls if source in wanted]


@dataclass
class DocumentStore:
    """A named collection on a remote provider.

    Owned entirely by the provider; the gateway only relays it.

    Attributes:
        id: Provider-side identifier (Flowise store id, Supabase table,
            Pinecone namespace).
        name: Display name.
        description: Free-text description, empty when the provider has none.
        status: Provider-reported status (Flowise: EMPTY, SYNC, UPSERTED...).
        created_at: Provider-reported creation timestamp.
        updated_at: Provider-reported update timestamp.
        document_count: Number of documents/vectors when the provider reports it.
        provider: Which backend the store lives on.
    """

    id: str
    name: str
    description: str = ""
    status: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    document_count: int | None = None
    provider: ProviderSource | None = None


@dataclass
class Document:
    """Input unit for ingestion: text content plus arbitrary metadata."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """A provider match normalized into the common result shape.

    ``similarity`` is only meaningful for providers that report a score.
    Flowise matches carry a constant placeholder instead, so scores are not
    comparable across providers.
    """

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    store_id: str | None = None
    store_name: str | None = None
    similarity: float | None = None
    provider: ProviderSource | None = None


@dataclass
class UpsertResult:
    """What a provider client reports after a successful upsert."""

    store_id: str
    ids: list[str] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class UpsertOutcome:
    """Per-target status of a multi-store ingestion."""

    target: ProviderSource
    store_id: str | None
    status: Literal["success", "error"]
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


@dataclass
class DocumentChunk:
    """A stored chunk of a document (Flowise chunk browsing)."""

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    document_id: str | None = None

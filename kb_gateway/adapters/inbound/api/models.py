"""Pydantic models for API requests and responses.

Wire names are camelCase (``storeId``, ``storeName``) to match what the chat
application sends and expects.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from ....core.domain import DocumentChunk, DocumentStore, SearchResult, UpsertOutcome


class ApiModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Requests
# =============================================================================


class AddDocumentRequest(ApiModel):
    """Body of ``POST /documents``. ``content`` is checked by the route."""

    content: str | None = Field(None, description="Document text to ingest")
    metadata: dict[str, Any] | None = Field(None, description="Arbitrary document metadata")
    store_id: str | None = Field(
        None, alias="storeId", description="Target store; all stores when omitted"
    )
    targets: list[str] | None = Field(
        None,
        description="Providers to ingest into (supabase, pinecone, flowise); all when omitted",
    )


class GetStoreRequest(ApiModel):
    """Body of ``POST /stores``."""

    store_id: str | None = Field(None, alias="storeId")
    target: str | None = Field(None, description="Provider owning the store")


class UpdateChunkRequest(ApiModel):
    """Body of ``PUT /stores/{storeId}/chunks/{documentId}/{chunkId}``."""

    content: str | None = Field(None, alias="pageContent")
    metadata: dict[str, Any] | None = None


# =============================================================================
# Responses
# =============================================================================


class SearchResultModel(ApiModel):
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    store_id: str | None = Field(None, alias="storeId")
    store_name: str | None = Field(None, alias="storeName")
    similarity: float | None = None
    provider: str | None = None

    @classmethod
    def from_domain(cls, result: SearchResult) -> "SearchResultModel":
        return cls(
            content=result.content,
            metadata=result.metadata,
            store_id=result.store_id,
            store_name=result.store_name,
            similarity=result.similarity,
            provider=result.provider.value if result.provider else None,
        )


class DocumentStoreModel(ApiModel):
    id: str
    name: str
    description: str = ""
    status: str | None = None
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")
    document_count: int | None = Field(None, alias="documentCount")
    provider: str | None = None

    @classmethod
    def from_domain(cls, store: DocumentStore) -> "DocumentStoreModel":
        return cls(
            id=store.id,
            name=store.name,
            description=store.description,
            status=store.status,
            created_at=store.created_at,
            updated_at=store.updated_at,
            document_count=store.document_count,
            provider=store.provider.value if store.provider else None,
        )


class UpsertOutcomeModel(ApiModel):
    target: str
    store_id: str | None = Field(None, alias="storeId")
    status: Literal["success", "error"]
    error: str | None = None

    @classmethod
    def from_domain(cls, outcome: UpsertOutcome) -> "UpsertOutcomeModel":
        return cls(
            target=outcome.target.value,
            store_id=outcome.store_id,
            status=outcome.status,
            error=outcome.error,
        )


class DocumentChunkModel(ApiModel):
    id: str
    document_id: str | None = Field(None, alias="documentId")
    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_domain(cls, chunk: DocumentChunk) -> "DocumentChunkModel":
        return cls(
            id=chunk.id,
            document_id=chunk.document_id,
            content=chunk.content,
            metadata=chunk.metadata,
        )


class SearchResponse(ApiModel):
    results: list[SearchResultModel]


class AddDocumentResponse(ApiModel):
    result: list[UpsertOutcomeModel]


class DeleteResult(ApiModel):
    success: bool


class DeleteDocumentResponse(ApiModel):
    result: DeleteResult


class StoresResponse(ApiModel):
    stores: list[DocumentStoreModel]


class StoreResponse(ApiModel):
    store: DocumentStoreModel


class ChunksResponse(ApiModel):
    chunks: list[DocumentChunkModel]


class ChunkMutationResponse(ApiModel):
    result: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Response model for health and readiness checks."""

    status: str = Field(..., description="Health status")
    version: str = Field(..., description="API version")
    providers: dict[str, str] = Field(
        default_factory=dict, description="Status per configured provider"
    )


class ErrorResponse(BaseModel):
    """Error body returned for every failed request.

    Example:
        {"error": "Query parameter is required", "code": "KB_VAL_002"}
    """

    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Error code (e.g., KB_PRV_005)")
    details: dict[str, Any] | None = Field(None, description="Full error payload (debug mode only)")

"""Document-store listing and chunk browsing endpoints."""

from fastapi import APIRouter, Depends, Query

from .....core.domain import ProviderSource
from .....core.domain.exceptions import MissingParameterError
from .....core.services import KnowledgeBaseService
from ..deps import get_service
from ..models import (
    ChunkMutationResponse,
    ChunksResponse,
    DocumentChunkModel,
    DocumentStoreModel,
    ErrorResponse,
    GetStoreRequest,
    StoreResponse,
    StoresResponse,
    UpdateChunkRequest,
)

router = APIRouter(prefix="/stores", tags=["stores"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Store or document not found"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


@router.get("", response_model=StoresResponse, responses=ERROR_RESPONSES)
async def list_stores(
    target: str | None = Query(None, description="Only list this provider's stores"),
    service: KnowledgeBaseService = Depends(get_service),
) -> StoresResponse:
    """List document stores across the configured providers."""
    stores = await service.list_stores(target)
    return StoresResponse(stores=[DocumentStoreModel.from_domain(s) for s in stores])


@router.post("", response_model=StoreResponse, responses=ERROR_RESPONSES)
async def get_store(
    request: GetStoreRequest,
    service: KnowledgeBaseService = Depends(get_service),
) -> StoreResponse:
    """Fetch a single document store."""
    if not request.store_id:
        raise MissingParameterError("Store ID is required")

    store = await service.get_store(request.store_id, request.target)
    return StoreResponse(store=DocumentStoreModel.from_domain(store))


@router.get(
    "/{store_id}/chunks",
    response_model=ChunksResponse,
    responses={**ERROR_RESPONSES, 501: {"model": ErrorResponse}},
)
async def get_chunks(
    store_id: str,
    document_id: str | None = Query(None, alias="documentId"),
    page: int = Query(1, ge=1),
    target: str = Query(ProviderSource.FLOWISE.value),
    service: KnowledgeBaseService = Depends(get_service),
) -> ChunksResponse:
    """Browse the stored chunks of a document (or of the whole store)."""
    chunks = await service.get_document_chunks(store_id, document_id, page, target)
    return ChunksResponse(chunks=[DocumentChunkModel.from_domain(c) for c in chunks])


@router.put(
    "/{store_id}/chunks/{document_id}/{chunk_id}",
    response_model=ChunkMutationResponse,
    responses={**ERROR_RESPONSES, 501: {"model": ErrorResponse}},
)
async def update_chunk(
    store_id: str,
    document_id: str,
    chunk_id: str,
    request: UpdateChunkRequest,
    target: str = Query(ProviderSource.FLOWISE.value),
    service: KnowledgeBaseService = Depends(get_service),
) -> ChunkMutationResponse:
    """Replace the content and metadata of one stored chunk."""
    result = await service.update_chunk(
        store_id, document_id, chunk_id, request.content or "", request.metadata, target
    )
    return ChunkMutationResponse(result=result or {})


@router.delete(
    "/{store_id}/chunks/{document_id}/{chunk_id}",
    response_model=ChunkMutationResponse,
    responses={**ERROR_RESPONSES, 501: {"model": ErrorResponse}},
)
async def delete_chunk(
    store_id: str,
    document_id: str,
    chunk_id: str,
    target: str = Query(ProviderSource.FLOWISE.value),
    service: KnowledgeBaseService = Depends(get_service),
) -> ChunkMutationResponse:
    """Delete one stored chunk."""
    result = await service.delete_chunk(store_id, document_id, chunk_id, target)
    return ChunkMutationResponse(result=result or {})

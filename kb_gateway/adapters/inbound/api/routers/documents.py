"""Document search, ingestion and deletion endpoints."""

import logging

from fastapi import APIRouter, Depends, Query

from .....config.settings import settings
from .....core.domain.exceptions import EmptyQueryError, MissingParameterError
from .....core.services import KnowledgeBaseService
from ..deps import get_service, parse_targets
from ..models import (
    AddDocumentRequest,
    AddDocumentResponse,
    DeleteDocumentResponse,
    DeleteResult,
    ErrorResponse,
    SearchResponse,
    SearchResultModel,
    UpsertOutcomeModel,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


@router.get("", response_model=SearchResponse, responses=ERROR_RESPONSES)
async def search_documents(
    query: str | None = Query(None, description="Free-text search query"),
    store_id: str | None = Query(None, alias="storeId"),
    target: list[str] | None = Query(None, description="Provider(s) to search"),
    service: KnowledgeBaseService = Depends(get_service),
) -> SearchResponse:
    """Search one store, or every store of the selected providers.

    Providers that fail are skipped; the response holds whatever the others
    returned.
    """
    if not query or not query.strip():
        raise EmptyQueryError("Query parameter is required")

    results = await service.search(query, targets=parse_targets(target), store_id=store_id)
    return SearchResponse(results=[SearchResultModel.from_domain(r) for r in results])


@router.post("", response_model=AddDocumentResponse, responses=ERROR_RESPONSES)
async def add_document(
    request: AddDocumentRequest,
    service: KnowledgeBaseService = Depends(get_service),
) -> AddDocumentResponse:
    """Add a document to one store, or to every store of the selected providers."""
    if not request.content:
        raise MissingParameterError("Content is required")

    outcomes = await service.add_document(
        request.content,
        request.metadata or {},
        targets=parse_targets(request.targets),
        store_id=request.store_id,
    )
    failed = sum(1 for outcome in outcomes if not outcome.ok)
    if failed:
        logger.warning("Document ingestion failed for %d of %d store(s)", failed, len(outcomes))
    return AddDocumentResponse(result=[UpsertOutcomeModel.from_domain(o) for o in outcomes])


@router.delete(
    "",
    response_model=DeleteDocumentResponse,
    responses={**ERROR_RESPONSES, 404: {"model": ErrorResponse, "description": "Not found"}},
)
async def delete_document(
    document_id: str | None = Query(None, alias="documentId"),
    store_id: str | None = Query(None, alias="storeId"),
    target: str | None = Query(None, description="Provider holding the document"),
    service: KnowledgeBaseService = Depends(get_service),
) -> DeleteDocumentResponse:
    """Delete a document from a single provider store."""
    if not document_id or not store_id:
        raise MissingParameterError("Both documentId and storeId are required")

    deleted = await service.delete_document(
        document_id,
        [target or settings.default_delete_target],
        store_id=store_id,
    )
    return DeleteDocumentResponse(result=DeleteResult(success=deleted))

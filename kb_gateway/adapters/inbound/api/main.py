"""FastAPI application for the Knowledge Base Gateway."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....config.logging import setup_logging
from ....config.settings import settings
from ....core.domain.exceptions import KnowledgeBaseError
from ...common.exception_handler import (
    error_response_body,
    get_http_status_code,
    log_exception,
)
from .routers import documents, health, stores

setup_logging(settings.log_level, json_format=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Knowledge Base Gateway starting up...")
    logger.info("API docs available at /docs")
    logger.info("Debug mode: %s", "ENABLED" if settings.debug else "DISABLED")
    yield
    logger.info("Knowledge Base Gateway shutting down...")


# Create FastAPI app
app = FastAPI(
    title="Knowledge Base Gateway",
    description=(
        "Unified search, ingestion and store management over Flowise, "
        "Supabase pgvector and Pinecone knowledge bases."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(documents.router)
app.include_router(stores.router)


# =============================================================================
# Global Exception Handlers
# =============================================================================


def _request_context(request: Request) -> dict[str, str]:
    return {"path": str(request.url.path), "method": request.method}


@app.exception_handler(KnowledgeBaseError)
async def knowledge_base_error_handler(request: Request, exc: KnowledgeBaseError) -> JSONResponse:
    """Handle all KnowledgeBaseError exceptions.

    Client errors are logged at WARNING, everything else at ERROR with the
    full structured payload.
    """
    status_code = get_http_status_code(exc)
    level = logging.WARNING if status_code < 500 else logging.ERROR
    log_exception(exc, log=logger, level=level, extra_context=_request_context(request))

    return JSONResponse(
        status_code=status_code,
        content=error_response_body(exc, include_details=settings.debug),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed requests (bad JSON, wrong types) as 400."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid request")
    logger.warning("Invalid request to %s: %s", request.url.path, errors)

    return JSONResponse(
        status_code=400,
        content={
            "error": f"{location}: {message}" if location else message,
            "code": "KB_VAL_001",
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all unhandled exceptions as 500."""
    log_exception(exc, log=logger, extra_context=_request_context(request))

    return JSONResponse(
        status_code=500,
        content=error_response_body(exc, include_details=settings.debug),
    )


# Export for uvicorn
__all__ = ["app"]

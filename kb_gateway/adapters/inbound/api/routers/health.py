"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..... import __version__
from .....composition.container import enabled_sources
from .....config.settings import settings
from .....core.domain.exceptions import InvalidConfigurationError
from .....core.services import KnowledgeBaseService
from ..deps import get_service
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check.

    Reads the provider selection from settings only; no client is built and
    no provider is contacted, so a misconfigured provider cannot fail it.
    """
    try:
        providers = {source.value: "configured" for source in enabled_sources(settings)}
    except InvalidConfigurationError as e:
        providers = {"config": f"error: {e.message}"}
    return HealthResponse(status="healthy", version=__version__, providers=providers)


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(
    service: KnowledgeBaseService = Depends(get_service),
) -> HealthResponse:
    """Readiness check.

    Lists the stores of every configured provider and reports the count, or
    the error for providers that cannot be reached.
    """
    providers: dict[str, str] = {}
    for source in service.configured_providers:
        try:
            stores = await service.list_stores(source)
            providers[source.value] = f"connected ({len(stores)} stores)"
        except Exception as e:
            providers[source.value] = f"error: {str(e)}"

    healthy = all(status.startswith("connected") for status in providers.values())
    return HealthResponse(
        status="ready" if healthy else "degraded",
        version=__version__,
        providers=providers,
    )

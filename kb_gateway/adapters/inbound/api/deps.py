"""FastAPI dependency injection for the gateway."""

from ....composition.container import get_knowledge_base_service
from ....core.domain import ProviderSource
from ....core.services import KnowledgeBaseService


def get_service() -> KnowledgeBaseService:
    """Return the process-wide KnowledgeBaseService."""
    return get_knowledge_base_service()


def parse_targets(values: list[str] | None) -> list[ProviderSource] | None:
    """Parse repeated or comma-separated provider names.

    Returns None when no target was given, meaning every configured provider.

    Raises:
        InvalidParameterError: If a name is not a known provider.
    """
    if not values:
        return None
    names = [name for value in values for name in value.split(",") if name.strip()]
    if not names:
        return None
    return ProviderSource.ordered({ProviderSource.parse(name) for name in names})

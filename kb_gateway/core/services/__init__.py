"""Application services."""

from .knowledge_base_service import KnowledgeBaseService, sort_by_similarity

__all__ = ["KnowledgeBaseService", "sort_by_similarity"]

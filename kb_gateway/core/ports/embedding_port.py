"""Embedding Port Interface."""

from abc import ABC, abstractmethod


class EmbeddingPort(ABC):
    """Abstract interface for embedding providers."""

    @abstractmethod
    def embed_query(self, text: str) -> list[float]: ...

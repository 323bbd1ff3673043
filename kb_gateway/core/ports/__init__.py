"""Ports implemented by outbound adapters."""

from .embedding_port import EmbeddingPort
from .provider_port import ProviderClientPort

__all__ = ["EmbeddingPort", "ProviderClientPort"]

"""Embedding providers used by the vector-backed stores."""

from .gemini_adapter import GeminiEmbeddingAdapter
from .openai_adapter import OpenAIEmbeddingAdapter

__all__ = ["GeminiEmbeddingAdapter", "OpenAIEmbeddingAdapter"]

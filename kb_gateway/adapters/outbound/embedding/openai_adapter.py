"""OpenAI embeddings for the vector-backed providers."""

import logging
from typing import Any

from ....core.domain.exceptions import EmbeddingAPIError, MissingAPIKeyError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "text-embedding-ada-002"


class OpenAIEmbeddingAdapter(EmbeddingPort):
    """Embedding function backed by the OpenAI embeddings endpoint.

    Uses the same model the chat application stored its vectors with, so
    query vectors match the dimension of the Supabase and Pinecone indexes.
    """

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL, client: Any = None):
        if client is None and not api_key:
            raise MissingAPIKeyError("Missing OpenAI API key for embeddings")
        self.api_key = api_key
        self.model_name = model_name
        self._client = client

    def _get_client(self):
        """Get or create the OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(api_key=self.api_key)
        return self._client

    def embed_query(self, text: str) -> list[float]:
        client = self._get_client()
        try:
            response = client.embeddings.create(model=self.model_name, input=[text])
        except Exception as e:
            raise EmbeddingAPIError(
                "OpenAI embedding request failed",
                cause=e,
                context={"model": self.model_name},
            ) from e

        if not response.data:
            raise EmbeddingAPIError(
                "OpenAI returned no embedding", context={"model": self.model_name}
            )
        return list(response.data[0].embedding)

"""Gemini embeddings for the vector-backed providers."""

import logging
import time
from typing import Any

from ....core.domain.exceptions import EmbeddingAPIError, MissingAPIKeyError
from ....core.ports.embedding_port import EmbeddingPort

logger = logging.getLogger(__name__)

# Constants
MAX_EMBEDDING_RETRIES = 3
DEFAULT_MODEL = "gemini-embedding-001"


class GeminiEmbeddingAdapter(EmbeddingPort):
    """Embedding function using the Google Gemini API (google.genai SDK)."""

    def __init__(self, api_key: str, model_name: str = DEFAULT_MODEL, client: Any = None):
        if client is None and not api_key:
            raise MissingAPIKeyError("Missing Google API key for embeddings")
        self.api_key = api_key
        self.model_name = model_name
        self._client = client

    def _get_client(self):
        """Get or create the genai client."""
        if self._client is None:
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def embed_query(self, text: str) -> list[float]:
        client = self._get_client()

        for attempt in range(MAX_EMBEDDING_RETRIES):
            try:
                result = client.models.embed_content(
                    model=self.model_name,
                    contents=[text],
                    config={"task_type": "RETRIEVAL_QUERY"},
                )
                break
            except Exception as e:
                if attempt == MAX_EMBEDDING_RETRIES - 1:
                    logger.error("Failed to embed query after %d attempts: %s", attempt + 1, e)
                    raise EmbeddingAPIError(
                        "Gemini embedding request failed",
                        cause=e,
                        context={"model": self.model_name, "attempts": attempt + 1},
                    ) from e
                time.sleep(2**attempt)

        embeddings = getattr(result, "embeddings", None)
        if not embeddings:
            raise EmbeddingAPIError(
                "Gemini returned no embedding", context={"model": self.model_name}
            )
        return list(embeddings[0].values)

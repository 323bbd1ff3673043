"""Unit tests for the embedding adapters."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from kb_gateway.adapters.outbound.embedding import GeminiEmbeddingAdapter, OpenAIEmbeddingAdapter
from kb_gateway.core.domain.exceptions import EmbeddingAPIError, MissingAPIKeyError

pytestmark = pytest.mark.unit


class TestOpenAIEmbeddingAdapter:
    def test_requires_key(self):
        with pytest.raises(MissingAPIKeyError):
            OpenAIEmbeddingAdapter(api_key="")

    def test_embed_query(self):
        client = MagicMock()
        client.embeddings.create.return_value = SimpleNamespace(
            data=[SimpleNamespace(embedding=[0.1, 0.2])]
        )
        adapter = OpenAIEmbeddingAdapter(api_key="sk-test", client=client)

        assert adapter.embed_query("refund") == [0.1, 0.2]
        client.embeddings.create.assert_called_once_with(
            model="text-embedding-ada-002", input=["refund"]
        )

    def test_api_failure(self):
        client = MagicMock()
        client.embeddings.create.side_effect = RuntimeError("429")
        adapter = OpenAIEmbeddingAdapter(api_key="sk-test", client=client)

        with pytest.raises(EmbeddingAPIError) as exc_info:
            adapter.embed_query("refund")
        assert exc_info.value.extra_context["model"] == "text-embedding-ada-002"


class TestGeminiEmbeddingAdapter:
    def test_embed_query(self):
        client = MagicMock()
        client.models.embed_content.return_value = SimpleNamespace(
            embeddings=[SimpleNamespace(values=[0.3, 0.4])]
        )
        adapter = GeminiEmbeddingAdapter(api_key="g-key", client=client)

        assert adapter.embed_query("refund") == [0.3, 0.4]

    @patch("kb_gateway.adapters.outbound.embedding.gemini_adapter.time.sleep")
    def test_retries_then_fails(self, mock_sleep):
        client = MagicMock()
        client.models.embed_content.side_effect = RuntimeError("unavailable")
        adapter = GeminiEmbeddingAdapter(api_key="g-key", client=client)

        with pytest.raises(EmbeddingAPIError) as exc_info:
            adapter.embed_query("refund")

        assert client.models.embed_content.call_count == 3
        assert mock_sleep.call_count == 2
        assert exc_info.value.extra_context["attempts"] == 3

    @patch("kb_gateway.adapters.outbound.embedding.gemini_adapter.time.sleep")
    def test_recovers_after_transient_error(self, mock_sleep):
        client = MagicMock()
        client.models.embed_content.side_effect = [
            RuntimeError("unavailable"),
            SimpleNamespace(embeddings=[SimpleNamespace(values=[1.0])]),
        ]
        adapter = GeminiEmbeddingAdapter(api_key="g-key", client=client)

        assert adapter.embed_query("refund") == [1.0]
        mock_sleep.assert_called_once_with(1)

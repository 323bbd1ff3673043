"""Unit tests for the Flowise document-store client."""

from unittest.mock import MagicMock

import pytest
import requests

from kb_gateway.adapters.outbound.providers.flowise_adapter import (
    FlowiseAdapter,
    build_upsert_payload,
    normalize_doc,
    normalize_store,
)
from kb_gateway.core.domain import Document, DocumentStore, ProviderSource
from kb_gateway.core.domain.exceptions import (
    DocumentNotFoundError,
    MissingAPIKeyError,
    MissingParameterError,
    ProviderUnavailableError,
    StoreNotFoundError,
)

pytestmark = pytest.mark.unit


def _response(status=200, payload=None, content=b"{}"):
    response = MagicMock()
    response.status_code = status
    response.content = content
    response.json.return_value = payload if payload is not None else {}
    if status >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status} error")
    return response


@pytest.fixture
def adapter():
    client = FlowiseAdapter(
        api_url="https://flowise.example.com/api/v1/",
        api_key="fw-key",
        openai_api_key="sk-test",
    )
    client.session = MagicMock()
    return client


class TestUpsertPayload:
    """The upsert payload shape is fixed by existing Flowise deployments."""

    def test_exact_shape(self):
        payload = build_upsert_payload(
            "Refunds within 30 days.",
            {"title": "Refunds", "description": "Policy"},
            "sk-test",
        )
        assert payload == {
            "metadata": {"title": "Refunds", "description": "Policy"},
            "docStore": {"name": "Refunds", "description": "Policy"},
            "loader": {"name": "text", "config": {"text": "Refunds within 30 days."}},
            "splitter": {"name": "recursiveCharacterTextSplitter", "config": {}},
            "embedding": {"name": "openAIEmbeddings", "config": {"openAIApiKey": "sk-test"}},
        }

    def test_defaults_without_title(self):
        payload = build_upsert_payload("text", {}, "sk-test")
        assert payload["docStore"] == {"name": "LobeChat Document", "description": ""}


class TestNormalization:
    def test_normalize_store(self):
        store = normalize_store(
            {
                "id": "fs-1",
                "name": "Handbook",
                "status": "UPSERTED",
                "createdDate": "2024-01-01T00:00:00Z",
            }
        )
        assert store.id == "fs-1"
        assert store.name == "Handbook"
        assert store.description == ""
        assert store.status == "UPSERTED"
        assert store.created_at == "2024-01-01T00:00:00Z"
        assert store.provider is ProviderSource.FLOWISE

    def test_normalize_doc_uses_placeholder(self):
        store = DocumentStore(id="fs-1", name="Handbook")
        result = normalize_doc({"pageContent": "hello", "metadata": {"a": 1}}, store, 0.0)
        assert result.content == "hello"
        assert result.metadata == {"a": 1}
        assert result.similarity == 0.0
        assert result.store_name == "Handbook"
        assert result.provider is ProviderSource.FLOWISE


class TestFlowiseAdapter:
    """Tests for the HTTP client behaviour."""

    def test_requires_credentials(self):
        with pytest.raises(MissingAPIKeyError):
            FlowiseAdapter(api_url="", api_key="key")

    def test_sets_bearer_header(self):
        client = FlowiseAdapter(api_url="https://f.example.com", api_key="fw-key")
        assert client.session.headers["Authorization"] == "Bearer fw-key"
        client.close()

    def test_list_stores(self, adapter):
        adapter.session.request.return_value = _response(
            payload=[{"id": "fs-1", "name": "One"}, {"id": "fs-2", "name": "Two"}]
        )
        stores = adapter.list_stores()

        assert [s.id for s in stores] == ["fs-1", "fs-2"]
        adapter.session.request.assert_called_once_with(
            "GET",
            "https://flowise.example.com/api/v1/document-store/store",
            json=None,
            timeout=30,
        )

    def test_get_store_404(self, adapter):
        adapter.session.request.return_value = _response(status=404)
        with pytest.raises(StoreNotFoundError):
            adapter.get_store("missing")

    def test_query_posts_store_and_query(self, adapter):
        adapter.session.request.return_value = _response(
            payload={"docs": [{"pageContent": "a"}, {"pageContent": "b"}]}
        )
        docs = adapter.query("fs-1", "refund")

        assert len(docs) == 2
        args, kwargs = adapter.session.request.call_args
        assert args == ("POST", "https://flowise.example.com/api/v1/document-store/vectorstore/query")
        assert kwargs["json"] == {"storeId": "fs-1", "query": "refund"}

    def test_upsert_sends_payload(self, adapter):
        adapter.session.request.return_value = _response(payload={"docId": "loader-9"})
        result = adapter.upsert("fs-1", Document(content="text", metadata={"title": "T"}))

        assert result.ids == ["loader-9"]
        args, kwargs = adapter.session.request.call_args
        assert args[1].endswith("/document-store/upsert/fs-1")
        assert kwargs["json"]["loader"]["config"]["text"] == "text"
        assert kwargs["json"]["embedding"]["config"]["openAIApiKey"] == "sk-test"

    def test_delete_targets_loader(self, adapter):
        adapter.session.request.return_value = _response(content=b"")
        assert adapter.delete_by_id("fs-1", "loader-1") is True
        args, _ = adapter.session.request.call_args
        assert args == ("DELETE", "https://flowise.example.com/api/v1/document-store/loader/fs-1/loader-1")

    def test_delete_404_is_document_not_found(self, adapter):
        adapter.session.request.return_value = _response(status=404)
        with pytest.raises(DocumentNotFoundError):
            adapter.delete_by_id("fs-1", "ghost")

    def test_delete_requires_store(self, adapter):
        with pytest.raises(MissingParameterError):
            adapter.delete_by_id(None, "loader-1")

    def test_server_error_is_unavailable(self, adapter):
        adapter.session.request.return_value = _response(status=502)
        with pytest.raises(ProviderUnavailableError) as exc_info:
            adapter.list_stores()
        assert exc_info.value.extra_context["status"] == 502

    def test_connection_error_is_unavailable(self, adapter):
        adapter.session.request.side_effect = requests.ConnectionError("refused")
        with pytest.raises(ProviderUnavailableError) as exc_info:
            adapter.list_stores()
        assert isinstance(exc_info.value.cause, requests.ConnectionError)

    def test_get_chunks_defaults_to_all_loaders(self, adapter):
        adapter.session.request.return_value = _response(
            payload={"chunks": [{"id": "c1", "pageContent": "p", "docId": "loader-1"}]}
        )
        chunks = adapter.get_chunks("fs-1")

        assert chunks[0].id == "c1"
        assert chunks[0].document_id == "loader-1"
        args, _ = adapter.session.request.call_args
        assert args[1].endswith("/document-store/chunks/fs-1/all/1")

    def test_update_chunk(self, adapter):
        adapter.session.request.return_value = _response(payload={"ok": True})
        adapter.update_chunk("fs-1", "loader-1", "c1", "new text", {"k": "v"})

        args, kwargs = adapter.session.request.call_args
        assert args[0] == "PUT"
        assert kwargs["json"] == {"pageContent": "new text", "metadata": {"k": "v"}}

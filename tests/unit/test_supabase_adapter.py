"""Unit tests for the Supabase pgvector client."""

from unittest.mock import MagicMock

import pytest

from kb_gateway.adapters.outbound.providers.supabase_adapter import SupabaseAdapter, normalize_row
from kb_gateway.core.domain import Document, DocumentStore, ProviderSource
from kb_gateway.core.domain.exceptions import (
    DocumentNotFoundError,
    InvalidConfigurationError,
    MissingAPIKeyError,
    MissingParameterError,
    ProviderUnavailableError,
    StoreNotFoundError,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def adapter(client):
    return SupabaseAdapter(
        url="https://project.supabase.co",
        key="service-key",
        tables=["documents", "faq"],
        match_threshold=0.78,
        match_count=5,
        client=client,
    )


class TestSupabaseAdapter:
    def test_requires_credentials(self):
        with pytest.raises(MissingAPIKeyError):
            SupabaseAdapter(url="", key="", tables=["documents"])

    def test_requires_tables(self, client):
        with pytest.raises(InvalidConfigurationError):
            SupabaseAdapter(url="u", key="k", tables=[], client=client)

    def test_tables_are_stores(self, adapter):
        stores = adapter.list_stores()
        assert [s.id for s in stores] == ["documents", "faq"]
        assert all(s.provider is ProviderSource.SUPABASE for s in stores)

    def test_unknown_table(self, adapter):
        with pytest.raises(StoreNotFoundError):
            adapter.get_store("secrets")

    def test_query_calls_match_function(self, adapter, client, mock_embedding):
        client.rpc.return_value.execute.return_value.data = [
            {"id": 1, "content": "row", "metadata": {}, "similarity": 0.8}
        ]
        rows = adapter.query("faq", "refund", embedding=mock_embedding)

        assert len(rows) == 1
        client.rpc.assert_called_once_with(
            "match_faq",
            {"query_embedding": mock_embedding, "match_threshold": 0.78, "match_count": 5},
        )

    def test_query_requires_embedding(self, adapter):
        with pytest.raises(MissingParameterError):
            adapter.query("faq", "refund")

    def test_query_failure_is_unavailable(self, adapter, client, mock_embedding):
        client.rpc.return_value.execute.side_effect = RuntimeError("connection reset")
        with pytest.raises(ProviderUnavailableError):
            adapter.query("documents", "refund", embedding=mock_embedding)

    def test_upsert_inserts_row(self, adapter, client, mock_embedding):
        client.table.return_value.insert.return_value.execute.return_value.data = [{"id": 42}]
        result = adapter.upsert(
            "documents", Document(content="text", metadata={"a": 1}), embedding=mock_embedding
        )

        assert result.ids == ["42"]
        client.table.assert_called_with("documents")
        client.table.return_value.insert.assert_called_once_with(
            {"content": "text", "metadata": {"a": 1}, "embedding": mock_embedding}
        )

    def test_delete_missing_row(self, adapter, client):
        client.table.return_value.delete.return_value.eq.return_value.execute.return_value.data = []
        with pytest.raises(DocumentNotFoundError):
            adapter.delete_by_id("documents", "7")

    def test_delete_defaults_to_first_table(self, adapter, client):
        client.table.return_value.delete.return_value.eq.return_value.execute.return_value.data = [
            {"id": 7}
        ]
        assert adapter.delete_by_id(None, "7") is True
        client.table.assert_called_with("documents")
        client.table.return_value.delete.return_value.eq.assert_called_once_with("id", "7")


class TestNormalizeRow:
    def test_maps_fields(self):
        store = DocumentStore(id="documents", name="documents")
        result = normalize_row(
            {"id": 3, "content": "text", "metadata": {"source": "faq"}, "similarity": 0.87},
            store,
        )
        assert result.content == "text"
        assert result.metadata == {"source": "faq", "id": 3}
        assert result.similarity == 0.87
        assert result.store_id == "documents"
        assert result.provider is ProviderSource.SUPABASE

    def test_missing_similarity(self):
        result = normalize_row({"content": "text"}, DocumentStore(id="t", name=""))
        assert result.similarity is None
        assert result.store_name is None

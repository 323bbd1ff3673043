"""Provider clients, one per vector/document-store backend."""

from .flowise_adapter import FlowiseAdapter
from .pinecone_adapter import PineconeAdapter
from .supabase_adapter import SupabaseAdapter

__all__ = ["FlowiseAdapter", "PineconeAdapter", "SupabaseAdapter"]

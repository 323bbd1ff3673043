"""Outbound adapters: provider clients and embedding providers."""

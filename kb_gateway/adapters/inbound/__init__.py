"""Inbound adapters: HTTP API and CLI."""

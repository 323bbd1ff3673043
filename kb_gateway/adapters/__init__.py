"""Adapters connecting the core to HTTP, CLI and external providers."""

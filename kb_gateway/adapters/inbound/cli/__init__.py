"""Command-line interface for the Knowledge Base Gateway."""

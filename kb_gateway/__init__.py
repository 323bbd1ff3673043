"""Knowledge Base Gateway: multi-provider document search and ingestion."""

__version__ = "0.1.0"

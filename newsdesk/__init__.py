"""News ingestion and deduplication backend."""

__version__ = "0.1.0"

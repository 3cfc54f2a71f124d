"""Ingestion checkpoint model."""

from datetime import datetime

from pydantic import Field

from .base import DBModel


class IngestionCheckpoint(DBModel):
    """Timestamp of the last fully successful ingestion run."""

    id: int = Field(1, description="Singleton key")
    last_run_at: datetime = Field(..., description="When the last successful run finished")

"""Ingestion pipeline orchestration."""

from .orchestrator import CategoryStage, IngestionOrchestrator, IngestionResult, RunStatus, whole_days

__all__ = ["CategoryStage", "IngestionOrchestrator", "IngestionResult", "RunStatus", "whole_days"]

"""Clip ingest: probing, extraction, moderation and tagging in one pass."""
from .service import IngestReport, IngestService

__all__ = ["IngestReport", "IngestService"]

"""
Voice Journal Ingestion

Turns voice notes into journal entries and maintains them afterwards
(transcript corrections, deletion, embedding backfill).
"""

from .ingestor import JournalIngestor, VoiceNote, IngestResult, backfill_embeddings

__all__ = [
    "JournalIngestor",
    "VoiceNote",
    "IngestResult",
    "backfill_embeddings",
]

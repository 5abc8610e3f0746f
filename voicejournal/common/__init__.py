"""
Voice Journal Common Module

Shared infrastructure for ingestion, retrieval and the conversation handler.
"""

from .config import VoiceJournalConfig, load_config
from .embedding_service import EmbeddingService, EmbeddingCapability, initialize_embeddings
from .journal_store import JournalRepository, SQLiteJournalRepository
from .blob_store import BlobStore, LocalBlobStore, S3BlobStore
from .llm_client import LLMClient
from .transcription import Transcriber

__all__ = [
    "VoiceJournalConfig",
    "load_config",
    "EmbeddingService",
    "EmbeddingCapability",
    "initialize_embeddings",
    "JournalRepository",
    "SQLiteJournalRepository",
    "BlobStore",
    "LocalBlobStore",
    "S3BlobStore",
    "LLMClient",
    "Transcriber",
]

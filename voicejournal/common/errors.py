"""
Error taxonomy shared across the journal pipeline.

Service errors are transient and per-request. ClassificationParseError never
leaves the classifier. EmbeddingDimensionError signals corrupted corpus data.
"""


class VoiceJournalError(Exception):
    """Base class for all voice journal errors."""


class ServiceError(VoiceJournalError):
    """An external service (transcription, embedding, completion) failed."""


class TranscriptionError(ServiceError):
    """Audio could not be transcribed."""


class EmbeddingError(ServiceError):
    """Text could not be embedded."""


class CompletionError(ServiceError):
    """The completion service failed or is not configured."""


class ClassificationParseError(VoiceJournalError):
    """The classifier reply could not be turned into a classification."""


class NotInitializedError(VoiceJournalError):
    """The embedding model is not ready; semantic search is unavailable."""


class EmbeddingDimensionError(VoiceJournalError):
    """Two embeddings in the same corpus have different lengths."""

    def __init__(self, expected: int, actual: int, entry_id=None):
        self.expected = expected
        self.actual = actual
        self.entry_id = entry_id
        where = f" (entry {entry_id})" if entry_id is not None else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )


class BlobStoreError(ServiceError):
    """Audio could not be archived, fetched or removed."""

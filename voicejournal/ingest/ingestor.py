"""
Journal Ingestor

Voice note -> archived audio -> transcript -> embedding -> stored entry.

Only the transcript is required: archiving and embedding are best-effort, so
a flaky blob store or embedding model never loses a voice note. Entries
stored without an embedding are picked up later by backfill_embeddings().
"""

import logging
from dataclasses import dataclass
from datetime import timezone, tzinfo
from typing import Optional

from ..common.blob_store import BlobStore
from ..common.embedding_service import EmbeddingCapability, NOT_READY
from ..common.errors import (
    BlobStoreError,
    EmbeddingDimensionError,
    EmbeddingError,
    NotInitializedError,
)
from ..common.journal_store import JournalRepository
from ..common.schemas import JournalEntry, blob_key_for
from ..common.transcription import Transcriber

logger = logging.getLogger("voicejournal.ingest.ingestor")

EMBEDDING_FAILURES = (EmbeddingError, NotInitializedError, EmbeddingDimensionError)


@dataclass
class VoiceNote:
    """An inbound voice message"""
    source_message_id: str
    audio: bytes
    created_at: float  # timestamp of the originating message
    duration_seconds: int = 0
    voice_file_id: Optional[str] = None


@dataclass
class IngestResult:
    """Outcome of ingest_voice()"""
    entry_id: int
    created: bool  # False when the message was already stored
    transcript: str
    has_embedding: bool = False
    blob_ref: Optional[str] = None


class JournalIngestor:
    """
    Writes voice notes into the journal.

    Args:
        repository: Journal storage
        transcriber: Speech-to-text service
        embeddings: Capability from initialize_embeddings()
        blob_store: Audio archive (optional)
        tz: Timezone used in archive keys
    """

    def __init__(
        self,
        repository: JournalRepository,
        transcriber: Transcriber,
        embeddings: EmbeddingCapability = NOT_READY,
        blob_store: Optional[BlobStore] = None,
        tz: tzinfo = timezone.utc,
    ):
        self._repo = repository
        self._transcriber = transcriber
        self._embeddings = embeddings
        self._blobs = blob_store
        self._tz = tz

    async def ingest_voice(self, note: VoiceNote) -> IngestResult:
        """
        Store a voice note.

        Raises:
            TranscriptionError: transcription failed; nothing is stored
        """
        message_id = str(note.source_message_id)
        existing = await self._repo.find_by_source_message_id(message_id)
        if existing is not None:
            logger.info("Voice message %s already ingested as entry %s", message_id, existing.id)
            return IngestResult(
                entry_id=existing.id,
                created=False,
                transcript=existing.transcript,
                has_embedding=existing.has_embedding,
                blob_ref=existing.blob_ref,
            )

        blob_ref = await self._archive(note, message_id)

        logger.info("Transcribing voice message %s...", message_id)
        transcript = await self._transcriber.transcribe(note.audio)

        embedding = await self._try_embed(transcript, f"message {message_id}")

        entry = JournalEntry(
            source_message_id=message_id,
            created_at=note.created_at,
            duration_seconds=note.duration_seconds,
            transcript=transcript,
            embedding=embedding,
            blob_ref=blob_ref,
            voice_file_id=note.voice_file_id,
        )
        entry_id = await self._repo.insert(entry)
        logger.info(
            "Saved voice message %s as entry %s (%ds, embedding=%s)",
            message_id, entry_id, note.duration_seconds, embedding is not None,
        )
        return IngestResult(
            entry_id=entry_id,
            created=True,
            transcript=transcript,
            has_embedding=embedding is not None,
            blob_ref=blob_ref,
        )

    async def update_transcript(self, entry_id: int, text: str) -> bool:
        """
        Replace an entry's transcript and refresh its embedding.

        Returns:
            False when the entry does not exist

        Raises:
            ValueError: the new transcript is empty
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Transcript cannot be empty")

        if not await self._repo.update_transcript(entry_id, text):
            return False

        embedding = await self._try_embed(text, f"entry {entry_id}")
        if embedding is not None:
            await self._repo.update_embedding(entry_id, embedding)
        else:
            # The old vector describes text the entry no longer has
            await self._repo.clear_embedding(entry_id)
        logger.info("Updated transcript for entry %s", entry_id)
        return True

    async def delete_entry(self, entry_id: int) -> bool:
        """Remove an entry and then its archived audio. False when absent."""
        removed = await self._repo.delete(entry_id)
        if removed is None:
            return False

        if removed.blob_ref and self._blobs is not None:
            try:
                await self._blobs.delete(removed.blob_ref)
            except BlobStoreError as e:
                logger.error("Entry %s deleted but its audio %s was not: %s", entry_id, removed.blob_ref, e)
        logger.info("Deleted entry %s", entry_id)
        return True

    async def _archive(self, note: VoiceNote, message_id: str) -> Optional[str]:
        if self._blobs is None:
            return None
        key = blob_key_for(note.created_at, message_id, self._tz)
        try:
            return await self._blobs.put(key, note.audio)
        except BlobStoreError as e:
            logger.warning("Failed to archive audio for message %s: %s", message_id, e)
            return None

    async def _try_embed(self, text: str, label: str):
        try:
            return await self._embeddings.embed(text)
        except EMBEDDING_FAILURES as e:
            logger.warning("Embedding skipped for %s: %s", label, e)
            return None


async def backfill_embeddings(
    repository: JournalRepository,
    embeddings: EmbeddingCapability,
    dry_run: bool = False,
) -> int:
    """
    Compute embeddings for entries stored without one.

    Only ever sets a missing embedding, so it is safe to run while queries
    are being served. Per-entry failures are logged and skipped.

    Returns:
        Number of entries embedded (or that would be, with dry_run)

    Raises:
        NotInitializedError: the embedding capability is not ready
    """
    if not embeddings.is_ready:
        raise NotInitializedError(embeddings.reason or "Embedding model not initialized")

    missing = await repository.list_missing_embeddings()
    logger.info("Backfill: %d entries without embeddings", len(missing))
    if dry_run:
        return len(missing)

    done = 0
    for entry in missing:
        try:
            vector = await embeddings.embed(entry.transcript)
        except (EmbeddingError, EmbeddingDimensionError) as e:
            logger.warning("Backfill failed for entry %s: %s", entry.id, e)
            continue
        if await repository.update_embedding(entry.id, vector, only_if_missing=True):
            done += 1
    logger.info("Backfill complete: %d/%d entries embedded", done, len(missing))
    return done

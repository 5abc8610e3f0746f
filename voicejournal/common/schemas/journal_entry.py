"""
Journal Entry Schema

One transcribed voice note plus its metadata.
created_at comes from the originating message, never from processing time.
The embedding is optional: an entry is stored as soon as its transcript exists
and the vector can be backfilled later.
"""

from datetime import datetime, tzinfo
from typing import List, Optional

import numpy as np
from pydantic import BaseModel, Field, field_validator


class JournalEntry(BaseModel):
    """A stored voice note"""
    id: Optional[int] = None  # assigned by storage on insert
    source_message_id: str = Field(..., description="Inbound message id, unique per entry")
    created_at: float = Field(..., description="Unix seconds of the originating message")
    duration_seconds: int = Field(default=0, ge=0)
    transcript: str
    embedding: Optional[List[float]] = None
    blob_ref: Optional[str] = None
    voice_file_id: Optional[str] = None

    @field_validator("source_message_id", mode="before")
    @classmethod
    def _coerce_message_id(cls, v):
        # Telegram hands out integer ids
        return str(v) if v is not None else v

    @field_validator("transcript")
    @classmethod
    def _transcript_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("transcript must not be empty")
        return v

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None

    def created_at_local(self, tz: tzinfo) -> datetime:
        """Entry timestamp as an aware datetime in the given zone."""
        return datetime.fromtimestamp(self.created_at, tz=tz)


# ============================================================================
# Embedding codec (little-endian float32, same layout as the sqlite BLOB column)
# ============================================================================

def embedding_to_buffer(embedding: List[float]) -> bytes:
    """Pack an embedding vector into a float32 byte buffer."""
    return np.asarray(embedding, dtype="<f4").tobytes()


def buffer_to_embedding(buffer: bytes) -> List[float]:
    """Unpack a float32 byte buffer into an embedding vector."""
    if len(buffer) % 4 != 0:
        raise ValueError(f"Embedding buffer length {len(buffer)} is not a multiple of 4")
    return np.frombuffer(buffer, dtype="<f4").astype(float).tolist()

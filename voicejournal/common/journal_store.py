"""
Journal Store

Durable storage for journal entries.

JournalRepository is the interface the rest of the package depends on;
SQLiteJournalRepository implements it on the stdlib sqlite3 driver, running
each blocking call in a worker thread so the event loop never stalls.
Embeddings are stored as little-endian float32 BLOBs.
"""

import asyncio
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .schemas import JournalEntry, DateRange, embedding_to_buffer, buffer_to_embedding

logger = logging.getLogger("voicejournal.common.journal_store")


SCHEMA = """
CREATE TABLE IF NOT EXISTS transcripts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    message_id TEXT UNIQUE NOT NULL,
    voice_file_id TEXT,
    r2_key TEXT,
    transcript TEXT NOT NULL,
    created_at REAL NOT NULL,
    duration INTEGER NOT NULL DEFAULT 0,
    embedding BLOB
);
CREATE INDEX IF NOT EXISTS idx_transcripts_created_at ON transcripts(created_at);
"""


class JournalRepository(ABC):
    """Typed storage interface for journal entries."""

    @abstractmethod
    async def insert(self, entry: JournalEntry) -> int:
        """Store an entry; a repeated source_message_id returns the existing id."""

    @abstractmethod
    async def get(self, entry_id: int) -> Optional[JournalEntry]:
        pass

    @abstractmethod
    async def find_by_source_message_id(self, source_message_id: str) -> Optional[JournalEntry]:
        pass

    @abstractmethod
    async def list_by_created_at_range(self, date_range: DateRange) -> List[JournalEntry]:
        """Entries with created_at in [start, end), most recent first."""

    @abstractmethod
    async def list_all_embedded(self) -> List[JournalEntry]:
        pass

    @abstractmethod
    async def list_missing_embeddings(self) -> List[JournalEntry]:
        pass

    @abstractmethod
    async def update_transcript(self, entry_id: int, text: str) -> bool:
        """Returns False when the entry does not exist."""

    @abstractmethod
    async def update_embedding(self, entry_id: int, vector: List[float], only_if_missing: bool = False) -> bool:
        """With only_if_missing, an existing embedding is left untouched (returns False)."""

    @abstractmethod
    async def clear_embedding(self, entry_id: int) -> bool:
        """Drop an entry's embedding so backfill picks it up again."""

    @abstractmethod
    async def delete(self, entry_id: int) -> Optional[JournalEntry]:
        """Remove an entry and return what was removed (None if absent)."""

    @abstractmethod
    async def stats(self) -> Dict[str, Any]:
        """{"count": int, "total_duration": int}"""


class SQLiteJournalRepository(JournalRepository):
    """
    SQLite-backed journal repository.

    Args:
        db_path: Database file, or ":memory:" for an ephemeral store
    """

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        # One connection shared by worker threads; sqlite3 objects need serialized access
        self._conn_lock = threading.Lock()
        with self._conn_lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()

    def close(self) -> None:
        with self._conn_lock:
            self._conn.close()

    # ---------- sync helpers (run in worker threads) ----------

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        with self._conn_lock:
            return self._conn.execute(sql, params).fetchall()

    def _execute(self, sql: str, params: tuple = ()) -> int:
        with self._conn_lock:
            cursor = self._conn.execute(sql, params)
            self._conn.commit()
            return cursor.rowcount

    def _insert_sync(self, entry: JournalEntry) -> int:
        embedding = embedding_to_buffer(entry.embedding) if entry.embedding is not None else None
        with self._conn_lock:
            cursor = self._conn.execute(
                """
                INSERT OR IGNORE INTO transcripts
                    (message_id, voice_file_id, r2_key, transcript, created_at, duration, embedding)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.source_message_id,
                    entry.voice_file_id,
                    entry.blob_ref,
                    entry.transcript,
                    entry.created_at,
                    entry.duration_seconds,
                    embedding,
                ),
            )
            self._conn.commit()
            if cursor.rowcount == 1:
                return cursor.lastrowid
            row = self._conn.execute(
                "SELECT id FROM transcripts WHERE message_id = ?",
                (entry.source_message_id,),
            ).fetchone()
        logger.info("Message %s already stored as entry %s", entry.source_message_id, row["id"])
        return row["id"]

    def _delete_sync(self, entry_id: int) -> Optional[JournalEntry]:
        with self._conn_lock:
            row = self._conn.execute("SELECT * FROM transcripts WHERE id = ?", (entry_id,)).fetchone()
            if row is None:
                return None
            self._conn.execute("DELETE FROM transcripts WHERE id = ?", (entry_id,))
            self._conn.commit()
        return _row_to_entry(row)

    # ---------- JournalRepository ----------

    async def insert(self, entry: JournalEntry) -> int:
        return await asyncio.to_thread(self._insert_sync, entry)

    async def get(self, entry_id: int) -> Optional[JournalEntry]:
        rows = await asyncio.to_thread(self._query, "SELECT * FROM transcripts WHERE id = ?", (entry_id,))
        return _row_to_entry(rows[0]) if rows else None

    async def find_by_source_message_id(self, source_message_id: str) -> Optional[JournalEntry]:
        rows = await asyncio.to_thread(
            self._query,
            "SELECT * FROM transcripts WHERE message_id = ?",
            (str(source_message_id),),
        )
        return _row_to_entry(rows[0]) if rows else None

    async def list_by_created_at_range(self, date_range: DateRange) -> List[JournalEntry]:
        if date_range.end is None:
            sql = "SELECT * FROM transcripts WHERE created_at >= ? ORDER BY created_at DESC, id DESC"
            params = (date_range.start,)
        else:
            sql = (
                "SELECT * FROM transcripts WHERE created_at >= ? AND created_at < ? "
                "ORDER BY created_at DESC, id DESC"
            )
            params = (date_range.start, date_range.end)
        rows = await asyncio.to_thread(self._query, sql, params)
        return [_row_to_entry(r) for r in rows]

    async def list_all_embedded(self) -> List[JournalEntry]:
        rows = await asyncio.to_thread(
            self._query, "SELECT * FROM transcripts WHERE embedding IS NOT NULL ORDER BY id"
        )
        return [_row_to_entry(r) for r in rows]

    async def list_missing_embeddings(self) -> List[JournalEntry]:
        rows = await asyncio.to_thread(
            self._query, "SELECT * FROM transcripts WHERE embedding IS NULL ORDER BY id"
        )
        return [_row_to_entry(r) for r in rows]

    async def update_transcript(self, entry_id: int, text: str) -> bool:
        changed = await asyncio.to_thread(
            self._execute, "UPDATE transcripts SET transcript = ? WHERE id = ?", (text, entry_id)
        )
        return changed > 0

    async def update_embedding(self, entry_id: int, vector: List[float], only_if_missing: bool = False) -> bool:
        sql = "UPDATE transcripts SET embedding = ? WHERE id = ?"
        if only_if_missing:
            sql += " AND embedding IS NULL"
        changed = await asyncio.to_thread(
            self._execute,
            sql,
            (embedding_to_buffer(vector), entry_id),
        )
        return changed > 0

    async def clear_embedding(self, entry_id: int) -> bool:
        changed = await asyncio.to_thread(
            self._execute, "UPDATE transcripts SET embedding = NULL WHERE id = ?", (entry_id,)
        )
        return changed > 0

    async def delete(self, entry_id: int) -> Optional[JournalEntry]:
        return await asyncio.to_thread(self._delete_sync, entry_id)

    async def stats(self) -> Dict[str, Any]:
        rows = await asyncio.to_thread(
            self._query, "SELECT COUNT(*) AS count, SUM(duration) AS total_duration FROM transcripts"
        )
        row = rows[0]
        return {"count": row["count"], "total_duration": row["total_duration"] or 0}


def _row_to_entry(row: sqlite3.Row) -> JournalEntry:
    """Convert a transcripts row to a JournalEntry"""
    embedding = row["embedding"]
    return JournalEntry(
        id=row["id"],
        source_message_id=row["message_id"],
        voice_file_id=row["voice_file_id"],
        blob_ref=row["r2_key"],
        transcript=row["transcript"],
        created_at=row["created_at"],
        duration_seconds=row["duration"] or 0,
        embedding=buffer_to_embedding(embedding) if embedding is not None else None,
    )

"""
Voice Journal Schemas

Journal entries, date ranges, the embedding byte codec, and display templates.
"""

from .journal_entry import JournalEntry, embedding_to_buffer, buffer_to_embedding
from .date_range import DateRange, matches_any
from .templates import (
    format_duration,
    format_timestamp,
    format_local_datetime,
    blob_key_for,
    render_context_entry,
    render_source_line,
)

__all__ = [
    "JournalEntry",
    "embedding_to_buffer",
    "buffer_to_embedding",
    "DateRange",
    "matches_any",
    "format_duration",
    "format_timestamp",
    "format_local_datetime",
    "blob_key_for",
    "render_context_entry",
    "render_source_line",
]

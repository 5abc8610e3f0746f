"""
Display Templates

Renders journal entries for prompts, citations and storage keys.
Citation lines are built here, never by the model, so they stay stable.
"""

from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .journal_entry import JournalEntry


BLOB_KEY_TEMPLATE = "voice-journal/voice-notes/{stamp}-{message_id}.ogg"

CONTEXT_ENTRY_TEMPLATE = "[{index}] {when} ({duration}):\n{transcript}"

SOURCE_LINE_TEMPLATE = "[{index}] {date} {time} ({duration})"


def format_duration(seconds: int) -> str:
    """Format a duration as "1m 3s" or "55s"."""
    seconds = max(0, int(seconds or 0))
    minutes, remainder = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {remainder}s"
    return f"{remainder}s"


def format_timestamp(unix_ts: float, tz: tzinfo) -> str:
    """Format a Unix timestamp as YYYY-MM-DD_HH-MM-SS in the given zone."""
    return datetime.fromtimestamp(unix_ts, tz=tz).strftime("%Y-%m-%d_%H-%M-%S")


def format_local_datetime(unix_ts: float, tz: tzinfo) -> str:
    """Human-readable local date/time, e.g. "Thu Jan 15 2026, 9:05 AM"."""
    dt = datetime.fromtimestamp(unix_ts, tz=tz)
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt.strftime('%a %b')} {dt.day} {dt.year}, {hour}:{dt.minute:02d} {meridiem}"


def blob_key_for(unix_ts: float, message_id: str, tz: tzinfo) -> str:
    """Archive key for the source audio of a voice note."""
    return BLOB_KEY_TEMPLATE.format(
        stamp=format_timestamp(unix_ts, tz),
        message_id=message_id,
    )


def render_context_entry(index: int, entry: "JournalEntry", tz: tzinfo) -> str:
    """One numbered entry of the grounding context given to the model."""
    return CONTEXT_ENTRY_TEMPLATE.format(
        index=index,
        when=format_local_datetime(entry.created_at, tz),
        duration=format_duration(entry.duration_seconds),
        transcript=entry.transcript,
    )


def render_source_line(index: int, entry: "JournalEntry", tz: tzinfo) -> str:
    """One numbered line of the Sources block appended to every answer."""
    dt = datetime.fromtimestamp(entry.created_at, tz=tz)
    return SOURCE_LINE_TEMPLATE.format(
        index=index,
        date=dt.strftime("%Y-%m-%d"),
        time=dt.strftime("%H:%M"),
        duration=format_duration(entry.duration_seconds),
    )

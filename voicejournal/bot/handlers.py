"""
Journal Bot Handlers

Transport-agnostic conversation logic: voice notes are ingested, text
messages are answered from the journal. The messaging framework is hidden
behind Transport, so any bot library (or a test double) can drive this.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from ..common.errors import NotInitializedError, TranscriptionError
from ..common.journal_store import JournalRepository
from ..ingest.ingestor import JournalIngestor, VoiceNote
from ..retriever.composer import AnswerComposer
from ..retriever.engine import RetrievalEngine

logger = logging.getLogger("voicejournal.bot.handlers")


# Reactions
REACT_PROCESSING = "👀"
REACT_SAVED = "👍"
REACT_FAILED = "👎"
REACT_THINKING = "🤔"
REACT_ANSWERED = "✅"
REACT_NO_RESULTS = "🤷"
REACT_ERROR = "❌"

START_MESSAGE = """Voice Journal Bot

Send me voice messages and I'll transcribe and save them.
Ask me questions in text, for example:
- "What did I say today?"
- "Summarize my thoughts this week"
- "What have I said about work?"

Commands:
/start - show this message
/stats - how many voice notes are stored"""

NO_RESULTS_MESSAGE = (
    "I couldn't find any relevant voice notes for your query. "
    "Try sending some voice messages first, or rephrase your question."
)
ERROR_MESSAGE = "Sorry, I encountered an error processing your query. Please try again."
NOT_READY_MESSAGE = (
    "⚠️ The embedding model is still initializing. "
    "Time-based questions like \"what did I say today?\" work in the meantime."
)
TRANSCRIPTION_FAILED_MESSAGE = "Sorry, I couldn't transcribe that voice message. Please try again."


@dataclass
class IncomingMessage:
    """A message as delivered by the transport"""
    chat_id: int
    message_id: int
    user_id: int
    date: float  # Unix seconds the message was sent
    text: Optional[str] = None
    voice_file_id: Optional[str] = None
    voice_duration: int = 0

    @property
    def is_voice(self) -> bool:
        return self.voice_file_id is not None

    @property
    def command(self) -> Optional[str]:
        """"/stats@my_bot extra" -> "stats"; None for plain text"""
        if not self.text or not self.text.startswith("/"):
            return None
        parts = self.text[1:].split()
        return parts[0].split("@")[0].lower() if parts else None


class Transport(ABC):
    """
    What the conversation logic needs from a messaging framework.

    Implementations adapt a concrete bot library.
    """

    @abstractmethod
    async def send_text(self, chat_id: int, text: str) -> None:
        pass

    @abstractmethod
    async def send_reaction(self, chat_id: int, message_id: int, emoji: str) -> None:
        pass

    @abstractmethod
    async def download_voice(self, file_id: str) -> bytes:
        pass


class JournalBot:
    """
    Routes incoming messages to ingestion or retrieval.

    Args:
        transport: Messaging framework adapter
        ingestor: Voice note ingestion
        engine: Query retrieval
        composer: Answer synthesis
        repository: Journal storage (for /stats)
        authorized_user_id: Only this user is served; None serves everyone
        query_timeout: Seconds allowed for retrieve + compose
    """

    def __init__(
        self,
        transport: Transport,
        ingestor: JournalIngestor,
        engine: RetrievalEngine,
        composer: AnswerComposer,
        repository: JournalRepository,
        authorized_user_id: Optional[int] = None,
        query_timeout: float = 60.0,
    ):
        self._transport = transport
        self._ingestor = ingestor
        self._engine = engine
        self._composer = composer
        self._repo = repository
        self._authorized_user_id = authorized_user_id
        self._query_timeout = query_timeout

    def is_authorized(self, message: IncomingMessage) -> bool:
        return self._authorized_user_id is None or message.user_id == self._authorized_user_id

    async def handle(self, message: IncomingMessage) -> None:
        """Entry point for every inbound message."""
        if not self.is_authorized(message):
            logger.warning("Ignoring message %s from unauthorized user %s", message.message_id, message.user_id)
            return
        if message.is_voice:
            await self.handle_voice(message)
        elif message.text:
            await self.handle_text(message)

    async def _react(self, message: IncomingMessage, emoji: str) -> None:
        try:
            await self._transport.send_reaction(message.chat_id, message.message_id, emoji)
        except Exception as e:
            logger.warning("Failed to set reaction %s on message %s: %s", emoji, message.message_id, e)

    async def handle_voice(self, message: IncomingMessage) -> None:
        await self._react(message, REACT_PROCESSING)
        try:
            audio = await self._transport.download_voice(message.voice_file_id)
            result = await self._ingestor.ingest_voice(
                VoiceNote(
                    source_message_id=str(message.message_id),
                    audio=audio,
                    created_at=message.date,
                    duration_seconds=message.voice_duration,
                    voice_file_id=message.voice_file_id,
                )
            )
        except TranscriptionError as e:
            logger.error("Voice message %s could not be transcribed: %s", message.message_id, e)
            await self._react(message, REACT_FAILED)
            await self._transport.send_text(message.chat_id, TRANSCRIPTION_FAILED_MESSAGE)
            return
        except Exception as e:
            logger.error("Error processing voice message %s: %s", message.message_id, e, exc_info=True)
            await self._react(message, REACT_FAILED)
            return

        logger.info("Voice message %s stored as entry %s (new=%s)", message.message_id, result.entry_id, result.created)
        await self._react(message, REACT_SAVED)

    async def handle_text(self, message: IncomingMessage) -> None:
        command = message.command
        if command == "start":
            await self._transport.send_text(message.chat_id, START_MESSAGE)
            return
        if command == "stats":
            await self._send_stats(message)
            return
        if command is not None:
            logger.debug("Unknown command /%s", command)
            return

        await self.answer_query(message)

    async def answer_query(self, message: IncomingMessage) -> None:
        query = message.text.strip()
        logger.info("Processing query: %s", query)
        await self._react(message, REACT_THINKING)

        try:
            reply = await asyncio.wait_for(self._answer(query), timeout=self._query_timeout)
        except NotInitializedError:
            await self._transport.send_text(message.chat_id, NOT_READY_MESSAGE)
            await self._react(message, REACT_ERROR)
            return
        except asyncio.TimeoutError:
            logger.error("Query timed out after %ss: %s", self._query_timeout, query)
            await self._transport.send_text(message.chat_id, ERROR_MESSAGE)
            await self._react(message, REACT_ERROR)
            return
        except Exception as e:
            logger.error("Error processing query %r: %s", query, e, exc_info=True)
            await self._transport.send_text(message.chat_id, ERROR_MESSAGE)
            await self._react(message, REACT_ERROR)
            return

        if reply is None:
            await self._transport.send_text(message.chat_id, NO_RESULTS_MESSAGE)
            await self._react(message, REACT_NO_RESULTS)
            return

        await self._transport.send_text(message.chat_id, reply)
        await self._react(message, REACT_ANSWERED)

    async def _answer(self, query: str) -> Optional[str]:
        """Composed reply, or None when no entries matched."""
        entries = await self._engine.retrieve(query)
        if not entries:
            return None
        return await self._composer.compose(query, entries)

    async def _send_stats(self, message: IncomingMessage) -> None:
        stats = await self._repo.stats()
        minutes = round(stats["total_duration"] / 60)
        await self._transport.send_text(
            message.chat_id,
            f"Voice Journal Stats\n\nTotal voice notes: {stats['count']}\nTotal duration: {minutes} minutes",
        )

"""
Transcription Service

Whisper transcription through an OpenAI-compatible audio endpoint
(Groq by default).
"""

import logging
from typing import Optional

from .errors import TranscriptionError

logger = logging.getLogger("voicejournal.common.transcription")


class Transcriber:
    """Turns voice-note audio into text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = "https://api.groq.com/openai/v1",
        model: str = "whisper-large-v3-turbo",
        language: Optional[str] = "en",
    ):
        self._model = model
        self._language = language
        self._client = None

        if not api_key:
            logger.warning("Transcription API key not set - audio transcription will not be available")
            return
        try:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url or None)
            logger.info("Transcription client initialized (%s)", model)
        except ImportError:
            logger.warning("openai package not installed")

    @classmethod
    def from_config(cls, transcription_config) -> "Transcriber":
        return cls(
            api_key=transcription_config.api_key or None,
            base_url=transcription_config.base_url or None,
            model=transcription_config.model,
            language=transcription_config.language or None,
        )

    @property
    def is_available(self) -> bool:
        return self._client is not None

    async def transcribe(self, audio: bytes, filename: str = "voice.ogg") -> str:
        """
        Transcribe audio bytes.

        Args:
            audio: Raw audio (ogg/opus for Telegram voice notes)
            filename: Name sent with the upload; the extension selects the decoder

        Returns:
            Transcript text (stripped, non-empty)

        Raises:
            TranscriptionError: service unavailable, call failed, or empty transcript
        """
        if not self.is_available:
            raise TranscriptionError("Transcription API key required for audio transcription")

        kwargs = {}
        if self._language:
            kwargs["language"] = self._language

        try:
            result = await self._client.audio.transcriptions.create(
                file=(filename, audio),
                model=self._model,
                response_format="json",
                **kwargs,
            )
        except Exception as e:
            raise TranscriptionError(f"Transcription failed: {e}") from e

        text = (getattr(result, "text", "") or "").strip()
        if not text:
            raise TranscriptionError("Transcription returned no text")
        return text

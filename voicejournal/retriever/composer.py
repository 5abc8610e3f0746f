"""
Answer Composer

Grounded answer synthesis from retrieved journal entries.

The model writes the answer; the "Sources:" block under it is built here
from the same entries, so every reply is traceable to specific voice notes
whatever the model produced.
"""

import logging
from datetime import timezone, tzinfo
from typing import List, Optional

from ..common.schemas import JournalEntry, render_context_entry, render_source_line

logger = logging.getLogger("voicejournal.retriever.composer")


ANSWER_PROMPT = """You are a helpful assistant for a voice journal system. The user asked: "{query}"

Here are the relevant voice journal entries:

{context}

Based on these entries, answer the user's question directly and conversationally.
Match the level of detail the user asked for: a short question gets a short answer,
a request for a summary or details gets more. Summarize key points and patterns
when useful. Refer to entries by their number in brackets, like [1].
If the entries don't contain relevant information, say so politely.
Do not list sources yourself; they are appended automatically."""


class AnswerComposer:
    """
    Composes answers from journal entries with one completion call.

    Args:
        llm_client: Completion client (LLMClient or compatible)
        tz: Timezone used to display entry dates
        temperature: Sampling temperature for the answer model
        max_tokens: Reply budget
    """

    def __init__(
        self,
        llm_client,
        tz: tzinfo = timezone.utc,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ):
        self._llm = llm_client
        self._tz = tz
        self._temperature = temperature
        self._max_tokens = max_tokens

    def build_context(self, entries: List[JournalEntry]) -> str:
        return "\n\n".join(
            render_context_entry(i, entry, self._tz) for i, entry in enumerate(entries, start=1)
        )

    def build_sources(self, entries: List[JournalEntry]) -> str:
        lines = [render_source_line(i, entry, self._tz) for i, entry in enumerate(entries, start=1)]
        return "Sources:\n" + "\n".join(lines)

    def build_prompt(self, query: str, entries: List[JournalEntry]) -> str:
        return ANSWER_PROMPT.format(query=query, context=self.build_context(entries))

    async def compose(self, query: str, entries: List[JournalEntry], system: Optional[str] = None) -> str:
        """
        Answer ``query`` from ``entries``.

        Raises:
            ValueError: ``entries`` is empty (callers reply "no results" instead)
            CompletionError: the completion call failed
        """
        if not entries:
            raise ValueError("compose() requires at least one entry")

        answer = await self._llm.complete(
            self.build_prompt(query, entries),
            system=system,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )
        logger.debug("Composed answer from %d entries", len(entries))
        return f"{answer.strip()}\n\n{self.build_sources(entries)}"

"""
Voice Journal

Personal voice-journaling assistant: voice notes are transcribed, embedded
and stored; text questions are answered from the relevant past entries.

Philosophy:
- An entry's timestamp is when the user spoke, not when it was processed
- Period questions ("today", "this week") are answered exactly, by date
- Everything else goes through similarity search over the embedded corpus
- Every answer ends with a citation block built from the entries themselves

Usage:
    from voicejournal.common import load_config, LLMClient, EmbeddingService
    from voicejournal.common.schemas import JournalEntry, DateRange
    from voicejournal.retriever import RetrievalEngine, AnswerComposer
    from voicejournal.ingest import JournalIngestor
"""

__version__ = "0.1.0"

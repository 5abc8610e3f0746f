"""
Component wiring

Builds the journal's collaborators from a VoiceJournalConfig. Every component
takes its dependencies explicitly; this module is the one place that knows
how they fit together.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .common.blob_store import BlobStore, blob_store_from_config
from .common.config import VoiceJournalConfig
from .common.embedding_service import EmbeddingCapability, EmbeddingService, initialize_embeddings
from .common.journal_store import SQLiteJournalRepository
from .common.llm_client import LLMClient
from .common.transcription import Transcriber
from .ingest.ingestor import JournalIngestor
from .retriever.composer import AnswerComposer
from .retriever.corpus_index import CorpusIndex
from .retriever.date_parser import DateRangeParser
from .retriever.engine import RetrievalEngine
from .retriever.query_classifier import QueryClassifier

logger = logging.getLogger("voicejournal.app")


@dataclass
class JournalApp:
    """Wired components sharing one repository and one embedding capability"""
    config: VoiceJournalConfig
    repository: SQLiteJournalRepository
    embeddings: EmbeddingCapability
    date_parser: DateRangeParser
    engine: RetrievalEngine
    composer: AnswerComposer
    ingestor: JournalIngestor
    blob_store: Optional[BlobStore] = None

    def close(self) -> None:
        self.repository.close()


def resolve_timezone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


async def build_app(config: VoiceJournalConfig, with_embeddings: bool = True) -> JournalApp:
    """
    Construct the journal from configuration.

    Args:
        config: Loaded configuration
        with_embeddings: Probe the embedding model; when False semantic search
            stays unavailable but period queries still work
    """
    tz = resolve_timezone(config.retriever.timezone)
    date_parser = DateRangeParser(tz=tz, week_start=config.retriever.week_start)
    repository = SQLiteJournalRepository(config.storage.db_path)

    embeddings = EmbeddingCapability(reason="Embedding model disabled")
    if with_embeddings:
        embeddings = await initialize_embeddings(EmbeddingService.from_config(config.embedding))

    llm = config.llm
    classifier = QueryClassifier(
        LLMClient.from_config(llm, llm.classifier_model),
        date_parser=date_parser,
        temperature=llm.classifier_temperature,
        max_tokens=llm.classifier_max_tokens,
    )
    engine = RetrievalEngine(
        classifier,
        CorpusIndex(repository, date_parser),
        embeddings=embeddings,
        date_parser=date_parser,
        top_k=config.retriever.topk,
    )
    composer = AnswerComposer(
        LLMClient.from_config(llm, llm.answer_model),
        tz=tz,
        temperature=llm.answer_temperature,
        max_tokens=llm.answer_max_tokens,
    )

    blob_store = blob_store_from_config(config.storage)
    ingestor = JournalIngestor(
        repository,
        Transcriber.from_config(config.transcription),
        embeddings=embeddings,
        blob_store=blob_store,
        tz=tz,
    )

    logger.info(
        "Voice journal ready (db=%s, embeddings=%s)",
        config.storage.db_path,
        "ready" if embeddings.is_ready else embeddings.reason,
    )
    return JournalApp(
        config=config,
        repository=repository,
        embeddings=embeddings,
        date_parser=date_parser,
        engine=engine,
        composer=composer,
        ingestor=ingestor,
        blob_store=blob_store,
    )

"""
Retrieval Engine

classify -> (period fetch | date filter + embed + vector search) -> entries.

Period queries are answered exactly from created_at; only semantic queries
touch the embedding model.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..common.embedding_service import EmbeddingCapability, NOT_READY
from ..common.schemas import DateRange, JournalEntry
from .corpus_index import CorpusIndex
from .date_parser import DateRangeParser
from .query_classifier import QueryClassification, QueryClassifier

logger = logging.getLogger("voicejournal.retriever.engine")


@dataclass
class RetrievalResult:
    """Everything the engine resolved for one query"""
    query: str
    classification: QueryClassification
    entries: List[JournalEntry] = field(default_factory=list)
    scores: List[float] = field(default_factory=list)  # parallel to entries; empty for period queries
    date_ranges: Optional[List[DateRange]] = None

    @property
    def is_empty(self) -> bool:
        return not self.entries


class RetrievalEngine:
    """
    Orchestrates query classification and retrieval.

    Args:
        classifier: QueryClassifier
        index: CorpusIndex over the journal
        embeddings: Capability from initialize_embeddings(); needed for semantic queries
        date_parser: Resolves classifier date filters
        top_k: Hits returned by semantic search
    """

    def __init__(
        self,
        classifier: QueryClassifier,
        index: CorpusIndex,
        embeddings: EmbeddingCapability = NOT_READY,
        date_parser: Optional[DateRangeParser] = None,
        top_k: int = 5,
    ):
        self._classifier = classifier
        self._index = index
        self._embeddings = embeddings
        self._dates = date_parser or DateRangeParser()
        self._top_k = top_k

    async def run(self, query: str) -> RetrievalResult:
        """
        Retrieve entries for ``query``.

        Raises:
            NotInitializedError: semantic query while embeddings are not ready
            EmbeddingError: the query could not be embedded
            EmbeddingDimensionError: the corpus holds mismatched embeddings
        """
        classification = await self._classifier.classify(query)

        if classification.kind.is_period:
            period = self._dates.period_range(classification.kind)
            entries = await self._index.fetch_by_period(period)
            logger.info("Found %d entries for %s", len(entries), period.description)
            return RetrievalResult(
                query=query,
                classification=classification,
                entries=entries,
                date_ranges=[period],
            )

        search_terms = classification.search_terms.strip() or query
        date_ranges = self._dates.parse(classification.date_filter)
        query_vector = await self._embeddings.embed(search_terms)
        hits = await self._index.search(query_vector, top_k=self._top_k, date_filter=date_ranges)
        logger.info(
            "Semantic search for %r returned %d entries%s",
            search_terms,
            len(hits),
            f" within {', '.join(r.description for r in date_ranges)}" if date_ranges else "",
        )
        return RetrievalResult(
            query=query,
            classification=classification,
            entries=[hit.entry for hit in hits],
            scores=[hit.score for hit in hits],
            date_ranges=date_ranges,
        )

    async def retrieve(self, query: str) -> List[JournalEntry]:
        """Entries relevant to ``query``; an empty list when nothing matches."""
        result = await self.run(query)
        return result.entries

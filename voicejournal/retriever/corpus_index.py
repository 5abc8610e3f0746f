"""
Corpus Index

Exact nearest-neighbour search over the journal's stored embeddings.

The corpus is personal-scale, so every query is a full linear scan with
numpy. A mismatched embedding length anywhere in the scanned set means the
corpus is corrupted and raises EmbeddingDimensionError rather than being
skipped.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np

from ..common.errors import EmbeddingDimensionError
from ..common.journal_store import JournalRepository
from ..common.schemas import DateRange, JournalEntry, matches_any
from .date_parser import DateRangeParser

logger = logging.getLogger("voicejournal.retriever.corpus_index")


@dataclass
class ScoredEntry:
    """A search hit"""
    entry: JournalEntry
    score: float


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns 0.0 when either vector has zero norm.

    Raises:
        EmbeddingDimensionError: the vectors have different lengths
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise EmbeddingDimensionError(va.shape[0], vb.shape[0])
    norm = np.linalg.norm(va) * np.linalg.norm(vb)
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


class CorpusIndex:
    """
    Read side of the journal: period fetches and similarity search.

    Args:
        repository: Journal storage
        date_parser: Calendar used to resolve period buckets
    """

    similarity = staticmethod(similarity)

    def __init__(self, repository: JournalRepository, date_parser: Optional[DateRangeParser] = None):
        self._repo = repository
        self._dates = date_parser or DateRangeParser()

    async def fetch_by_period(self, period: Union[DateRange, str]) -> List[JournalEntry]:
        """Entries inside a range or a named bucket (today/week/month/year), newest first."""
        date_range = period if isinstance(period, DateRange) else self._dates.period_range(period)
        entries = await self._repo.list_by_created_at_range(date_range)
        logger.debug("Period %s: %d entries", date_range.description or "range", len(entries))
        return entries

    async def fetch_all_embedded(self) -> List[JournalEntry]:
        return await self._repo.list_all_embedded()

    async def search(
        self,
        query_vector: Sequence[float],
        top_k: int = 5,
        date_filter: Optional[List[DateRange]] = None,
    ) -> List[ScoredEntry]:
        """
        Rank embedded entries against ``query_vector``.

        Args:
            query_vector: Query embedding
            top_k: Maximum hits to return
            date_filter: Ranges an entry must fall in (any of); None means all

        Returns:
            Hits sorted by score, ties broken by newer created_at first

        Raises:
            EmbeddingDimensionError: an entry's embedding length differs from the query's
        """
        if top_k <= 0:
            return []

        candidates = [
            e for e in await self.fetch_all_embedded()
            if matches_any(date_filter, e.created_at)
        ]
        if not candidates:
            return []

        query = np.asarray(query_vector, dtype=np.float64)
        dimension = query.shape[0]
        for entry in candidates:
            if len(entry.embedding) != dimension:
                raise EmbeddingDimensionError(dimension, len(entry.embedding), entry_id=entry.id)

        matrix = np.asarray([e.embedding for e in candidates], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        dots = matrix @ query
        scores = np.divide(dots, norms, out=np.zeros_like(dots), where=norms != 0)

        ranked = sorted(
            (ScoredEntry(entry=e, score=float(s)) for e, s in zip(candidates, scores)),
            key=lambda hit: (-hit.score, -hit.entry.created_at),
        )
        return ranked[:top_k]

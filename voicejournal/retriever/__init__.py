"""
Voice Journal Retriever

Answers questions about past voice notes.

Key Components:
- DateRangeParser: Resolves date filters into [start, end) ranges
- QueryClassifier: Period vs. semantic classification via the completion service
- CorpusIndex: Period fetches and cosine-similarity search
- RetrievalEngine: Classification -> retrieval orchestration
- AnswerComposer: Grounded answer plus a Sources block

Pipeline:
1. Classify the query (today/week/month/year/semantic)
2. Period: fetch the calendar bucket. Semantic: filter by date, embed, rank
3. Compose an answer citing the retrieved entries
"""

from .date_parser import DateRangeParser
from .query_classifier import (
    QueryKind,
    QueryClassification,
    ClassificationOutcome,
    QueryClassifier,
    parse_classification,
)
from .corpus_index import CorpusIndex, ScoredEntry, similarity
from .engine import RetrievalEngine, RetrievalResult
from .composer import AnswerComposer

__all__ = [
    "DateRangeParser",
    "QueryKind",
    "QueryClassification",
    "ClassificationOutcome",
    "QueryClassifier",
    "parse_classification",
    "CorpusIndex",
    "ScoredEntry",
    "similarity",
    "RetrievalEngine",
    "RetrievalResult",
    "AnswerComposer",
]

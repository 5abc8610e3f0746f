"""
Query Classifier

Decides whether a question is about a calendar period ("what did I say
today?") or needs semantic search ("what have I said about coffee?").

The completion service is asked for strict JSON, but its reply is treated as
untrusted text: parse_classification() is the only place the raw string is
read, and anything it rejects becomes the semantic fallback.
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Union

from ..common.errors import ClassificationParseError, CompletionError
from ..common.llm_utils import extract_json_object, strip_code_fences
from .date_parser import DateRangeParser

logger = logging.getLogger("voicejournal.retriever.query_classifier")


class QueryKind(str, Enum):
    """How a query is answered"""
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    SEMANTIC = "semantic"

    @property
    def is_period(self) -> bool:
        return self is not QueryKind.SEMANTIC


@dataclass
class QueryClassification:
    """Classification of one query; produced per request, never stored"""
    kind: QueryKind
    search_terms: str = ""
    date_filter: Optional[List[Union[str, dict]]] = None
    is_fallback: bool = False


@dataclass
class ClassificationOutcome:
    """Tagged result of the parse boundary: ok or fallback."""
    classification: QueryClassification
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def success(cls, classification: QueryClassification) -> "ClassificationOutcome":
        return cls(classification=classification, ok=True)

    @classmethod
    def fallback(cls, query: str, reason: str) -> "ClassificationOutcome":
        return cls(
            classification=QueryClassification(
                kind=QueryKind.SEMANTIC,
                search_terms=query,
                date_filter=None,
                is_fallback=True,
            ),
            ok=False,
            reason=reason,
        )


# Explicit period phrases in the query override a "semantic" answer
TIME_PATTERNS = [
    (QueryKind.TODAY, re.compile(r"\btoday\b", re.IGNORECASE)),
    (QueryKind.WEEK, re.compile(r"\bthis\s+week\b", re.IGNORECASE)),
    (QueryKind.MONTH, re.compile(r"\bthis\s+month\b", re.IGNORECASE)),
    (QueryKind.YEAR, re.compile(r"\bthis\s+year\b", re.IGNORECASE)),
]


CLASSIFICATION_PROMPT = """You are a query classifier for a voice journal system.
Today is {today}.

Analyze the user's query and determine:
1. The query type:
   - "today", "week", "month" or "year" when the user asks about exactly the current day, week, month or year
   - "semantic" for everything else
2. For semantic queries, the key search terms
3. For semantic queries that mention other dates or periods, a list of date filters. Each filter is one of:
   {{"date": "YYYY-MM-DD"}}
   {{"start": "YYYY-MM-DD", "end": "YYYY-MM-DD"}}
   {{"start": "YYYY-MM-DD"}}
   {{"relative": "this_year" | "this_month" | "this_week" | "last_year" | "last_month" | "last_week"}}
   {{"year": "YYYY"}} or {{"year": "YYYY-YYYY"}}

If the query names an explicit time period, prefer a time-based type over "semantic".

User query: "{query}"

Respond ONLY with a JSON object in this exact format:
{{
  "type": "today|week|month|year|semantic",
  "searchTerms": "search terms for semantic search (empty for time-based queries)",
  "dateFilter": null
}}"""


def detect_period(query: str) -> Optional[QueryKind]:
    """Period kind named explicitly in the query text, if any."""
    for kind, pattern in TIME_PATTERNS:
        if pattern.search(query):
            return kind
    return None


def parse_classification(raw: str, query: str) -> QueryClassification:
    """
    Validate a classifier reply.

    Args:
        raw: Reply text from the completion service (untrusted)
        query: The original user query

    Returns:
        Validated QueryClassification

    Raises:
        ClassificationParseError: no JSON object, or a missing/invalid field
    """
    candidate = extract_json_object(strip_code_fences(raw or ""))
    if candidate is None:
        raise ClassificationParseError("no JSON object in classifier reply")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ClassificationParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ClassificationParseError("classifier reply is not an object")

    raw_kind = data.get("type")
    if not isinstance(raw_kind, str):
        raise ClassificationParseError("missing 'type'")
    try:
        kind = QueryKind(raw_kind.strip().lower())
    except ValueError as e:
        raise ClassificationParseError(f"unknown type {raw_kind!r}") from e

    search_terms = data.get("searchTerms") or ""
    if not isinstance(search_terms, str):
        raise ClassificationParseError("'searchTerms' must be a string")

    date_filter = _validate_date_filter(data.get("dateFilter"))

    if kind is QueryKind.SEMANTIC:
        search_terms = search_terms.strip() or query
    else:
        search_terms = ""
        date_filter = None

    return QueryClassification(kind=kind, search_terms=search_terms, date_filter=date_filter)


def _validate_date_filter(value: Any) -> Optional[List[Union[str, dict]]]:
    if value is None:
        return None
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        raise ClassificationParseError("'dateFilter' must be a list or null")
    for item in value:
        if not isinstance(item, (str, dict)):
            raise ClassificationParseError(f"invalid dateFilter entry {item!r}")
    return value or None


class QueryClassifier:
    """
    Classifies queries with one completion call.

    Args:
        llm_client: Completion client (LLMClient or compatible)
        date_parser: Supplies "today" for the prompt
        temperature: Sampling temperature for the classifier model
        max_tokens: Reply budget
        timeout: Seconds before the call is abandoned
    """

    def __init__(
        self,
        llm_client,
        date_parser: Optional[DateRangeParser] = None,
        temperature: float = 0.1,
        max_tokens: int = 300,
        timeout: float = 20.0,
    ):
        self._llm = llm_client
        self._dates = date_parser or DateRangeParser()
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout

    def build_prompt(self, query: str) -> str:
        return CLASSIFICATION_PROMPT.format(today=self._dates.describe_today(), query=query)

    async def classify_outcome(self, query: str) -> ClassificationOutcome:
        """Classify ``query`` and report which path produced the result."""
        try:
            raw = await asyncio.wait_for(
                self._llm.complete(
                    self.build_prompt(query),
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Query classification timed out after %ss", self._timeout)
            return ClassificationOutcome.fallback(query, "timeout")
        except CompletionError as e:
            logger.warning("Query classification failed: %s", e)
            return ClassificationOutcome.fallback(query, str(e))

        try:
            classification = parse_classification(raw, query)
        except ClassificationParseError as e:
            logger.warning("Unparsable classification reply (%s): %r", e, (raw or "")[:200])
            return ClassificationOutcome.fallback(query, str(e))

        if classification.kind is QueryKind.SEMANTIC:
            period = detect_period(query)
            if period is not None and self._filter_is_period(classification.date_filter, period):
                logger.debug("Query names %s explicitly; overriding semantic", period.value)
                classification = QueryClassification(kind=period)

        return ClassificationOutcome.success(classification)

    def _filter_is_period(self, date_filter, period: QueryKind) -> bool:
        """No filter, or a single filter covering exactly the current ``period``."""
        if date_filter is None:
            return True
        ranges = self._dates.parse(date_filter)
        if ranges is None or len(ranges) != 1:
            return False
        current = self._dates.period_range(period.value)
        return (ranges[0].start, ranges[0].end) == (current.start, current.end)

    async def classify(self, query: str) -> QueryClassification:
        """Classify ``query``. Never raises for service or parse failures."""
        outcome = await self.classify_outcome(query)
        logger.info(
            "Query classified as %s%s",
            outcome.classification.kind.value,
            " (fallback)" if not outcome.ok else "",
        )
        return outcome.classification

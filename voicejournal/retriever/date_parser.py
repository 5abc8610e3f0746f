"""
Date Range Parser

Turns the date filters produced by the query classifier into absolute
[start, end) intervals in Unix seconds.

Accepted filter forms (a filter is a dict or a bare string):
- {"date": "2026-01-15"} or "2026-01-15"          -> that local calendar day
- {"start": "2026-01-01", "end": "2026-01-31"}    -> both days inclusive
- {"start": "2026-01-01"}                         -> open-ended
- {"relative": "this_week"} or "this_week"        -> calendar period around now
- {"year": "2024"}, "2024", "2022-2024"           -> whole calendar years

All calendar arithmetic happens in the configured timezone. Malformed
filters are dropped; when nothing usable remains the result is None, which
callers treat as "no restriction".
"""

import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Iterable, List, Optional, Union

from ..common.schemas import DateRange

logger = logging.getLogger("voicejournal.retriever.date_parser")

FilterSpec = Union[str, dict]

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
YEAR_RE = re.compile(r"^(\d{4})$")
YEAR_SPAN_RE = re.compile(r"^(\d{4})\s*-\s*(\d{4})$")

RELATIVE_TOKENS = (
    "this_year",
    "this_month",
    "this_week",
    "last_year",
    "last_month",
    "last_week",
)

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class DateRangeParser:
    """
    Resolves date filters against a local calendar.

    Args:
        tz: Local timezone for day boundaries
        week_start: First day of the week (0=Monday ... 6=Sunday)
        clock: Returns "now"; injectable for tests
    """

    def __init__(
        self,
        tz: tzinfo = timezone.utc,
        week_start: int = 6,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not 0 <= week_start <= 6:
            raise ValueError(f"week_start must be 0..6, got {week_start}")
        self.tz = tz
        self.week_start = week_start
        self._clock = clock or (lambda: datetime.now(tz=self.tz))

    def now(self) -> datetime:
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=self.tz)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    # ------------------------------------------------------------------
    # Calendar helpers
    # ------------------------------------------------------------------

    def midnight(self, day: date) -> float:
        """Unix seconds of local midnight starting ``day``."""
        return datetime(day.year, day.month, day.day, tzinfo=self.tz).timestamp()

    def day_range(self, day: date, description: Optional[str] = None) -> DateRange:
        return DateRange(
            start=self.midnight(day),
            end=self.midnight(day + timedelta(days=1)),
            description=description or day.isoformat(),
        )

    def week_range(self, day: date, description: Optional[str] = None) -> DateRange:
        offset = (day.weekday() - self.week_start) % 7
        first = day - timedelta(days=offset)
        return DateRange(
            start=self.midnight(first),
            end=self.midnight(first + timedelta(days=7)),
            description=description or f"week of {first.isoformat()}",
        )

    def month_range(self, year: int, month: int, description: Optional[str] = None) -> DateRange:
        first = date(year, month, 1)
        following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
        return DateRange(
            start=self.midnight(first),
            end=self.midnight(following),
            description=description or first.strftime("%B %Y"),
        )

    def year_range(self, first_year: int, last_year: Optional[int] = None,
                   description: Optional[str] = None) -> DateRange:
        last_year = first_year if last_year is None else last_year
        if description is None:
            description = str(first_year) if first_year == last_year else f"{first_year}-{last_year}"
        return DateRange(
            start=self.midnight(date(first_year, 1, 1)),
            end=self.midnight(date(last_year + 1, 1, 1)),
            description=description,
        )

    def period_range(self, kind: str) -> DateRange:
        """Calendar bucket containing now: today, week, month or year."""
        kind = getattr(kind, "value", kind)
        today = self.today()
        if kind == "today":
            return self.day_range(today, "today")
        if kind == "week":
            return self.week_range(today, "this week")
        if kind == "month":
            return self.month_range(today.year, today.month, "this month")
        if kind == "year":
            return self.year_range(today.year, description="this year")
        raise ValueError(f"Unknown period: {kind}")

    def relative_range(self, token: str) -> Optional[DateRange]:
        today = self.today()
        description = token.replace("_", " ")
        if token == "this_year":
            return self.year_range(today.year, description=description)
        if token == "last_year":
            return self.year_range(today.year - 1, description=description)
        if token == "this_month":
            return self.month_range(today.year, today.month, description)
        if token == "last_month":
            if today.month == 1:
                return self.month_range(today.year - 1, 12, description)
            return self.month_range(today.year, today.month - 1, description)
        if token == "this_week":
            return self.week_range(today, description)
        if token == "last_week":
            return self.week_range(today - timedelta(days=7), description)
        return None

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, filter_specs: Optional[Iterable[FilterSpec]]) -> Optional[List[DateRange]]:
        """
        Resolve a list of filters.

        Args:
            filter_specs: Filters from the classifier (a single filter is accepted too)

        Returns:
            List of ranges (OR semantics), or None when no filter is usable
        """
        if filter_specs is None:
            return None
        if isinstance(filter_specs, (str, dict)):
            filter_specs = [filter_specs]
        elif not isinstance(filter_specs, (list, tuple)):
            logger.debug("Dropping date filter of type %s", type(filter_specs).__name__)
            return None

        ranges = []
        for item in filter_specs:
            try:
                parsed = self._parse_one(item)
            except (ValueError, TypeError, OverflowError) as e:
                logger.debug("Dropping malformed date filter %r: %s", item, e)
                continue
            if parsed is None:
                logger.debug("Dropping unrecognized date filter %r", item)
                continue
            ranges.append(parsed)

        return ranges or None

    def _parse_one(self, item: Any) -> Optional[DateRange]:
        if isinstance(item, str):
            return self._parse_string(item.strip())
        if not isinstance(item, dict):
            return None

        if "date" in item:
            return self.day_range(_parse_date(item["date"]))

        if "start" in item:
            start = _parse_date(item["start"])
            end_value = item.get("end")
            if end_value in (None, ""):
                return DateRange(
                    start=self.midnight(start),
                    end=None,
                    description=f"since {start.isoformat()}",
                )
            end = _parse_date(end_value)
            if end < start:
                raise ValueError(f"end {end} precedes start {start}")
            return DateRange(
                start=self.midnight(start),
                end=self.midnight(end + timedelta(days=1)),
                description=f"{start.isoformat()} to {end.isoformat()}",
            )

        if "relative" in item:
            return self.relative_range(str(item["relative"]).strip().lower())

        if "year" in item:
            return self._parse_string(str(item["year"]).strip())

        return None

    def _parse_string(self, text: str) -> Optional[DateRange]:
        if DATE_RE.match(text):
            return self.day_range(_parse_date(text))

        match = YEAR_SPAN_RE.match(text)
        if match:
            first, last = int(match.group(1)), int(match.group(2))
            if last < first:
                raise ValueError(f"year span {text} is reversed")
            return self.year_range(first, last)

        match = YEAR_RE.match(text)
        if match:
            return self.year_range(int(match.group(1)))

        token = text.lower()
        if token in RELATIVE_TOKENS:
            return self.relative_range(token)
        return None

    def describe_today(self) -> str:
        """e.g. "2026-01-15 (Thursday)", used in the classifier prompt."""
        today = self.today()
        return f"{today.isoformat()} ({WEEKDAY_NAMES[today.weekday()]})"


def _parse_date(value: Any) -> date:
    if not isinstance(value, str) or not DATE_RE.match(value.strip()):
        raise ValueError(f"not a YYYY-MM-DD date: {value!r}")
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()

"""
Date Range Schema

Half-open [start, end) interval in Unix seconds; end=None means open-ended.
A list of ranges matches with OR semantics, and "no filter" (None) matches
everything.
"""

from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class DateRange:
    start: float
    end: Optional[float] = None
    description: str = ""

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, ts: float) -> bool:
        if ts < self.start:
            return False
        return self.end is None or ts < self.end


def matches_any(ranges: Optional[Iterable[DateRange]], ts: float) -> bool:
    """True if ``ts`` falls in any range; None means unrestricted."""
    if ranges is None:
        return True
    return any(r.contains(ts) for r in ranges)

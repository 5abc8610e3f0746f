"""Tests for DateRangeParser."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from voicejournal.tests.fakes import ts


class TestSingleDate:
    def test_day_boundaries(self, date_parser):
        ranges = date_parser.parse([{"date": "2026-01-15"}])

        assert len(ranges) == 1
        r = ranges[0]
        assert r.start == ts(2026, 1, 15)
        assert r.end == ts(2026, 1, 16)
        assert r.contains(ts(2026, 1, 15, 23, 59, 59))
        assert not r.contains(ts(2026, 1, 16))

    def test_bare_string(self, date_parser):
        [r] = date_parser.parse(["2026-01-15"])
        assert r.start == ts(2026, 1, 15)
        assert r.description == "2026-01-15"

    def test_local_timezone(self, clock):
        from voicejournal.retriever.date_parser import DateRangeParser

        tz = ZoneInfo("America/New_York")
        parser = DateRangeParser(tz=tz, clock=clock)
        [r] = parser.parse([{"date": "2026-01-15"}])

        assert r.start == datetime(2026, 1, 15, tzinfo=tz).timestamp()
        assert r.end - r.start == 24 * 3600

    def test_dst_day_is_23_hours(self, clock):
        from voicejournal.retriever.date_parser import DateRangeParser

        parser = DateRangeParser(tz=ZoneInfo("America/New_York"), clock=clock)
        [r] = parser.parse([{"date": "2026-03-08"}])
        assert r.end - r.start == 23 * 3600


class TestStartEnd:
    def test_end_date_inclusive(self, date_parser):
        [r] = date_parser.parse([{"start": "2026-01-01", "end": "2026-01-31"}])
        assert r.start == ts(2026, 1, 1)
        assert r.end == ts(2026, 2, 1)

    def test_start_only_is_open(self, date_parser):
        [r] = date_parser.parse([{"start": "2025-12-01"}])
        assert r.start == ts(2025, 12, 1)
        assert r.end is None
        assert r.contains(ts(2030, 1, 1))

    def test_reversed_pair_dropped(self, date_parser):
        assert date_parser.parse([{"start": "2026-01-31", "end": "2026-01-01"}]) is None


class TestRelative:
    def test_this_year(self, date_parser):
        [r] = date_parser.parse([{"relative": "this_year"}])
        assert (r.start, r.end) == (ts(2026, 1, 1), ts(2027, 1, 1))

    def test_last_year(self, date_parser):
        [r] = date_parser.parse(["last_year"])
        assert (r.start, r.end) == (ts(2025, 1, 1), ts(2026, 1, 1))

    def test_this_month(self, date_parser):
        [r] = date_parser.parse([{"relative": "this_month"}])
        assert (r.start, r.end) == (ts(2026, 1, 1), ts(2026, 2, 1))

    def test_last_month_wraps_year(self, date_parser):
        [r] = date_parser.parse([{"relative": "last_month"}])
        assert (r.start, r.end) == (ts(2025, 12, 1), ts(2026, 1, 1))

    def test_this_week_starts_sunday(self, date_parser):
        # 2026-01-15 is a Thursday; the week began Sunday 2026-01-11
        [r] = date_parser.parse([{"relative": "this_week"}])
        assert (r.start, r.end) == (ts(2026, 1, 11), ts(2026, 1, 18))

    def test_this_week_starts_monday(self, clock):
        from datetime import timezone
        from voicejournal.retriever.date_parser import DateRangeParser

        parser = DateRangeParser(tz=timezone.utc, week_start=0, clock=clock)
        [r] = parser.parse(["this_week"])
        assert r.start == ts(2026, 1, 12)

    def test_last_week(self, date_parser):
        [r] = date_parser.parse(["last_week"])
        assert (r.start, r.end) == (ts(2026, 1, 4), ts(2026, 1, 11))


class TestYears:
    def test_single_year(self, date_parser):
        [r] = date_parser.parse([{"year": "2024"}])
        assert (r.start, r.end) == (ts(2024, 1, 1), ts(2025, 1, 1))

    def test_bare_year_string(self, date_parser):
        [r] = date_parser.parse(["2023"])
        assert r.description == "2023"

    def test_year_span(self, date_parser):
        [r] = date_parser.parse(["2022-2024"])
        assert (r.start, r.end) == (ts(2022, 1, 1), ts(2025, 1, 1))
        assert r.description == "2022-2024"


class TestMalformed:
    @pytest.mark.parametrize("item", [
        {"date": "January 15"},
        {"date": "2026-02-30"},
        {"relative": "next_decade"},
        {"unknown": "x"},
        "sometime",
        42,
        None,
        {"start": "yesterday"},
    ])
    def test_unusable_filter_dropped(self, date_parser, item):
        assert date_parser.parse([item]) is None

    def test_empty_and_none_mean_no_filter(self, date_parser):
        assert date_parser.parse([]) is None
        assert date_parser.parse(None) is None

    @pytest.mark.parametrize("value", [42, 3.5, True, b"2026-01-15"])
    def test_non_list_value_means_no_filter(self, date_parser, value):
        assert date_parser.parse(value) is None

    def test_bad_filters_dropped_good_kept(self, date_parser):
        ranges = date_parser.parse([{"date": "nope"}, "2026-01-15", {"relative": "this_year"}])
        assert [r.description for r in ranges] == ["2026-01-15", "this year"]

    def test_single_filter_not_in_list(self, date_parser):
        [r] = date_parser.parse({"date": "2026-01-15"})
        assert r.start == ts(2026, 1, 15)


class TestPeriodRange:
    def test_today(self, date_parser):
        r = date_parser.period_range("today")
        assert (r.start, r.end) == (ts(2026, 1, 15), ts(2026, 1, 16))

    def test_week_month_year(self, date_parser):
        assert date_parser.period_range("week").start == ts(2026, 1, 11)
        assert date_parser.period_range("month").end == ts(2026, 2, 1)
        assert date_parser.period_range("year").start == ts(2026, 1, 1)

    def test_unknown_period(self, date_parser):
        with pytest.raises(ValueError):
            date_parser.period_range("decade")

    def test_invalid_week_start(self):
        from voicejournal.retriever.date_parser import DateRangeParser
        with pytest.raises(ValueError):
            DateRangeParser(week_start=7)

    def test_describe_today(self, date_parser):
        assert date_parser.describe_today() == "2026-01-15 (Thursday)"

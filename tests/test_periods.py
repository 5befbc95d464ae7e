"""
Tests for stats period and date range resolution, and limit parsing.
"""

from datetime import datetime, timedelta

import pytest

from linktrack.core.exceptions import BadRequestError
from linktrack.core.validators import parse_countries_limit, parse_limit
from linktrack.services.periods import (
    EPOCH,
    ROLLING_PERIODS,
    DateRange,
    resolve_date_range,
    resolve_period,
)

# A Tuesday
NOW = datetime(2026, 3, 10, 15, 30, 45, 123456)


def as_strings(date_range: DateRange) -> tuple:
    d = date_range.as_dict()
    return d["start"], d["end"]


class TestRollingPeriods:

    @pytest.mark.parametrize("period,start", [
        ("day", "2026-03-09 15:30:45"),
        ("week", "2026-03-03 15:30:45"),
        ("month", "2026-02-08 15:30:45"),
        ("quarter", "2025-12-10 15:30:45"),
        ("year_to_date", "2025-03-10 15:30:45"),
    ])
    def test_rolling_window_ends_now(self, period, start):
        assert as_strings(resolve_period(period, NOW)) == (start, "2026-03-10 15:30:45")

    @pytest.mark.parametrize("period", sorted(ROLLING_PERIODS))
    def test_window_advances_with_clock(self, period):
        earlier = resolve_period(period, NOW)
        later = resolve_period(period, NOW + timedelta(seconds=1))

        assert later.start > earlier.start
        assert later.end > earlier.end

    def test_all_time_starts_at_epoch(self):
        date_range = resolve_period("all_time", NOW)
        assert date_range.start == EPOCH
        assert date_range.end == datetime(2026, 3, 10, 15, 30, 45)


class TestCalendarPeriods:

    def test_yesterday(self):
        assert as_strings(resolve_period("yesterday", NOW)) == ("2026-03-09 00:00:00", "2026-03-09 23:59:59")

    def test_last_week_is_previous_monday_to_sunday(self):
        assert as_strings(resolve_period("last_week", NOW)) == ("2026-03-02 00:00:00", "2026-03-08 23:59:59")

    def test_last_week_zero_equals_last_week(self):
        assert resolve_period("last_week_0", NOW) == resolve_period("last_week", NOW)

    def test_last_week_n_steps_back(self):
        assert as_strings(resolve_period("last_week_2", NOW)) == ("2026-02-16 00:00:00", "2026-02-22 23:59:59")

    def test_last_month(self):
        assert as_strings(resolve_period("last_month", NOW)) == ("2026-02-01 00:00:00", "2026-02-28 23:59:59")

    def test_last_month_crosses_year(self):
        assert as_strings(resolve_period("last_month_3", NOW)) == ("2025-11-01 00:00:00", "2025-11-30 23:59:59")

    def test_month_m_y(self):
        assert as_strings(resolve_period("month_1_2026", NOW)) == ("2026-01-01 00:00:00", "2026-01-31 23:59:59")

    def test_leap_february(self):
        assert resolve_period("month_2_2024", NOW).end == datetime(2024, 2, 29, 23, 59, 59)

    def test_quarter(self):
        assert as_strings(resolve_period("quarter_4_2025", NOW)) == ("2025-10-01 00:00:00", "2025-12-31 23:59:59")

    def test_year(self):
        assert as_strings(resolve_period("year_2025", NOW)) == ("2025-01-01 00:00:00", "2025-12-31 23:59:59")

    def test_resolution_is_deterministic(self):
        assert resolve_period("last_month_1", NOW) == resolve_period("last_month_1", NOW)

    @pytest.mark.parametrize("period", [
        "fortnight", "month_13_2026", "month_0_2026", "quarter_5_2026", "quarter_0_2026", "year_", "last_week_x", "",
    ])
    def test_invalid_tokens(self, period):
        with pytest.raises(BadRequestError) as exc_info:
            resolve_period(period, NOW)
        assert exc_info.value.error_code == "invalid_period"


class TestResolveDateRange:

    def test_period_wins_over_dates(self):
        date_range = resolve_date_range("yesterday", "2020-01-01", "2020-01-02", NOW)
        assert date_range.start == datetime(2026, 3, 9)

    def test_bare_end_date_covers_whole_day(self):
        date_range = resolve_date_range(None, "2026-01-01", "2026-01-31", NOW)
        assert as_strings(date_range) == ("2026-01-01 00:00:00", "2026-01-31 23:59:59")

    def test_datetimes_with_offset_become_utc(self):
        date_range = resolve_date_range(None, "2026-01-01T02:00:00+02:00", "2026-01-01T10:00:00Z", NOW)
        assert as_strings(date_range) == ("2026-01-01 00:00:00", "2026-01-01 10:00:00")

    def test_period_is_case_insensitive(self):
        assert resolve_date_range(" Yesterday ", None, None, NOW) == resolve_period("yesterday", NOW)

    @pytest.mark.parametrize("start,end", [
        (None, None),
        ("2026-01-01", None),
        (None, "2026-01-01"),
        ("2026-02-01", "2026-01-01"),
        ("yesterday", "2026-01-01"),
        ("2026-13-01", "2026-12-01"),
        ("0001-01-01T00:00:00+01:00", "2026-01-01"),
        ("2026-01-01", "9999-12-31T23:59:59-01:00"),
    ])
    def test_missing_or_bad_dates(self, start, end):
        with pytest.raises(BadRequestError):
            resolve_date_range(None, start, end, NOW)


class TestLimits:

    @pytest.mark.parametrize("raw,expected", [(None, 5), ("", 5), ("3", 3), ("all", None), ("ALL", None)])
    def test_parse_limit(self, raw, expected):
        assert parse_limit(raw, 5) == expected

    @pytest.mark.parametrize("raw", ["0", "-1", "abc", "1.5"])
    def test_parse_limit_rejects(self, raw):
        with pytest.raises(BadRequestError) as exc_info:
            parse_limit(raw, 5)
        assert exc_info.value.error_code == "invalid_limit"

    @pytest.mark.parametrize("raw,expected", [(None, 5), ("0", 0), ("2", 2), ("all", None)])
    def test_parse_countries_limit(self, raw, expected):
        assert parse_countries_limit(raw, 5) == expected

    @pytest.mark.parametrize("raw", ["-1", "many"])
    def test_parse_countries_limit_rejects(self, raw):
        with pytest.raises(BadRequestError) as exc_info:
            parse_countries_limit(raw, 5)
        assert exc_info.value.error_code == "invalid_countries_limit"

"""
Stats period resolution.

Turns a period token or an explicit start/end pair into a closed date range
[start, end] in naive UTC, at second precision (the precision of stored
events).

Rolling windows end at "now":
    day (24h), week (7d), month (30d), quarter (90d), year_to_date (365d)

Calendar-aligned windows end at 23:59:59 of their last day:
    yesterday
    last_week, last_week_N     Monday-Sunday; last_week == last_week_0 is the
                               most recent full week, N steps further back
    last_month, last_month_N   same convention for calendar months
    month_M_Y, quarter_Q_Y, year_Y
    all_time                   epoch to now

Unknown tokens and unparsable dates raise BadRequestError.
"""

import calendar
import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from linktrack.core.exceptions import BadRequestError

DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
EPOCH = datetime(1970, 1, 1)
END_OF_DAY = time(23, 59, 59)

ROLLING_PERIODS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "quarter": timedelta(days=90),
    "year_to_date": timedelta(days=365),
}

_LAST_WEEK = re.compile(r"^last_week(?:_(\d{1,4}))?$")
_LAST_MONTH = re.compile(r"^last_month(?:_(\d{1,4}))?$")
_MONTH = re.compile(r"^month_(\d{1,2})_(\d{4})$")
_QUARTER = re.compile(r"^quarter_(\d)_(\d{4})$")
_YEAR = re.compile(r"^year_(\d{4})$")
_BARE_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def as_dict(self) -> dict:
        return {
            "start": self.start.strftime(DATETIME_FORMAT),
            "end": self.end.strftime(DATETIME_FORMAT),
        }


def _invalid_period() -> BadRequestError:
    return BadRequestError("Invalid period or date range", "invalid_period")


def _day_range(first: date, last: date) -> DateRange:
    return DateRange(datetime.combine(first, time.min), datetime.combine(last, END_OF_DAY))


def _month_range(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return _day_range(date(year, month, 1), date(year, month, last_day))


def _shift_month(year: int, month: int, months_back: int) -> tuple:
    index = year * 12 + (month - 1) - months_back
    shifted_year, shifted_month = divmod(index, 12)
    return shifted_year, shifted_month + 1


def resolve_period(period: str, now: datetime) -> DateRange:
    """
    Resolve a period token relative to `now` (naive UTC).

    Raises:
        BadRequestError: Unknown or out-of-range token
    """
    now = now.replace(microsecond=0)

    if period in ROLLING_PERIODS:
        return DateRange(now - ROLLING_PERIODS[period], now)

    if period == "all_time":
        return DateRange(EPOCH, now)

    today = now.date()

    if period == "yesterday":
        yesterday = today - timedelta(days=1)
        return _day_range(yesterday, yesterday)

    match = _LAST_WEEK.match(period)
    if match:
        weeks_back = int(match.group(1) or 0) + 1
        this_monday = today - timedelta(days=today.weekday())
        monday = this_monday - timedelta(weeks=weeks_back)
        return _day_range(monday, monday + timedelta(days=6))

    match = _LAST_MONTH.match(period)
    if match:
        months_back = int(match.group(1) or 0) + 1
        year, month = _shift_month(today.year, today.month, months_back)
        if year < 1:
            raise _invalid_period()
        return _month_range(year, month)

    match = _MONTH.match(period)
    if match:
        month, year = int(match.group(1)), int(match.group(2))
        if not 1 <= month <= 12 or year < 1:
            raise _invalid_period()
        return _month_range(year, month)

    match = _QUARTER.match(period)
    if match:
        quarter, year = int(match.group(1)), int(match.group(2))
        if not 1 <= quarter <= 4 or year < 1:
            raise _invalid_period()
        first_month = (quarter - 1) * 3 + 1
        start = _month_range(year, first_month).start
        end = _month_range(year, first_month + 2).end
        return DateRange(start, end)

    match = _YEAR.match(period)
    if match:
        year = int(match.group(1))
        if year < 1:
            raise _invalid_period()
        return _day_range(date(year, 1, 1), date(year, 12, 31))

    raise _invalid_period()


def parse_datetime(value: str, end_of_day: bool = False) -> datetime:
    """
    Parse an ISO-8601 date or datetime into naive UTC.

    A bare date means midnight, or 23:59:59 when end_of_day is set.
    """
    value = value.strip()
    try:
        if _BARE_DATE.match(value):
            day = date.fromisoformat(value)
            return datetime.combine(day, END_OF_DAY if end_of_day else time.min)
        if value.endswith(("Z", "z")):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is not None:
            # Offsets next to datetime.min/max overflow on conversion
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    except (ValueError, OverflowError):
        raise _invalid_period()
    return parsed.replace(microsecond=0)


def resolve_date_range(
    period: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    now: datetime,
) -> DateRange:
    """
    Resolve the stats window. A period token wins over explicit dates.

    Raises:
        BadRequestError: Missing, unknown or malformed input, or start after end
    """
    if period:
        return resolve_period(period.strip().lower(), now)

    if start_date and end_date:
        date_range = DateRange(parse_datetime(start_date), parse_datetime(end_date, end_of_day=True))
        if date_range.start > date_range.end:
            raise _invalid_period()
        return date_range

    raise _invalid_period()

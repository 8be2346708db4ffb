"""
Reporting-timezone helpers.

All day boundaries in the report engine are computed in a fixed UTC+8
offset. Callers resolve "now" once per generation cycle and pass it in,
so every boundary check in that cycle sees the same instant.
"""

import calendar
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable, Optional, Tuple, Union

from bulletin_reports.constants import REPORT_TIMEZONE_NAME, REPORT_UTC_OFFSET_HOURS

REPORT_TZ = timezone(timedelta(hours=REPORT_UTC_OFFSET_HOURS), REPORT_TIMEZONE_NAME)

# Last representable instant of a day at millisecond precision (23:59:59.999)
END_OF_DAY = time(23, 59, 59, 999000)
# Monthly ranges close at minute precision (23:59)
END_OF_MONTH_TIME = time(23, 59)

MONTH_TOKEN_RE = re.compile(r"^(\d{4})-(\d{2})$")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC instant."""
    return datetime.now(timezone.utc)


def to_report_tz(value: datetime) -> datetime:
    """Express an instant in the reporting timezone.

    Naive datetimes are taken to already be reporting-zone wall time,
    which is how the aggregation service emits local timestamps.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=REPORT_TZ)
    return value.astimezone(REPORT_TZ)


def report_date(value: Union[datetime, date]) -> date:
    """Calendar date of an instant as seen in the reporting timezone."""
    if isinstance(value, datetime):
        return to_report_tz(value).date()
    return value


def report_today(now: datetime) -> date:
    return report_date(now)


def start_of_day(day: date) -> datetime:
    """00:00:00.000 of *day* in the reporting timezone."""
    return datetime.combine(day, time.min, tzinfo=REPORT_TZ)


def end_of_day(day: date) -> datetime:
    """23:59:59.999 of *day* in the reporting timezone."""
    return datetime.combine(day, END_OF_DAY, tzinfo=REPORT_TZ)


def last_day_of_month(year: int, month: int) -> int:
    """Return the last day of the given month."""
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """First instant (00:00) and closing minute (23:59) of a month."""
    first = date(year, month, 1)
    last = date(year, month, last_day_of_month(year, month))
    return (
        start_of_day(first),
        datetime.combine(last, END_OF_MONTH_TIME, tzinfo=REPORT_TZ),
    )


def week_start(day: date) -> date:
    """Monday of the ISO week containing *day* (Sunday maps back, not forward)."""
    return day - timedelta(days=day.weekday())


def parse_month_token(token: str) -> Optional[Tuple[int, int]]:
    """Parse a 'YYYY-MM' token into (year, month); None if malformed."""
    match = MONTH_TOKEN_RE.match(token.strip()) if token else None
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return year, month


def format_date_token(value: Union[datetime, date]) -> str:
    """YYYY-MM-DD in the reporting timezone."""
    return report_date(value).isoformat()


def format_month_token(value: Union[datetime, date]) -> str:
    """YYYY-MM in the reporting timezone."""
    d = report_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def format_display_date(value: Union[datetime, date]) -> str:
    """Short display date, e.g. 'Mar 5, 2025'."""
    d = report_date(value)
    return f"{d:%b} {d.day}, {d.year}"


def format_month_label(value: Union[datetime, date]) -> str:
    """Long month label, e.g. 'March 2025'."""
    d = report_date(value)
    return f"{d:%B} {d.year}"

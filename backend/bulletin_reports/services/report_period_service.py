"""
Report Period Service

Resolves a report-type selection into a concrete {start, end} range in the
reporting timezone, provides the quick-pick presets, and validates a range
before any request is built.

Every function takes the current instant explicitly; nothing here reads the
clock, so one generation cycle sees one consistent "now".
"""

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from bulletin_reports.constants import MAX_REPORT_RANGE_DAYS
from bulletin_reports.exceptions import ReportInputError
from bulletin_reports.schemas.reports import ReportType
from bulletin_reports.utils.report_time import (
    end_of_day,
    month_bounds,
    parse_month_token,
    report_date,
    report_today,
    start_of_day,
    week_start,
)

logger = logging.getLogger(__name__)

MSG_MONTH_REQUIRED = "Please select a month for monthly report"
MSG_MONTH_INVALID = "Please select a valid month (YYYY-MM) for monthly report"
MSG_WEEK_DATE_REQUIRED = "Please select a date for weekly report"
MSG_DAY_DATE_REQUIRED = "Please select a date for daily report"
MSG_CUSTOM_DATES_REQUIRED = "Please select both start and end dates for custom report"
MSG_START_AFTER_END = "Start date cannot be after end date."
MSG_RANGE_TOO_LONG = (
    f"Date range cannot exceed {MAX_REPORT_RANGE_DAYS} days. "
    "Please select a shorter period."
)
MSG_START_IN_FUTURE = "Start date cannot be in the future."


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of reporting-zone instants."""
    start: datetime
    end: datetime

    @property
    def span(self) -> timedelta:
        return self.end - self.start

    def contains(self, value: datetime) -> bool:
        return self.start <= value <= self.end


@dataclass(frozen=True)
class PeriodSelection:
    """Raw period inputs as the user picked them.

    Which fields matter depends on ``report_type``: ``month`` ('YYYY-MM')
    for monthly, ``start_date`` as the anchor for weekly/daily, and both
    dates for custom.
    """
    report_type: ReportType = ReportType.MONTHLY
    month: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    preset_id: Optional[str] = None

    def with_report_type(self, report_type: ReportType) -> "PeriodSelection":
        """Switching report type discards all previous inputs."""
        return PeriodSelection(report_type=ReportType(report_type))


@dataclass(frozen=True)
class DateRangePreset:
    """Named shortcut whose range is computed on demand from "now"."""
    id: str
    label: str
    description: str
    get_value: Callable[[], DateRange]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _resolve_monthly(selection: PeriodSelection) -> DateRange:
    if not selection.month:
        raise ReportInputError(MSG_MONTH_REQUIRED)
    parsed = parse_month_token(selection.month)
    if parsed is None:
        raise ReportInputError(MSG_MONTH_INVALID, detail=f"month={selection.month!r}")
    start, end = month_bounds(*parsed)
    return DateRange(start, end)


def _resolve_weekly(selection: PeriodSelection) -> DateRange:
    if selection.start_date is None:
        raise ReportInputError(MSG_WEEK_DATE_REQUIRED)
    monday = week_start(report_date(selection.start_date))
    sunday = monday + timedelta(days=6)
    return DateRange(start_of_day(monday), end_of_day(sunday))


def _resolve_daily(selection: PeriodSelection) -> DateRange:
    if selection.start_date is None:
        raise ReportInputError(MSG_DAY_DATE_REQUIRED)
    day = report_date(selection.start_date)
    return DateRange(start_of_day(day), end_of_day(day))


def _resolve_custom(selection: PeriodSelection) -> DateRange:
    if selection.start_date is None or selection.end_date is None:
        raise ReportInputError(MSG_CUSTOM_DATES_REQUIRED)
    first = report_date(selection.start_date)
    last = report_date(selection.end_date)
    if first > last:
        first, last = last, first
    return DateRange(start_of_day(first), end_of_day(last))


_RESOLVERS = {
    ReportType.MONTHLY: _resolve_monthly,
    ReportType.WEEKLY: _resolve_weekly,
    ReportType.DAILY: _resolve_daily,
    ReportType.CUSTOM: _resolve_custom,
}


def resolve_date_range(selection: PeriodSelection) -> DateRange:
    """
    Resolve a selection into its canonical range.

    - monthly: 1st 00:00 through last day 23:59
    - weekly: Monday 00:00 through Sunday 23:59:59.999 of the anchor's week
    - daily: anchor 00:00 through 23:59:59.999
    - custom: earlier date 00:00 through later date 23:59:59.999 (inputs may be reversed)

    Raises ReportInputError when the inputs required by the type are missing.
    """
    try:
        resolver = _RESOLVERS[ReportType(selection.report_type)]
    except ValueError:
        raise ReportInputError("Invalid report type", detail=f"report_type={selection.report_type!r}")
    return resolver(selection)


def missing_inputs_reason(selection: PeriodSelection) -> Optional[str]:
    """Reason string if the selection lacks inputs for its type, else None."""
    rtype = ReportType(selection.report_type)
    if rtype == ReportType.MONTHLY and not selection.month:
        return MSG_MONTH_REQUIRED
    if rtype == ReportType.WEEKLY and selection.start_date is None:
        return MSG_WEEK_DATE_REQUIRED
    if rtype == ReportType.DAILY and selection.start_date is None:
        return MSG_DAY_DATE_REQUIRED
    if rtype == ReportType.CUSTOM and (selection.start_date is None or selection.end_date is None):
        return MSG_CUSTOM_DATES_REQUIRED
    return None


def is_generate_enabled(selection: PeriodSelection, fields: Sequence[str]) -> bool:
    """Whether the console's Generate button should be active."""
    if not fields:
        return False
    return missing_inputs_reason(selection) is None


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def validate_date_range(date_range: Optional[DateRange], now: datetime) -> None:
    """
    Enforce range invariants, short-circuiting on the first failure:

    1. both endpoints present
    2. start <= end
    3. end - start <= 365 days
    4. start <= now

    Raises ReportInputError with a user-facing reason.
    """
    if date_range is None or date_range.start is None or date_range.end is None:
        raise ReportInputError(MSG_CUSTOM_DATES_REQUIRED)
    if date_range.start > date_range.end:
        raise ReportInputError(MSG_START_AFTER_END)
    if date_range.span > timedelta(days=MAX_REPORT_RANGE_DAYS):
        raise ReportInputError(
            MSG_RANGE_TOO_LONG,
            detail=f"span={date_range.span}",
        )
    if date_range.start > now:
        raise ReportInputError(
            MSG_START_IN_FUTURE,
            detail=f"start={date_range.start.isoformat()} now={now.isoformat()}",
        )


def resolve_and_validate(selection: PeriodSelection, now: datetime) -> DateRange:
    """Resolve a selection and validate the result against *now*."""
    reason = missing_inputs_reason(selection)
    if reason:
        raise ReportInputError(reason)
    date_range = resolve_date_range(selection)
    validate_date_range(date_range, now)
    logger.debug(
        f"Resolved {ReportType(selection.report_type).value} period: "
        f"{date_range.start.isoformat()} -> {date_range.end.isoformat()}"
    )
    return date_range


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------


def get_date_range_presets(now: datetime) -> List[DateRangePreset]:
    """Quick-pick presets evaluated against *now* in the reporting timezone."""
    today = report_today(now)
    end_today = end_of_day(today)

    def _today() -> DateRange:
        return DateRange(start_of_day(today), end_today)

    def _yesterday() -> DateRange:
        yesterday = today - timedelta(days=1)
        return DateRange(start_of_day(yesterday), end_of_day(yesterday))

    def _trailing(days: int) -> Callable[[], DateRange]:
        def _compute() -> DateRange:
            return DateRange(start_of_day(today - timedelta(days=days - 1)), end_today)
        return _compute

    def _this_month() -> DateRange:
        return DateRange(start_of_day(today.replace(day=1)), end_today)

    def _last_month() -> DateRange:
        prior = today.replace(day=1) - relativedelta(months=1)
        start, end = month_bounds(prior.year, prior.month)
        return DateRange(start, end)

    return [
        DateRangePreset("today", "Today", "Current day", _today),
        DateRangePreset("yesterday", "Yesterday", "Previous day", _yesterday),
        DateRangePreset("last7days", "Last 7 Days", "Past week including today", _trailing(7)),
        DateRangePreset("last30days", "Last 30 Days", "Past month including today", _trailing(30)),
        DateRangePreset("thisMonth", "This Month", "Current month from 1st to today", _this_month),
        DateRangePreset("lastMonth", "Last Month", "Previous complete month", _last_month),
    ]


def find_preset(preset_id: str, now: datetime) -> Optional[DateRangePreset]:
    for preset in get_date_range_presets(now):
        if preset.id == preset_id:
            return preset
    return None


def apply_preset(selection: PeriodSelection, preset_id: str, now: datetime) -> PeriodSelection:
    """
    Select a preset: switch to a custom report seeded with the preset's range.

    Unknown preset ids leave the selection unchanged apart from recording
    the id, matching how the console treats a stale preset button.
    """
    preset = find_preset(preset_id, now)
    if preset is None:
        logger.warning(f"Unknown date range preset: {preset_id}")
        return replace(selection, preset_id=preset_id)
    date_range = preset.get_value()
    return PeriodSelection(
        report_type=ReportType.CUSTOM,
        start_date=report_date(date_range.start),
        end_date=report_date(date_range.end),
        preset_id=preset.id,
    )

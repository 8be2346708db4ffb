"""
Report labels and export filenames.

Derived purely from the report type and resolved range, so the on-screen
period label, the PDF title block and the download name always agree.
"""

from datetime import date, datetime
from typing import Union

from bulletin_reports.schemas.reports import ReportType
from bulletin_reports.services.report_period_service import DateRange
from bulletin_reports.utils.report_time import (
    format_date_token,
    format_display_date,
    format_month_label,
    format_month_token,
    report_date,
)

REPORT_TITLES = {
    ReportType.MONTHLY: "Monthly Report",
    ReportType.WEEKLY: "Weekly Report",
    ReportType.DAILY: "Daily Report",
    ReportType.CUSTOM: "Custom Report",
}


def build_report_title(report_type: ReportType) -> str:
    return REPORT_TITLES.get(ReportType(report_type), "Report")


def build_period_label(report_type: ReportType, date_range: DateRange) -> str:
    """
    Human-readable period description.

    Examples:
    - "March 2025"
    - "Week: Mar 3, 2025 - Mar 9, 2025"
    - "Day: Mar 5, 2025"
    - "Custom: Jan 5, 2025 - Jan 10, 2025"
    """
    rtype = ReportType(report_type)
    start = format_display_date(date_range.start)
    end = format_display_date(date_range.end)

    if rtype == ReportType.MONTHLY:
        return format_month_label(date_range.start)
    if rtype == ReportType.WEEKLY:
        return f"Week: {start} - {end}"
    if rtype == ReportType.DAILY:
        return f"Day: {start}"
    # Custom ranges inside one reporting-zone day read as a daily report
    if report_date(date_range.start) == report_date(date_range.end):
        return f"Day: {start}"
    return f"Custom: {start} - {end}"


def build_report_filename(
    report_type: ReportType,
    date_range: DateRange,
    generated_on: Union[date, datetime],
) -> str:
    """
    Filesystem-safe export name.

    - monthly-report-202503-2025-04-02.pdf
    - weekly-report-2025-03-03-to-2025-03-09-2025-04-02.pdf
    """
    rtype = ReportType(report_type)
    stamp = format_date_token(generated_on)
    if rtype == ReportType.MONTHLY:
        month = format_month_token(date_range.start).replace("-", "")
        return f"monthly-report-{month}-{stamp}.pdf"
    start = format_date_token(date_range.start)
    end = format_date_token(date_range.end)
    return f"{rtype.value}-report-{start}-to-{end}-{stamp}.pdf"

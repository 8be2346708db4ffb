"""
Report Request Builder

Shapes the outbound aggregation-service request from a validated range.
Pure payload construction; no network access.
"""

from typing import Iterable, List

from bulletin_reports.constants import SUPPORTED_CONTENT_FIELDS
from bulletin_reports.exceptions import ReportInputError
from bulletin_reports.schemas.reports import ReportRequest, ReportType
from bulletin_reports.services.report_period_service import DateRange
from bulletin_reports.utils.report_time import format_date_token, format_month_token

MSG_FIELDS_REQUIRED = (
    "Please select at least one content type (Announcements or School Calendar) "
    "to generate the report."
)


def normalize_content_fields(fields: Iterable[str]) -> List[str]:
    """
    Validate the content-type filters.

    Drops duplicates (first occurrence wins). Raises ReportInputError when
    nothing is selected or an unknown content type is given.
    """
    selected: List[str] = []
    for field in fields or []:
        if field not in SUPPORTED_CONTENT_FIELDS:
            raise ReportInputError(
                f"Unknown content type: {field}",
                detail=f"supported={SUPPORTED_CONTENT_FIELDS}",
            )
        if field not in selected:
            selected.append(field)
    if not selected:
        raise ReportInputError(MSG_FIELDS_REQUIRED)
    return selected


def build_report_request(
    report_type: ReportType,
    date_range: DateRange,
    fields: Iterable[str],
    include_images: bool = False,
) -> ReportRequest:
    """
    Build the request for *report_type*.

    - monthly: ``month`` token (YYYY-MM of the range start)
    - weekly: ``weekStart`` / ``weekEnd`` (YYYY-MM-DD)
    - daily / custom: ``startDate`` / ``endDate`` (YYYY-MM-DD)

    All dates are rendered in the reporting timezone.
    """
    content_fields = normalize_content_fields(fields)
    rtype = ReportType(report_type)

    if rtype == ReportType.MONTHLY:
        return ReportRequest(
            month=format_month_token(date_range.start),
            fields=content_fields,
            include_images=include_images,
        )

    start = format_date_token(date_range.start)
    end = format_date_token(date_range.end)

    if rtype == ReportType.WEEKLY:
        return ReportRequest(
            week_start=start,
            week_end=end,
            fields=content_fields,
            include_images=include_images,
        )

    return ReportRequest(
        start_date=start,
        end_date=end,
        fields=content_fields,
        include_images=include_images,
    )

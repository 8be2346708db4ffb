"""
Utilities Package

Reporting-timezone arithmetic and URL helpers.
"""

from .report_time import (
    REPORT_TZ,
    end_of_day,
    format_date_token,
    format_display_date,
    start_of_day,
    to_report_tz,
    utc_now,
)
from .url_utils import resolve_image_url

__all__ = [
    "REPORT_TZ",
    "end_of_day",
    "format_date_token",
    "format_display_date",
    "resolve_image_url",
    "start_of_day",
    "to_report_tz",
    "utc_now",
]

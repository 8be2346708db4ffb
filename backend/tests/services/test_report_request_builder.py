"""
Tests for backend/bulletin_reports/services/report_request_builder.py

Covers:
- normalize_content_fields: dedupe, unknown types, empty selection
- build_report_request: payload shape per report type
- ReportRequest: exactly-one-date-group invariant
"""

from datetime import date

import pytest
from pydantic import ValidationError as SchemaValidationError

from bulletin_reports.exceptions import ReportInputError
from bulletin_reports.schemas.reports import ReportRequest, ReportType
from bulletin_reports.services.report_period_service import DateRange
from bulletin_reports.services.report_request_builder import (
    MSG_FIELDS_REQUIRED,
    build_report_request,
    normalize_content_fields,
)
from bulletin_reports.utils.report_time import end_of_day, month_bounds, start_of_day

MARCH = DateRange(*month_bounds(2025, 3))
WEEK = DateRange(start_of_day(date(2025, 3, 3)), end_of_day(date(2025, 3, 9)))
DAY = DateRange(start_of_day(date(2025, 3, 5)), end_of_day(date(2025, 3, 5)))


class TestNormalizeContentFields:
    """Tests for normalize_content_fields()"""

    def test_keeps_order(self):
        assert normalize_content_fields(["SchoolCalendar", "Announcements"]) == [
            "SchoolCalendar",
            "Announcements",
        ]

    def test_duplicates_collapse(self):
        """Edge case: first occurrence wins."""
        assert normalize_content_fields(["Announcements", "Announcements"]) == ["Announcements"]

    def test_empty_selection(self):
        """Failure: at least one content type is required."""
        with pytest.raises(ReportInputError) as exc_info:
            normalize_content_fields([])
        assert exc_info.value.message == MSG_FIELDS_REQUIRED

    def test_none_selection(self):
        with pytest.raises(ReportInputError):
            normalize_content_fields(None)

    def test_unknown_field(self):
        with pytest.raises(ReportInputError) as exc_info:
            normalize_content_fields(["Announcements", "Polls"])
        assert "Polls" in exc_info.value.message


class TestBuildReportRequest:
    """Tests for build_report_request()"""

    def test_monthly_payload(self):
        """Happy path: monthly sends only the month token."""
        request = build_report_request(ReportType.MONTHLY, MARCH, ["Announcements"])
        assert request.to_payload() == {
            "month": "2025-03",
            "fields": ["Announcements"],
            "includeImages": False,
        }

    def test_weekly_payload(self):
        request = build_report_request(ReportType.WEEKLY, WEEK, ["Announcements", "SchoolCalendar"], True)
        assert request.to_payload() == {
            "weekStart": "2025-03-03",
            "weekEnd": "2025-03-09",
            "fields": ["Announcements", "SchoolCalendar"],
            "includeImages": True,
        }

    def test_daily_payload_uses_start_end(self):
        payload = build_report_request(ReportType.DAILY, DAY, ["SchoolCalendar"]).to_payload()
        assert payload["startDate"] == "2025-03-05"
        assert payload["endDate"] == "2025-03-05"
        assert "month" not in payload
        assert "weekStart" not in payload

    def test_custom_payload(self):
        custom = DateRange(start_of_day(date(2025, 1, 5)), end_of_day(date(2025, 1, 10)))
        payload = build_report_request(ReportType.CUSTOM, custom, ["Announcements"]).to_payload()
        assert (payload["startDate"], payload["endDate"]) == ("2025-01-05", "2025-01-10")

    def test_fields_validated_before_building(self):
        with pytest.raises(ReportInputError):
            build_report_request(ReportType.DAILY, DAY, [])

    def test_request_is_immutable(self):
        """Edge case: a built request can be re-sent unchanged."""
        request = build_report_request(ReportType.DAILY, DAY, ["Announcements"])
        with pytest.raises(SchemaValidationError):
            request.month = "2025-01"


class TestReportRequestModel:
    """Tests for the ReportRequest date-group invariant"""

    def test_two_groups_rejected(self):
        with pytest.raises(SchemaValidationError):
            ReportRequest(month="2025-03", startDate="2025-03-01", endDate="2025-03-02",
                          fields=["Announcements"])

    def test_no_group_rejected(self):
        with pytest.raises(SchemaValidationError):
            ReportRequest(fields=["Announcements"])

    def test_half_group_rejected(self):
        with pytest.raises(SchemaValidationError):
            ReportRequest(weekStart="2025-03-03", fields=["Announcements"])

"""
Shared test fixtures for bulletin report engine tests.

Provides reusable fixtures for:
- A fixed "now" so range checks and labels are deterministic
- Report item / tally factories in the aggregation service's wire shape
- Real in-memory images (Pillow) for the embedding pipeline
- A mock aggregation client
"""

import io
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from bulletin_reports.schemas.reports import ReportData, ReportItem, ReportTallies

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

# 2025-03-15 10:00 in the reporting timezone (UTC+8)
FIXED_NOW = datetime(2025, 3, 15, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


# ---------------------------------------------------------------------------
# Report data factories
# ---------------------------------------------------------------------------


def make_item(**kwargs) -> ReportItem:
    """Build a ReportItem from wire-shaped kwargs with sensible defaults."""
    data = {
        "id": kwargs.pop("id", "1"),
        "type": kwargs.pop("type", "Announcement"),
        "title": kwargs.pop("title", "Enrollment Schedule"),
        "content": kwargs.pop("content", "Enrollment for the second semester starts Monday."),
        "date": kwargs.pop("date", "2025-03-05T09:00:00+08:00"),
        "category": kwargs.pop("category", "regular"),
        "images": kwargs.pop("images", []),
    }
    data.update(kwargs)
    return ReportItem.model_validate(data)


def make_tallies(ann_regular=1, ann_alert=0, cal_regular=1, cal_alert=0) -> ReportTallies:
    return ReportTallies.model_validate({
        "announcements": {
            "regular": ann_regular,
            "alert": ann_alert,
            "total": ann_regular + ann_alert,
        },
        "school_calendar": {
            "regular": cal_regular,
            "alert": cal_alert,
            "total": cal_regular + cal_alert,
        },
    })


def make_envelope(items=None, tallies=None, success=True, message="Report generated"):
    """Admin API response body as the aggregation service returns it."""
    items = items if items is not None else [
        {
            "id": 1,
            "type": "Announcement",
            "title": "Enrollment Schedule",
            "content": "Enrollment starts Monday.",
            "date": "2025-03-05T09:00:00+08:00",
            "category": "regular",
            "images": [],
            "posted_by_name": "Registrar",
            "status": "published",
        },
        {
            "id": 2,
            "type": "Calendar",
            "title": "Foundation Day",
            "content": "Campus-wide celebration.",
            "date": "2025-03-10",
            "category": "alert",
            "images": [],
            "created_by": 7,
            "is_active": True,
        },
    ]
    tallies = tallies or {
        "announcements": {"regular": 1, "alert": 0, "total": 1},
        "school_calendar": {"regular": 0, "alert": 1, "total": 1},
    }
    return {
        "success": success,
        "message": message,
        "data": {
            "report": {
                "title": "Monthly Report",
                "description": "",
                "tallies": tallies,
                "items": items,
                "meta": {"generatedAt": "2025-03-15T10:00:00+08:00", "generatedBy": "admin"},
            }
        },
    }


@pytest.fixture
def sample_items():
    return [
        make_item(id="a1", title="Enrollment Schedule", posted_by_name="Registrar", status="published"),
        make_item(
            id="c1",
            type="Calendar",
            title="Foundation Day",
            category="alert",
            date="2025-03-10",
            created_by=7,
            is_active=True,
        ),
        make_item(id="a2", title="Library Hours", category="alert", status="draft"),
    ]


@pytest.fixture
def sample_tallies():
    return make_tallies(ann_regular=1, ann_alert=1, cal_regular=0, cal_alert=1)


@pytest.fixture
def sample_report_data():
    return ReportData.model_validate(make_envelope()["data"])


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------


def image_bytes(fmt="PNG", size=(40, 30), mode="RGB", color=(200, 30, 30)) -> bytes:
    """Encode a real solid-color image."""
    img = Image.new(mode, size, color)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def png_bytes():
    return image_bytes("PNG")


# ---------------------------------------------------------------------------
# Aggregation client
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_report_client(sample_report_data):
    """Aggregation client whose fetch_report returns sample data."""
    client = MagicMock()
    client.base_url = "http://reports.test"
    client.fetch_report = AsyncMock(return_value=sample_report_data)
    client.check_health = AsyncMock(return_value=True)
    return client

"""
Application Constants

Centralized constants for the reporting timezone, range limits and
content-type vocabulary.
"""

from typing import Dict

# Reporting timezone is a fixed UTC+8 offset (Asia/Manila, no DST)
REPORT_UTC_OFFSET_HOURS = 8
REPORT_TIMEZONE_NAME = "PHT"

# Maximum span of a report range, inclusive
MAX_REPORT_RANGE_DAYS = 365

# Content types the aggregation service understands
FIELD_ANNOUNCEMENTS = "Announcements"
FIELD_SCHOOL_CALENDAR = "SchoolCalendar"
SUPPORTED_CONTENT_FIELDS = [FIELD_ANNOUNCEMENTS, FIELD_SCHOOL_CALENDAR]

CONTENT_FIELD_LABELS: Dict[str, str] = {
    FIELD_ANNOUNCEMENTS: "Announcements",
    FIELD_SCHOOL_CALENDAR: "School Calendar",
}

# Announcement workflow states
ANNOUNCEMENT_STATUSES = ["draft", "pending", "published", "archived"]

# Detail table body text is cut at this many characters
DETAIL_TEXT_LIMIT = 100

# Image embedding
IMAGE_JPEG_QUALITY = 80

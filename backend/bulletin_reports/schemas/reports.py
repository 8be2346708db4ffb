"""Report-related Pydantic schemas (aggregation service wire format)"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReportType(str, Enum):
    """Reporting period granularity"""

    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"
    CUSTOM = "custom"


class ItemKind(str, Enum):
    """Kinds of content the aggregation service reports on"""

    ANNOUNCEMENT = "Announcement"
    CALENDAR_EVENT = "Calendar"


class ItemCategory(str, Enum):
    REGULAR = "regular"
    ALERT = "alert"


def _parse_instant(value: Any) -> Any:
    """Accept ISO strings including date-only ones ('2025-03-05')."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        return isoparse(value)
    return value


class ReportItem(BaseModel):
    """One announcement or calendar event. Read-only input to the engine."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: ItemKind
    title: str
    content: str = ""
    date: datetime
    category: ItemCategory = ItemCategory.REGULAR
    images: List[str] = Field(default_factory=list)

    # Attribution (announcements use posted_by*, calendar events created_by*)
    posted_by: Optional[int] = None
    created_by: Optional[int] = None
    posted_by_name: Optional[str] = None
    created_by_name: Optional[str] = None

    announcement_id: Optional[int] = None
    calendar_id: Optional[int] = None
    created_at: Optional[datetime] = None

    # Announcement-specific
    status: Optional[str] = None  # draft, pending, published, archived
    visibility_end_at: Optional[datetime] = None

    # Calendar-specific
    is_active: Optional[bool] = None
    event_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, int):
            return str(v)
        return v

    @field_validator("content", mode="before")
    @classmethod
    def none_content_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("images", mode="before")
    @classmethod
    def none_images_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator(
        "date", "created_at", "visibility_end_at", "event_date", "end_date",
        mode="before",
    )
    @classmethod
    def parse_instants(cls, v: Any) -> Any:
        return _parse_instant(v)

    @property
    def kind(self) -> ItemKind:
        return self.type

    @property
    def attribution(self) -> str:
        """Display name of whoever posted/created the item."""
        if self.type == ItemKind.ANNOUNCEMENT:
            name, admin_id = self.posted_by_name, self.posted_by
        else:
            name, admin_id = self.created_by_name, self.created_by
        if name:
            return name
        return f"Admin ID: {admin_id if admin_id is not None else 'N/A'}"


class TallyGroup(BaseModel):
    regular: int = Field(..., ge=0)
    alert: int = Field(..., ge=0)
    total: int = Field(..., ge=0)

    @model_validator(mode="after")
    def total_matches_parts(self):
        if self.total != self.regular + self.alert:
            raise ValueError(
                f"total ({self.total}) must equal regular + alert "
                f"({self.regular} + {self.alert})"
            )
        return self


class ReportTallies(BaseModel):
    announcements: TallyGroup
    school_calendar: TallyGroup

    @property
    def calendar_events(self) -> TallyGroup:
        return self.school_calendar


class ReportMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    generated_at: Optional[datetime] = Field(None, alias="generatedAt")
    generated_by: Optional[str] = Field(None, alias="generatedBy")


class ReportBody(BaseModel):
    title: str = ""
    description: str = ""
    tallies: ReportTallies
    items: List[ReportItem]
    meta: Optional[ReportMeta] = None


class ReportData(BaseModel):
    """Inbound response consumed by the layout engine."""

    report: ReportBody


class ReportEnvelope(BaseModel):
    """Admin API response wrapper: {success, message, data}."""

    success: bool = False
    message: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class ReportRequest(BaseModel):
    """Outbound request to the aggregation service.

    Exactly one date-shaped group is populated: ``month`` (monthly),
    ``weekStart``/``weekEnd`` (weekly) or ``startDate``/``endDate``
    (daily and custom).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    month: Optional[str] = Field(None, pattern=r"^\d{4}-\d{2}$")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    week_start: Optional[str] = Field(None, alias="weekStart")
    week_end: Optional[str] = Field(None, alias="weekEnd")
    fields: List[str] = Field(..., min_length=1)
    include_images: bool = Field(False, alias="includeImages")

    @model_validator(mode="after")
    def exactly_one_date_group(self):
        groups = [
            self.month is not None,
            self.start_date is not None or self.end_date is not None,
            self.week_start is not None or self.week_end is not None,
        ]
        if sum(groups) != 1:
            raise ValueError("exactly one of month, startDate/endDate, weekStart/weekEnd is required")
        if self.start_date is not None and self.end_date is None:
            raise ValueError("startDate requires endDate")
        if self.week_start is not None and self.week_end is None:
            raise ValueError("weekStart requires weekEnd")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """JSON body as the aggregation service expects it."""
        return self.model_dump(by_alias=True, exclude_none=True)

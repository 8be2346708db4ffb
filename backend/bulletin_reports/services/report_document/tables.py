"""
Table specs for the report document.

Builds the summary table and one detail table per item kind. Column shapes
and status vocabulary differ between announcements and calendar events;
that difference is confined to this module. The layout engine only sees
TableSpec rows and their heights.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from bulletin_reports.constants import DETAIL_TEXT_LIMIT
from bulletin_reports.schemas.reports import ItemKind, ReportItem, ReportTallies
from bulletin_reports.services.report_document.text import line_height, truncate_text, wrap_text
from bulletin_reports.utils.report_time import format_display_date

CELL_PADDING = 1.5  # mm, top and bottom
CELL_PADDING_X = 1.5  # mm, left and right
MAX_CELL_LINES = 8

SUMMARY_FONT_SIZE = 10
DETAIL_FONT_SIZE = 8

SUMMARY_HEADER_FILL = (41, 128, 185)
ANNOUNCEMENT_HEADER_FILL = (52, 152, 219)
CALENDAR_HEADER_FILL = (46, 125, 50)

Rgb = Tuple[int, int, int]


@dataclass(frozen=True)
class TableColumn:
    title: str
    width: float  # mm


@dataclass
class TableSpec:
    """A table with pre-wrapped cells so row heights are known before rendering."""
    heading: str
    columns: List[TableColumn]
    rows: List[List[str]]
    font_size: float = DETAIL_FONT_SIZE
    header_fill: Rgb = SUMMARY_HEADER_FILL
    striped: bool = False
    header_lines: List[List[str]] = field(init=False)
    row_lines: List[List[List[str]]] = field(init=False)

    def __post_init__(self):
        for row in self.rows:
            if len(row) != len(self.columns):
                raise ValueError(
                    f"Row has {len(row)} cells, table '{self.heading}' has {len(self.columns)} columns"
                )
        self.header_lines = [self._wrap(c.title, c.width) for c in self.columns]
        self.row_lines = [
            [self._wrap(cell, col.width) for cell, col in zip(row, self.columns)]
            for row in self.rows
        ]

    def _wrap(self, text: str, width: float) -> List[str]:
        return wrap_text(text, width - 2 * CELL_PADDING_X, self.font_size, max_lines=MAX_CELL_LINES)

    @property
    def line_height(self) -> float:
        return line_height(self.font_size)

    def _height_for(self, cells: List[List[str]]) -> float:
        most = max((len(lines) for lines in cells), default=1)
        return most * self.line_height + 2 * CELL_PADDING

    @property
    def header_height(self) -> float:
        return self._height_for(self.header_lines)

    def row_height(self, index: int) -> float:
        return self._height_for(self.row_lines[index])

    @property
    def width(self) -> float:
        return sum(c.width for c in self.columns)


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


def build_summary_table(tallies: ReportTallies, width: float) -> TableSpec:
    """Summary Statistics: one row per content type, a column per category."""
    first = width * 0.4
    rest = (width - first) / 3
    columns = [
        TableColumn("Content Type", first),
        TableColumn("Regular", rest),
        TableColumn("Alert", rest),
        TableColumn("Total", rest),
    ]
    rows = []
    for label, group in (
        ("Announcements", tallies.announcements),
        ("School Calendar", tallies.school_calendar),
    ):
        rows.append([label, str(group.regular), str(group.alert), str(group.total)])
    return TableSpec(
        heading="Summary Statistics",
        columns=columns,
        rows=rows,
        font_size=SUMMARY_FONT_SIZE,
        header_fill=SUMMARY_HEADER_FILL,
    )


# ---------------------------------------------------------------------------
# Detail tables
# ---------------------------------------------------------------------------


def _format_date(value: Optional[datetime], fallback: str = "No End Date") -> str:
    return format_display_date(value) if value else fallback


def _attachments(item: ReportItem) -> str:
    count = len(item.images)
    return f"{count} image(s)" if count else "No images"


def announcement_status(item: ReportItem) -> str:
    """draft/pending/published/archived, capitalized."""
    if not item.status:
        return "Unknown"
    return item.status[:1].upper() + item.status[1:]


def calendar_status(item: ReportItem) -> str:
    if item.is_active is None:
        return "Unknown"
    return "Active" if item.is_active else "Inactive"


def _announcement_row(item: ReportItem) -> List[str]:
    return [
        item.title,
        truncate_text(item.content, DETAIL_TEXT_LIMIT),
        item.attribution,
        _format_date(item.date),
        _format_date(item.visibility_end_at),
        announcement_status(item),
        item.category.value.upper(),
        _attachments(item),
    ]


def _calendar_row(item: ReportItem) -> List[str]:
    return [
        item.title,
        truncate_text(item.content, DETAIL_TEXT_LIMIT),
        item.attribution,
        _format_date(item.event_date or item.date),
        _format_date(item.end_date),
        calendar_status(item),
        item.category.value.upper(),
        _attachments(item),
    ]


# Relative column widths: Title, Body, Author, Start, End, Status, Type, Attachments
_DETAIL_WEIGHTS = [30, 40, 22, 20, 20, 18, 18, 22]


@dataclass(frozen=True)
class DetailTableShape:
    heading: str
    titles: List[str]
    row: Callable[[ReportItem], List[str]]
    header_fill: Rgb


DETAIL_SHAPES: Dict[ItemKind, DetailTableShape] = {
    ItemKind.ANNOUNCEMENT: DetailTableShape(
        heading="Announcements Details",
        titles=["Title", "Content", "Posted By", "Date Created", "End Date", "Status", "Type", "Attachments"],
        row=_announcement_row,
        header_fill=ANNOUNCEMENT_HEADER_FILL,
    ),
    ItemKind.CALENDAR_EVENT: DetailTableShape(
        heading="School Calendar Events Details",
        titles=["Title", "Description", "Created By", "Event Date", "End Date", "Status", "Type", "Attachments"],
        row=_calendar_row,
        header_fill=CALENDAR_HEADER_FILL,
    ),
}

# Announcements before calendar events
DETAIL_ORDER = [ItemKind.ANNOUNCEMENT, ItemKind.CALENDAR_EVENT]


def build_detail_table(kind: ItemKind, items: Sequence[ReportItem], width: float) -> TableSpec:
    shape = DETAIL_SHAPES[kind]
    scale = width / sum(_DETAIL_WEIGHTS)
    columns = [TableColumn(t, w * scale) for t, w in zip(shape.titles, _DETAIL_WEIGHTS)]
    return TableSpec(
        heading=shape.heading,
        columns=columns,
        rows=[shape.row(item) for item in items],
        font_size=DETAIL_FONT_SIZE,
        header_fill=shape.header_fill,
        striped=True,
    )


def partition_items(items: Sequence[ReportItem]) -> List[Tuple[ItemKind, List[ReportItem]]]:
    """Non-empty (kind, items) groups in document order, item order preserved."""
    groups = []
    for kind in DETAIL_ORDER:
        matching = [item for item in items if item.kind == kind]
        if matching:
            groups.append((kind, matching))
    return groups

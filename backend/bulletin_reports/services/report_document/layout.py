"""
Report Document Layout

Two-phase pagination of a report into fixed-size pages:

1. plan_sections() materializes the ordered section list: title block,
   summary table, one detail table per item kind, then one image block per
   (item, image index) when images are included.
2. LayoutEngine.flow() walks that list with a page cursor and assigns each
   block a page and vertical offset.

Atomic blocks (a table heading + column header + first row, a single image
or placeholder together with any headings it carries) are never split: if
one does not fit in the space left on the page, the cursor moves to a fresh
page first. Tables may continue onto further pages between rows; the column
header is repeated on every continuation page and always has at least one
row beneath it.

Footers ("Page i of N" and the confidentiality notice) are stamped in a
second pass once the page count is known. All measurements are millimetres
on an A4 portrait page.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from bulletin_reports.schemas.reports import ItemKind, ReportItem, ReportTallies
from bulletin_reports.services.report_document.tables import (
    TableSpec,
    build_detail_table,
    build_summary_table,
    partition_items,
)
from bulletin_reports.services.report_image_service import (
    EmbedResult,
    EncodedImage,
    ImageFailure,
    ImageKey,
    image_key,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page geometry and block metrics
# ---------------------------------------------------------------------------

PAGE_WIDTH = 210.0
PAGE_HEIGHT = 297.0
MARGIN_X = 10.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN_X
CONTENT_TOP = 20.0
CONTENT_BOTTOM = 270.0
FOOTER_NOTICE_Y = 285.0
FOOTER_PAGE_Y = 290.0

TITLE_BLOCK_HEIGHT = 40.0
SECTION_GAP = 10.0
TABLE_HEADING_HEIGHT = 10.0

IMAGE_SECTION_TITLE = "Attached Images"
IMAGE_SECTION_HEADING_HEIGHT = 15.0
ITEM_HEADING_HEIGHT = 10.0
IMAGE_WIDTH = 140.0
IMAGE_HEIGHT = 100.0
IMAGE_GAP = 10.0
PLACEHOLDER_HEIGHT = 10.0
ITEM_GAP = 10.0

ITEM_KIND_LABELS = {
    ItemKind.ANNOUNCEMENT: "Announcement",
    ItemKind.CALENDAR_EVENT: "Calendar Event",
}


@dataclass(frozen=True)
class PageGeometry:
    """Vertical band available for content on every page."""
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT
    top: float = CONTENT_TOP
    bottom: float = CONTENT_BOTTOM
    margin_x: float = MARGIN_X

    @property
    def content_width(self) -> float:
        return self.width - 2 * self.margin_x

    @property
    def content_height(self) -> float:
        return self.bottom - self.top


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class SectionKind(str, Enum):
    TITLE_BLOCK = "title_block"
    SUMMARY_TABLE = "summary_table"
    DETAIL_TABLE = "detail_table"
    IMAGE_BLOCK = "image_block"


@dataclass
class TitleBlock:
    brand: str
    title: str
    period_label: str
    generated_label: str
    kind: SectionKind = SectionKind.TITLE_BLOCK

    @property
    def height(self) -> float:
        return TITLE_BLOCK_HEIGHT


@dataclass
class TableSection:
    table: TableSpec
    kind: SectionKind = SectionKind.SUMMARY_TABLE
    item_kind: Optional[ItemKind] = None


@dataclass(frozen=True)
class Heading:
    text: str
    height: float
    level: str = "item"  # "section" or "item"


@dataclass
class ImageBlock:
    """One image slot of one item; carries any headings that introduce it."""
    item: ReportItem
    image_index: int
    ref: str
    result: EmbedResult
    headings: List[Heading] = field(default_factory=list)
    trailing_gap: float = IMAGE_GAP
    kind: SectionKind = SectionKind.IMAGE_BLOCK

    @property
    def image(self) -> Optional[EncodedImage]:
        return self.result if isinstance(self.result, EncodedImage) else None

    @property
    def is_placeholder(self) -> bool:
        return self.image is None

    @property
    def placeholder_text(self) -> str:
        return f"image unavailable: {self.ref}"

    @property
    def headings_height(self) -> float:
        return sum(h.height for h in self.headings)

    @property
    def body_height(self) -> float:
        return PLACEHOLDER_HEIGHT if self.is_placeholder else IMAGE_HEIGHT

    @property
    def height(self) -> float:
        """Footprint that must fit on one page."""
        return self.headings_height + self.body_height


DocumentSection = Union[TitleBlock, TableSection, ImageBlock]


@dataclass
class PlacedBlock:
    """A section (or a row-range fragment of a table) at a page offset."""
    section: DocumentSection
    y: float
    height: float
    row_start: int = 0
    row_end: int = 0
    show_heading: bool = True

    @property
    def bottom(self) -> float:
        return self.y + self.height


@dataclass
class Page:
    number: int
    blocks: List[PlacedBlock] = field(default_factory=list)
    footer_lines: List[str] = field(default_factory=list)


@dataclass
class Document:
    pages: List[Page]
    geometry: PageGeometry = field(default_factory=PageGeometry)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def blocks(self) -> List[PlacedBlock]:
        return [block for page in self.pages for block in page.blocks]


@dataclass
class LayoutOptions:
    """Per-render inputs for the layout pass."""
    title: str
    period_label: str
    generated_label: str
    brand_name: str
    confidentiality_notice: str
    include_images: bool = False
    geometry: PageGeometry = field(default_factory=PageGeometry)


# ---------------------------------------------------------------------------
# Phase 1: plan
# ---------------------------------------------------------------------------


def _image_blocks(
    items: Sequence[ReportItem],
    images: Dict[ImageKey, EmbedResult],
) -> List[ImageBlock]:
    blocks: List[ImageBlock] = []
    with_images = [item for item in items if item.images]
    for item_pos, item in enumerate(with_images):
        for index, ref in enumerate(item.images):
            result = images.get(image_key(item, index)) or ImageFailure(ref, "image not loaded")
            headings: List[Heading] = []
            if item_pos == 0 and index == 0:
                headings.append(Heading(IMAGE_SECTION_TITLE, IMAGE_SECTION_HEADING_HEIGHT, "section"))
            if index == 0:
                label = ITEM_KIND_LABELS.get(item.kind, item.kind.value)
                headings.append(Heading(f"{label}: {item.title}", ITEM_HEADING_HEIGHT, "item"))
            is_last = index == len(item.images) - 1
            blocks.append(ImageBlock(
                item=item,
                image_index=index,
                ref=ref,
                result=result,
                headings=headings,
                trailing_gap=IMAGE_GAP + (ITEM_GAP if is_last else 0.0),
            ))
    return blocks


def plan_sections(
    tallies: ReportTallies,
    items: Sequence[ReportItem],
    options: LayoutOptions,
    images: Optional[Dict[ImageKey, EmbedResult]] = None,
) -> List[DocumentSection]:
    """Ordered section list for one report."""
    width = options.geometry.content_width
    sections: List[DocumentSection] = [
        TitleBlock(
            brand=options.brand_name,
            title=options.title,
            period_label=options.period_label,
            generated_label=options.generated_label,
        ),
        TableSection(build_summary_table(tallies, width), SectionKind.SUMMARY_TABLE),
    ]
    for kind, group in partition_items(items):
        sections.append(TableSection(build_detail_table(kind, group, width), SectionKind.DETAIL_TABLE, kind))
    if options.include_images:
        sections.extend(_image_blocks(items, images or {}))
    return sections


# ---------------------------------------------------------------------------
# Phase 2: flow
# ---------------------------------------------------------------------------


@dataclass
class PageCursor:
    """Current page and vertical offset; owned by a single flow pass."""
    geometry: PageGeometry
    page_index: int = 0
    y: Optional[float] = None

    def __post_init__(self):
        if self.y is None:
            self.y = self.geometry.top

    @property
    def remaining(self) -> float:
        return self.geometry.bottom - self.y

    @property
    def at_page_top(self) -> bool:
        return self.y <= self.geometry.top

    def fits(self, height: float) -> bool:
        return self.y + height <= self.geometry.bottom

    def new_page(self) -> None:
        self.page_index += 1
        self.y = self.geometry.top

    def ensure(self, height: float) -> None:
        """Move to a fresh page unless *height* fits on the current one.

        A block taller than a whole page is placed at the top of a page.
        """
        if not self.fits(height) and not self.at_page_top:
            self.new_page()

    def advance(self, height: float) -> None:
        self.y += height


class LayoutEngine:
    """Flows planned sections onto pages."""

    def __init__(self, geometry: Optional[PageGeometry] = None):
        self.geometry = geometry or PageGeometry()

    def flow(self, sections: Sequence[DocumentSection]) -> Document:
        cursor = PageCursor(self.geometry)
        pages: List[Page] = [Page(number=1)]

        def place(block: PlacedBlock) -> None:
            while len(pages) <= cursor.page_index:
                pages.append(Page(number=len(pages) + 1))
            pages[cursor.page_index].blocks.append(block)

        for section in sections:
            if isinstance(section, TitleBlock):
                self._flow_title(cursor, section, place)
            elif isinstance(section, TableSection):
                self._flow_table(cursor, section, place)
            elif isinstance(section, ImageBlock):
                self._flow_image(cursor, section, place)
            else:
                raise TypeError(f"Unknown section type: {type(section).__name__}")

        return Document(pages=pages, geometry=self.geometry)

    def _flow_title(self, cursor: PageCursor, section: TitleBlock, place) -> None:
        cursor.ensure(section.height)
        place(PlacedBlock(section, cursor.y, section.height))
        cursor.advance(section.height + SECTION_GAP)

    def _flow_table(self, cursor: PageCursor, section: TableSection, place) -> None:
        table = section.table
        total_rows = len(table.rows)
        if total_rows == 0:
            return

        header = table.header_height
        cursor.ensure(TABLE_HEADING_HEIGHT + header + table.row_height(0))

        row = 0
        first = True
        while row < total_rows:
            used = (TABLE_HEADING_HEIGHT if first else 0.0) + header
            end = row
            while end < total_rows and cursor.fits(used + table.row_height(end)):
                used += table.row_height(end)
                end += 1
            if end == row:
                # Row taller than the space left on a fresh page: place it alone
                used += table.row_height(end)
                end += 1
            place(PlacedBlock(section, cursor.y, used, row_start=row, row_end=end, show_heading=first))
            cursor.advance(used)
            row = end
            first = False
            if row < total_rows:
                cursor.new_page()

        cursor.advance(SECTION_GAP)

    def _flow_image(self, cursor: PageCursor, section: ImageBlock, place) -> None:
        cursor.ensure(section.height)
        place(PlacedBlock(section, cursor.y, section.height))
        cursor.advance(section.height + section.trailing_gap)


def stamp_footers(document: Document, notice: str) -> Document:
    """Second pass: 'Page i of N' plus the confidentiality notice on every page."""
    total = document.page_count
    for page in document.pages:
        page.footer_lines = [notice, f"Page {page.number} of {total}"]
    return document


def layout_document(
    tallies: ReportTallies,
    items: Sequence[ReportItem],
    options: LayoutOptions,
    images: Optional[Dict[ImageKey, EmbedResult]] = None,
) -> Document:
    """Plan, flow and stamp a report document."""
    sections = plan_sections(tallies, items, options, images)
    document = LayoutEngine(options.geometry).flow(sections)
    stamp_footers(document, options.confidentiality_notice)
    logger.info(
        f"Laid out report '{options.title}': {len(sections)} sections "
        f"on {document.page_count} page(s)"
    )
    return document

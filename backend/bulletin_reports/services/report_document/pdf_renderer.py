"""
PDF Renderer - draws a laid-out report Document with fpdf2.

Pagination is already decided by the layout pass; this module only paints
each PlacedBlock at its assigned offset, so automatic page breaks stay off.
"""

import logging
from io import BytesIO
from typing import List, Tuple

from fpdf import FPDF

from bulletin_reports.exceptions import ReportExportError
from bulletin_reports.services.report_document.layout import (
    IMAGE_HEIGHT,
    IMAGE_WIDTH,
    FOOTER_NOTICE_Y,
    FOOTER_PAGE_Y,
    PLACEHOLDER_HEIGHT,
    TABLE_HEADING_HEIGHT,
    Document,
    ImageBlock,
    Page,
    PlacedBlock,
    TableSection,
    TitleBlock,
)
from bulletin_reports.services.report_document.tables import CELL_PADDING, CELL_PADDING_X, TableSpec
from bulletin_reports.services.report_document.text import sanitize_for_pdf, truncate_to_width

logger = logging.getLogger(__name__)

FONT = "Helvetica"
TEXT_RGB = (30, 30, 30)
MUTED_RGB = (100, 100, 100)
BRAND_RGB = (41, 128, 185)
BORDER_RGB = (200, 200, 205)
STRIPE_RGB = (245, 245, 250)
PLACEHOLDER_RGB = (150, 150, 150)


def fit_rect_preserve_aspect(
    src_w: float,
    src_h: float,
    box_x: float,
    box_y: float,
    box_w: float,
    box_h: float,
) -> Tuple[float, float, float, float]:
    """Return (x, y, w, h) fitted inside box while preserving src aspect."""
    if src_w <= 0 or src_h <= 0:
        return box_x, box_y, box_w, box_h
    src_ratio = src_w / src_h
    box_ratio = box_w / box_h if box_h else src_ratio
    if box_ratio > src_ratio:
        h = box_h
        w = h * src_ratio
        x = box_x + (box_w - w) / 2
        y = box_y
    else:
        w = box_w
        h = w / src_ratio
        x = box_x
        y = box_y + (box_h - h) / 2
    return x, y, w, h


def _draw_title(pdf: FPDF, document: Document, block: PlacedBlock):
    title: TitleBlock = block.section
    width = document.geometry.content_width
    pdf.set_xy(document.geometry.margin_x, block.y)

    pdf.set_font(FONT, "B", 18)
    pdf.set_text_color(*BRAND_RGB)
    pdf.cell(width, 10, sanitize_for_pdf(title.brand), new_x="LMARGIN", new_y="NEXT", align="C")

    pdf.set_font(FONT, "B", 14)
    pdf.set_text_color(*TEXT_RGB)
    pdf.cell(width, 9, sanitize_for_pdf(title.title), new_x="LMARGIN", new_y="NEXT", align="C")

    pdf.set_font(FONT, "", 10)
    pdf.set_text_color(*MUTED_RGB)
    pdf.cell(width, 6, sanitize_for_pdf(f"Report Period: {title.period_label}"),
             new_x="LMARGIN", new_y="NEXT", align="C")
    pdf.cell(width, 6, sanitize_for_pdf(title.generated_label), new_x="LMARGIN", new_y="NEXT", align="C")

    # Rule under the title block
    rule_y = block.y + block.height - 3
    pdf.set_draw_color(*BORDER_RGB)
    pdf.line(document.geometry.margin_x, rule_y, document.geometry.margin_x + width, rule_y)


def _draw_cells(pdf: FPDF, table: TableSpec, x: float, y: float, height: float, cells: List[List[str]]):
    """One table row: a bordered cell per column with its pre-wrapped lines."""
    lh = table.line_height
    for column, lines in zip(table.columns, cells):
        pdf.rect(x, y, column.width, height, "DF")
        inner = column.width - 2 * CELL_PADDING_X
        for i, line in enumerate(lines):
            pdf.set_xy(x + CELL_PADDING_X, y + CELL_PADDING + i * lh)
            pdf.cell(inner, lh, truncate_to_width(pdf, line, inner))
        x += column.width


def _draw_table(pdf: FPDF, document: Document, block: PlacedBlock):
    section: TableSection = block.section
    table = section.table
    x = document.geometry.margin_x
    y = block.y

    if block.show_heading:
        pdf.set_xy(x, y)
        pdf.set_font(FONT, "B", 12)
        pdf.set_text_color(*TEXT_RGB)
        pdf.cell(table.width, TABLE_HEADING_HEIGHT - 2, sanitize_for_pdf(table.heading))
        y += TABLE_HEADING_HEIGHT

    pdf.set_draw_color(*BORDER_RGB)
    pdf.set_line_width(0.2)

    # Column header, repeated on every continuation page
    pdf.set_font(FONT, "B", table.font_size)
    pdf.set_fill_color(*table.header_fill)
    pdf.set_text_color(255, 255, 255)
    _draw_cells(pdf, table, x, y, table.header_height, table.header_lines)
    y += table.header_height

    pdf.set_font(FONT, "", table.font_size)
    pdf.set_text_color(*TEXT_RGB)
    for index in range(block.row_start, block.row_end):
        if table.striped and index % 2 == 1:
            pdf.set_fill_color(*STRIPE_RGB)
        else:
            pdf.set_fill_color(255, 255, 255)
        height = table.row_height(index)
        _draw_cells(pdf, table, x, y, height, table.row_lines[index])
        y += height


def _draw_image(pdf: FPDF, document: Document, block: PlacedBlock):
    section: ImageBlock = block.section
    geometry = document.geometry
    y = block.y

    for heading in section.headings:
        pdf.set_xy(geometry.margin_x, y)
        if heading.level == "section":
            pdf.set_font(FONT, "B", 14)
        else:
            pdf.set_font(FONT, "B", 11)
        pdf.set_text_color(*TEXT_RGB)
        text = truncate_to_width(pdf, sanitize_for_pdf(heading.text), geometry.content_width)
        pdf.cell(geometry.content_width, heading.height - 3, text)
        y += heading.height

    box_x = geometry.margin_x + (geometry.content_width - IMAGE_WIDTH) / 2
    image = section.image
    if image is not None:
        x, iy, w, h = fit_rect_preserve_aspect(image.width, image.height, box_x, y, IMAGE_WIDTH, IMAGE_HEIGHT)
        pdf.image(BytesIO(image.data), x=x, y=iy, w=w, h=h)
        return

    pdf.set_draw_color(*BORDER_RGB)
    pdf.rect(box_x, y, IMAGE_WIDTH, PLACEHOLDER_HEIGHT - 2)
    pdf.set_xy(box_x, y)
    pdf.set_font(FONT, "I", 9)
    pdf.set_text_color(*PLACEHOLDER_RGB)
    text = truncate_to_width(pdf, sanitize_for_pdf(section.placeholder_text), IMAGE_WIDTH - 4)
    pdf.cell(IMAGE_WIDTH, PLACEHOLDER_HEIGHT - 2, text, align="C")


def _draw_footer(pdf: FPDF, document: Document, page: Page):
    if not page.footer_lines:
        return
    geometry = document.geometry
    pdf.set_font(FONT, "I", 8)
    pdf.set_text_color(*PLACEHOLDER_RGB)
    for line, y in zip(page.footer_lines, (FOOTER_NOTICE_Y, FOOTER_PAGE_Y)):
        pdf.set_xy(geometry.margin_x, y)
        pdf.cell(geometry.content_width, 4, sanitize_for_pdf(line), align="C")


_DRAWERS = {
    TitleBlock: _draw_title,
    TableSection: _draw_table,
    ImageBlock: _draw_image,
}


def render_pdf(document: Document) -> bytes:
    """
    Paint every page of *document* and return the PDF bytes.

    Raises ReportExportError if the PDF backend fails.
    """
    try:
        geometry = document.geometry
        pdf = FPDF(unit="mm", format=(geometry.width, geometry.height))
        pdf.set_auto_page_break(auto=False)
        pdf.set_margins(geometry.margin_x, geometry.top, geometry.margin_x)

        for page in document.pages:
            pdf.add_page()
            for block in page.blocks:
                _DRAWERS[type(block.section)](pdf, document, block)
            _draw_footer(pdf, document, page)

        buffer = BytesIO()
        pdf.output(buffer)
        content = buffer.getvalue()
    except Exception as e:
        logger.error(f"PDF rendering failed: {e}", exc_info=True)
        raise ReportExportError(detail=str(e)) from e

    logger.info(f"Rendered PDF: {document.page_count} page(s), {len(content)} bytes")
    return content

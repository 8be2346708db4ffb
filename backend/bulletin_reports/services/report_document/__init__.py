"""
Report Document Package

Pagination and PDF rendering for generated reports.
"""

from bulletin_reports.services.report_document.layout import (  # noqa: F401
    Document,
    ImageBlock,
    LayoutEngine,
    LayoutOptions,
    Page,
    PageCursor,
    PageGeometry,
    PlacedBlock,
    SectionKind,
    TableSection,
    TitleBlock,
    layout_document,
    plan_sections,
    stamp_footers,
)
from bulletin_reports.services.report_document.pdf_renderer import render_pdf  # noqa: F401
from bulletin_reports.services.report_document.tables import (  # noqa: F401
    TableSpec,
    build_detail_table,
    build_summary_table,
    partition_items,
)

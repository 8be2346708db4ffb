"""
Report Export Service

Runs one generate-and-export cycle:
    selection -> validated range -> request -> aggregation service
    -> (optional) image embedding -> layout -> PDF bytes + filename

"now" is read once by the caller and threaded through every step, so the
range check, the "Generated" line and the filename stamp all agree.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional, Sequence

import aiohttp

from bulletin_reports.config import settings
from bulletin_reports.schemas.reports import ReportData, ReportRequest, ReportType
from bulletin_reports.services.report_data_client import ReportDataClient
from bulletin_reports.services.report_document import LayoutOptions, layout_document, render_pdf
from bulletin_reports.services.report_image_service import (
    EmbedResult,
    ImageFailure,
    ImageKey,
    embed_report_images,
)
from bulletin_reports.services.report_label_service import (
    build_period_label,
    build_report_filename,
    build_report_title,
)
from bulletin_reports.services.report_period_service import (
    DateRange,
    PeriodSelection,
    resolve_and_validate,
)
from bulletin_reports.services.report_request_builder import build_report_request, normalize_content_fields
from bulletin_reports.utils.report_time import format_display_date, report_date

logger = logging.getLogger(__name__)


@dataclass
class GeneratedReport:
    """A fetched report together with everything needed to export it."""
    report_type: ReportType
    date_range: DateRange
    request: ReportRequest
    data: ReportData
    period_label: str

    @property
    def include_images(self) -> bool:
        return self.request.include_images


@dataclass
class ExportedReport:
    filename: str
    content: bytes
    period_label: str
    page_count: int
    image_failures: Dict[ImageKey, str] = field(default_factory=dict)

    media_type = "application/pdf"


def generated_label(now: datetime, timezone_label: Optional[str] = None) -> str:
    """'Generated: Mar 5, 2025 (Philippines Time)'"""
    return f"Generated: {format_display_date(now)} ({timezone_label or settings.report_timezone_label})"


async def generate_report(
    selection: PeriodSelection,
    fields: Sequence[str],
    include_images: bool,
    now: datetime,
    client: ReportDataClient,
) -> GeneratedReport:
    """
    Validate inputs, build the request and fetch the report.

    Raises ReportInputError before any network call when the selection or
    content filters are invalid; ReportServiceError/MalformedReportError
    when the aggregation service fails.
    """
    content_fields = normalize_content_fields(fields)
    rtype = ReportType(selection.report_type)
    date_range = resolve_and_validate(selection, now)
    request = build_report_request(rtype, date_range, content_fields, include_images)

    logger.info(
        f"Generating {rtype.value} report {date_range.start.isoformat()} -> "
        f"{date_range.end.isoformat()} fields={content_fields} images={include_images}"
    )
    data = await client.fetch_report(request)
    return GeneratedReport(
        report_type=rtype,
        date_range=date_range,
        request=request,
        data=data,
        period_label=build_period_label(rtype, date_range),
    )


async def retry_report(generated: GeneratedReport, client: ReportDataClient) -> GeneratedReport:
    """Re-issue exactly the same request for an already-built report."""
    data = await client.fetch_report(generated.request)
    return GeneratedReport(
        report_type=generated.report_type,
        date_range=generated.date_range,
        request=generated.request,
        data=data,
        period_label=generated.period_label,
    )


async def export_report(
    generated: GeneratedReport,
    now: datetime,
    image_base_url: Optional[str] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> ExportedReport:
    """
    Lay out and render a fetched report.

    Image failures become in-document placeholders and are reported back
    in ``image_failures``; only a PDF backend failure raises
    (ReportExportError).
    """
    report = generated.data.report
    images: Dict[ImageKey, EmbedResult] = {}
    if generated.include_images:
        images = await embed_report_images(report.items, base_url=image_base_url, session=session)

    options = LayoutOptions(
        title=build_report_title(generated.report_type),
        period_label=generated.period_label,
        generated_label=generated_label(now),
        brand_name=settings.report_brand_name,
        confidentiality_notice=settings.report_confidentiality_notice,
        include_images=generated.include_images,
    )
    document = layout_document(report.tallies, report.items, options, images)
    content = render_pdf(document)
    filename = build_report_filename(generated.report_type, generated.date_range, report_date(now))

    failures = {
        key: result.reason
        for key, result in images.items()
        if isinstance(result, ImageFailure)
    }
    logger.info(
        f"Exported {filename}: {document.page_count} page(s), "
        f"{len(failures)} image placeholder(s)"
    )
    return ExportedReport(
        filename=filename,
        content=content,
        period_label=generated.period_label,
        page_count=document.page_count,
        image_failures=failures,
    )


async def generate_and_export(
    selection: PeriodSelection,
    fields: Sequence[str],
    include_images: bool,
    now: datetime,
    client: ReportDataClient,
    image_base_url: Optional[str] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> ExportedReport:
    """Full cycle: fetch the report for *selection*, then export it as PDF."""
    generated = await generate_report(selection, fields, include_images, now, client)
    return await export_report(generated, now, image_base_url=image_base_url, session=session)

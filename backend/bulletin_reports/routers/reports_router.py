"""
Reports API Router

Endpoints backing the admin console's report screen: preset lookup,
inline period validation, PDF export and aggregation-service status.
"""

import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, Field

from bulletin_reports.config import settings
from bulletin_reports.constants import SUPPORTED_CONTENT_FIELDS
from bulletin_reports.schemas.reports import ReportType
from bulletin_reports.services.report_data_client import ReportDataClient, get_report_client
from bulletin_reports.services.report_export_service import generate_and_export
from bulletin_reports.services.report_label_service import build_period_label, build_report_title
from bulletin_reports.services.report_period_service import (
    PeriodSelection,
    apply_preset,
    get_date_range_presets,
    resolve_and_validate,
)
from bulletin_reports.utils.report_time import utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


# ----- Pydantic Schemas -----

class PeriodSelectionIn(BaseModel):
    report_type: ReportType = Field(ReportType.MONTHLY, alias="reportType")
    month: Optional[str] = None
    start_date: Optional[date] = Field(None, alias="startDate")
    end_date: Optional[date] = Field(None, alias="endDate")
    preset_id: Optional[str] = Field(None, alias="presetId")

    model_config = {"populate_by_name": True}

    def to_selection(self, now: datetime) -> PeriodSelection:
        selection = PeriodSelection(
            report_type=self.report_type,
            month=self.month,
            start_date=self.start_date,
            end_date=self.end_date,
        )
        if self.preset_id:
            selection = apply_preset(selection, self.preset_id, now)
        return selection


class ExportRequestIn(PeriodSelectionIn):
    fields: List[str] = Field(default_factory=lambda: list(SUPPORTED_CONTENT_FIELDS))
    include_images: bool = Field(False, alias="includeImages")


class PresetOut(BaseModel):
    id: str
    label: str
    description: str
    start: datetime
    end: datetime


class PeriodOut(BaseModel):
    report_type: ReportType
    title: str
    label: str
    start: datetime
    end: datetime


class ServiceStatusOut(BaseModel):
    reachable: bool
    service_url: str


# ----- Dependencies -----

def get_clock():
    """Current-instant provider; overridden in tests."""
    return utc_now


# ----- Endpoints -----

@router.get("/presets", response_model=List[PresetOut])
async def list_presets(clock=Depends(get_clock)):
    """Quick-pick ranges evaluated against the current instant."""
    now = clock()
    presets = []
    for preset in get_date_range_presets(now):
        value = preset.get_value()
        presets.append(PresetOut(
            id=preset.id,
            label=preset.label,
            description=preset.description,
            start=value.start,
            end=value.end,
        ))
    return presets


@router.post("/period", response_model=PeriodOut)
async def resolve_period(body: PeriodSelectionIn, clock=Depends(get_clock)):
    """Resolve and validate a period selection without generating anything."""
    now = clock()
    selection = body.to_selection(now)
    date_range = resolve_and_validate(selection, now)
    return PeriodOut(
        report_type=selection.report_type,
        title=build_report_title(selection.report_type),
        label=build_period_label(selection.report_type, date_range),
        start=date_range.start,
        end=date_range.end,
    )


@router.post("/export")
async def export_report_pdf(
    body: ExportRequestIn,
    clock=Depends(get_clock),
    client: ReportDataClient = Depends(get_report_client),
):
    """Generate the report for a period and download it as a PDF."""
    now = clock()
    selection = body.to_selection(now)
    exported = await generate_and_export(
        selection,
        body.fields,
        body.include_images,
        now,
        client,
        image_base_url=settings.image_base_url,
    )
    return Response(
        content=exported.content,
        media_type=exported.media_type,
        headers={"Content-Disposition": f'attachment; filename="{exported.filename}"'},
    )


@router.get("/service-status", response_model=ServiceStatusOut)
async def service_status(client: ReportDataClient = Depends(get_report_client)):
    """Connectivity probe for the aggregation service."""
    reachable = await client.check_health()
    return ServiceStatusOut(reachable=reachable, service_url=client.base_url)

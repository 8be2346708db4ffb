"""Centralized Pydantic schemas for the aggregation service wire format"""

from .reports import (
    ItemCategory,
    ItemKind,
    ReportBody,
    ReportData,
    ReportEnvelope,
    ReportItem,
    ReportMeta,
    ReportRequest,
    ReportTallies,
    ReportType,
    TallyGroup,
)

__all__ = [
    "ItemCategory",
    "ItemKind",
    "ReportBody",
    "ReportData",
    "ReportEnvelope",
    "ReportItem",
    "ReportMeta",
    "ReportRequest",
    "ReportTallies",
    "ReportType",
    "TallyGroup",
]

"""
Aggregation Service Client

Sends a built ReportRequest to the admin API (/api/reports/generate) and
returns the validated report payload. Transport failures and malformed
payloads are raised as ReportServiceError / MalformedReportError carrying
the original request, so a retry re-issues exactly the same body.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError as SchemaValidationError

from bulletin_reports.config import settings
from bulletin_reports.exceptions import MalformedReportError, ReportServiceError
from bulletin_reports.schemas.reports import ReportData, ReportEnvelope, ReportRequest

logger = logging.getLogger(__name__)

GENERATE_ENDPOINT = "/api/reports/generate"
HEALTH_ENDPOINT = "/health"


def parse_report_response(body: Any, request: Optional[ReportRequest] = None) -> ReportData:
    """
    Validate an admin API envelope and extract the report.

    Tallies are invariant-checked here (total == regular + alert, counts
    non-negative); a violating payload is malformed, never coerced.
    """
    if not isinstance(body, dict):
        raise MalformedReportError(
            "No response received from server",
            request=request,
            detail=f"body type {type(body).__name__}",
        )
    try:
        envelope = ReportEnvelope.model_validate(body)
    except SchemaValidationError as e:
        raise MalformedReportError(request=request, detail=str(e))

    if not envelope.success:
        raise ReportServiceError(
            envelope.message or "Server returned an error",
            request=request,
        )
    if not envelope.data:
        raise MalformedReportError(
            "No report data received from server",
            request=request,
        )

    try:
        return ReportData.model_validate(envelope.data)
    except SchemaValidationError as e:
        raise MalformedReportError(request=request, detail=str(e))


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("message") or body.get("detail") or response.reason_phrase)
    return response.reason_phrase


class ReportDataClient:
    """Thin async client for the report aggregation endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.report_service_url).rstrip("/")
        self.token = token if token is not None else settings.report_service_token
        self.timeout = timeout or settings.report_service_timeout

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def fetch_report(self, request: ReportRequest) -> ReportData:
        """POST the request and return the parsed report."""
        url = f"{self.base_url}{GENERATE_ENDPOINT}"
        payload = request.to_payload()
        logger.info(f"Requesting report: {payload}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(url, headers=self._headers(), json=payload)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                message = _error_message(e.response)
                logger.error(f"Report service error {status} on POST {GENERATE_ENDPOINT}: {message}")
                raise ReportServiceError(
                    f"Server error ({status}): {message}",
                    request=request,
                    detail=e.response.text,
                )
            except httpx.RequestError as e:
                logger.error(f"Report service unreachable at {url}: {e}", exc_info=True)
                raise ReportServiceError(
                    "Unable to reach the report service. Please try again.",
                    request=request,
                    detail=str(e),
                )

        try:
            body = response.json()
        except ValueError as e:
            raise MalformedReportError(request=request, detail=f"invalid JSON: {e}")

        data = parse_report_response(body, request)
        logger.info(
            f"Report received: {len(data.report.items)} items, "
            f"{data.report.tallies.announcements.total} announcements, "
            f"{data.report.tallies.school_calendar.total} calendar events"
        )
        return data

    async def check_health(self) -> bool:
        """Connectivity probe; never raises."""
        url = f"{self.base_url}{HEALTH_ENDPOINT}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._headers())
                response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Report service connectivity check failed: {e}")
            return False


def get_report_client() -> ReportDataClient:
    """FastAPI dependency returning a client bound to current settings."""
    return ReportDataClient()

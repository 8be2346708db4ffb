"""
Domain exceptions for the report engine.

Services raise these instead of fastapi.HTTPException to avoid coupling
the service layer to the web framework. A global exception handler in
main.py translates them into HTTP responses.

``message`` is always the human-readable reason shown to the user;
``detail`` holds internal diagnostics and is only logged.
"""

from typing import Any, Optional


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400, detail: Optional[str] = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class ValidationError(AppError):
    """Input validation failure (400)."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=400, detail=detail)


class ReportInputError(ValidationError):
    """Missing or invalid period selection / content filters.

    Terminal for the current generation attempt; the user corrects the input.
    """


class ReportServiceError(AppError):
    """Aggregation service failure (502).

    Carries the request that was sent so a "try again" action can
    re-issue exactly the same payload.
    """

    def __init__(
        self,
        message: str = "Failed to generate report. Please try again.",
        request: Any = None,
        status_code: int = 502,
        detail: Optional[str] = None,
    ):
        self.request = request
        super().__init__(message, status_code=status_code, detail=detail)


class MalformedReportError(ReportServiceError):
    """Aggregation service answered with an unusable payload."""

    def __init__(
        self,
        message: str = "Invalid report data structure received from server",
        request: Any = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, request=request, detail=detail)


class ReportExportError(AppError):
    """PDF export failure (500)."""

    def __init__(self, message: str = "Failed to export PDF. Please try again.", detail: Optional[str] = None):
        super().__init__(message, status_code=500, detail=detail)

"""
Usage report endpoints.
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from cubicle_booking.api import deps
from cubicle_booking.schemas.report import ReportRange, ReportResponse
from cubicle_booking.services import ReportExportService, ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("", response_model=ReportResponse)
def get_report(
    range: ReportRange = Query(default=ReportRange.DAY),
    reports: ReportService = Depends(deps.get_report_service),
):
    window, data = reports.build(range).unwrap()
    return ReportResponse.build(range, window, data)


@router.get("/export")
def export_report(
    range: ReportRange = Query(default=ReportRange.DAY),
    exporter: ReportExportService = Depends(deps.get_report_export),
):
    """Download the report as a PDF."""
    report = exporter.export_pdf(range).unwrap()
    return Response(
        content=report.content,
        media_type=report.media_type,
        headers={"Content-Disposition": f'attachment; filename="{report.filename}"'},
    )

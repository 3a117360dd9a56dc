"""
PDF export of usage reports.
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from cubicle_booking.config.settings import Settings, get_settings
from cubicle_booking.schemas.report import ReportData, ReportRange, ReportWindow
from cubicle_booking.services.base import BaseService, ServiceResult
from cubicle_booking.services.report_aggregator import ReportService
from cubicle_booking.utils.date_utils import format_day, format_timestamp, get_zone, now_utc
from cubicle_booking.utils.pdf_utils import PDFGenerator

REPORT_TITLE = "Reporte de Gestión de Cubículos"


@dataclass
class ExportedReport:
    filename: str
    content: bytes
    path: Optional[str] = None

    media_type: str = "application/pdf"


def report_filename(report_range: ReportRange, generated_at: datetime) -> str:
    """reporte_cubiculos_<range>_<yyyyMMdd_HHmm>.pdf"""
    return f"reporte_cubiculos_{report_range.value}_{generated_at.strftime('%Y%m%d_%H%M')}.pdf"


def render_report_pdf(
    window: ReportWindow,
    data: ReportData,
    generated_at: datetime,
    tz=None,
    generator: Optional[PDFGenerator] = None,
) -> bytes:
    """Lay out the summary and per-cubicle tables and render them to PDF bytes."""
    pdf = generator or PDFGenerator()
    tz = tz or generated_at.tzinfo

    story = [
        pdf.title(REPORT_TITLE),
        pdf.centered(f"Período: {format_day(window.start, tz)} - {format_day(window.end, tz)}"),
        pdf.centered(f"Generado el {format_timestamp(generated_at, tz)}", style='Caption'),
        pdf.spacer(16),
        pdf.heading("Resumen General"),
        pdf.table(
            [
                ["Total de Rentas", str(data.total_rentals)],
                ["Total de Horas", str(data.total_hours)],
                ["Promedio Horas/Renta", f"{data.average_hours:.1f}"],
            ],
            headers=["Métrica", "Valor"],
        ),
        pdf.heading("Uso por Cubículo"),
    ]

    usage = data.cubicle_usage()
    if usage:
        rows = [
            [f"Cubículo {item.cubicle_id}", str(item.rentals), f"{item.percentage:.1f}%"]
            for item in usage
        ]
    else:
        rows = [["Sin datos", "0", "0.0%"]]
    story.append(pdf.table(rows, headers=["Cubículo", "Rentas", "Porcentaje"]))

    return pdf.render(story, title=REPORT_TITLE)


class ReportExportService(BaseService):
    """
    Renders usage reports to PDF and optionally archives them on disk.
    """

    def __init__(
        self,
        db_session: Session,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(db_session)
        self.settings = settings or get_settings()
        self.clock = clock or now_utc
        self.reports = ReportService(db_session, self.settings, self.clock)

    def export_pdf(self, report_range: ReportRange) -> ServiceResult[ExportedReport]:
        built = self.reports.build(report_range)
        if not built:
            return built

        window, data = built.data
        try:
            tz = get_zone(self.settings.TIMEZONE)
            generated_at = self.clock().astimezone(tz)
            content = render_report_pdf(window, data, generated_at, tz)
            report = ExportedReport(filename=report_filename(ReportRange(report_range), generated_at), content=content)

            if self.settings.REPORT_OUTPUT_DIR:
                os.makedirs(self.settings.REPORT_OUTPUT_DIR, exist_ok=True)
                report.path = os.path.join(self.settings.REPORT_OUTPUT_DIR, report.filename)
                with open(report.path, "wb") as fh:
                    fh.write(content)

            self._log_operation("Report exported", report.filename, {"bytes": len(content)})
            return ServiceResult.success(report)
        except Exception as e:
            return self._handle_exception(e, "export report", report_range)

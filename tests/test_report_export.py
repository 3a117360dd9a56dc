"""
Tests for the PDF usage report.
"""
import os
from datetime import datetime, timezone

from cubicle_booking.schemas.report import ReportData, ReportRange, ReportWindow, TopStudent
from cubicle_booking.services.report_export_service import (
    ReportExportService,
    render_report_pdf,
    report_filename,
)
from cubicle_booking.utils.pdf_utils import NumberedCanvas, PDFGenerator

UTC = timezone.utc


def test_report_filename_includes_range_and_timestamp():
    generated_at = datetime(2024, 5, 15, 9, 5, tzinfo=UTC)
    assert report_filename(ReportRange.WEEK, generated_at) == "reporte_cubiculos_week_20240515_0905.pdf"


def test_render_report_pdf_produces_pdf_document():
    window = ReportWindow(start=datetime(2024, 5, 15, tzinfo=UTC), end=datetime(2024, 5, 15, 23, 59, tzinfo=UTC))
    data = ReportData(
        total_rentals=2,
        total_hours=6,
        usage_by_cubicle={1: 1, 3: 1},
        top_students=[TopStudent(name="Ana Lopez", rentals=2)],
    )

    content = render_report_pdf(window, data, datetime(2024, 5, 15, 18, 0, tzinfo=UTC))

    assert content.startswith(b"%PDF")


def test_render_empty_report():
    window = ReportWindow(start=datetime(2024, 5, 1, tzinfo=UTC), end=datetime(2024, 5, 2, tzinfo=UTC))

    content = render_report_pdf(window, ReportData(), datetime(2024, 5, 2, tzinfo=UTC))

    assert content.startswith(b"%PDF")


def test_every_page_gets_a_numbered_footer(monkeypatch):
    stamped = []
    monkeypatch.setattr(
        NumberedCanvas,
        "_draw_footer",
        lambda self, total: stamped.append((self._pageNumber, total)),
    )
    pdf = PDFGenerator()
    rows = [[f"Cubículo {i}", str(i), "1.0%"] for i in range(120)]

    pdf.render([pdf.title("Prueba"), pdf.table(rows, headers=["Cubículo", "Rentas", "Porcentaje"])])

    assert len(stamped) >= 2
    total = stamped[0][1]
    assert stamped == [(page, total) for page in range(1, total + 1)]


def test_export_service_returns_pdf_and_writes_archive_copy(db, settings, clock, lifecycle, ana, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "REPORT_OUTPUT_DIR", str(tmp_path))
    lifecycle.book(2, ana.id, 3).unwrap()

    report = ReportExportService(db, settings, clock).export_pdf(ReportRange.DAY).unwrap()

    assert report.filename == "reporte_cubiculos_day_20240515_1500.pdf"
    assert report.media_type == "application/pdf"
    assert report.content.startswith(b"%PDF")
    assert report.path == os.path.join(str(tmp_path), report.filename)
    with open(report.path, "rb") as fh:
        assert fh.read() == report.content


def test_export_service_without_output_dir_keeps_report_in_memory(db, settings, clock):
    report = ReportExportService(db, settings, clock).export_pdf(ReportRange.MONTH).unwrap()

    assert report.path is None
    assert report.content.startswith(b"%PDF")

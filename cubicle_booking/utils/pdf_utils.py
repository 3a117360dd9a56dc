"""
PDF generation utilities for cubicle usage reports
"""

import io
from typing import Any, Dict, List, Optional, Union

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

HEADER_COLOR = colors.HexColor("#3B82F6")


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Página i de n" at the bottom of every page."""

    footer_template = "Página {page} de {total}"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states: List[Dict[str, Any]] = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int):
        width, _ = self._pagesize
        self.setFont("Helvetica", 8)
        self.setFillColor(colors.grey)
        self.drawCentredString(
            width / 2.0,
            1 * cm,
            self.footer_template.format(page=self._pageNumber, total=total),
        )


class PDFGenerator:
    """Main PDF generation utilities"""

    def __init__(self, page_size=A4, margins=None):
        self.page_size = page_size
        self.margins = margins or {'top': 2*cm, 'bottom': 2*cm, 'left': 2*cm, 'right': 2*cm}
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Setup custom paragraph styles"""
        self.styles.add(ParagraphStyle(
            name='CustomTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            textColor=colors.black,
            spaceAfter=12,
            alignment=TA_CENTER
        ))

        self.styles.add(ParagraphStyle(
            name='CustomHeading',
            parent=self.styles['Heading2'],
            fontSize=14,
            textColor=colors.black,
            spaceBefore=16,
            spaceAfter=8
        ))

        self.styles.add(ParagraphStyle(
            name='CenteredNormal',
            parent=self.styles['Normal'],
            fontSize=11,
            spaceAfter=4,
            alignment=TA_CENTER
        ))

        self.styles.add(ParagraphStyle(
            name='Caption',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=colors.grey,
            alignment=TA_CENTER
        ))

    def create_document(self, target: Union[str, io.BytesIO], title: Optional[str] = None,
                        author: Optional[str] = None, subject: Optional[str] = None) -> SimpleDocTemplate:
        """Create a new PDF document writing to a path or buffer"""
        doc = SimpleDocTemplate(
            target,
            pagesize=self.page_size,
            topMargin=self.margins['top'],
            bottomMargin=self.margins['bottom'],
            leftMargin=self.margins['left'],
            rightMargin=self.margins['right']
        )

        if title:
            doc.title = title
        if author:
            doc.author = author
        if subject:
            doc.subject = subject

        return doc

    def heading(self, text: str) -> Paragraph:
        return Paragraph(text, self.styles['CustomHeading'])

    def title(self, text: str) -> Paragraph:
        return Paragraph(text, self.styles['CustomTitle'])

    def centered(self, text: str, style: str = 'CenteredNormal') -> Paragraph:
        return Paragraph(text, self.styles[style])

    @staticmethod
    def spacer(height: float = 12) -> Spacer:
        return Spacer(1, height)

    def table(self, data: List[List[str]], headers: Optional[List[str]] = None,
                      col_widths: Optional[List[float]] = None) -> Table:
        """Create a formatted table with a colored header row"""
        table_data = []

        if headers:
            table_data.append(headers)

        table_data.extend(data)

        table = Table(table_data, colWidths=col_widths, hAlign='LEFT')

        # Style the table
        style = [
            ('BACKGROUND', (0, 0), (-1, 0), HEADER_COLOR) if headers else None,
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white) if headers else None,
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold') if headers else None,
            ('BOTTOMPADDING', (0, 0), (-1, 0), 8) if headers else None,
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
        ]

        # Remove None entries
        style = [s for s in style if s is not None]
        table.setStyle(TableStyle(style))

        return table

    def build(self, doc: SimpleDocTemplate, story: List[Any]) -> None:
        """Build the document with page-numbered footers"""
        doc.build(story, canvasmaker=NumberedCanvas)

    def render(self, story: List[Any], title: Optional[str] = None) -> bytes:
        """Render a story to PDF bytes"""
        buffer = io.BytesIO()
        doc = self.create_document(buffer, title=title)
        self.build(doc, story)
        return buffer.getvalue()

"""
Generación de PDFs con reportlab (platypus).

Cada reporte tiene encabezado con el nombre del sistema, título y periodo,
una tabla de resumen de dos columnas, tablas de datos con filas alternas y
un pie de página en todas las páginas.
"""

import io
import logging
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

SYSTEM_NAME = "Local Fishing Inventory System"
NO_RECORDS = "No records found"

PRIMARY_COLOR = colors.HexColor("#2563eb")
TEXT_COLOR = colors.HexColor("#374151")
MUTED_COLOR = colors.HexColor("#6b7280")
ROW_ALT_COLOR = colors.HexColor("#f8fafc")
GRID_COLOR = colors.HexColor("#e5e7eb")

Period = Optional[Tuple[Optional[date], Optional[date]]]


class PdfReportBuilder:
    """Arma el story de platypus de un reporte y lo renderiza a bytes."""

    def __init__(self, title: str, period: Period = None, wide: bool = False):
        self.title = title
        self.period = period
        self.pagesize = landscape(A4) if wide else A4
        self.generated_at = datetime.now()
        self.story = []
        self._init_styles()
        self._add_header()

    def _init_styles(self):
        self.styles = getSampleStyleSheet()
        self.styles.add(ParagraphStyle(
            name="SystemName",
            parent=self.styles["Heading1"],
            fontSize=20,
            textColor=PRIMARY_COLOR,
            alignment=TA_CENTER,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name="ReportTitle",
            parent=self.styles["Heading2"],
            fontSize=16,
            textColor=TEXT_COLOR,
            alignment=TA_CENTER,
            spaceAfter=4,
        ))
        self.styles.add(ParagraphStyle(
            name="Period",
            parent=self.styles["Normal"],
            fontSize=11,
            textColor=MUTED_COLOR,
            alignment=TA_CENTER,
        ))
        self.styles.add(ParagraphStyle(
            name="SectionHeader",
            parent=self.styles["Heading3"],
            fontSize=13,
            textColor=TEXT_COLOR,
            spaceBefore=12,
            spaceAfter=6,
        ))
        self.styles.add(ParagraphStyle(
            name="EmptyNotice",
            parent=self.styles["Normal"],
            fontSize=11,
            textColor=MUTED_COLOR,
            alignment=TA_CENTER,
            spaceBefore=12,
        ))

    def _add_header(self):
        self.story.append(Paragraph(SYSTEM_NAME, self.styles["SystemName"]))
        self.story.append(Paragraph(self.title, self.styles["ReportTitle"]))
        if self.period and self.period[0] and self.period[1]:
            date_from, date_to = self.period
            self.story.append(Paragraph(f"Period: {date_from} to {date_to}", self.styles["Period"]))
        self.story.append(Spacer(1, 8 * mm))

    def add_section(self, title: str):
        self.story.append(Paragraph(title, self.styles["SectionHeader"]))

    def add_summary(self, title: str, items: Sequence[Tuple[str, str]]):
        self.add_section(title)
        table = Table([[label, value] for label, value in items], colWidths=[70 * mm, 60 * mm], hAlign="LEFT")
        table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("TEXTCOLOR", (0, 0), (-1, -1), TEXT_COLOR),
            ("LINEBELOW", (0, 0), (-1, -2), 0.5, GRID_COLOR),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ]))
        self.story.append(table)
        self.story.append(Spacer(1, 6 * mm))

    def add_table(
        self,
        headers: Sequence[str],
        rows: List[Sequence[str]],
        title: Optional[str] = None,
        empty_message: str = NO_RECORDS,
        col_widths: Optional[Sequence[float]] = None,
    ):
        if title:
            self.add_section(title)
        if not rows:
            self.story.append(Paragraph(empty_message, self.styles["EmptyNotice"]))
            return

        table = Table([list(headers)] + [list(r) for r in rows], colWidths=col_widths, repeatRows=1)
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), PRIMARY_COLOR),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
            ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, 0), 9),
            ("FONTSIZE", (0, 1), (-1, -1), 8),
            ("TEXTCOLOR", (0, 1), (-1, -1), TEXT_COLOR),
            ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ROW_ALT_COLOR]),
            ("GRID", (0, 0), (-1, -1), 0.25, GRID_COLOR),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ]))
        self.story.append(table)
        self.story.append(Spacer(1, 4 * mm))

    def add_paragraph(self, text: str):
        self.story.append(Paragraph(text, self.styles["Normal"]))

    def _draw_footer(self, canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(MUTED_COLOR)
        width = self.pagesize[0]
        canvas.drawString(doc.leftMargin, 10 * mm, f"Generated on {self.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
        canvas.drawRightString(width - doc.rightMargin, 10 * mm, SYSTEM_NAME)
        canvas.restoreState()

    def build(self) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=15 * mm,
            bottomMargin=20 * mm,
            title=self.title,
            author=SYSTEM_NAME,
        )
        doc.build(self.story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)
        logger.debug(f"PDF report built: {self.title}")
        return buffer.getvalue()

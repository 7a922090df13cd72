import io
import logging
import os
import re
from dataclasses import dataclass
from datetime import date
from functools import partial
from xml.sax.saxutils import escape as xml_escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas as canvas_module
from reportlab.platypus import Image, Paragraph, Preformatted, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.schemas.report import ReportRecord
from backend.services.layout import DISCLAIMER, LayoutTable, ReportLayout, RowKind, Surface, build_layout

logger = logging.getLogger(__name__)

PAGE_SIZES = {"A4": A4, "letter": letter}
MARGIN = 20 * mm
BOTTOM_MARGIN = 30 * mm  # keeps the footer band clear of flowing content
LOGO_MAX_WIDTH = 40 * mm
LOGO_MAX_HEIGHT = 20 * mm

BODY_FONT = "Helvetica"
BODY_FONT_SIZE = 10
LINE_HEIGHT = 14

HEADER_BG = colors.HexColor("#E6E6E6")
HEADING_ROW_BG = colors.HexColor("#F0F0F0")
MEDICATION_HEADER_BG = colors.HexColor("#C8E6FF")
POSITIVE_TEXT = colors.HexColor("#B91C1C")

RESULT_COL_FRACTIONS = (0.18, 0.42, 0.22, 0.18)
MEDICATION_COL_FRACTIONS = (0.28, 0.16, 0.18, 0.16, 0.22)
# Keeps every table row shorter than one page in the narrowest column.
MAX_CELL_CHARS = 400


@dataclass(frozen=True)
class RenderOptions:
    page_size: str = "A4"
    logo_path: str | None = None
    compress: bool = True
    export_date: date | None = None


@dataclass(frozen=True)
class RenderedReport:
    content: bytes
    page_count: int
    filename: str


def export_filename(patient_name: str, export_date: date, prefix: str = "") -> str:
    """<prefix>allergy_report_<Name_With_Underscores>_<YYYY-MM-DD>.pdf"""
    safe_name = re.sub(r"\s+", "_", (patient_name or "").strip())
    return f"{prefix}allergy_report_{safe_name}_{export_date.isoformat()}.pdf"


def batch_prefix(index: int) -> str:
    return f"report_{index + 1}_"


class FooterCanvas(canvas_module.Canvas):
    """Defers page output until the total page count is known, then stamps footers."""

    def __init__(self, *args, page_totals: list[int] | None = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self._page_totals = page_totals

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        if self._page_totals is not None:
            self._page_totals.append(total)
        super().save()

    def _draw_footer(self, total: int):
        width, _height = self._pagesize
        self.saveState()
        self.setFont(BODY_FONT, 9)
        self.setFillColor(colors.black)
        self.drawCentredString(width / 2, 20 * mm, DISCLAIMER)
        self.drawRightString(width - MARGIN, 10 * mm, f"Page {self._pageNumber} of {total}")
        self.restoreState()


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle("ReportTitle", parent=base["Title"], fontName="Helvetica-Bold", fontSize=18, leading=22, spaceAfter=4),
        "subtitle": ParagraphStyle("ReportSubtitle", parent=base["Normal"], fontSize=BODY_FONT_SIZE, alignment=TA_CENTER),
        "section": ParagraphStyle("Section", parent=base["Heading2"], fontName="Helvetica-Bold", fontSize=14, leading=18, spaceBefore=10, spaceAfter=6),
        "info": ParagraphStyle("Info", parent=base["Normal"], fontSize=11, leading=16),
        "cell": ParagraphStyle("Cell", parent=base["Normal"], fontSize=9, leading=11),
        "heading_cell": ParagraphStyle("HeadingCell", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=9, leading=11, alignment=TA_CENTER),
        "positive_cell": ParagraphStyle("PositiveCell", parent=base["Normal"], fontSize=9, leading=11, textColor=POSITIVE_TEXT),
        "empty_cell": ParagraphStyle("EmptyCell", parent=base["Normal"], fontName="Helvetica-Oblique", fontSize=9, leading=11, alignment=TA_CENTER, textColor=colors.grey),
        "interpretation": ParagraphStyle("Interpretation", parent=base["Code"], fontName=BODY_FONT, fontSize=BODY_FONT_SIZE, leading=LINE_HEIGHT, leftIndent=0, firstLineIndent=0),
    }


def _load_logo(path: str | None):
    if not path:
        return None
    if not os.path.exists(path):
        logger.warning("Clinic logo not found at %s; rendering without it", path)
        return None
    try:
        reader = ImageReader(path)
        width, height = reader.getSize()
    except Exception:
        logger.warning("Clinic logo at %s could not be read; rendering without it", path, exc_info=True)
        return None
    scale = min(LOGO_MAX_WIDTH / width, LOGO_MAX_HEIGHT / height)
    return Image(path, width=width * scale, height=height * scale)


def _header(layout: ReportLayout, styles, content_width: float, logo) -> Table:
    title_block = [
        Paragraph(xml_escape(layout.title), styles["title"]),
        Paragraph(xml_escape(layout.subtitle), styles["subtitle"]),
    ]
    side = LOGO_MAX_WIDTH + 5 * mm
    header = Table(
        [[logo or "", title_block, ""]],
        colWidths=[side, content_width - 2 * side, side],
    )
    header.setStyle(TableStyle([
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("ALIGN", (0, 0), (0, 0), "LEFT"),
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("RIGHTPADDING", (0, 0), (-1, -1), 0),
        ("LINEBELOW", (0, 0), (-1, 0), 1, colors.lightgrey),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]))
    return header


def _info_block(layout: ReportLayout, styles, content_width: float) -> Table:
    def cell(field):
        return Paragraph(f"<b>{xml_escape(field.label)}:</b> {xml_escape(field.value)}", styles["info"])

    rows = [[cell(left), cell(right)] for left, right in zip(layout.left_info, layout.right_info)]
    block = Table(rows, colWidths=[content_width / 2, content_width / 2])
    block.setStyle(TableStyle([
        ("LEFTPADDING", (0, 0), (-1, -1), 0),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ]))
    return block


def _cell_text(value: str) -> str:
    if len(value) <= MAX_CELL_CHARS:
        return xml_escape(value)
    return xml_escape(value[: MAX_CELL_CHARS - 1].rstrip()) + "…"


def _data_table(table: LayoutTable, styles, col_widths: list[float], header_bg) -> Table:
    data = [list(table.columns)]
    style_cmds = [
        ("BACKGROUND", (0, 0), (-1, 0), header_bg),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("ALIGN", (0, 0), (-1, 0), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
    width = len(table.columns)
    for index, row in enumerate(table.rows, start=1):
        if row.spans_all_columns:
            style = styles["heading_cell"] if row.kind is RowKind.HEADING else styles["empty_cell"]
            data.append([Paragraph(_cell_text(row.cells[0]), style)] + [""] * (width - 1))
            style_cmds.append(("SPAN", (0, index), (-1, index)))
            if row.kind is RowKind.HEADING:
                style_cmds.append(("BACKGROUND", (0, index), (-1, index), HEADING_ROW_BG))
            continue
        cells = [Paragraph(_cell_text(value), styles["cell"]) for value in row.cells]
        if row.positive:
            cells[-1] = Paragraph(_cell_text(row.cells[-1]), styles["positive_cell"])
        data.append(cells)

    # repeatRows re-draws the column header on every continuation page;
    # Table only ever splits between rows.
    rendered = Table(data, colWidths=col_widths, repeatRows=1)
    rendered.setStyle(TableStyle(style_cmds))
    return rendered


def _split_word(word: str, width: float, font: str, size: int) -> list[str]:
    chunks, current = [], ""
    for char in word:
        if current and stringWidth(current + char, font, size) > width:
            chunks.append(current)
            current = char
        else:
            current += char
    if current:
        chunks.append(current)
    return chunks


def wrap_lines(lines, width: float, font: str = BODY_FONT, size: int = BODY_FONT_SIZE) -> list[str]:
    """Word-wrap text lines to `width`, keeping lines that already fit untouched.

    Words wider than `width` are broken between characters.
    """
    wrapped = []
    for line in lines:
        if not line.strip() or stringWidth(line, font, size) <= width:
            wrapped.append(line)
            continue
        for piece in simpleSplit(line, font, size, width):
            if stringWidth(piece, font, size) <= width:
                wrapped.append(piece)
            else:
                wrapped.extend(_split_word(piece, width, font, size))
    return wrapped


def _interpretation(layout: ReportLayout, styles, content_width: float) -> list:
    flowables = [Paragraph(xml_escape(layout.interpretation_title), styles["section"])]
    # One flowable per wrapped line so a page break can fall between any two lines.
    for line in wrap_lines(layout.interpretation_lines, content_width):
        if line.strip():
            flowables.append(Preformatted(line, styles["interpretation"]))
        else:
            flowables.append(Spacer(1, LINE_HEIGHT))
    return flowables


def _story(layout: ReportLayout, content_width: float, logo) -> list:
    styles = _styles()
    story = [
        _header(layout, styles, content_width, logo),
        Spacer(1, 10),
        Paragraph("Patient Information", styles["section"]),
        _info_block(layout, styles, content_width),
        Paragraph(xml_escape(layout.results.title), styles["section"]),
        _data_table(layout.results, styles, [f * content_width for f in RESULT_COL_FRACTIONS], HEADER_BG),
    ]
    if layout.medications is not None:
        story.append(Paragraph(xml_escape(layout.medications.title), styles["section"]))
        story.append(
            _data_table(
                layout.medications,
                styles,
                [f * content_width for f in MEDICATION_COL_FRACTIONS],
                MEDICATION_HEADER_BG,
            )
        )
    story.extend(_interpretation(layout, styles, content_width))
    return story


def render_pdf(record: ReportRecord, options: RenderOptions | None = None, prefix: str = "") -> RenderedReport:
    """Render a report record to PDF bytes.

    Output is byte-identical for identical input: reportlab's invariant mode
    pins the creation date and document id.
    """
    options = options or RenderOptions()
    page_size = PAGE_SIZES.get(options.page_size, A4)
    layout = build_layout(record, Surface.EXPORT)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=page_size,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=BOTTOM_MARGIN,
        title="Allergy Test Report",
        author=record.doctor_name or "",
        invariant=1,
        pageCompression=1 if options.compress else 0,
    )
    page_totals: list[int] = []
    doc.build(
        _story(layout, doc.width, _load_logo(options.logo_path)),
        canvasmaker=partial(FooterCanvas, page_totals=page_totals),
    )

    export_date = options.export_date or date.today()
    return RenderedReport(
        content=buffer.getvalue(),
        page_count=page_totals[-1] if page_totals else 0,
        filename=export_filename(record.patient_name, export_date, prefix),
    )

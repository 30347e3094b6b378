"""
PDF Shift Report Renderer

Draws the report directly on a reportlab canvas (A4 portrait, mm units).

Layout is driven by an immutable ``Cursor``: every block function receives
the cursor, checks that its pre-computed height fits on the current page,
draws, and returns the advanced cursor. Page furniture that depends on the
total page count (page indicator, confidentiality banner) is stamped by
``ShiftReportCanvas.save`` once all pages exist.
"""
import io
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas as canvas_module

from plantao.models.report import ShiftReport
from plantao.utils import get_logger, ImageDecodeError
from .emblems import Emblems
from .formatters import CONFIDENTIALITY_NOTICE, INSTITUTION_LINES, image_placeholder
from .images import DecodedImage, decode_image, fit_within
from .outline import (
    FieldRow,
    FieldTable,
    Figure,
    Heading,
    Signature,
    Text,
    Title,
    build_outline,
)

logger = get_logger(__name__)

PAGE_WIDTH, PAGE_HEIGHT = A4

# Geometry, measured from the top-left corner of the page
MARGIN_LEFT = 25 * mm
MARGIN_RIGHT = 20 * mm
MARGIN_BOTTOM = 25 * mm
HEADER_TOP = 14 * mm
HEADER_HEIGHT = 24 * mm
CONTENT_TOP = HEADER_TOP + HEADER_HEIGHT + 8 * mm
CONTENT_WIDTH = PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT
CONTENT_BOTTOM = PAGE_HEIGHT - MARGIN_BOTTOM

EMBLEM_SIZE = 18 * mm
FIGURE_BOX_WIDTH = 120 * mm
FIGURE_BOX_HEIGHT = 80 * mm
FIGURE_PADDING = 2 * mm
CAPTION_LEADING = 12
LABEL_COLUMN = 0.30
CELL_PADDING = 2 * mm
SIGNATURE_RULE_WIDTH = 70 * mm

# Fonts
FONT = "Times-Roman"
FONT_BOLD = "Times-Bold"
FONT_ITALIC = "Times-Italic"
BODY_SIZE = 11
BODY_LEADING = 14
PARAGRAPH_INDENT = 12 * mm

# Colours
RED = HexColor("#FF0000")
LABEL_FILL = HexColor("#F2F2F2")
VALUE_FILL = HexColor("#F9F9F9")
GRID = HexColor("#BFBFBF")


@dataclass(frozen=True)
class Cursor:
    """Current page (1-based) and vertical offset from the top of that page."""
    page: int
    y: float

    def advance(self, height: float) -> "Cursor":
        return Cursor(self.page, self.y + height)

    @property
    def at_top(self) -> bool:
        return self.y <= CONTENT_TOP


class ShiftReportCanvas(canvas_module.Canvas):
    """
    Canvas that keeps every finished page and stamps the page indicator and
    confidentiality banner on all of them when the document is saved.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            self._draw_page_furniture(number, total)
            super().showPage()
        super().save()

    def _draw_page_furniture(self, number: int, total: int):
        self.saveState()
        if number > 1:
            self.setFont(FONT, 9)
            self.setFillColor(black)
            self.drawRightString(PAGE_WIDTH - MARGIN_RIGHT, PAGE_HEIGHT - 8 * mm, f"Página {number} de {total}")
        self.setFont(FONT_BOLD, 8)
        self.setFillColor(RED)
        self.drawCentredString(PAGE_WIDTH / 2, 12 * mm, CONFIDENTIALITY_NOTICE)
        self.restoreState()


def wrap_text(text: str, font: str, size: float, width: float, first_indent: float = 0) -> List[str]:
    """
    Wrap ``text`` to ``width`` points. Explicit newlines start new lines;
    ``first_indent`` narrows the first line of each paragraph.
    """
    lines: List[str] = []
    for paragraph in (text or "").split("\n"):
        words = " ".join(paragraph.split())
        if not words:
            lines.append("")
            continue
        if first_indent:
            first = simpleSplit(words, font, size, width - first_indent)[0]
            rest = words[len(first):].strip()
            lines.append(first)
            if rest:
                lines.extend(simpleSplit(rest, font, size, width))
        else:
            lines.extend(simpleSplit(words, font, size, width))
    return lines


class PdfReportLayout:
    """Draws outline blocks onto a ShiftReportCanvas page by page."""

    def __init__(self, canv: ShiftReportCanvas, emblems: Emblems):
        self.canv = canv
        self.placeholders: List[str] = []
        self._police = self._emblem_reader(emblems.police, "police")
        self._state = self._emblem_reader(emblems.state, "state")

    @staticmethod
    def _emblem_reader(data: bytes, name: str) -> Optional[ImageReader]:
        if not data:
            return None
        try:
            image = decode_image(data, image_id=f"emblem:{name}")
        except ImageDecodeError as e:
            logger.warning(f"Skipping {name} emblem: {e.message}")
            return None
        return ImageReader(io.BytesIO(image.png))

    # ── Pages ─────────────────────────────────────────────────────────────
    def first_page(self) -> Cursor:
        self._draw_header()
        return Cursor(page=1, y=CONTENT_TOP)

    def new_page(self, cursor: Cursor) -> Cursor:
        self.canv.showPage()
        self._draw_header()
        return Cursor(page=cursor.page + 1, y=CONTENT_TOP)

    def ensure_space(self, cursor: Cursor, height: float) -> Cursor:
        """Break to a new page unless ``height`` fits below the cursor."""
        if cursor.y + height > CONTENT_BOTTOM and not cursor.at_top:
            return self.new_page(cursor)
        return cursor

    def _draw_header(self):
        c = self.canv
        top = PAGE_HEIGHT - HEADER_TOP
        emblem_y = top - EMBLEM_SIZE
        for reader, x in (
            (self._police, MARGIN_LEFT),
            (self._state, PAGE_WIDTH - MARGIN_RIGHT - EMBLEM_SIZE),
        ):
            if reader is not None:
                c.drawImage(reader, x, emblem_y, width=EMBLEM_SIZE, height=EMBLEM_SIZE,
                            preserveAspectRatio=True, mask="auto")

        c.saveState()
        c.setFont(FONT_BOLD, 9)
        line_gap = 4 * mm
        y = top - 3 * mm
        for line in INSTITUTION_LINES:
            c.drawCentredString(PAGE_WIDTH / 2, y, line)
            y -= line_gap
        c.setStrokeColor(GRID)
        c.setLineWidth(0.5)
        rule_y = PAGE_HEIGHT - HEADER_TOP - HEADER_HEIGHT
        c.line(MARGIN_LEFT, rule_y, PAGE_WIDTH - MARGIN_RIGHT, rule_y)
        c.restoreState()

    # ── Primitive helpers ─────────────────────────────────────────────────
    def _text_line(self, text: str, x: float, y: float, font: str, size: float, align: str = "left"):
        self.canv.setFont(font, size)
        baseline = PAGE_HEIGHT - y
        if align == "center":
            self.canv.drawCentredString(x, baseline, text)
        else:
            self.canv.drawString(x, baseline, text)

    def _lines(self, cursor: Cursor, lines: Sequence[str], font: str, size: float,
               leading: float, first_indent: float = 0) -> Cursor:
        """Draw wrapped lines one by one, breaking pages between lines."""
        for i, line in enumerate(lines):
            cursor = self.ensure_space(cursor, leading)
            indent = first_indent if i == 0 else 0
            self._text_line(line, MARGIN_LEFT + indent, cursor.y + size, font, size)
            cursor = cursor.advance(leading)
        return cursor

    # ── Blocks ────────────────────────────────────────────────────────────
    def title(self, cursor: Cursor, block: Title) -> Cursor:
        cursor = self.ensure_space(cursor, 16 * mm)
        self._text_line(block.text, PAGE_WIDTH / 2, cursor.y + 14, FONT_BOLD, 14, align="center")
        cursor = cursor.advance(8 * mm)
        if block.subtitle:
            self._text_line(block.subtitle, PAGE_WIDTH / 2, cursor.y + BODY_SIZE, FONT_ITALIC, BODY_SIZE, align="center")
        return cursor.advance(8 * mm)

    def heading(self, cursor: Cursor, block: Heading) -> Cursor:
        # Keep the heading with at least two lines of what follows
        cursor = self.ensure_space(cursor, 10 * mm + 2 * BODY_LEADING)
        cursor = cursor.advance(3 * mm)
        self._text_line(block.text, MARGIN_LEFT, cursor.y + 12, FONT_BOLD, 12)
        return cursor.advance(7 * mm)

    def text(self, cursor: Cursor, block: Text) -> Cursor:
        font = FONT_ITALIC if block.italic else FONT
        indent = PARAGRAPH_INDENT if block.indent else 0
        lines = wrap_text(block.text, font, BODY_SIZE, CONTENT_WIDTH, first_indent=indent)
        cursor = self._lines(cursor, lines, font, BODY_SIZE, BODY_LEADING, first_indent=indent)
        return cursor.advance(2 * mm)

    def field_table(self, cursor: Cursor, block: FieldTable) -> Cursor:
        label_width = CONTENT_WIDTH * LABEL_COLUMN
        value_width = CONTENT_WIDTH - label_width
        for row in block.rows:
            cursor = self._field_row(cursor, row, label_width, value_width)
        return cursor.advance(4 * mm)

    def _field_row(self, cursor: Cursor, row: FieldRow, label_width: float, value_width: float) -> Cursor:
        inner = 2 * CELL_PADDING
        label_lines = wrap_text(row.label, FONT_BOLD, BODY_SIZE, label_width - inner)
        value_lines = wrap_text(row.value, FONT, BODY_SIZE, value_width - inner) or [""]
        capacity = int((CONTENT_BOTTOM - CONTENT_TOP - inner) // BODY_LEADING)

        # Rows taller than a whole page continue on the next one
        chunks: List[Tuple[List[str], List[str]]] = []
        for start in range(0, max(len(value_lines), 1), capacity):
            chunks.append((label_lines if start == 0 else [], value_lines[start:start + capacity]))

        for labels, values in chunks:
            height = max(len(labels), len(values), 1) * BODY_LEADING + inner
            cursor = self.ensure_space(cursor, height)
            self._draw_row(cursor, labels, values, label_width, value_width, height)
            cursor = cursor.advance(height)
        return cursor

    def _draw_row(self, cursor: Cursor, labels: List[str], values: List[str],
                  label_width: float, value_width: float, height: float):
        c = self.canv
        bottom = PAGE_HEIGHT - cursor.y - height
        c.saveState()
        c.setStrokeColor(GRID)
        c.setLineWidth(0.5)
        c.setFillColor(LABEL_FILL)
        c.rect(MARGIN_LEFT, bottom, label_width, height, stroke=1, fill=1)
        c.setFillColor(VALUE_FILL)
        c.rect(MARGIN_LEFT + label_width, bottom, value_width, height, stroke=1, fill=1)
        c.restoreState()

        for column, lines, font in (
            (MARGIN_LEFT, labels, FONT_BOLD),
            (MARGIN_LEFT + label_width, values, FONT),
        ):
            y = cursor.y + CELL_PADDING
            for line in lines:
                self._text_line(line, column + CELL_PADDING, y + BODY_SIZE, font, BODY_SIZE)
                y += BODY_LEADING

    def figure(self, cursor: Cursor, block: Figure) -> Cursor:
        try:
            image = decode_image(block.attachment.data, image_id=block.attachment.id)
            reader = ImageReader(io.BytesIO(image.png))
        except (ImageDecodeError, OSError, ValueError) as e:
            logger.warning(f"Image {block.index} left out of PDF: {e}")
            return self._placeholder(cursor, block)

        # The box stays with the first caption lines; the rest may run on
        caption_lines = wrap_text(block.caption, FONT_ITALIC, 10, FIGURE_BOX_WIDTH)
        head = min(len(caption_lines), 2) * CAPTION_LEADING
        cursor = self.ensure_space(cursor, FIGURE_BOX_HEIGHT + 2 * mm + head)
        try:
            self._draw_figure_box(cursor, image, reader)
        except (OSError, ValueError) as e:
            logger.warning(f"Image {block.index} could not be drawn: {e}")
            return self._placeholder(cursor, block)

        cursor = cursor.advance(FIGURE_BOX_HEIGHT + 2 * mm)
        for line in caption_lines:
            cursor = self.ensure_space(cursor, CAPTION_LEADING)
            self._text_line(line, PAGE_WIDTH / 2, cursor.y + 10, FONT_ITALIC, 10, align="center")
            cursor = cursor.advance(CAPTION_LEADING)
        return cursor.advance(4 * mm)

    def _placeholder(self, cursor: Cursor, block: Figure) -> Cursor:
        text = image_placeholder(block.index, block.attachment.description)
        self.placeholders.append(text)
        return self.text(cursor, Text(text, italic=True))

    def _draw_figure_box(self, cursor: Cursor, image: DecodedImage, reader: ImageReader):
        c = self.canv
        box_x = MARGIN_LEFT + (CONTENT_WIDTH - FIGURE_BOX_WIDTH) / 2
        box_bottom = PAGE_HEIGHT - cursor.y - FIGURE_BOX_HEIGHT
        width, height = fit_within(
            image,
            FIGURE_BOX_WIDTH - 2 * FIGURE_PADDING,
            FIGURE_BOX_HEIGHT - 2 * FIGURE_PADDING,
        )
        x = box_x + (FIGURE_BOX_WIDTH - width) / 2
        y = box_bottom + (FIGURE_BOX_HEIGHT - height) / 2
        c.drawImage(reader, x, y, width=width, height=height, mask="auto")

        c.saveState()
        c.setStrokeColor(GRID)
        c.setLineWidth(0.5)
        c.rect(box_x, box_bottom, FIGURE_BOX_WIDTH, FIGURE_BOX_HEIGHT, stroke=1, fill=0)
        c.restoreState()

    def signature(self, cursor: Cursor, block: Signature) -> Cursor:
        height = 14 * mm + 2 * BODY_LEADING
        cursor = self.ensure_space(cursor, height)
        c = self.canv
        rule_y = PAGE_HEIGHT - cursor.y - 12 * mm
        c.setLineWidth(0.5)
        c.line((PAGE_WIDTH - SIGNATURE_RULE_WIDTH) / 2, rule_y, (PAGE_WIDTH + SIGNATURE_RULE_WIDTH) / 2, rule_y)

        y = cursor.y + 12 * mm + 2 * mm
        self._text_line(block.name, PAGE_WIDTH / 2, y + BODY_SIZE, FONT, BODY_SIZE, align="center")
        self._text_line(block.role, PAGE_WIDTH / 2, y + BODY_LEADING + BODY_SIZE, FONT, BODY_SIZE, align="center")
        return cursor.advance(height)


def render_pdf(report: ShiftReport, emblems: Emblems) -> bytes:
    """
    Render the report as an A4 PDF.

    Equal inputs produce byte-identical output.
    """
    buffer = io.BytesIO()
    canv = ShiftReportCanvas(buffer, pagesize=A4, invariant=1)
    canv.setTitle(f"Relatório de Plantão {report.report_number}".strip())
    canv.setAuthor("Polícia Civil do Estado de Goiás - DICT")
    canv.setSubject("Relatório de Plantão")

    layout = PdfReportLayout(canv, emblems)
    draw = {
        Title: layout.title,
        Heading: layout.heading,
        Text: layout.text,
        FieldTable: layout.field_table,
        Figure: layout.figure,
        Signature: layout.signature,
    }

    cursor = layout.first_page()
    for block in build_outline(report):
        cursor = draw[type(block)](cursor, block)

    canv.showPage()
    canv.save()
    content = buffer.getvalue()
    logger.debug(f"PDF rendered: {cursor.page} page(s), {len(content)} bytes")
    return content

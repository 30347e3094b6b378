"""
Word Shift Report Renderer

Generates the .docx version of the shift report with python-docx:
- A4 page with institutional margins and a light-grey page border
- Running header (page number, emblems, institution lines)
- Red confidentiality footer
- Shaded label/value tables, image tables and signature blocks
"""
import io
import re
from typing import List, Optional

from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Cm, Pt, RGBColor

from plantao.models.report import ShiftReport
from plantao.utils import get_logger, ImageDecodeError
from .emblems import Emblems
from .formatters import CONFIDENTIALITY_NOTICE, INSTITUTION_LINES, image_placeholder
from .images import decode_image, fit_within
from .outline import (
    FieldTable,
    Figure,
    Heading,
    Signature,
    Text,
    Title,
    build_outline,
)

logger = get_logger(__name__)

FONT_NAME = "Times New Roman"

# Page geometry (A4)
PAGE_WIDTH = Cm(21.0)
PAGE_HEIGHT = Cm(29.7)
MARGIN_TOP = Cm(3.0)
MARGIN_LEFT = Cm(3.0)
MARGIN_RIGHT = Cm(2.0)
MARGIN_BOTTOM = Cm(2.5)
CONTENT_WIDTH_CM = 21.0 - 3.0 - 2.0

# Colours
BLACK = RGBColor(0, 0, 0)
RED = RGBColor(0xFF, 0x00, 0x00)
PAGE_BORDER_HEX = "D3D3D3"
LABEL_FILL_HEX = "F2F2F2"
VALUE_FILL_HEX = "F9F9F9"
TABLE_BORDER_HEX = "BFBFBF"

EMBLEM_SIZE = Cm(1.8)
FIGURE_MAX_WIDTH_CM = 14.0
FIGURE_MAX_HEIGHT_CM = 10.5
SIGNATURE_RULE = "_" * 40

# XML 1.0 forbids C0 controls other than tab, LF and CR
_SOFT_BREAKS = re.compile(r"[\x0b\x0c]")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0e-\x1f]")


def _style_run(
    run,
    size: Optional[Pt] = None,
    bold: Optional[bool] = None,
    italic: Optional[bool] = None,
    color: Optional[RGBColor] = None,
):
    """Apply Times New Roman plus optional size/weight/colour to a run."""
    run.font.name = FONT_NAME
    rPr = run._element.get_or_add_rPr()
    rPr.get_or_add_rFonts().set(qn("w:eastAsia"), FONT_NAME)
    if size is not None:
        run.font.size = size
    if bold is not None:
        run.font.bold = bold
    if italic is not None:
        run.font.italic = italic
    if color is not None:
        run.font.color.rgb = color


def _xml_safe(text: str) -> str:
    """Vertical tabs and form feeds become line breaks; other C0 controls are dropped."""
    return _CONTROL_CHARS.sub("", _SOFT_BREAKS.sub("\n", text or ""))


def _add_run(paragraph, text: str, **style):
    run = paragraph.add_run(_xml_safe(text))
    _style_run(run, **style)
    return run


def _set_cell_background(cell, hex_color: str):
    tcPr = cell._element.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), hex_color)
    tcPr.append(shd)


def _set_table_borders(table, val: str = "single", color: str = TABLE_BORDER_HEX, size: str = "4"):
    tbl = table._tbl
    tblPr = tbl.tblPr
    tblBorders = OxmlElement("w:tblBorders")
    for border_name in ("top", "left", "bottom", "right", "insideH", "insideV"):
        border = OxmlElement(f"w:{border_name}")
        border.set(qn("w:val"), val)
        if val != "nil":
            border.set(qn("w:sz"), size)
            border.set(qn("w:space"), "0")
            border.set(qn("w:color"), color)
        tblBorders.append(border)
    # Schema order: tblBorders precedes tblLayout/tblCellMar/tblLook
    successor = next(
        (child for child in tblPr if child.tag in (qn("w:tblLayout"), qn("w:tblCellMar"), qn("w:tblLook"))),
        None,
    )
    if successor is not None:
        successor.addprevious(tblBorders)
    else:
        tblPr.append(tblBorders)


def _add_page_field(paragraph):
    run = paragraph.add_run()
    begin = OxmlElement("w:fldChar")
    begin.set(qn("w:fldCharType"), "begin")
    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = "PAGE"
    end = OxmlElement("w:fldChar")
    end.set(qn("w:fldCharType"), "end")
    run._r.append(begin)
    run._r.append(instr)
    run._r.append(end)
    _style_run(run, size=Pt(10))


class DocxReportBuilder:
    """
    Assembles one Word document from a shift report outline.

    A builder is single-use: create it, call ``build()``, take the bytes.
    """

    def __init__(self, report: ShiftReport, emblems: Emblems):
        self.report = report
        self.emblems = emblems
        self.document = Document()
        self.placeholders: List[str] = []

    def build(self) -> bytes:
        self._setup_styles()
        self._setup_page()
        self._setup_header()
        self._setup_footer()

        for block in build_outline(self.report):
            if isinstance(block, Title):
                self._add_title(block)
            elif isinstance(block, Heading):
                self._add_section_heading(block.text)
            elif isinstance(block, Text):
                self._add_text(block)
            elif isinstance(block, FieldTable):
                self._add_field_table(block)
            elif isinstance(block, Figure):
                self._add_figure(block)
            elif isinstance(block, Signature):
                self._add_signature(block)

        buffer = io.BytesIO()
        self.document.save(buffer)
        return buffer.getvalue()

    # ── Page setup ────────────────────────────────────────────────────────
    def _setup_styles(self):
        normal = self.document.styles["Normal"]
        normal.font.name = FONT_NAME
        normal.font.size = Pt(12)
        normal.element.get_or_add_rPr().get_or_add_rFonts().set(qn("w:eastAsia"), FONT_NAME)

    def _setup_page(self):
        section = self.document.sections[0]
        section.page_width = PAGE_WIDTH
        section.page_height = PAGE_HEIGHT
        section.top_margin = MARGIN_TOP
        section.left_margin = MARGIN_LEFT
        section.right_margin = MARGIN_RIGHT
        section.bottom_margin = MARGIN_BOTTOM

        sectPr = section._sectPr
        pgBorders = OxmlElement("w:pgBorders")
        pgBorders.set(qn("w:offsetFrom"), "page")
        for side in ("top", "left", "bottom", "right"):
            border = OxmlElement(f"w:{side}")
            border.set(qn("w:val"), "single")
            border.set(qn("w:sz"), "4")
            border.set(qn("w:space"), "24")
            border.set(qn("w:color"), PAGE_BORDER_HEX)
            pgBorders.append(border)
        # pgBorders must follow pgMar in sectPr
        pgMar = sectPr.find(qn("w:pgMar"))
        if pgMar is not None:
            pgMar.addnext(pgBorders)
        else:
            sectPr.append(pgBorders)

    def _setup_header(self):
        section = self.document.sections[0]
        header = section.header
        header.is_linked_to_previous = False

        page_para = header.paragraphs[0]
        page_para.alignment = WD_ALIGN_PARAGRAPH.RIGHT
        _add_page_field(page_para)

        table = header.add_table(1, 3, Cm(CONTENT_WIDTH_CM))
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        _set_table_borders(table, val="nil")
        widths = (0.15, 0.70, 0.15)
        cells = table.rows[0].cells
        for cell, share in zip(cells, widths):
            cell.width = Cm(CONTENT_WIDTH_CM * share)

        self._add_emblem(cells[0], self.emblems.police, "police")
        center = cells[1]
        for i, line in enumerate(INSTITUTION_LINES):
            paragraph = center.paragraphs[0] if i == 0 else center.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            paragraph.paragraph_format.space_after = Pt(0)
            _add_run(paragraph, line, size=Pt(10), bold=True, color=BLACK)
        self._add_emblem(cells[2], self.emblems.state, "state")

    def _add_emblem(self, cell, data: bytes, name: str):
        if not data:
            return
        try:
            image = decode_image(data, image_id=f"emblem:{name}")
        except ImageDecodeError as e:
            logger.warning(f"Skipping {name} emblem: {e.message}")
            return
        paragraph = cell.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        paragraph.add_run().add_picture(io.BytesIO(image.png), width=EMBLEM_SIZE)

    def _setup_footer(self):
        footer = self.document.sections[0].footer
        footer.is_linked_to_previous = False
        paragraph = footer.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_run(paragraph, CONFIDENTIALITY_NOTICE, size=Pt(8), bold=True, color=RED)

    # ── Blocks ────────────────────────────────────────────────────────────
    def _add_title(self, block: Title):
        heading = self.document.add_heading(level=1)
        heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_run(heading, block.text, size=Pt(16), bold=True, color=BLACK)

        date_para = self.document.add_paragraph()
        date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_run(date_para, block.subtitle, italic=True)

    def _add_section_heading(self, text: str):
        heading = self.document.add_heading(level=2)
        heading.paragraph_format.space_before = Pt(18)
        _add_run(heading, text, size=Pt(14), bold=True, color=BLACK)

    def _add_text(self, block: Text, alignment=WD_ALIGN_PARAGRAPH.JUSTIFY):
        paragraph = self.document.add_paragraph()
        paragraph.alignment = alignment
        if block.indent:
            paragraph.paragraph_format.first_line_indent = Cm(1.25)
        _add_run(paragraph, block.text, italic=block.italic or None)
        return paragraph

    def _add_field_table(self, block: FieldTable):
        table = self.document.add_table(rows=0, cols=2)
        _set_table_borders(table)
        for row in block.rows:
            label_cell, value_cell = table.add_row().cells
            label_cell.width = Cm(CONTENT_WIDTH_CM * 0.30)
            value_cell.width = Cm(CONTENT_WIDTH_CM * 0.70)
            _set_cell_background(label_cell, LABEL_FILL_HEX)
            _set_cell_background(value_cell, VALUE_FILL_HEX)

            _add_run(label_cell.paragraphs[0], row.label, bold=True)
            lines = row.lines or ("",)
            for i, line in enumerate(lines):
                paragraph = value_cell.paragraphs[0] if i == 0 else value_cell.add_paragraph()
                paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
                _add_run(paragraph, line)
        self.document.add_paragraph()

    def _add_figure(self, block: Figure):
        try:
            image = decode_image(block.attachment.data, image_id=block.attachment.id)
        except ImageDecodeError as e:
            logger.warning(f"Image {block.index} left out of DOCX: {e.message}")
            text = image_placeholder(block.index, block.attachment.description)
            self.placeholders.append(text)
            self._add_text(Text(text, italic=True))
            return

        width, height = fit_within(image, FIGURE_MAX_WIDTH_CM, FIGURE_MAX_HEIGHT_CM)
        table = self.document.add_table(rows=2, cols=1)
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        _set_table_borders(table)

        picture_para = table.rows[0].cells[0].paragraphs[0]
        picture_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        picture_para.add_run().add_picture(io.BytesIO(image.png), width=Cm(width), height=Cm(height))

        caption_para = table.rows[1].cells[0].paragraphs[0]
        caption_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        _add_run(caption_para, block.caption, size=Pt(10), italic=True)
        self.document.add_paragraph()

    def _add_signature(self, block: Signature):
        for text, space_before in ((SIGNATURE_RULE, Pt(36)), (block.name, Pt(0)), (block.role, Pt(0))):
            paragraph = self.document.add_paragraph()
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            paragraph.paragraph_format.space_before = space_before
            paragraph.paragraph_format.space_after = Pt(0)
            _add_run(paragraph, text)


def render_docx(report: ShiftReport, emblems: Emblems) -> bytes:
    """
    Render the report as a Word document.

    Args:
        report: the shift report (read only)
        emblems: loaded emblem images; empty ones leave their header cell blank

    Returns:
        The .docx file contents
    """
    builder = DocxReportBuilder(report, emblems)
    content = builder.build()
    logger.debug(
        f"DOCX rendered: {len(content)} bytes, "
        f"{len(report.images) - len(builder.placeholders)}/{len(report.images)} images embedded"
    )
    return content

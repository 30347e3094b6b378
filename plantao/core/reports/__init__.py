"""
Report Generation Module

Renders a shift report in three formats from one shared outline:
- HTML: on-screen preview, self-contained
- DOCX: Word document with running header and footer
- PDF: A4 document drawn directly on a reportlab canvas
"""
from .emblems import Emblems, EmblemLoader
from .formatters import export_filename, format_date, format_datetime
from .html_report import render_html
from .docx_report import render_docx
from .pdf_report import render_pdf

__all__ = [
    "Emblems",
    "EmblemLoader",
    "export_filename",
    "format_date",
    "format_datetime",
    "render_html",
    "render_docx",
    "render_pdf",
]

"""
HTML Shift Report Renderer

Builds the on-screen preview as one self-contained HTML document with
inline CSS. Emblems are referenced by URL (the browser fetches them), user
images are embedded as data URLs.
"""
from html import escape
from typing import List

from plantao.models.report import ShiftReport
from .emblems import POLICE_EMBLEM_PATH, STATE_EMBLEM_PATH
from .formatters import CONFIDENTIALITY_NOTICE, INSTITUTION_LINES
from .outline import (
    Block,
    FieldTable,
    Figure,
    Heading,
    Signature,
    Text,
    Title,
    build_outline,
)

_CSS = """
body { font-family: 'Times New Roman', Times, serif; line-height: 1.6; color: #333; margin: 0; padding: 20px; }
.institutional-header { display: flex; align-items: center; justify-content: space-between; margin-bottom: 20px; }
.institutional-header img { width: 70px; height: auto; }
.institutional-header .lines { flex: 1; text-align: center; font-weight: bold; font-size: 12px; }
.institutional-header .lines p { margin: 0; }
h1, h2 { color: #1a3a6e; }
h1 { text-align: center; margin-bottom: 5px; font-size: 20px; }
h2 { font-size: 16px; }
.date { text-align: center; margin-bottom: 20px; font-style: italic; }
.section { margin-bottom: 30px; }
.indent { text-indent: 2.5em; text-align: justify; }
table { width: 100%; border-collapse: collapse; margin: 15px 0; }
table, th, td { border: 1px solid #ddd; }
th, td { padding: 10px; text-align: left; vertical-align: top; }
th { background-color: #f2f2f2; width: 30%; }
td { background-color: #f9f9f9; }
td ul { margin: 0; padding-left: 20px; }
.figure { margin-bottom: 20px; text-align: center; }
.figure img { max-width: 100%; max-height: 300px; margin-bottom: 8px; }
.figure p { font-style: italic; margin: 0; }
.signature { margin: 40px auto 0; width: 60%; text-align: center; }
.signature .rule { border-top: 1px solid #000; margin-bottom: 5px; }
.signature p { margin: 0; }
.confidential { margin-top: 30px; text-align: center; color: #ff0000; font-weight: bold; font-size: 11px; }
""".strip()


def _esc(value) -> str:
    return escape(str(value or ""), quote=True)


def _multiline(value: str) -> str:
    return "<br>".join(_esc(line) for line in str(value or "").splitlines())


def _header_html(asset_base: str) -> str:
    base = asset_base.rstrip("/")
    lines = "".join(f"<p>{_esc(line)}</p>" for line in INSTITUTION_LINES)
    return (
        '<header class="institutional-header">'
        f'<img src="{_esc(base + POLICE_EMBLEM_PATH)}" alt="Brasão da Polícia Civil">'
        f'<div class="lines">{lines}</div>'
        f'<img src="{_esc(base + STATE_EMBLEM_PATH)}" alt="Brasão do Estado de Goiás">'
        "</header>"
    )


def _table_html(table: FieldTable) -> str:
    rows = []
    for row in table.rows:
        if table.kind == "officers":
            items = "".join(f"<li>{_esc(line)}</li>" for line in row.lines)
            value = f"<ul>{items}</ul>"
        else:
            value = _multiline(row.value)
        rows.append(f"<tr><th>{_esc(row.label)}</th><td>{value}</td></tr>")
    return f'<table class="{_esc(table.kind)}">{"".join(rows)}</table>'


def _block_html(block: Block) -> str:
    if isinstance(block, Title):
        return f"<h1>{_esc(block.text)}</h1>\n<p class=\"date\">{_esc(block.subtitle)}</p>"
    if isinstance(block, Heading):
        return f"<h2>{_esc(block.text)}</h2>"
    if isinstance(block, Text):
        body = _multiline(block.text)
        if block.italic:
            body = f"<em>{body}</em>"
        css = ' class="indent"' if block.indent else ""
        return f"<p{css}>{body}</p>"
    if isinstance(block, FieldTable):
        return _table_html(block)
    if isinstance(block, Figure):
        return (
            '<div class="figure">'
            f'<img src="{_esc(block.attachment.data_url)}" alt="Imagem {block.index}">'
            f"<p>{_esc(block.caption)}</p>"
            "</div>"
        )
    if isinstance(block, Signature):
        return (
            '<div class="signature"><div class="rule"></div>'
            f"<p>{_esc(block.name)} - {_esc(block.role)}</p></div>"
        )
    raise TypeError(f"Unsupported block: {type(block).__name__}")


def render_html(report: ShiftReport, asset_base: str = "") -> str:
    """
    Render the report preview.

    Args:
        report: the shift report (read only)
        asset_base: URL prefix for the emblem images ("" = site-relative)

    Returns:
        A complete UTF-8 HTML document
    """
    blocks = build_outline(report)
    sections: List[str] = []
    current: List[str] = []
    for block in blocks:
        # Each heading opens a new <section>
        if isinstance(block, Heading) and current:
            sections.append(f'<section class="section">{"".join(current)}</section>')
            current = []
        current.append(_block_html(block))
    if current:
        sections.append(f'<section class="section">{"".join(current)}</section>')

    title = _esc(f"Relatório de Plantão - {report.report_number}".rstrip(" -"))
    body = "\n".join(sections)
    return (
        "<!DOCTYPE html>\n"
        '<html lang="pt-BR">\n'
        "<head>\n"
        '<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{title}</title>\n"
        f"<style>\n{_CSS}\n</style>\n"
        "</head>\n"
        "<body>\n"
        f"{_header_html(asset_base)}\n"
        f"{body}\n"
        f'<footer class="confidential">{_esc(CONFIDENTIALITY_NOTICE)}</footer>\n'
        "</body>\n"
        "</html>\n"
    )

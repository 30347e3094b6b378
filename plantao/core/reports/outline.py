"""
Renderer-neutral outline of a shift report.

``build_outline`` turns a ShiftReport into the fixed sequence of blocks
every output format draws: title, introduction, general data, occurrences,
images, observations, conclusion and signatures. The HTML, Word and PDF
renderers only decide how each block looks, so the three documents cannot
drift apart in content or order.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from plantao.models.report import Attachment, ShiftReport
from .formatters import (
    CONCLUSION_TEXT,
    NO_IMAGES_TEXT,
    NO_OCCURRENCES_TEXT,
    format_date,
    format_datetime,
    image_caption,
    introductory_paragraphs,
    observations_text,
    report_title,
)

SECTION_GENERAL = "Dados Gerais"
SECTION_OCCURRENCES = "1. Resumo das Ocorrências"
SECTION_IMAGES = "2. Imagens Relevantes"
SECTION_OBSERVATIONS = "3. Observações e Recomendações"
SECTION_CONCLUSION = "4. Conclusão"
SECTION_SIGNATURES = "Assinaturas"

OFFICERS_LABEL = "Policiais da Equipe"


@dataclass(frozen=True)
class Title:
    text: str
    subtitle: str = ""


@dataclass(frozen=True)
class Heading:
    text: str


@dataclass(frozen=True)
class Text:
    text: str
    italic: bool = False
    indent: bool = False


@dataclass(frozen=True)
class FieldRow:
    label: str
    lines: Tuple[str, ...] = ()

    @property
    def value(self) -> str:
        return "\n".join(self.lines)


@dataclass(frozen=True)
class FieldTable:
    """Two-column label/value table; ``kind`` tells renderers what it holds."""
    rows: Tuple[FieldRow, ...]
    kind: str = "data"


@dataclass(frozen=True)
class Figure:
    index: int              # 1-based position in report.images
    attachment: Attachment = field(compare=False)
    caption: str = ""


@dataclass(frozen=True)
class Signature:
    name: str
    role: str


Block = Union[Title, Heading, Text, FieldTable, Figure, Signature]


def _row(label: str, value: Optional[str]) -> FieldRow:
    return FieldRow(label=label, lines=(value or "",))


def build_outline(report: ShiftReport) -> List[Block]:
    """Return the report's blocks in document order."""
    blocks: List[Block] = [
        Title(report_title(report.report_number), format_date(report.report_date)),
    ]
    blocks.extend(Text(paragraph, indent=True) for paragraph in introductory_paragraphs(report))

    # ===== GENERAL DATA =====
    blocks.append(Heading(SECTION_GENERAL))
    blocks.append(FieldTable(
        rows=(
            _row("Início do Plantão", format_datetime(report.start_datetime)),
            _row("Fim do Plantão", format_datetime(report.end_datetime)),
            _row("Nome da Equipe", report.team_name),
            _row("Cartório Responsável", report.responsible_office),
        ),
        kind="general",
    ))
    blocks.append(FieldTable(
        rows=(FieldRow(OFFICERS_LABEL, tuple(o.display for o in report.officers)),),
        kind="officers",
    ))

    # ===== OCCURRENCES =====
    blocks.append(Heading(SECTION_OCCURRENCES))
    if report.has_occurrences and report.occurrences:
        for occurrence in report.occurrences:
            blocks.append(FieldTable(
                rows=(
                    _row("Número do RAI", occurrence.rai_number),
                    _row("Natureza da Ocorrência", occurrence.nature),
                    _row("Resumo da Ocorrência", occurrence.summary),
                    _row("Cartório Responsável", occurrence.responsible_office),
                ),
                kind="occurrence",
            ))
    else:
        blocks.append(Text(NO_OCCURRENCES_TEXT, italic=True))

    # ===== IMAGES =====
    blocks.append(Heading(SECTION_IMAGES))
    if report.images:
        for index, image in enumerate(report.images, start=1):
            blocks.append(Figure(index, image, image_caption(index, image.description)))
    else:
        blocks.append(Text(NO_IMAGES_TEXT, italic=True))

    blocks.append(Heading(SECTION_OBSERVATIONS))
    blocks.append(Text(observations_text(report.observations), indent=True))

    blocks.append(Heading(SECTION_CONCLUSION))
    blocks.append(Text(CONCLUSION_TEXT, indent=True))

    blocks.append(Heading(SECTION_SIGNATURES))
    blocks.extend(Signature(o.name, o.role) for o in report.officers)
    return blocks

"""
Text and date formatters shared by every renderer.

Dates follow the pt-BR convention (dd/mm/yyyy); the boilerplate sentences
are the institution's fixed wording and must stay verbatim.
"""
import re
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from plantao.utils import get_logger

if TYPE_CHECKING:
    from plantao.models.report import ShiftReport

logger = get_logger(__name__)

INSTITUTION_LINES = (
    "ESTADO DE GOIÁS",
    "SECRETARIA DE ESTADO DA SEGURANÇA PÚBLICA",
    "POLÍCIA CIVIL",
    "DELEGACIA ESPECIALIZADA EM INVESTIGAÇÕES DE CRIMES DE",
    "TRÂNSITO - DICT DE GOIÂNIA",
)

CONFIDENTIALITY_NOTICE = "DOCUMENTO RESERVADO - DICT"

REPORT_TITLE = "RELATÓRIO DE PLANTÃO"

NO_OCCURRENCES_TEXT = "Não houve ocorrências durante o plantão."
NO_IMAGES_TEXT = "Sem imagens relevantes"
NO_OBSERVATIONS_TEXT = "Não há informações dignas de nota decorrentes do Plantão ora documentado."
CONCLUSION_TEXT = (
    "Esta equipe finaliza o presente relatório, permanecendo à disposição "
    "para eventuais esclarecimentos."
)

DEFAULT_FILENAME_TOKEN = "DICT"
FILENAME_PREFIX = "Relatório_Plantão_"

_ILLEGAL_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


def _parse(value: Any, with_time: bool):
    """Coerce ``value`` to date/datetime; strings are parsed as ISO 8601."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day) if with_time else value
    text = str(value).strip()
    if with_time:
        return datetime.fromisoformat(text)
    if "T" in text or " " in text:
        return datetime.fromisoformat(text).date()
    return date.fromisoformat(text)


def format_date(value: Any) -> str:
    """
    Format a date as dd/mm/yyyy.

    Empty input yields ""; anything unparseable is returned unchanged.
    """
    if value is None or value == "":
        return ""
    try:
        return _parse(value, with_time=False).strftime("%d/%m/%Y")
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not format date {value!r}: {e}")
        return str(value)


def format_datetime(value: Any) -> str:
    """Format a timestamp as 'dd/mm/yyyy às HH:MM' with the same fallback policy."""
    if value is None or value == "":
        return ""
    try:
        moment = _parse(value, with_time=True)
    except (TypeError, ValueError) as e:
        logger.debug(f"Could not format date/time {value!r}: {e}")
        return str(value)
    return f"{moment.strftime('%d/%m/%Y')} às {moment.strftime('%H:%M')}"


def introductory_paragraph(report: "ShiftReport") -> str:
    """Opening boilerplate; paragraphs are separated by a blank line."""
    return (
        f"Trata-se do relatório de plantão de número {report.report_number}, "
        f"referente à jornada plantonista que se iniciou no dia "
        f"{format_datetime(report.start_datetime)} e finalizou-se no dia "
        f"{format_datetime(report.end_datetime)}.\n\n"
        "O presente documento tem por finalidade registrar, de forma clara e sucinta, "
        "os principais atendimentos, ocorrências, procedimentos instaurados e "
        "providências adotadas durante o referido período de plantão na Delegacia "
        "Especializada em Investigações de Crimes de Trânsito - DICT.\n\n"
        "Busca-se, com isso, sobrelevar as diligências preliminares realizadas em local "
        "de acidente de trânsito com vítima, assegurar a continuidade dos trabalhos "
        "investigativos, a rastreabilidade das ações empreendidas e a adequada "
        "comunicação entre as equipes que se sucedem, em conformidade com os princípios "
        "da legalidade, eficiência e transparência que regem a Administração Pública."
    )


def introductory_paragraphs(report: "ShiftReport") -> list:
    return introductory_paragraph(report).split("\n\n")


def observations_text(raw: str) -> str:
    return (raw or "").strip() or NO_OBSERVATIONS_TEXT


def report_title(report_number: str) -> str:
    return f"{REPORT_TITLE} {report_number or ''}".strip()


def image_caption(index: int, description: str) -> str:
    """Caption for the 1-based ``index``-th image."""
    return (description or "").strip() or f"Imagem {index}"


def image_placeholder(index: int, description: str) -> str:
    """Line drawn instead of an image that could not be decoded."""
    return (
        f"[Não foi possível incluir a imagem {index}: "
        f"{(description or '').strip() or 'Sem descrição'}]"
    )


def export_filename(report_number: str, extension: str) -> str:
    """
    Build 'Relatório_Plantão_<number>.<ext>'.

    Path separators and other characters illegal in file names become '-';
    a number that is blank after sanitising falls back to 'DICT'.
    """
    token = _ILLEGAL_FILENAME_CHARS.sub("-", (report_number or "").strip())
    if not token.strip("-. "):
        token = DEFAULT_FILENAME_TOKEN
    return f"{FILENAME_PREFIX}{token}.{extension.lstrip('.')}"

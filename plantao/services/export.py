"""
Export Orchestration

Drives one export at a time: load emblems (once), snapshot the report,
render the requested format and hand back the bytes with their download
name. Progress is reported through a notification callback.
"""
import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from plantao.core.reports.docx_report import render_docx
from plantao.core.reports.emblems import EmblemLoader, Emblems
from plantao.core.reports.formatters import export_filename
from plantao.core.reports.html_report import render_html
from plantao.core.reports.pdf_report import render_pdf
from plantao.models.report import ShiftReport
from plantao.utils import get_logger, ExportInProgressError, ReportGenerationError

logger = get_logger(__name__)

MEDIA_TYPES: Dict[str, str] = {
    "html": "text/html; charset=utf-8",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "pdf": "application/pdf",
}


@dataclass(frozen=True)
class ExportResult:
    """A rendered document ready to be downloaded or written to disk."""
    filename: str
    media_type: str
    content: bytes

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {
            "filename": self.filename,
            "media_type": self.media_type,
            "size": len(self.content),
        }


@dataclass(frozen=True)
class Notification:
    """User-facing progress message (level: info, success or error)."""
    level: str
    title: str
    message: str = ""


def log_notification(notification: Notification) -> None:
    if notification.level == "error":
        logger.error(f"{notification.title}: {notification.message}")
    else:
        logger.info(f"{notification.title}: {notification.message}")


class ReportExporter:
    """
    Sequential, non-re-entrant export of shift reports.

    While an export is running ``is_busy`` is True and any further call to
    ``export`` fails immediately with ExportInProgressError.
    """

    def __init__(
        self,
        loader: EmblemLoader,
        output_dir: Optional[Union[str, Path]] = None,
        notify: Optional[Callable[[Notification], None]] = None,
        asset_base: str = "",
    ):
        self.loader = loader
        self.output_dir = Path(output_dir) if output_dir else None
        self.notify = notify or log_notification
        self.asset_base = asset_base
        self._busy = False

    @property
    def is_busy(self) -> bool:
        return self._busy

    async def emblems(self, reload: bool = False) -> Emblems:
        """Emblems for rendering, fetched on first use or when ``reload`` is set."""
        if reload or not self.loader.loaded:
            return await self.loader.load()
        return self.loader.emblems

    async def export(self, report: ShiftReport, fmt: str, reload_emblems: bool = False) -> ExportResult:
        """
        Render ``report`` as ``fmt`` ("html", "docx" or "pdf").

        Raises:
            ValueError: unknown format
            ExportInProgressError: another export is running
            ReportGenerationError: the renderer failed
        """
        fmt = fmt.lower().lstrip(".")
        if fmt not in MEDIA_TYPES:
            raise ValueError(f"Unsupported export format: {fmt!r}")
        if self._busy:
            raise ExportInProgressError()

        self._busy = True
        label = fmt.upper()
        filename = export_filename(report.report_number, fmt)
        try:
            self.notify(Notification(
                "info", f"Exportando {label}", "Por favor, aguarde enquanto o arquivo é gerado..."
            ))
            logger.info(f"Export started: {filename} ({report.to_dict()})")

            emblems = await self.emblems(reload=reload_emblems)
            snapshot = copy.deepcopy(report)
            try:
                content = self._render(snapshot, fmt, emblems)
            except Exception as e:
                logger.error(f"{label} generation failed for {filename}: {e}", exc_info=True)
                self.notify(Notification(
                    "error", "Erro na exportação", f"Não foi possível gerar o arquivo {label}. Tente novamente."
                ))
                raise ReportGenerationError(
                    f"Failed to generate {label}: {e}",
                    report_type=fmt,
                    details={"filename": filename},
                ) from e

            result = ExportResult(filename=filename, media_type=MEDIA_TYPES[fmt], content=content)
            self.notify(Notification(
                "success", f"{label} exportado com sucesso!", "O arquivo foi baixado para o seu dispositivo."
            ))
            logger.info(f"Export finished: {result.to_dict()}")
            return result
        finally:
            self._busy = False

    def _render(self, report: ShiftReport, fmt: str, emblems: Emblems) -> bytes:
        if fmt == "html":
            return render_html(report, asset_base=self.asset_base).encode("utf-8")
        if fmt == "docx":
            return render_docx(report, emblems)
        return render_pdf(report, emblems)

    def save(self, result: ExportResult, directory: Optional[Union[str, Path]] = None) -> Path:
        """Write an export result to ``directory`` (default: the exporter's output_dir)."""
        target_dir = Path(directory) if directory else self.output_dir
        if target_dir is None:
            raise ValueError("No output directory configured")
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / result.filename
        path.write_bytes(result.content)
        logger.info(f"Saved {result.filename} to {target_dir}")
        return path


async def export_docx(report: ShiftReport, exporter: ReportExporter) -> bytes:
    """DOCX bytes for ``report``, waiting for the emblems first."""
    return (await exporter.export(report, "docx")).content


async def export_pdf(report: ShiftReport, exporter: ReportExporter) -> bytes:
    """PDF bytes for ``report``, waiting for the emblems first."""
    return (await exporter.export(report, "pdf")).content

"""
Unit Tests for Export Orchestration

Busy guard, notifications, emblem caching, failure wrapping and saving.
"""
import asyncio
from unittest.mock import patch

import pytest

from plantao.services import export as export_module
from plantao.services.export import (
    MEDIA_TYPES,
    ExportResult,
    Notification,
    ReportExporter,
    export_docx,
    export_pdf,
)
from plantao.utils import ExportInProgressError, ReportGenerationError


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def exporter(emblem_loader, notifications, tmp_path):
    return ReportExporter(emblem_loader, output_dir=tmp_path, notify=notifications.append)


class TestExport:
    """Tests for rendering through the exporter."""

    @pytest.mark.parametrize("fmt", ["html", "docx", "pdf"])
    async def test_formats(self, exporter, sample_report, fmt):
        """Test every format renders with its download name and media type."""
        result = await exporter.export(sample_report, fmt)
        assert isinstance(result, ExportResult)
        assert result.filename == f"Relatório_Plantão_01-2025.{fmt}"
        assert result.media_type == MEDIA_TYPES[fmt]
        assert len(result.content) > 0
        assert not exporter.is_busy

    async def test_blank_number_filename(self, exporter, sample_report):
        """Test a blank report number falls back to DICT in the filename."""
        sample_report.update(report_number="")
        result = await exporter.export(sample_report, "pdf")
        assert result.filename == "Relatório_Plantão_DICT.pdf"

    async def test_unknown_format(self, exporter, sample_report):
        """Test unknown formats are rejected without holding the busy flag."""
        with pytest.raises(ValueError):
            await exporter.export(sample_report, "odt")
        assert not exporter.is_busy

    async def test_notifications(self, exporter, sample_report, notifications):
        """Test start and success notifications."""
        await exporter.export(sample_report, "docx")
        assert [n.title for n in notifications] == ["Exportando DOCX", "DOCX exportado com sucesso!"]
        assert [n.level for n in notifications] == ["info", "success"]

    async def test_emblems_loaded_once(self, exporter, emblem_loader, sample_report):
        """Test emblems are fetched once and again only on reload."""
        await exporter.export(sample_report, "pdf")
        await exporter.export(sample_report, "docx")
        assert len(emblem_loader.transport.calls) == 2

        await exporter.export(sample_report, "pdf", reload_emblems=True)
        assert len(emblem_loader.transport.calls) == 4

    async def test_html_export_is_utf8(self, exporter, sample_report):
        """Test HTML export is UTF-8 encoded."""
        result = await exporter.export(sample_report, "html")
        assert "Relatório".encode("utf-8") in result.content


class TestBusyGuard:
    """Tests for the single-export guard."""

    async def test_second_trigger_rejected_while_running(self, exporter, emblem_loader, sample_report):
        """Test a second export fails while the first is still running."""
        gate = asyncio.Event()
        original_load = emblem_loader.load

        async def slow_load():
            await gate.wait()
            return await original_load()

        emblem_loader.load = slow_load
        first = asyncio.create_task(exporter.export(sample_report, "pdf"))
        await asyncio.sleep(0)
        assert exporter.is_busy

        with pytest.raises(ExportInProgressError):
            await exporter.export(sample_report, "docx")

        gate.set()
        result = await first
        assert result.filename.endswith(".pdf")
        assert not exporter.is_busy


class TestFailures:
    """Tests for failure handling."""

    async def test_renderer_failure_is_wrapped(self, exporter, sample_report, notifications):
        """Test renderer errors become ReportGenerationError with an error notification."""
        before = sample_report.to_dict()
        with patch.object(export_module, "render_pdf", side_effect=RuntimeError("boom")):
            with pytest.raises(ReportGenerationError) as exc:
                await exporter.export(sample_report, "pdf")

        assert exc.value.report_type == "pdf"
        assert exc.value.details["filename"] == "Relatório_Plantão_01-2025.pdf"
        assert not exporter.is_busy
        assert notifications[-1] == Notification(
            "error", "Erro na exportação", "Não foi possível gerar o arquivo PDF. Tente novamente."
        )
        assert sample_report.to_dict() == before

    async def test_export_works_after_failure(self, exporter, sample_report):
        """Test the exporter recovers after a failed export."""
        with patch.object(export_module, "render_docx", side_effect=RuntimeError("boom")):
            with pytest.raises(ReportGenerationError):
                await exporter.export(sample_report, "docx")
        result = await exporter.export(sample_report, "docx")
        assert result.content

    async def test_bad_image_does_not_fail_export(self, exporter, full_report):
        """Test an undecodable image does not abort the export."""
        full_report.add_image(b"not an image")
        result = await exporter.export(full_report, "pdf")
        assert result.content.startswith(b"%PDF")


class TestSave:
    """Tests for writing exports to disk."""

    async def test_save_to_output_dir(self, exporter, sample_report, tmp_path):
        """Test saving into the configured output directory."""
        result = await exporter.export(sample_report, "pdf")
        path = exporter.save(result)
        assert path == tmp_path / "Relatório_Plantão_01-2025.pdf"
        assert path.read_bytes() == result.content

    def test_save_to_explicit_directory(self, exporter, tmp_path):
        """Test saving into an explicit, not yet existing directory."""
        result = ExportResult("Relatório_Plantão_DICT.html", MEDIA_TYPES["html"], b"<html></html>")
        path = exporter.save(result, tmp_path / "nested")
        assert path.read_bytes() == b"<html></html>"

    def test_save_without_directory(self, emblem_loader):
        """Test saving without any directory is an error."""
        exporter = ReportExporter(emblem_loader)
        with pytest.raises(ValueError):
            exporter.save(ExportResult("x.pdf", MEDIA_TYPES["pdf"], b""))


class TestFormatHelpers:
    """Tests for the export_docx / export_pdf shortcuts."""

    async def test_export_docx_waits_for_emblems(self, exporter, emblem_loader, sample_report):
        """Test DOCX shortcut loads the emblems before rendering."""
        content = await export_docx(sample_report, exporter)
        assert emblem_loader.loaded
        assert content[:2] == b"PK"

    async def test_export_pdf(self, exporter, sample_report, notifications):
        """Test PDF shortcut goes through the exporter."""
        content = await export_pdf(sample_report, exporter)
        assert content.startswith(b"%PDF")
        assert notifications[-1].title == "PDF exportado com sucesso!"

    async def test_helpers_respect_busy_guard(self, exporter, sample_report):
        """Test the shortcuts are rejected while another export is running."""
        exporter._busy = True
        try:
            with pytest.raises(ExportInProgressError):
                await export_pdf(sample_report, exporter)
        finally:
            exporter._busy = False

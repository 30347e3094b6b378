"""
Integration Tests for the FastAPI Backend

Tests for health, reference data, validation, preview and export downloads.
Uses async httpx for ASGI app testing.
"""
import base64
from typing import Any, Dict
from urllib.parse import quote

import httpx
import pytest

from plantao.main import app
from plantao.services import ReportExporter


@pytest.fixture
def exporter(emblem_loader):
    """Swap the app's exporter for one backed by the mock asset server."""
    original = app.state.exporter
    app.state.exporter = ReportExporter(emblem_loader)
    yield app.state.exporter
    app.state.exporter = original


@pytest.fixture
async def async_client(exporter):
    """Create async test client."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.fixture
def report_payload(png_bytes) -> Dict[str, Any]:
    """Report as the wizard UI posts it."""
    return {
        "reportDate": "2025-01-15",
        "reportNumber": "01/2025",
        "startDateTime": "2025-01-15T08:00",
        "endDateTime": "2025-01-16T08:00",
        "teamName": "Equipe Alpha",
        "responsibleOffice": "Cartório 2",
        "officers": [{"id": "o1", "name": "João Silva", "role": "Agente"}],
        "hasOccurrences": False,
        "occurrences": [],
        "images": [],
        "observations": "",
    }


class TestHealthEndpoints:
    """Tests for health and reference endpoints."""

    async def test_health_endpoint(self, async_client):
        """Test /health endpoint."""
        response = await async_client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["emblems_loaded"] is False

    async def test_enumerations(self, async_client):
        """Test /api/v1/enumerations endpoint."""
        response = await async_client.get("/api/v1/enumerations")
        assert response.status_code == 200

        data = response.json()
        assert len(data["roles"]) == 8
        assert data["offices"] == ["Cartório 1", "Cartório 2", "Cartório 3"]
        assert data["natures"][-1] == "Outro"


class TestValidateEndpoint:
    """Tests for report validation."""

    async def test_valid_report(self, async_client, report_payload):
        """Test validating a complete report."""
        response = await async_client.post("/api/v1/reports/validate", json=report_payload)
        assert response.status_code == 200

        data = response.json()
        assert data["valid"] is True
        assert data["errors"] == []
        assert data["summary"]["numero"] == "01/2025"
        assert data["summary"]["periodo"] == "15/01/2025 às 08:00 a 16/01/2025 às 08:00"

    async def test_incomplete_report(self, async_client):
        """Test validating an incomplete report lists its errors."""
        response = await async_client.post("/api/v1/reports/validate", json={"hasOccurrences": True})
        assert response.status_code == 200

        data = response.json()
        assert data["valid"] is False
        assert "Informe ao menos uma ocorrência." in data["errors"]


class TestPreviewEndpoint:
    """Tests for the HTML preview."""

    async def test_preview_html(self, async_client, report_payload, png_bytes):
        """Test the HTML preview with an embedded image."""
        report_payload["images"] = [{
            "dataUrl": "data:image/png;base64," + base64.b64encode(png_bytes).decode(),
            "description": "Local",
        }]
        response = await async_client.post("/api/v1/reports/preview", json=report_payload)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "Equipe Alpha" in response.text
        assert "Local" in response.text

    async def test_bad_image_payload(self, async_client, report_payload):
        """Test malformed image data is a 400."""
        report_payload["images"] = [{"dataUrl": "data:image/png;base64,%%%", "description": ""}]
        response = await async_client.post("/api/v1/reports/preview", json=report_payload)
        assert response.status_code == 400


class TestExportEndpoint:
    """Tests for export downloads."""

    @pytest.mark.parametrize("fmt,magic", [("pdf", b"%PDF"), ("docx", b"PK"), ("html", b"<!DOCTYPE")])
    async def test_download(self, async_client, report_payload, fmt, magic):
        """Test each format downloads with both filename forms."""
        response = await async_client.post(f"/api/v1/reports/export/{fmt}", json=report_payload)
        assert response.status_code == 200
        assert response.content.startswith(magic)

        disposition = response.headers["content-disposition"]
        assert disposition.startswith("attachment;")
        assert f"filename*=UTF-8''{quote(f'Relatório_Plantão_01-2025.{fmt}')}" in disposition
        assert f'filename="Relatorio_Plantao_01-2025.{fmt}"' in disposition

    async def test_unknown_format(self, async_client, report_payload):
        """Test unknown formats are a 400."""
        response = await async_client.post("/api/v1/reports/export/odt", json=report_payload)
        assert response.status_code == 400

    async def test_busy_returns_409(self, async_client, report_payload, exporter):
        """Test a running export makes the next one a 409."""
        exporter._busy = True
        try:
            response = await async_client.post("/api/v1/reports/export/pdf", json=report_payload)
        finally:
            exporter._busy = False
        assert response.status_code == 409
        assert response.json()["detail"]["error"] == "EXPORT_IN_PROGRESS"

    async def test_generation_failure_returns_500(self, async_client, report_payload, monkeypatch):
        """Test renderer failures are a 500."""
        from plantao.services import export as export_module

        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(export_module, "render_docx", explode)
        response = await async_client.post("/api/v1/reports/export/docx", json=report_payload)
        assert response.status_code == 500
        assert response.json()["detail"]["error"] == "REPORT_ERROR"

    async def test_save_writes_export_dir(self, async_client, report_payload, emblem_loader, tmp_path):
        """Test save=true also writes the file to the export directory."""
        app.state.exporter = ReportExporter(emblem_loader, output_dir=tmp_path)
        response = await async_client.post("/api/v1/reports/export/pdf?save=true", json=report_payload)
        assert response.status_code == 200

        saved = tmp_path / "Relatório_Plantão_01-2025.pdf"
        assert saved.read_bytes() == response.content
        assert "X-Export-Path" in response.headers

    async def test_docx_with_pasted_control_characters(self, async_client, report_payload):
        """Test free text pasted from Word still exports as DOCX."""
        report_payload["observations"] = "linha 1\x0blinha 2"
        report_payload["teamName"] = "Equipe\x0cAlpha"
        response = await async_client.post("/api/v1/reports/export/docx", json=report_payload)
        assert response.status_code == 200
        assert response.content.startswith(b"PK")

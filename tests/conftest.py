"""
Pytest Configuration and Fixtures

Shared fixtures for shift report tests.
"""
import io
import sys
from datetime import date, datetime
from pathlib import Path

import httpx
import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from plantao.core.reports.emblems import (  # noqa: E402
    POLICE_EMBLEM_PATH,
    STATE_EMBLEM_PATH,
    EmblemLoader,
    Emblems,
)
from plantao.models.report import ShiftReport  # noqa: E402


def make_png(color=(30, 60, 120), size=(40, 30)) -> bytes:
    """Encode a solid-colour PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def emblems() -> Emblems:
    return Emblems(state=make_png((0, 120, 0), (64, 64)), police=make_png((0, 0, 0), (64, 64)))


@pytest.fixture
def sample_report() -> ShiftReport:
    """Minimal complete report: one officer, no occurrences, no images."""
    report = ShiftReport(
        report_date=date(2025, 1, 15),
        report_number="01/2025",
        start_datetime=datetime(2025, 1, 15, 8, 0),
        end_datetime=datetime(2025, 1, 16, 8, 0),
        team_name="Equipe Alpha",
        responsible_office="Cartório 2",
    )
    report.add_officer("João Silva", "Agente")
    return report


@pytest.fixture
def full_report(sample_report, png_bytes) -> ShiftReport:
    """Report with two officers, two occurrences and two images."""
    sample_report.add_officer("Maria Souza", "Delegado")
    sample_report.update(has_occurrences=True, observations="Viatura 02 em manutenção.")
    sample_report.add_occurrence(
        rai_number="RAI-123456",
        nature="Embriaguez ao volante",
        summary="Condutor abordado na Av. Anhanguera apresentando sinais de embriaguez.",
        responsible_office="Cartório 1",
    )
    sample_report.add_occurrence(
        rai_number="RAI-654321",
        nature="Fuga do local do acidente",
        summary="Veículo evadiu-se após colisão com motocicleta.",
        responsible_office="Cartório 3",
    )
    sample_report.add_image(png_bytes, description="Local do sinistro")
    sample_report.add_image(make_png((200, 10, 10)), description="")
    return sample_report


def emblem_transport(state: bytes = b"", police: bytes = b"", status_code: int = 200) -> httpx.MockTransport:
    """Static asset server answering the two emblem paths."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        if status_code != 200:
            return httpx.Response(status_code)
        if request.url.path == STATE_EMBLEM_PATH:
            return httpx.Response(200, content=state) if state else httpx.Response(404)
        if request.url.path == POLICE_EMBLEM_PATH:
            return httpx.Response(200, content=police) if police else httpx.Response(404)
        return httpx.Response(404)

    transport = httpx.MockTransport(handler)
    transport.calls = calls
    return transport


@pytest.fixture
def emblem_loader(emblems) -> EmblemLoader:
    """Loader backed by an in-process asset server holding both emblems."""
    transport = emblem_transport(state=emblems.state, police=emblems.police)
    loader = EmblemLoader(
        "http://assets.test",
        client=httpx.AsyncClient(transport=transport),
    )
    loader.transport = transport
    return loader


@pytest.fixture
def png_factory():
    """Factory for solid-colour PNG bytes: png_factory(color, size)."""
    return make_png


@pytest.fixture
def asset_server():
    """Factory for emblem asset transports: asset_server(state=..., police=..., status_code=...)."""
    return emblem_transport

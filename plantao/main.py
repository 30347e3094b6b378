"""
Shift Report Service - FastAPI Application

Endpoints for:
- Health and reference data (roles, offices, occurrence natures)
- Report validation and summary
- HTML preview
- DOCX / PDF / HTML download
"""
import unicodedata
from datetime import datetime
from urllib.parse import quote

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from plantao import config
from plantao.core.reports import EmblemLoader, render_html
from plantao.models import OccurrenceNature, OfficerRole, ResponsibleOffice
from plantao.models.schemas import (
    EnumerationsResponse,
    HealthResponse,
    ShiftReportRequest,
    ValidationResponse,
)
from plantao.services import ReportExporter
from plantao.utils import (
    get_logger,
    setup_logging,
    ExportInProgressError,
    ReportGenerationError,
)

setup_logging(config.LOG_LEVEL, config.LOG_FILE or None)
logger = get_logger(__name__)

START_TIME = datetime.now()


# ---- FastAPI Application ----

app = FastAPI(
    title="DICT Shift Report API",
    description="Relatório de plantão: validation, preview and DOCX/PDF export",
    version=config.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.exporter = ReportExporter(
    loader=EmblemLoader(config.EMBLEM_BASE_URL, timeout=config.EMBLEM_TIMEOUT),
    output_dir=config.EXPORT_DIR,
    asset_base=config.ASSET_BASE,
)


# ---- Utility Functions ----

def _content_disposition(filename: str) -> str:
    """Attachment header with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def _to_report(payload: ShiftReportRequest):
    try:
        return payload.to_report()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid report payload: {e}")


# ---- API Endpoints ----

@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    """Health check endpoint."""
    exporter: ReportExporter = request.app.state.exporter
    return HealthResponse(
        status="healthy",
        version=config.APP_VERSION,
        timestamp=datetime.now().isoformat(),
        uptime_seconds=(datetime.now() - START_TIME).total_seconds(),
        emblems_loaded=exporter.loader.loaded,
    )


@app.get("/api/v1/enumerations", response_model=EnumerationsResponse, tags=["Reference"])
async def list_enumerations():
    """Fixed choices offered by the wizard."""
    return EnumerationsResponse(
        roles=[role.value for role in OfficerRole],
        offices=[office.value for office in ResponsibleOffice],
        natures=[nature.value for nature in OccurrenceNature],
    )


@app.post("/api/v1/reports/validate", response_model=ValidationResponse, tags=["Reports"])
async def validate_report(payload: ShiftReportRequest):
    """Report completeness check plus the export page summary."""
    report = _to_report(payload)
    errors = report.validation_errors()
    return ValidationResponse(valid=not errors, errors=errors, summary=report.summary())


@app.post("/api/v1/reports/preview", response_class=HTMLResponse, tags=["Reports"])
async def preview_report(payload: ShiftReportRequest):
    """Render the on-screen HTML preview."""
    report = _to_report(payload)
    return HTMLResponse(render_html(report, asset_base=config.ASSET_BASE))


@app.post("/api/v1/reports/export/{fmt}", tags=["Reports"])
async def export_report(
    fmt: str,
    payload: ShiftReportRequest,
    request: Request,
    reload_emblems: bool = False,
    save: bool = False,
):
    """
    Render the report and return it as a download.

    Formats: 'docx', 'pdf' or 'html'. With ``save`` the file is also
    written to EXPORT_DIR.
    """
    exporter: ReportExporter = request.app.state.exporter
    report = _to_report(payload)

    try:
        result = await exporter.export(report, fmt, reload_emblems=reload_emblems)
    except ExportInProgressError as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ReportGenerationError as e:
        raise HTTPException(status_code=500, detail=e.to_dict())

    headers = {"Content-Disposition": _content_disposition(result.filename)}
    if save:
        try:
            path = exporter.save(result)
        except (OSError, ValueError) as e:
            logger.error(f"Could not save {result.filename}: {e}")
            raise HTTPException(status_code=500, detail=f"Could not save export: {e}")
        headers["X-Export-Path"] = quote(str(path))

    return Response(content=result.content, media_type=result.media_type, headers=headers)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

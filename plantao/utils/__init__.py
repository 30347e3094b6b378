"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    ShiftReportError,
    RecordNotFoundError,
    EmblemLoadError,
    ImageDecodeError,
    ExportInProgressError,
    ReportGenerationError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "ShiftReportError",
    "RecordNotFoundError",
    "EmblemLoadError",
    "ImageDecodeError",
    "ExportInProgressError",
    "ReportGenerationError",
]

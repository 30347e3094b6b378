"""
Custom Exception Hierarchy

Specific exception types for the shift report pipeline, each carrying
structured error information.
"""
from typing import Optional, Dict, Any


class ShiftReportError(Exception):
    """Base exception for all shift report errors."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class RecordNotFoundError(ShiftReportError):
    """An officer, occurrence or image id is not part of the report."""

    def __init__(
        self,
        message: str,
        collection: str = "unknown",
        item_id: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="RECORD_NOT_FOUND",
            details={"collection": collection, "id": item_id, **(details or {})}
        )
        self.collection = collection
        self.item_id = item_id


class EmblemLoadError(ShiftReportError):
    """An institutional emblem could not be fetched."""

    def __init__(
        self,
        message: str,
        url: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="EMBLEM_LOAD_ERROR",
            details={"url": url, **(details or {})}
        )
        self.url = url


class ImageDecodeError(ShiftReportError):
    """An attached image could not be decoded for embedding."""

    def __init__(
        self,
        message: str,
        image_id: str = "",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="IMAGE_DECODE_ERROR",
            details={"image_id": image_id, **(details or {})}
        )
        self.image_id = image_id


class ExportInProgressError(ShiftReportError):
    """Another export is still running."""

    def __init__(
        self,
        message: str = "An export is already in progress",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="EXPORT_IN_PROGRESS",
            details=details
        )


class ReportGenerationError(ShiftReportError):
    """Errors during report generation."""

    def __init__(
        self,
        message: str,
        report_type: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="REPORT_ERROR",
            details={"report_type": report_type, **(details or {})}
        )
        self.report_type = report_type

"""
Services Package - Export orchestration
"""
from .export import ExportResult, Notification, ReportExporter, MEDIA_TYPES

__all__ = ["ExportResult", "Notification", "ReportExporter", "MEDIA_TYPES"]

"""
Record Model Package

The in-memory shift report consumed by every renderer.
"""
from .report import (
    ShiftReport,
    Officer,
    Occurrence,
    Attachment,
    OfficerRole,
    ResponsibleOffice,
    OccurrenceNature,
)

__all__ = [
    "ShiftReport",
    "Officer",
    "Occurrence",
    "Attachment",
    "OfficerRole",
    "ResponsibleOffice",
    "OccurrenceNature",
]

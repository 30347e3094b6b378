"""
API request/response schemas.

Request bodies mirror the record the wizard UI keeps in the browser, so
field names are camelCase on the wire and snake_case in Python.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .report import Attachment, Occurrence, Officer, ShiftReport


class OfficerIn(BaseModel):
    id: Optional[str] = None
    name: str = ""
    role: str = ""


class OccurrenceIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    rai_number: str = Field("", alias="raiNumber")
    nature: str = ""
    summary: str = ""
    responsible_office: str = Field("", alias="responsibleOffice")


class ImageIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    data_url: str = Field(..., alias="dataUrl")
    description: str = ""


class ShiftReportRequest(BaseModel):
    """Full report as sent by the browser."""
    model_config = ConfigDict(populate_by_name=True)

    report_date: Optional[date] = Field(None, alias="reportDate")
    report_number: str = Field("", alias="reportNumber")
    start_datetime: Optional[datetime] = Field(None, alias="startDateTime")
    end_datetime: Optional[datetime] = Field(None, alias="endDateTime")
    team_name: str = Field("", alias="teamName")
    responsible_office: str = Field("", alias="responsibleOffice")
    officers: List[OfficerIn] = Field(default_factory=list)
    has_occurrences: bool = Field(False, alias="hasOccurrences")
    occurrences: List[OccurrenceIn] = Field(default_factory=list)
    images: List[ImageIn] = Field(default_factory=list)
    observations: str = ""

    def to_report(self) -> ShiftReport:
        """
        Build the in-memory record.

        Raises:
            ValueError: if an image payload is not valid base64
        """
        report = ShiftReport(
            report_number=self.report_number,
            start_datetime=self.start_datetime,
            end_datetime=self.end_datetime,
            team_name=self.team_name,
            responsible_office=self.responsible_office,
            has_occurrences=self.has_occurrences,
            observations=self.observations,
        )
        if self.report_date is not None:
            report.report_date = self.report_date
        for o in self.officers:
            officer = Officer(name=o.name, role=o.role)
            if o.id:
                officer.id = o.id
            report.officers.append(officer)
        for o in self.occurrences:
            occurrence = Occurrence(
                rai_number=o.rai_number,
                nature=o.nature,
                summary=o.summary,
                responsible_office=o.responsible_office,
            )
            if o.id:
                occurrence.id = o.id
            report.occurrences.append(occurrence)
        for image in self.images:
            report.images.append(
                Attachment.from_data_url(image.data_url, description=image.description, id=image.id)
            )
        return report


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[str]
    summary: Dict[str, Any]


class EnumerationsResponse(BaseModel):
    roles: List[str]
    offices: List[str]
    natures: List[str]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    emblems_loaded: bool = False

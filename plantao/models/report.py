"""
Shift Report Record Model

The in-memory shift report and its nested entities, together with the
mutators the wizard pages use. Renderers only read from these objects.
"""
from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from plantao.utils import RecordNotFoundError


class OfficerRole(str, Enum):
    """Roles a team member can hold on the shift."""
    DELEGADO = "Delegado"
    ESCRIVAO = "Escrivão"
    AGENTE = "Agente"
    PAPILOSCOPISTA = "Papiloscopista"
    PERITO_CRIMINAL = "Perito Criminal"
    AUXILIAR_POLICIAL = "Auxiliar Policial"
    MEDICO_LEGISTA = "Médico Legista"
    ODONTO_LEGISTA = "Odonto Legista"


class ResponsibleOffice(str, Enum):
    """Registry office (cartório) responsible for the shift or occurrence."""
    CARTORIO_1 = "Cartório 1"
    CARTORIO_2 = "Cartório 2"
    CARTORIO_3 = "Cartório 3"


class OccurrenceNature(str, Enum):
    """
    Occurrence categories.

    OTHER is a sentinel: any non-empty free text is accepted as a nature,
    the enumeration only lists what the wizard offers.
    """
    HOMICIDIO_CULPOSO = "Homicídio culposo no trânsito"
    LESAO_CORPORAL_CULPOSA = "Lesão corporal culposa no trânsito"
    EMBRIAGUEZ_AO_VOLANTE = "Embriaguez ao volante"
    SINISTRO_DANO_MATERIAL = "Sinistro de trânsito com dano material"
    FUGA_DO_LOCAL = "Fuga do local do acidente"
    DIRECAO_PERIGOSA = "Direção perigosa"
    RACHA = "Racha/competição não autorizada"
    OTHER = "Outro"


def _new_id() -> str:
    return str(uuid.uuid4())


def _text(value: Any) -> str:
    """Enum members and plain strings both render as their text."""
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass
class Officer:
    """A police officer on the shift team."""
    name: str = ""
    role: str = ""
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.role = _text(self.role)

    @property
    def display(self) -> str:
        return f"{self.name} - {self.role}"


@dataclass
class Occurrence:
    """A single incident handled during the shift."""
    rai_number: str = ""
    nature: str = ""
    summary: str = ""
    responsible_office: str = ""
    id: str = field(default_factory=_new_id)

    def __post_init__(self):
        self.nature = _text(self.nature)
        self.responsible_office = _text(self.responsible_office)


@dataclass
class Attachment:
    """An uploaded image with its optional caption."""
    data: bytes = b""
    content_type: str = "image/png"
    description: str = ""
    id: str = field(default_factory=_new_id)

    @property
    def data_url(self) -> str:
        """Base64 data URL derived from the raw bytes (used by the HTML preview)."""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"

    @classmethod
    def from_data_url(cls, data_url: str, description: str = "", id: Optional[str] = None) -> "Attachment":
        """
        Build an attachment from a ``data:<mime>;base64,<payload>`` URL.

        Raises:
            ValueError: if the URL is not base64 encoded
        """
        header, sep, payload = data_url.partition(",")
        if not sep:
            # Bare base64 without the data: prefix
            header, payload = "", data_url
        content_type = "image/png"
        if header.startswith("data:"):
            content_type = header[5:].split(";")[0] or content_type
        try:
            raw = base64.b64decode(payload, validate=True)
        except (ValueError, TypeError) as e:
            raise ValueError(f"Invalid base64 image payload: {e}") from e
        attachment = cls(data=raw, content_type=content_type, description=description)
        if id:
            attachment.id = id
        return attachment


# Scalar fields the wizard edits through update()
_SCALAR_FIELDS = (
    "report_date",
    "report_number",
    "start_datetime",
    "end_datetime",
    "team_name",
    "responsible_office",
    "has_occurrences",
    "observations",
)


@dataclass
class ShiftReport:
    """
    Root aggregate of a shift report.

    Sequences keep insertion order; the officers' order is also the order
    of the signature blocks.
    """
    report_date: date = field(default_factory=date.today)
    report_number: str = ""
    start_datetime: Optional[datetime] = None
    end_datetime: Optional[datetime] = None
    team_name: str = ""
    responsible_office: str = ""
    officers: List[Officer] = field(default_factory=list)
    has_occurrences: bool = False
    occurrences: List[Occurrence] = field(default_factory=list)
    images: List[Attachment] = field(default_factory=list)
    observations: str = ""

    def __post_init__(self):
        self.responsible_office = _text(self.responsible_office)

    # ── Scalar fields ─────────────────────────────────────────────────────
    def update(self, **changes: Any) -> None:
        """Set scalar fields (report number, dates, team, office, flags)."""
        unknown = set(changes) - set(_SCALAR_FIELDS)
        if unknown:
            raise ValueError(f"Unknown report field(s): {', '.join(sorted(unknown))}")
        for name, value in changes.items():
            if name == "responsible_office":
                value = _text(value)
            setattr(self, name, value)

    def reset(self) -> None:
        """Restore every field to its default, discarding all entries."""
        fresh = ShiftReport()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))

    # ── Officers ──────────────────────────────────────────────────────────
    def add_officer(self, name: str = "", role: str = "") -> Officer:
        officer = Officer(name=name, role=role)
        self.officers.append(officer)
        return officer

    def update_officer(self, officer_id: str, **changes: Any) -> Officer:
        index = self._index_of(self.officers, officer_id, "officers")
        self.officers[index] = _replace_item(self.officers[index], changes)
        return self.officers[index]

    def remove_officer(self, officer_id: str) -> None:
        del self.officers[self._index_of(self.officers, officer_id, "officers")]

    # ── Occurrences ───────────────────────────────────────────────────────
    def add_occurrence(
        self,
        rai_number: str = "",
        nature: str = "",
        summary: str = "",
        responsible_office: str = "",
    ) -> Occurrence:
        occurrence = Occurrence(
            rai_number=rai_number,
            nature=nature,
            summary=summary,
            responsible_office=responsible_office,
        )
        self.occurrences.append(occurrence)
        return occurrence

    def update_occurrence(self, occurrence_id: str, **changes: Any) -> Occurrence:
        index = self._index_of(self.occurrences, occurrence_id, "occurrences")
        self.occurrences[index] = _replace_item(self.occurrences[index], changes)
        return self.occurrences[index]

    def remove_occurrence(self, occurrence_id: str) -> None:
        del self.occurrences[self._index_of(self.occurrences, occurrence_id, "occurrences")]

    # ── Images ────────────────────────────────────────────────────────────
    def add_image(self, data: bytes, content_type: str = "image/png", description: str = "") -> Attachment:
        attachment = Attachment(data=data, content_type=content_type, description=description)
        self.images.append(attachment)
        return attachment

    def update_image_description(self, image_id: str, description: str) -> Attachment:
        index = self._index_of(self.images, image_id, "images")
        self.images[index].description = description
        return self.images[index]

    def remove_image(self, image_id: str) -> None:
        del self.images[self._index_of(self.images, image_id, "images")]

    @staticmethod
    def _index_of(items: List[Any], item_id: str, collection: str) -> int:
        for index, item in enumerate(items):
            if item.id == item_id:
                return index
        raise RecordNotFoundError(
            f"No entry with id {item_id!r} in {collection}",
            collection=collection,
            item_id=item_id,
        )

    # ── Validation & summary ──────────────────────────────────────────────
    def validation_errors(self) -> List[str]:
        """
        Return the problems the wizard would flag before export.

        An empty list means the report is complete. Rendering never depends
        on this: incomplete reports still render with blanks and fallbacks.
        """
        errors: List[str] = []
        if not self.report_number.strip():
            errors.append("Número do relatório é obrigatório.")
        if self.start_datetime is None:
            errors.append("Data e hora de início do plantão são obrigatórias.")
        if self.end_datetime is None:
            errors.append("Data e hora de término do plantão são obrigatórias.")
        if (
            self.start_datetime is not None
            and self.end_datetime is not None
            and self.end_datetime < self.start_datetime
        ):
            errors.append("O término do plantão não pode ser anterior ao início.")
        if not self.team_name.strip():
            errors.append("Nome da equipe é obrigatório.")
        if not self.responsible_office:
            errors.append("Cartório responsável é obrigatório.")
        elif self.responsible_office not in _values(ResponsibleOffice):
            errors.append(f"Cartório responsável inválido: {self.responsible_office}.")

        if not self.officers:
            errors.append("Informe ao menos um policial da equipe.")
        for position, officer in enumerate(self.officers, start=1):
            if not officer.name.strip() or not officer.role:
                errors.append(f"Policial {position}: nome e cargo são obrigatórios.")
            elif officer.role not in _values(OfficerRole):
                errors.append(f"Policial {position}: cargo inválido ({officer.role}).")

        if self.has_occurrences:
            if not self.occurrences:
                errors.append("Informe ao menos uma ocorrência.")
            for position, occurrence in enumerate(self.occurrences, start=1):
                missing = [
                    label for label, value in (
                        ("número do RAI", occurrence.rai_number),
                        ("natureza", occurrence.nature),
                        ("resumo", occurrence.summary),
                        ("cartório responsável", occurrence.responsible_office),
                    )
                    if not value.strip()
                ]
                if missing:
                    errors.append(f"Ocorrência {position}: {', '.join(missing)} obrigatório(s).")
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors()

    def summary(self) -> Dict[str, Any]:
        """Short overview shown before the full preview is opened."""
        # Deferred: plantao.core.reports imports this module
        from plantao.core.reports.formatters import format_date, format_datetime

        return {
            "numero": self.report_number or "Não definido",
            "data": format_date(self.report_date),
            "periodo": f"{format_datetime(self.start_datetime)} a {format_datetime(self.end_datetime)}",
            "equipe": self.team_name or "Não definida",
            "cartorio_responsavel": self.responsible_office or "Não definido",
            "ocorrencias_registradas": len(self.occurrences) if self.has_occurrences else "Nenhuma",
            "imagens_anexadas": len(self.images),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "report_date": self.report_date.isoformat() if self.report_date else None,
            "report_number": self.report_number,
            "start_datetime": self.start_datetime.isoformat() if self.start_datetime else None,
            "end_datetime": self.end_datetime.isoformat() if self.end_datetime else None,
            "team_name": self.team_name,
            "responsible_office": self.responsible_office,
            "officer_count": len(self.officers),
            "has_occurrences": self.has_occurrences,
            "occurrence_count": len(self.occurrences),
            "image_count": len(self.images),
        }


def _values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


def _replace_item(item: Any, changes: Dict[str, Any]) -> Any:
    if "id" in changes:
        raise ValueError("The id of an entry cannot be changed")
    allowed = {f.name for f in fields(item)}
    unknown = set(changes) - allowed
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    return replace(item, **changes)

"""Multi-turn draft records accumulated across a conversation."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class MaintenanceMetaCategory(str, Enum):
    ORDINARIA = "ordinaria"
    STRAORDINARIA = "straordinaria"
    LIFECYCLE = "ciclo di vita"


class MaintenanceType(str, Enum):
    """Kind of maintenance intervention."""
    PROGRAMMATA = "programmata"
    VERIFICA = "verifica"
    RIPARAZIONE = "riparazione"
    SOSTITUZIONE = "sostituzione"
    INSTALLAZIONE = "installazione"
    COLLAUDO = "collaudo"
    DISMISSIONE = "dismissione"
    STRAORDINARIA = "straordinaria"

    @property
    def display_name(self) -> str:
        return _MAINTENANCE_TYPE_INFO[self][0]

    @property
    def meta_category(self) -> MaintenanceMetaCategory:
        return _MAINTENANCE_TYPE_INFO[self][1]

    @property
    def synonyms(self) -> tuple[str, ...]:
        return _MAINTENANCE_TYPE_INFO[self][2]

    @classmethod
    def by_meta_category(cls, meta: MaintenanceMetaCategory) -> list["MaintenanceType"]:
        return [t for t in cls if t.meta_category == meta]

    @classmethod
    def parse(cls, text: str) -> "MaintenanceType | None":
        """Exact lookup by value, enum name, display name or synonym."""
        normalized = text.strip().lower()
        for t in cls:
            if normalized in (t.value, t.name.lower(), t.display_name.lower()) or normalized in t.synonyms:
                return t
        return None


_MAINTENANCE_TYPE_INFO: dict[MaintenanceType, tuple[str, MaintenanceMetaCategory, tuple[str, ...]]] = {
    MaintenanceType.PROGRAMMATA: (
        "Manutenzione programmata",
        MaintenanceMetaCategory.ORDINARIA,
        ("programmata", "periodica", "schedulata", "prevista"),
    ),
    MaintenanceType.VERIFICA: (
        "Verifica periodica",
        MaintenanceMetaCategory.ORDINARIA,
        ("verifica", "controllo", "check", "ispezione", "sopralluogo"),
    ),
    MaintenanceType.RIPARAZIONE: (
        "Riparazione",
        MaintenanceMetaCategory.STRAORDINARIA,
        ("riparazione", "riparato", "aggiustato", "sistemato", "riparare", "aggiustare"),
    ),
    MaintenanceType.SOSTITUZIONE: (
        "Sostituzione",
        MaintenanceMetaCategory.STRAORDINARIA,
        ("sostituzione", "sostituito", "cambiato", "rimpiazzato", "sostituire", "cambiare"),
    ),
    MaintenanceType.INSTALLAZIONE: (
        "Installazione",
        MaintenanceMetaCategory.LIFECYCLE,
        ("installazione", "installato", "montato", "messo", "installare", "montare"),
    ),
    MaintenanceType.COLLAUDO: (
        "Collaudo",
        MaintenanceMetaCategory.LIFECYCLE,
        ("collaudo", "collaudato", "test iniziale", "prima verifica"),
    ),
    MaintenanceType.DISMISSIONE: (
        "Dismissione",
        MaintenanceMetaCategory.LIFECYCLE,
        ("dismissione", "dismesso", "smontato", "buttato", "rimosso", "smantellato"),
    ),
    MaintenanceType.STRAORDINARIA: (
        "Intervento straordinario",
        MaintenanceMetaCategory.STRAORDINARIA,
        ("straordinaria", "urgente", "emergenza", "imprevisto"),
    ),
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Bookkeeping fields never set through a merge.
_PROTECTED_FIELDS = {"kind", "started_at"}


def normalize_field_name(key: str) -> str:
    """camelCase or snake_case key to the snake_case field name."""
    return _CAMEL_BOUNDARY.sub("_", key.strip()).lower()


class TaskMerge(NamedTuple):
    """New task after a merge plus the update keys that were not applied."""

    task: "ActiveTask"
    rejected: list[str]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _yes_no(value: bool) -> str:
    return "Sì" if value else "No"


class _TaskBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    started_at: datetime = Field(default_factory=_utcnow)

    @property
    def required_missing(self) -> list[str]:
        raise NotImplementedError

    @property
    def is_complete(self) -> bool:
        return not self.required_missing

    def collected_summary(self) -> str:
        raise NotImplementedError

    def to_prefill(self) -> dict[str, str]:
        """Non-empty collected fields as strings, for forms and terminal actions."""
        prefill: dict[str, str] = {}
        for name, value in self.model_dump(exclude=_PROTECTED_FIELDS).items():
            if value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (list, tuple)):
                value = ", ".join(str(v) for v in value)
            elif isinstance(value, date):
                value = value.isoformat()
            prefill[name] = str(value)
        return prefill

    def merge(self, updates: dict[str, Any], *, overwrite: bool = False) -> TaskMerge:
        """
        Merge newly extracted fields into a copy of this task.

        Keys may be camelCase or snake_case. Values already collected are kept
        unless ``overwrite`` is set; ``None`` never clears a field. Unknown keys
        and values that fail validation are reported in ``rejected``.
        """
        current = self
        rejected: list[str] = []
        fields = type(self).model_fields
        for raw_key, value in updates.items():
            key = normalize_field_name(raw_key)
            if key not in fields or key in _PROTECTED_FIELDS:
                rejected.append(raw_key)
                continue
            if value is None or (isinstance(value, str) and not value.strip()):
                continue
            if getattr(current, key) is not None and not overwrite:
                continue
            # Validate field by field so one bad value does not drop the others.
            try:
                current = type(self).model_validate({**current.model_dump(), key: value})
            except ValidationError:
                rejected.append(raw_key)
        return TaskMerge(current, rejected)  # type: ignore[arg-type]


class ProductCreationTask(_TaskBase):
    """Creation of a new inventory product."""

    kind: Literal["product_creation"] = "product_creation"
    name: str | None = None
    category: str | None = None
    brand: str | None = None
    model: str | None = None
    location: str | None = None
    location_id: str | None = None
    assignee: str | None = None
    assignee_id: str | None = None
    purchase_date: date | None = None
    warranty_months: int | None = Field(default=None, ge=0)
    barcode: str | None = None
    notes: str | None = None

    @property
    def required_missing(self) -> list[str]:
        missing = []
        if self.name is None:
            missing.append("nome")
        if self.category is None:
            missing.append("categoria")
        if self.location is None:
            missing.append("ubicazione")
        return missing

    @property
    def optional_missing(self) -> list[str]:
        missing = []
        if self.brand is None:
            missing.append("marca")
        if self.model is None:
            missing.append("modello")
        if self.purchase_date is None:
            missing.append("data acquisto")
        if self.warranty_months is None:
            missing.append("durata garanzia")
        if self.barcode is None:
            missing.append("codice a barre")
        return missing

    def collected_summary(self) -> str:
        lines = []
        if self.name is not None:
            lines.append(f"- Nome: {self.name}")
        if self.category is not None:
            lines.append(f"- Categoria: {self.category}")
        if self.brand is not None:
            lines.append(f"- Marca: {self.brand}")
        if self.model is not None:
            lines.append(f"- Modello: {self.model}")
        if self.location is not None:
            lines.append(f"- Ubicazione: {self.location}")
        if self.assignee is not None:
            lines.append(f"- Assegnatario: {self.assignee}")
        if self.purchase_date is not None:
            lines.append(f"- Data acquisto: {self.purchase_date.isoformat()}")
        if self.warranty_months is not None:
            lines.append(f"- Garanzia: {self.warranty_months} mesi")
        if self.barcode is not None:
            lines.append(f"- Barcode: {self.barcode}")
        if self.notes is not None:
            lines.append(f"- Note: {self.notes}")
        return "\n".join(lines) or "(nessun dato ancora raccolto)"


class MaintenanceRegistrationTask(_TaskBase):
    """Registration of a maintenance intervention on an existing product."""

    kind: Literal["maintenance_registration"] = "maintenance_registration"
    product_id: str
    product_name: str
    type: MaintenanceType | None = None
    description: str | None = None
    performed_by: str | None = None
    performed_by_id: str | None = None
    cost: float | None = Field(default=None, ge=0.0)
    performed_on: date | None = None
    is_warranty_work: bool | None = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return MaintenanceType.parse(v) or v
        return v

    @property
    def required_missing(self) -> list[str]:
        # performed_by is only needed when an operator reports the work; the
        # orchestrator asks for it through the speaker-hint guidance.
        missing = []
        if self.type is None:
            missing.append("tipo intervento")
        if self.description is None:
            missing.append("descrizione")
        return missing

    def collected_summary(self) -> str:
        lines = [f"- Prodotto: {self.product_name} (ID: {self.product_id})"]
        if self.type is not None:
            lines.append(f"- Tipo: {self.type.display_name}")
        if self.description is not None:
            lines.append(f"- Descrizione: {self.description}")
        if self.performed_by is not None:
            lines.append(f"- Eseguito da: {self.performed_by}")
        if self.cost is not None:
            lines.append(f"- Costo: €{self.cost:.2f}")
        if self.performed_on is not None:
            lines.append(f"- Data: {self.performed_on.isoformat()}")
        if self.is_warranty_work is not None:
            lines.append(f"- In garanzia: {_yes_no(self.is_warranty_work)}")
        return "\n".join(lines)


class MaintainerCreationTask(_TaskBase):
    """Creation of a new maintainer or supplier."""

    kind: Literal["maintainer_creation"] = "maintainer_creation"
    name: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    city: str | None = None
    specializations: tuple[str, ...] | None = None
    is_supplier: bool | None = None

    @field_validator("specializations", mode="before")
    @classmethod
    def split_specializations(cls, v: Any) -> Any:
        if isinstance(v, str):
            return tuple(s.strip() for s in re.split(r"[;,]", v) if s.strip())
        return v

    @property
    def required_missing(self) -> list[str]:
        missing = []
        if self.name is None and self.company is None:
            missing.append("nome o ragione sociale")
        if self.email is None and self.phone is None:
            missing.append("contatto (email o telefono)")
        return missing

    def collected_summary(self) -> str:
        lines = []
        if self.name is not None:
            lines.append(f"- Nome: {self.name}")
        if self.company is not None:
            lines.append(f"- Azienda: {self.company}")
        if self.email is not None:
            lines.append(f"- Email: {self.email}")
        if self.phone is not None:
            lines.append(f"- Telefono: {self.phone}")
        if self.address is not None:
            lines.append(f"- Indirizzo: {self.address}")
        if self.city is not None:
            lines.append(f"- Città: {self.city}")
        if self.specializations:
            lines.append(f"- Specializzazioni: {', '.join(self.specializations)}")
        if self.is_supplier is not None:
            lines.append(f"- È fornitore: {_yes_no(self.is_supplier)}")
        return "\n".join(lines) or "(nessun dato ancora raccolto)"


ActiveTask = Annotated[
    Union[ProductCreationTask, MaintenanceRegistrationTask, MaintainerCreationTask],
    Field(discriminator="kind"),
]

TASK_LABELS: dict[str, str] = {
    "product_creation": "creazione prodotto",
    "maintenance_registration": "registrazione manutenzione",
    "maintainer_creation": "creazione manutentore",
}

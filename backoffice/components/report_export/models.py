"""
Report export models: formats, labels and rendering configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Literal

from backoffice.core.errors import UnsupportedFormatError
from backoffice.rules.models import ExportRules


class ReportFormat(str, Enum):
    """Export encodings."""

    TABULAR = "tabular"
    NARRATIVE = "narrative"

    @classmethod
    def parse(cls, value: ReportFormat | str) -> ReportFormat:
        """Resolve a format name, accepting the legacy excel/pdf aliases."""
        if isinstance(value, ReportFormat):
            return value
        key = str(value).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise UnsupportedFormatError(str(value)) from None


_ALIASES = {"excel": "tabular", "csv": "tabular", "pdf": "narrative", "text": "narrative"}

MEDIA_TYPES = {
    ReportFormat.TABULAR: "text/csv",
    ReportFormat.NARRATIVE: "text/plain",
}

FILE_EXTENSIONS = {
    ReportFormat.TABULAR: "csv",
    ReportFormat.NARRATIVE: "txt",
}

Quoting = Literal["minimal", "none"]


@dataclass(frozen=True)
class ExportLabels:
    """Localized strings used by both encodings."""

    header: tuple[str, ...]
    no_task: str
    yes: str
    no: str
    title: str
    total_hours: str
    billable_hours: str
    non_billable_hours: str
    details: str
    hours_suffix: str


LABELS_NB = ExportLabels(
    header=("Dato", "Klient", "Ansatt", "Oppgave", "Beskrivelse", "Timer", "Fakturerbar"),
    no_task="Ingen oppgave",
    yes="Ja",
    no="Nei",
    title="TIMEREGISTRERING RAPPORT",
    total_hours="Total timer",
    billable_hours="Fakturerbare timer",
    non_billable_hours="Ikke-fakturerbare timer",
    details="Detaljer",
    hours_suffix="t",
)

LABELS_EN = ExportLabels(
    header=("Date", "Client", "Employee", "Task", "Description", "Hours", "Billable"),
    no_task="No task",
    yes="Yes",
    no="No",
    title="TIME TRACKING REPORT",
    total_hours="Total hours",
    billable_hours="Billable hours",
    non_billable_hours="Non-billable hours",
    details="Details",
    hours_suffix="h",
)

LABELS_BY_LOCALE = {"nb": LABELS_NB, "en": LABELS_EN}


@dataclass(frozen=True)
class ExportConfig:
    """
    Rendering configuration.

    quoting="minimal" double-quotes fields that contain the delimiter, a
    quote or a newline. quoting="none" joins raw fields; a delimiter inside
    a field then splits the row.
    """

    labels: ExportLabels = field(default=LABELS_NB)
    delimiter: str = ","
    quoting: Quoting = "minimal"

    @classmethod
    def from_rules(cls, rules: ExportRules) -> ExportConfig:
        labels = LABELS_BY_LOCALE[rules.locale]
        overrides = rules.labels.model_dump(exclude_none=True)
        if "header" in overrides:
            header = tuple(overrides["header"])
            if len(header) != len(labels.header):
                raise ValueError(
                    f"Export header needs {len(labels.header)} columns, got {len(header)}"
                )
            overrides["header"] = header
        if overrides:
            labels = replace(labels, **overrides)
        return cls(labels=labels, delimiter=rules.delimiter, quoting=rules.quoting)


DEFAULT_CONFIG = ExportConfig()

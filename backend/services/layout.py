"""
Report document model.

Turns a ReportRecord into a surface-independent layout: header text, the
patient/doctor info block, the results and medication tables, the
interpretation lines and the footer. The PDF renderer and the on-screen
preview both draw from this model, so they always show the same content.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum

from backend.schemas.report import HeadingItem, MedicationEntry, ReportRecord, ResultItem

PLACEHOLDER = "—"
TITLE = "ALLERGY TEST REPORT"
DISCLAIMER = "This report is generated electronically and is valid without signature."
RESULTS_TITLE = "Test Results"
MEDICATIONS_TITLE = "Medications"
INTERPRETATION_TITLE = "Results / Interpretation"

RESULT_COLUMNS = ("Test Row", "Antigen", "Wheal Diameter (mm)", "Remarks")
MEDICATION_COLUMNS = ("Medicine Name", "Dosage", "Frequency", "Duration", "Remarks")

NO_TEST_ITEMS = "No test items added yet"
NO_MEDICATIONS = "No medications prescribed"

MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class Surface(str, Enum):
    PREVIEW = "preview"  # unbounded scrolling surface, never paginated
    EXPORT = "export"    # fixed-size pages


class RowKind(str, Enum):
    HEADING = "heading"
    RESULT = "result"
    MEDICATION = "medication"
    EMPTY = "empty"


@dataclass(frozen=True)
class LayoutRow:
    kind: RowKind
    cells: tuple[str, ...]
    positive: bool | None = None

    @property
    def spans_all_columns(self) -> bool:
        return self.kind in (RowKind.HEADING, RowKind.EMPTY)


@dataclass(frozen=True)
class LayoutTable:
    title: str
    columns: tuple[str, ...]
    rows: tuple[LayoutRow, ...]


@dataclass(frozen=True)
class InfoField:
    label: str
    value: str


@dataclass(frozen=True)
class ReportLayout:
    surface: Surface
    title: str
    subtitle: str
    left_info: tuple[InfoField, ...]
    right_info: tuple[InfoField, ...]
    results: LayoutTable
    medications: LayoutTable | None
    interpretation_title: str
    interpretation_lines: tuple[str, ...]
    footer: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["surface"] = self.surface.value
        for table in (data["results"], data["medications"]):
            if table is None:
                continue
            for row in table["rows"]:
                row["kind"] = row["kind"].value
        return data


def format_generated_at(value: datetime) -> str:
    """Format like 'March 2, 2024, 3:05 PM' regardless of the process locale."""
    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    return f"{MONTHS[value.month - 1]} {value.day}, {value.year}, {hour}:{value.minute:02d} {meridiem}"


def display(value) -> str:
    """Render a value as given, or the placeholder when it is absent or blank."""
    if value is None:
        return PLACEHOLDER
    text = value if isinstance(value, str) else str(value)
    return text if text.strip() else PLACEHOLDER


def _result_row(item: ResultItem) -> LayoutRow:
    return LayoutRow(
        kind=RowKind.RESULT,
        cells=(
            display(item.row_label),
            display(item.antigen),
            display(item.wheal_diameter),
            "Positive" if item.is_positive else "Negative",
        ),
        positive=bool(item.is_positive),
    )


def _heading_row(item: HeadingItem) -> LayoutRow:
    return LayoutRow(kind=RowKind.HEADING, cells=(display(item.text),))


def _medication_row(entry: MedicationEntry) -> LayoutRow:
    return LayoutRow(
        kind=RowKind.MEDICATION,
        cells=(
            display(entry.name),
            display(entry.dosage),
            display(entry.frequency),
            display(entry.duration),
            display(entry.remarks),
        ),
    )


def build_results_table(record: ReportRecord) -> LayoutTable:
    rows = []
    for item in record.test_items:
        if isinstance(item, HeadingItem):
            rows.append(_heading_row(item))
        else:
            rows.append(_result_row(item))
    if not rows:
        rows.append(LayoutRow(kind=RowKind.EMPTY, cells=(NO_TEST_ITEMS,)))
    return LayoutTable(title=RESULTS_TITLE, columns=RESULT_COLUMNS, rows=tuple(rows))


def build_medications_table(record: ReportRecord, surface: Surface) -> LayoutTable | None:
    if record.medications:
        rows = tuple(_medication_row(entry) for entry in record.medications)
    elif surface is Surface.EXPORT:
        rows = (LayoutRow(kind=RowKind.EMPTY, cells=(NO_MEDICATIONS,)),)
    else:
        return None
    return LayoutTable(title=MEDICATIONS_TITLE, columns=MEDICATION_COLUMNS, rows=rows)


def build_layout(record: ReportRecord, surface: Surface = Surface.EXPORT) -> ReportLayout:
    """Lay out a report record. Pure: reads the record, never mutates it."""
    age = f"{record.age} years" if record.age is not None else PLACEHOLDER
    sex = record.sex.value.title() if record.sex is not None else PLACEHOLDER

    return ReportLayout(
        surface=surface,
        title=TITLE,
        subtitle=f"Generated on: {format_generated_at(record.generated_at)}",
        left_info=(
            InfoField("Patient Name", display(record.patient_name)),
            InfoField("Age", age),
            InfoField("Sex", sex),
        ),
        right_info=(
            InfoField("Doctor", display(record.doctor_name)),
            InfoField("Test Name", display(record.test_name)),
            InfoField("Mobile", display(record.mobile)),
        ),
        results=build_results_table(record),
        medications=build_medications_table(record, surface),
        interpretation_title=INTERPRETATION_TITLE,
        interpretation_lines=tuple(record.interpretation_text.splitlines()),
        footer=DISCLAIMER,
    )

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.schemas.patient import DoctorOut, PatientOut
from backend.schemas.sex import Sex

DEFAULT_INTERPRETATION = """RESULTS: type here

DOCTOR’S SIGNATURE:

INTERPRETATION:

Reference Value (Wheal Diameter): ≥3mm = Positive. <3mm = Negative.

SALINE = Always should be negative for a valid test.
HISTAMINE = Always should be positive for a valid test.
P = Pseudopods Flare ups   E = Erythema Reaction"""


class HeadingItem(BaseModel):
    """Full-width caption grouping the result rows that follow it."""
    kind: Literal["heading"] = "heading"
    text: str = Field(default="", description="Caption shown across all table columns")


class ResultItem(BaseModel):
    """One skin-prick test row."""
    kind: Literal["result"] = "result"
    row_label: str = Field(default="", description="Row identifier, e.g. 'A1'")
    antigen: str = Field(default="", description="Antigen or allergen tested")
    wheal_diameter: str | int | float | None = Field(
        default=None,
        description="Measured wheal in mm, kept as entered ('3-4' and 'trace' are valid)",
    )
    is_positive: bool = False


TestItem = Annotated[HeadingItem | ResultItem, Field(discriminator="kind")]


class MedicationEntry(BaseModel):
    name: str = ""
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    remarks: str | None = None


class ReportRecord(BaseModel):
    """Everything needed to lay out one allergy test report."""
    patient_name: str = ""
    age: int | None = None
    sex: Sex | None = None
    doctor_name: str = ""
    mobile: str | None = None
    test_name: str = ""
    test_items: list[TestItem] = Field(default_factory=list)
    medications: list[MedicationEntry] = Field(default_factory=list)
    interpretation_text: str = DEFAULT_INTERPRETATION
    generated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("sex", mode="before")
    @classmethod
    def _normalise_sex(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return value or None
        return value

    @field_validator("mobile", mode="before")
    @classmethod
    def _blank_mobile_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ReportOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    patient_id: str
    doctor_id: str
    test_name: str
    test_items: list[TestItem]
    medications: list[MedicationEntry]
    interpretation_text: str | None
    created_at: datetime
    patient: PatientOut
    doctor: DoctorOut


class ReportSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    test_name: str
    patient_name: str
    doctor_name: str
    mobile: str | None
    total_tests: int
    created_at: datetime

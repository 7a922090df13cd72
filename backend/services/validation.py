from backend.schemas.report import ReportRecord


class ReportValidationError(ValueError):
    """Raised when a record is missing data required to render or save it."""


REQUIRED_FIELD_LABELS = (
    ("patient_name", "patient name"),
    ("age", "age"),
    ("sex", "sex"),
    ("doctor_name", "doctor's name"),
    ("test_name", "test name"),
)


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def missing_required_fields(record: ReportRecord) -> list[str]:
    missing = []
    for field, label in REQUIRED_FIELD_LABELS:
        value = getattr(record, field)
        if _is_blank(value) or (field == "age" and value <= 0):
            missing.append(label)
    return missing


def validate_report_record(record: ReportRecord) -> None:
    missing = missing_required_fields(record)
    if missing:
        raise ReportValidationError(f"Please fill in all required fields: {', '.join(missing)}.")
    if not record.test_items:
        raise ReportValidationError("Add at least one test item.")


def validate_template(name: str | None, test_items: list | None) -> None:
    if _is_blank(name):
        raise ReportValidationError("Please enter a test name before saving the template.")
    if not test_items:
        raise ReportValidationError("Please add at least one test item before saving the template.")

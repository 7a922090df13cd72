import logging

from pydantic import ValidationError
from sqlalchemy.orm import Query, Session, joinedload

from backend.models.doctor import Doctor
from backend.models.patient import Patient
from backend.models.report import Report
from backend.schemas.report import ReportRecord

logger = logging.getLogger(__name__)


class StoredReportError(ValueError):
    """A stored report whose rows no longer form a valid ReportRecord."""


def get_or_create_patient(db: Session, record: ReportRecord) -> Patient:
    """Reuse the patient registered under the record's mobile number, if any."""
    if record.mobile:
        existing = db.query(Patient).filter(Patient.mobile == record.mobile).first()
        if existing:
            return existing

    patient = Patient(
        name=record.patient_name,
        age=record.age,
        sex=record.sex.value,
        mobile=record.mobile,
    )
    db.add(patient)
    db.flush()
    logger.info("Registered new patient %s", patient.id)
    return patient


def get_or_create_doctor(db: Session, name: str) -> Doctor:
    existing = db.query(Doctor).filter(Doctor.name == name).first()
    if existing:
        return existing
    doctor = Doctor(name=name)
    db.add(doctor)
    db.flush()
    return doctor


def create_report(db: Session, record: ReportRecord) -> Report:
    patient = get_or_create_patient(db, record)
    doctor = get_or_create_doctor(db, record.doctor_name)
    report = Report(
        patient_id=patient.id,
        doctor_id=doctor.id,
        test_name=record.test_name,
        test_items=[item.model_dump(mode="json") for item in record.test_items],
        medications=[entry.model_dump(mode="json") for entry in record.medications],
        interpretation_text=record.interpretation_text,
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


def reports_query(db: Session) -> Query:
    return (
        db.query(Report)
        .options(joinedload(Report.patient), joinedload(Report.doctor))
        .order_by(Report.created_at.desc())
    )


def report_to_record(report: Report) -> ReportRecord:
    """Rebuild the renderable record for a stored report."""
    data = {
        "patient_name": report.patient.name,
        "age": report.patient.age,
        "sex": report.patient.sex,
        "doctor_name": report.doctor.name,
        "mobile": report.patient.mobile,
        "test_name": report.test_name,
        "test_items": report.test_items or [],
        "medications": report.medications or [],
        "generated_at": report.created_at,
    }
    if report.interpretation_text is not None:
        data["interpretation_text"] = report.interpretation_text
    try:
        return ReportRecord.model_validate(data)
    except ValidationError as exc:
        raise StoredReportError(f"Report {report.id} has invalid stored data") from exc

import io
import logging
import zipfile
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.patient import Patient
from backend.models.report import Report
from backend.schemas.report import DEFAULT_INTERPRETATION, ReportOut, ReportRecord, ReportSummary
from backend.services.exporter import ReportRenderError, export_batch, export_report
from backend.services.layout import Surface, build_layout
from backend.services.notifications import LoggingNotifier
from backend.services.pdf_renderer import batch_prefix
from backend.services.report_store import StoredReportError, create_report, report_to_record, reports_query
from backend.services.validation import ReportValidationError, validate_report_record

router = APIRouter(prefix="/api/reports", tags=["reports"])
logger = logging.getLogger(__name__)


def _serialize(report: Report) -> dict:
    return ReportOut.model_validate(report).model_dump(mode="json")


def _summary(report: Report) -> dict:
    return ReportSummary(
        id=report.id,
        test_name=report.test_name,
        patient_name=report.patient.name,
        doctor_name=report.doctor.name,
        mobile=report.patient.mobile,
        total_tests=sum(1 for item in report.test_items or [] if item.get("kind") != "heading"),
        created_at=report.created_at,
    ).model_dump(mode="json")


def _attachment(content: bytes, filename: str, media_type: str) -> Response:
    ascii_name = filename.encode("ascii", "ignore").decode() or "report"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": disposition})


def _validated(record: ReportRecord) -> ReportRecord:
    try:
        validate_report_record(record)
    except ReportValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return record


def _render(record: ReportRecord, prefix: str = "") -> Response:
    try:
        rendered = export_report(record, prefix=prefix, notifier=LoggingNotifier())
    except ReportRenderError as exc:
        raise HTTPException(status_code=500, detail="Failed to generate PDF. Please try again.") from exc
    return _attachment(rendered.content, rendered.filename, "application/pdf")


def _get_or_404(db: Session, report_id: str) -> Report:
    report = reports_query(db).filter(Report.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.get("")
def list_reports(db: Session = Depends(get_db)):
    rows = reports_query(db).all()
    return {
        "statusCode": 200,
        "message": "Success",
        "data": {"reports": [_summary(r) for r in rows], "total": len(rows)},
    }


@router.post("", status_code=201)
def save_report(record: ReportRecord, db: Session = Depends(get_db)):
    _validated(record)
    report = create_report(db, record)
    logger.info("Saved report %s for patient %s", report.id, report.patient_id)
    report = _get_or_404(db, report.id)
    return {"statusCode": 201, "message": "The report has been saved successfully.", "data": _serialize(report)}


@router.get("/defaults")
def report_defaults():
    return {"statusCode": 200, "message": "Success", "data": {"interpretation_text": DEFAULT_INTERPRETATION}}


@router.post("/preview")
def preview_report(record: ReportRecord):
    # No validation here: the preview shows placeholders while the form is being filled in.
    return {"statusCode": 200, "message": "Success", "data": build_layout(record, Surface.PREVIEW).to_dict()}


@router.post("/render")
def render_report(record: ReportRecord):
    return _render(_validated(record))


@router.get("/patient/{patient_id}")
def list_reports_by_patient(patient_id: str, db: Session = Depends(get_db)):
    rows = reports_query(db).filter(Report.patient_id == patient_id).all()
    return {"statusCode": 200, "message": "Success", "data": [_serialize(r) for r in rows]}


@router.get("/mobile/{mobile}")
def list_reports_by_mobile(mobile: str, db: Session = Depends(get_db)):
    rows = reports_query(db).join(Report.patient).filter(Patient.mobile == mobile).all()
    return {"statusCode": 200, "message": "Success", "data": [_serialize(r) for r in rows]}


@router.get("/mobile/{mobile}/export")
def export_reports_by_mobile(mobile: str, db: Session = Depends(get_db)):
    rows = reports_query(db).join(Report.patient).filter(Patient.mobile == mobile).all()
    if not rows:
        raise HTTPException(status_code=404, detail="No reports available to export.")

    result = export_batch([(r.id, r) for r in rows], load=report_to_record)
    if not result.files:
        raise HTTPException(status_code=500, detail="Failed to export reports. Please try again.")

    archive = io.BytesIO()
    with zipfile.ZipFile(archive, "w", zipfile.ZIP_DEFLATED) as bundle:
        for exported in result.files:
            bundle.writestr(exported.filename, exported.content)
    response = _attachment(archive.getvalue(), f"allergy_reports_{mobile}.zip", "application/zip")
    response.headers["X-Export-Count"] = str(len(result.files))
    response.headers["X-Export-Failed"] = ",".join(result.failed_ids)
    return response


@router.get("/{report_id}")
def get_report(report_id: str, db: Session = Depends(get_db)):
    return {"statusCode": 200, "message": "Success", "data": _serialize(_get_or_404(db, report_id))}


@router.get("/{report_id}/pdf")
def download_report_pdf(
    report_id: str,
    ordinal: int | None = Query(default=None, ge=1, description="1-based position in a batch export"),
    db: Session = Depends(get_db),
):
    report = _get_or_404(db, report_id)
    try:
        record = report_to_record(report)
    except StoredReportError as exc:
        logger.exception("Could not rebuild report %s", report_id)
        raise HTTPException(status_code=500, detail="Failed to generate PDF. Please try again.") from exc
    prefix = batch_prefix(ordinal - 1) if ordinal else ""
    return _render(record, prefix=prefix)

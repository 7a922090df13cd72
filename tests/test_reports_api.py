import io
import zipfile

from backend.config import settings
from backend.models.patient import Patient
from backend.models.report import Report
from backend.schemas.report import DEFAULT_INTERPRETATION


def _save(client, payload):
    response = client.post("/api/reports", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_preview_returns_layout_without_validation(client):
    response = client.post("/api/reports/preview", json={})
    assert response.status_code == 200
    layout = response.json()["data"]
    assert layout["surface"] == "preview"
    assert layout["medications"] is None
    assert layout["results"]["rows"][0]["cells"] == ["No test items added yet"]
    assert layout["left_info"][0] == {"label": "Patient Name", "value": "—"}


def test_render_requires_complete_record(client, report_payload):
    report_payload["patient_name"] = ""
    response = client.post("/api/reports/render", json=report_payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Please fill in all required fields: patient name."


def test_render_returns_pdf_attachment(client, report_payload):
    response = client.post("/api/reports/render", json=report_payload)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="allergy_report_John_Q_Public_')


def test_render_failure_maps_to_500(client, report_payload, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("reportlab failed")

    monkeypatch.setattr("backend.services.exporter.render_pdf", boom)
    response = client.post("/api/reports/render", json=report_payload)
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to generate PDF. Please try again."


def test_save_report_persists_patient_doctor_and_items(client, db_session, report_payload):
    data = _save(client, report_payload)

    assert data["patient"]["name"] == "John Q Public"
    assert data["patient"]["sex"] == "male"
    assert data["doctor"]["name"] == "Dr. Asha Rao"
    assert data["test_items"][0] == {"kind": "heading", "text": "CONTROLS"}
    assert data["test_items"][2]["is_positive"] is True
    assert data["medications"][0]["remarks"] is None
    assert db_session.query(Report).count() == 1


def test_save_rejects_empty_items(client, report_payload):
    report_payload["test_items"] = []
    response = client.post("/api/reports", json=report_payload)
    assert response.status_code == 400
    assert response.json()["message"] == "Add at least one test item."


def test_patient_is_reused_by_mobile(client, db_session, report_payload):
    first = _save(client, report_payload)
    report_payload["test_name"] = "Skin Prick Test - Foods"
    second = _save(client, report_payload)

    assert first["patient_id"] == second["patient_id"]
    assert db_session.query(Patient).count() == 1

    listed = client.get(f"/api/reports/mobile/{report_payload['mobile']}").json()["data"]
    assert {r["test_name"] for r in listed} == {"Skin Prick Test - Foods", "Skin Prick Test - Inhalants"}


def test_list_reports_summary(client, report_payload):
    _save(client, report_payload)
    payload = client.get("/api/reports").json()["data"]
    assert payload["total"] == 1
    summary = payload["reports"][0]
    assert summary["patient_name"] == "John Q Public"
    assert summary["total_tests"] == 3


def test_reports_by_patient(client, report_payload):
    saved = _save(client, report_payload)
    listed = client.get(f"/api/reports/patient/{saved['patient_id']}").json()["data"]
    assert [r["id"] for r in listed] == [saved["id"]]


def test_stored_report_pdf_with_batch_ordinal(client, report_payload):
    saved = _save(client, report_payload)
    response = client.get(f"/api/reports/{saved['id']}/pdf", params={"ordinal": 2})
    assert response.status_code == 200
    assert 'filename="report_2_allergy_report_John_Q_Public_' in response.headers["content-disposition"]


def test_export_by_mobile_zips_every_report(client, report_payload, monkeypatch):
    monkeypatch.setattr(settings, "export_stagger_seconds", 0)
    _save(client, report_payload)
    _save(client, dict(report_payload, test_name="Skin Prick Test - Foods"))

    response = client.get(f"/api/reports/mobile/{report_payload['mobile']}/export")
    assert response.status_code == 200
    assert response.headers["x-export-count"] == "2"
    assert response.headers["x-export-failed"] == ""

    names = sorted(zipfile.ZipFile(io.BytesIO(response.content)).namelist())
    assert names[0].startswith("report_1_allergy_report_John_Q_Public_")
    assert names[1].startswith("report_2_allergy_report_John_Q_Public_")


def test_export_by_unknown_mobile_is_404(client):
    response = client.get("/api/reports/mobile/0000000000/export")
    assert response.status_code == 404
    assert response.json()["message"] == "No reports available to export."


def test_defaults_expose_the_interpretation_boilerplate(client):
    response = client.get("/api/reports/defaults")
    assert response.status_code == 200
    assert response.json()["data"]["interpretation_text"] == DEFAULT_INTERPRETATION


def test_stored_report_with_invalid_patient_returns_render_error(client, db_session, report_payload):
    db_session.add(Patient(name="Legacy", age=50, sex="unknown", mobile=report_payload["mobile"]))
    db_session.commit()
    saved = _save(client, report_payload)

    response = client.get(f"/api/reports/{saved['id']}/pdf")
    assert response.status_code == 500
    assert response.json()["message"] == "Failed to generate PDF. Please try again."


def test_export_skips_a_report_with_corrupt_items(client, db_session, report_payload, monkeypatch):
    monkeypatch.setattr(settings, "export_stagger_seconds", 0)
    broken = _save(client, report_payload)
    _save(client, dict(report_payload, test_name="Skin Prick Test - Foods"))

    report = db_session.query(Report).filter(Report.id == broken["id"]).one()
    report.test_items = [{"kind": "bogus"}]
    db_session.commit()

    response = client.get(f"/api/reports/mobile/{report_payload['mobile']}/export")
    assert response.status_code == 200
    assert response.headers["x-export-count"] == "1"
    assert response.headers["x-export-failed"] == broken["id"]
    assert len(zipfile.ZipFile(io.BytesIO(response.content)).namelist()) == 1

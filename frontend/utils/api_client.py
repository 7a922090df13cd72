import os

import requests
import streamlit as st

BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")


def unwrap(res: requests.Response):
    """Return the envelope's ``data`` payload, or None for a failed call."""
    if not res.ok:
        return None
    return res.json().get("data")


def api_message(res: requests.Response, fallback: str = "Request failed") -> str:
    try:
        body = res.json()
    except ValueError:
        return res.text or fallback
    return body.get("message") or fallback


def filename_from(res: requests.Response, fallback: str) -> str:
    disposition = res.headers.get("Content-Disposition", "")
    for part in disposition.split(";"):
        part = part.strip()
        if part.startswith("filename="):
            return part.split("=", 1)[1].strip('"')
    return fallback


class ApiClient:
    # Reports
    def preview(self, record: dict):
        return requests.post(f"{BASE_URL}/api/reports/preview", json=record, timeout=60)

    def render(self, record: dict):
        return requests.post(f"{BASE_URL}/api/reports/render", json=record, timeout=120)

    def save_report(self, record: dict):
        return requests.post(f"{BASE_URL}/api/reports", json=record, timeout=120)

    def report_pdf(self, report_id: str, ordinal: int | None = None):
        params = {"ordinal": ordinal} if ordinal else None
        return requests.get(f"{BASE_URL}/api/reports/{report_id}/pdf", params=params, timeout=120)

    def export_by_mobile(self, mobile: str):
        return requests.get(f"{BASE_URL}/api/reports/mobile/{mobile}/export", timeout=600)

    # Patients
    def patient_by_mobile(self, mobile: str):
        return requests.get(f"{BASE_URL}/api/patients/mobile/{mobile}", timeout=60)

    # Templates
    def create_template(self, name: str, test_items: list[dict]):
        return requests.post(f"{BASE_URL}/api/templates", json={"name": name, "test_items": test_items}, timeout=60)

    def update_template(self, template_id: str, name: str | None = None, test_items: list[dict] | None = None):
        payload = {}
        if name is not None:
            payload["name"] = name
        if test_items is not None:
            payload["test_items"] = test_items
        return requests.put(f"{BASE_URL}/api/templates/{template_id}", json=payload, timeout=60)

    def delete_template(self, template_id: str):
        return requests.delete(f"{BASE_URL}/api/templates/{template_id}", timeout=60)


# ---------------------------------------------------------------------------
# Cached data fetchers: return parsed payloads, cached for 60 seconds.
# These are standalone functions so @st.cache_data can hash the arguments.
# ---------------------------------------------------------------------------

@st.cache_data(ttl=60, show_spinner=False)
def cached_templates() -> tuple[bool, list]:
    res = requests.get(f"{BASE_URL}/api/templates", timeout=60)
    return res.ok, unwrap(res) or []


@st.cache_data(ttl=60, show_spinner=False)
def cached_reports_by_mobile(mobile: str) -> tuple[bool, list]:
    res = requests.get(f"{BASE_URL}/api/reports/mobile/{mobile}", timeout=120)
    return res.ok, unwrap(res) or []


@st.cache_data(ttl=600, show_spinner=False)
def cached_report_defaults() -> tuple[bool, dict]:
    res = requests.get(f"{BASE_URL}/api/reports/defaults", timeout=30)
    return res.ok, unwrap(res) or {}

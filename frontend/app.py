import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st
import streamlit.components.v1 as components

from utils.api_client import ApiClient, api_message, cached_report_defaults, cached_templates, filename_from, unwrap
from utils.forms import ITEM_TYPES, empty_medications, frame_to_items, frame_to_medications, items_to_frame
from utils.notifications import StreamlitNotifier
from utils.preview import layout_to_html
from utils.theme import apply_theme, get_colors, page_header, render_sidebar, section_title, theme_css

st.set_page_config(
    page_title="Allergy Report Generator",
    page_icon="🧪",
    layout="wide",
    initial_sidebar_state="expanded",
)
apply_theme()
render_sidebar()
COLORS = get_colors()

client = ApiClient()
notifier = StreamlitNotifier()

# ── Session defaults ──────────────────────────────────────────────────────
st.session_state.setdefault("items_df", items_to_frame([]))
st.session_state.setdefault("meds_df", empty_medications())
st.session_state.setdefault("editor_version", 0)
if "interpretation" not in st.session_state:
    _, defaults = cached_report_defaults()
    st.session_state.interpretation = defaults.get("interpretation_text", "")
for key in ("patient_name", "mobile", "doctor_name", "test_name"):
    st.session_state.setdefault(key, "")
st.session_state.setdefault("age", 0)
st.session_state.setdefault("sex", "")


def _reset_editors():
    st.session_state.editor_version += 1


def _fill_patient():
    patient = unwrap(client.patient_by_mobile(st.session_state.mobile.strip()))
    if not patient:
        st.session_state.patient_not_found = True
        return
    st.session_state.patient_name = patient["name"]
    st.session_state.age = patient["age"]
    sex = patient["sex"].lower()
    st.session_state.sex = sex if sex in ("male", "female", "other") else ""


def _load_template(template: dict):
    st.session_state.items_df = items_to_frame(template["test_items"])
    if not st.session_state.test_name:
        st.session_state.test_name = template["name"]
    _reset_editors()


page_header("🧪", "Allergy Test Report", "Fill in the patient details and results, preview, then download or save.")

# ── Patient & doctor ──────────────────────────────────────────────────────
section_title("Patient Information")
lookup_col, button_col = st.columns([3, 1])
with lookup_col:
    st.text_input("Mobile", key="mobile", placeholder="e.g. 9876543210")
with button_col:
    st.write("")
    st.button(
        "Find patient",
        use_container_width=True,
        disabled=not st.session_state.mobile.strip(),
        on_click=_fill_patient,
    )
if st.session_state.pop("patient_not_found", False):
    st.info("No patient found with that mobile number.")

c1, c2, c3 = st.columns([2, 1, 1])
c1.text_input("Patient name *", key="patient_name")
c2.number_input("Age *", key="age", min_value=0, max_value=150, step=1)
c3.selectbox(
    "Sex *",
    options=["", "male", "female", "other"],
    key="sex",
    format_func=lambda v: v.title() if v else "Select…",
)

d1, d2 = st.columns(2)
d1.text_input("Doctor name *", key="doctor_name")
d2.text_input("Test name *", key="test_name", placeholder="e.g. Skin Prick Test")

# ── Test items ────────────────────────────────────────────────────────────
section_title("Test Results")
t_ok, templates = cached_templates()
if t_ok and templates:
    names = {t["name"]: t for t in templates}
    tcol, bcol = st.columns([3, 1])
    chosen = tcol.selectbox("Template", options=list(names.keys()))
    bcol.write("")
    bcol.button("Load template", use_container_width=True, on_click=_load_template, args=(names[chosen],))
elif not t_ok:
    st.warning("Could not load templates.")

items_df = st.data_editor(
    st.session_state.items_df,
    key=f"items_editor_{st.session_state.editor_version}",
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
    column_config={
        "Type": st.column_config.SelectboxColumn("Type", options=ITEM_TYPES, default="Result", required=True),
        "Positive": st.column_config.CheckboxColumn("Positive", default=False),
    },
)

# ── Medications ───────────────────────────────────────────────────────────
section_title("Medications")
meds_df = st.data_editor(
    st.session_state.meds_df,
    key=f"meds_editor_{st.session_state.editor_version}",
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
)

# ── Interpretation ────────────────────────────────────────────────────────
section_title("Results / Interpretation")
st.text_area("Interpretation", key="interpretation", height=260, label_visibility="collapsed")


def current_record() -> dict:
    return {
        "patient_name": st.session_state.patient_name.strip(),
        "age": int(st.session_state.age) or None,
        "sex": st.session_state.sex or None,
        "doctor_name": st.session_state.doctor_name.strip(),
        "mobile": st.session_state.mobile.strip() or None,
        "test_name": st.session_state.test_name.strip(),
        "test_items": frame_to_items(items_df),
        "medications": frame_to_medications(meds_df),
        "interpretation_text": st.session_state.interpretation,
    }


record = current_record()

# ── Actions ───────────────────────────────────────────────────────────────
a1, a2, a3 = st.columns(3)
if a1.button("Generate PDF", type="primary", use_container_width=True):
    with st.spinner("Rendering PDF…"):
        res = client.render(record)
    if res.ok:
        st.session_state.pdf = (res.content, filename_from(res, "allergy_report.pdf"))
        notifier.success("PDF Generated", "Your report is ready to download.")
    else:
        notifier.failure("Error", api_message(res, "Failed to generate PDF. Please try again."))

if a2.button("Save report", use_container_width=True):
    res = client.save_report(record)
    if res.ok:
        notifier.success("Success", api_message(res, "The report has been saved successfully."))
        st.cache_data.clear()
    else:
        notifier.failure("Error", api_message(res, "Failed to save the report."))

if a3.button("Clear form", use_container_width=True):
    for key in list(st.session_state.keys()):
        if key != "dark_mode":
            del st.session_state[key]
    st.rerun()

if st.session_state.get("pdf"):
    content, filename = st.session_state.pdf
    st.download_button("⬇️ Download PDF", data=content, file_name=filename, mime="application/pdf")

# ── Live preview ──────────────────────────────────────────────────────────
section_title("Preview")
layout = unwrap(client.preview(record))
if layout is None:
    st.warning("Preview unavailable. Is the API running?")
else:
    html = theme_css() + layout_to_html(layout)
    components.html(html, height=900, scrolling=True)

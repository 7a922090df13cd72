import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

import streamlit as st

from utils.api_client import ApiClient, api_message, cached_templates
from utils.forms import ITEM_TYPES, frame_to_items, items_to_frame
from utils.notifications import StreamlitNotifier
from utils.theme import apply_theme, page_header, render_sidebar, section_title

st.set_page_config(page_title="Test Templates", page_icon="📑", layout="wide")
apply_theme()
render_sidebar()

client = ApiClient()
notifier = StreamlitNotifier()

page_header("📑", "Test Templates", "Reusable antigen panels that pre-fill the test results table.")

ok, templates = cached_templates()
if not ok:
    st.error("Failed to load templates.")
    st.stop()

NEW = "➕ New template"
by_name = {t["name"]: t for t in templates}
choice = st.selectbox("Template", options=[NEW] + list(by_name.keys()))
current = by_name.get(choice)

section_title("Edit" if current else "Create")
name = st.text_input("Template name", value=current["name"] if current else "", key=f"name_{choice}")
edited = st.data_editor(
    items_to_frame(current["test_items"] if current else []),
    key=f"template_editor_{choice}",
    num_rows="dynamic",
    use_container_width=True,
    hide_index=True,
    column_config={
        "Type": st.column_config.SelectboxColumn("Type", options=ITEM_TYPES, default="Result", required=True),
        "Positive": st.column_config.CheckboxColumn("Positive", default=False),
    },
)
items = frame_to_items(edited)

save_col, delete_col = st.columns(2)
if save_col.button("Save template", type="primary", use_container_width=True):
    if current:
        res = client.update_template(current["id"], name=name.strip(), test_items=items)
    else:
        res = client.create_template(name.strip(), items)
    if res.ok:
        notifier.success("Success", api_message(res, "Template saved"))
        st.cache_data.clear()
    else:
        notifier.failure("Error", api_message(res, "Failed to save template."))

if current and delete_col.button("Delete template", use_container_width=True):
    res = client.delete_template(current["id"])
    if res.ok:
        notifier.success("Success", f"Deleted {current['name']}")
        st.cache_data.clear()
        st.rerun()
    else:
        notifier.failure("Error", api_message(res, "Failed to delete template."))

import sys
from pathlib import Path

APP_DIR = Path(__file__).resolve().parent.parent
if str(APP_DIR) not in sys.path:
    sys.path.insert(0, str(APP_DIR))

from datetime import datetime

import pandas as pd
import streamlit as st

from utils.api_client import ApiClient, api_message, cached_reports_by_mobile, filename_from
from utils.notifications import StreamlitNotifier
from utils.theme import apply_theme, get_colors, kpi_tile, page_header, render_sidebar, section_title

st.set_page_config(page_title="Patient History", page_icon="🗂️", layout="wide")
apply_theme()
render_sidebar()
COLORS = get_colors()

client = ApiClient()
notifier = StreamlitNotifier()

page_header("🗂️", "Patient History", "Look up past reports by mobile number and download them again.")

mobile = st.text_input("Mobile number", placeholder="e.g. 9876543210").strip()
if not mobile:
    st.info("Enter a mobile number to see that patient's reports.")
    st.stop()

ok, reports = cached_reports_by_mobile(mobile)
if not ok:
    st.error("Failed to load reports.")
    st.stop()
if not reports:
    st.info("No reports found for this mobile number.")
    st.stop()

patient = reports[0]["patient"]
positives = sum(
    1
    for r in reports
    for item in r["test_items"]
    if item.get("kind") == "result" and item.get("is_positive")
)

cols = st.columns(3)
tiles = [
    ("Patient", patient["name"], COLORS["text"]),
    ("Reports", len(reports), COLORS["primary"]),
    ("Positive Results", positives, COLORS["danger"] if positives else COLORS["success"]),
]
for col, (label, value, color) in zip(cols, tiles):
    col.markdown(kpi_tile(label, value, color), unsafe_allow_html=True)

# ── Report list ───────────────────────────────────────────────────────────
section_title("Reports")
table = pd.DataFrame(
    [
        {
            "#": index,
            "Date": datetime.fromisoformat(r["created_at"]).strftime("%Y-%m-%d %H:%M"),
            "Test": r["test_name"],
            "Doctor": r["doctor"]["name"],
            "Items": sum(1 for item in r["test_items"] if item.get("kind") == "result"),
        }
        for index, r in enumerate(reports, start=1)
    ]
)
st.dataframe(table, use_container_width=True, hide_index=True)

for index, r in enumerate(reports, start=1):
    with st.expander(f"{index}. {r['test_name']} — {r['created_at'][:10]}"):
        results = [item for item in r["test_items"] if item.get("kind") == "result"]
        if results:
            st.dataframe(
                pd.DataFrame(
                    [
                        {
                            "Row": item.get("row_label") or "—",
                            "Antigen": item.get("antigen") or "—",
                            "Wheal (mm)": item.get("wheal_diameter") if item.get("wheal_diameter") not in (None, "") else "—",
                            "Remarks": "Positive" if item.get("is_positive") else "Negative",
                        }
                        for item in results
                    ]
                ),
                use_container_width=True,
                hide_index=True,
            )
        if st.button("Prepare PDF", key=f"pdf_{r['id']}"):
            res = client.report_pdf(r["id"], ordinal=index)
            if res.ok:
                st.download_button(
                    "⬇️ Download",
                    data=res.content,
                    file_name=filename_from(res, f"report_{index}.pdf"),
                    mime="application/pdf",
                    key=f"dl_{r['id']}",
                )
            else:
                notifier.failure("Error", api_message(res, "Failed to generate PDF. Please try again."))

# ── Export all ────────────────────────────────────────────────────────────
section_title("Export")
if st.button(f"Export all {len(reports)} reports", type="primary"):
    with st.spinner("Generating PDFs…"):
        res = client.export_by_mobile(mobile)
    if not res.ok:
        notifier.failure("Error", api_message(res, "Failed to export reports. Please try again."))
    else:
        failed = [x for x in res.headers.get("X-Export-Failed", "").split(",") if x]
        exported = res.headers.get("X-Export-Count", "0")
        if failed:
            notifier.failure("Export Incomplete", f"Exported {exported} of {len(reports)} reports.")
        else:
            notifier.success("Export Finished", f"Exported {exported} reports.")
        st.download_button(
            "⬇️ Download ZIP",
            data=res.content,
            file_name=filename_from(res, f"allergy_reports_{mobile}.zip"),
            mime="application/zip",
        )

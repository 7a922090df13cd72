"""
Shared theme, CSS injection, color palette, and UI helper functions
for the Allergy Report Generator Streamlit frontend.
"""

from __future__ import annotations

import streamlit as st

# ---------------------------------------------------------------------------
# Color palettes (light + dark)
# ---------------------------------------------------------------------------
COLORS_LIGHT: dict[str, str] = {
    "primary": "#2563EB",       # blue-600
    "primary_light": "#BFDBFE", # blue-200
    "danger": "#B91C1C",        # red-700
    "danger_light": "#FEE2E2",  # red-100
    "success": "#047857",       # emerald-700
    "success_light": "#D1FAE5", # emerald-100
    "text": "#1E293B",          # slate-800
    "text_secondary": "#475569", # slate-600
    "text_muted": "#64748B",    # slate-500
    "bg_card": "#FFFFFF",
    "bg_page": "#F8FAFC",       # slate-50
    "bg_heading": "#F0F0F0",
    "bg_header": "#E6E6E6",
    "bg_medication": "#C8E6FF",
    "border": "#CBD5E1",        # slate-300
}

COLORS_DARK: dict[str, str] = {
    "primary": "#60A5FA",       # blue-400
    "primary_light": "#1E3A8A", # blue-900
    "danger": "#F87171",        # red-400
    "danger_light": "#450A0A",  # red-950
    "success": "#34D399",       # emerald-400
    "success_light": "#022C22", # emerald-950
    "text": "#F1F5F9",          # slate-100
    "text_secondary": "#CBD5E1", # slate-300
    "text_muted": "#94A3B8",    # slate-400
    "bg_card": "#1E293B",       # slate-800
    "bg_page": "#0F172A",       # slate-900
    "bg_heading": "#334155",
    "bg_header": "#475569",
    "bg_medication": "#1E3A8A",
    "border": "#334155",        # slate-700
}


def get_colors() -> dict[str, str]:
    """Return the active palette based on ``st.session_state.dark_mode``."""
    if st.session_state.get("dark_mode", False):
        return COLORS_DARK
    return COLORS_LIGHT


# ---------------------------------------------------------------------------
# CSS injection (built dynamically for active palette)
# ---------------------------------------------------------------------------
_CSS_TEMPLATE = """
<style>
[data-testid="stAppViewContainer"] {
    background-color: %(bg_page)s;
}
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] p,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] td,
[data-testid="stAppViewContainer"] > section[data-testid="stMain"] li {
    color: %(text)s;
}

/* ---------- Card container ---------- */
.card {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 24px;
    margin-bottom: 16px;
    box-shadow: 0 1px 3px rgba(0,0,0,0.06);
}
.card-muted {
    color: %(text_muted)s;
    font-size: 0.85rem;
}

/* ---------- Result badges ---------- */
.result-badge {
    display: inline-block;
    padding: 2px 10px;
    border-radius: 9999px;
    font-size: 0.75rem;
    font-weight: 600;
}
.result-positive { background: %(danger_light)s; color: %(danger)s; }
.result-negative { background: %(success_light)s; color: %(success)s; }

/* ---------- KPI tile ---------- */
.kpi-tile {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 12px;
    padding: 20px;
    text-align: center;
}
.kpi-value { font-size: 2rem; font-weight: 800; line-height: 1.1; }
.kpi-label {
    font-size: 0.82rem;
    color: %(text_muted)s;
    text-transform: uppercase;
    letter-spacing: 0.04em;
    margin-top: 6px;
}

/* ---------- Section title ---------- */
.section-title {
    font-size: 1.15rem;
    font-weight: 700;
    color: %(text)s;
    margin: 24px 0 12px 0;
    padding-bottom: 8px;
    border-bottom: 2px solid %(primary)s;
    display: inline-block;
}

/* ---------- Report preview ---------- */
.report-sheet {
    background: %(bg_card)s;
    border: 1px solid %(border)s;
    border-radius: 8px;
    padding: 32px;
    color: %(text)s;
}
.report-sheet h2 { text-align: center; margin: 0; }
.report-subtitle { text-align: center; color: %(text_muted)s; margin-bottom: 16px; }
.report-info { display: grid; grid-template-columns: 1fr 1fr; gap: 4px 24px; margin-bottom: 16px; }
.report-table { width: 100%%; border-collapse: collapse; margin-bottom: 16px; }
.report-table th { background: %(bg_header)s; border: 1px solid %(border)s; padding: 6px; }
.report-table.medications th { background: %(bg_medication)s; }
.report-table td { border: 1px solid %(border)s; padding: 6px; }
.report-table tr.heading td { background: %(bg_heading)s; font-weight: 700; text-align: center; }
.report-table tr.empty td { text-align: center; font-style: italic; color: %(text_muted)s; }
.report-table td.positive { color: %(danger)s; font-weight: 600; }
.report-interpretation { white-space: pre-wrap; font-family: inherit; }
.report-footer { text-align: center; color: %(text_muted)s; font-size: 0.8rem; margin-top: 24px; }
</style>
"""


def theme_css() -> str:
    return _CSS_TEMPLATE % get_colors()


def apply_theme() -> None:
    """Inject global CSS into the page. Call once at the top of every page."""
    if "dark_mode" not in st.session_state:
        st.session_state.dark_mode = False
    st.markdown(theme_css(), unsafe_allow_html=True)


def render_sidebar() -> None:
    """Dark-mode toggle shared by every page."""
    with st.sidebar:
        dark = st.toggle(
            "🌙 Dark mode",
            value=st.session_state.get("dark_mode", False),
            key="dark_mode_toggle",
        )
        if dark != st.session_state.get("dark_mode", False):
            st.session_state.dark_mode = dark
            st.rerun()


# ---------------------------------------------------------------------------
# Reusable HTML helpers
# ---------------------------------------------------------------------------
def result_badge(positive: bool) -> str:
    if positive:
        return '<span class="result-badge result-positive">Positive</span>'
    return '<span class="result-badge result-negative">Negative</span>'


def kpi_tile(label: str, value: str | int | float, color: str) -> str:
    """Return HTML for a single KPI tile."""
    return (
        f'<div class="kpi-tile">'
        f'  <div class="kpi-value" style="color:{color};">{value}</div>'
        f'  <div class="kpi-label">{label}</div>'
        f'</div>'
    )


def section_title(text: str) -> None:
    """Render a styled section heading."""
    st.markdown(f'<div class="section-title">{text}</div>', unsafe_allow_html=True)


def page_header(icon: str, title: str, subtitle: str) -> None:
    c = get_colors()
    st.markdown(
        f"""
        <div style="margin-bottom:4px;">
            <span style="font-size:1.6rem;font-weight:800;color:{c['text']};">{icon} {title}</span>
        </div>
        <p style="color:{c['text_muted']};margin-top:0;">{subtitle}</p>
        """,
        unsafe_allow_html=True,
    )

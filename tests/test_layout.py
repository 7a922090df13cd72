from datetime import datetime

import pytest

from backend.schemas.report import DEFAULT_INTERPRETATION, HeadingItem, ReportRecord, ResultItem
from backend.services.layout import (
    DISCLAIMER,
    NO_MEDICATIONS,
    NO_TEST_ITEMS,
    PLACEHOLDER,
    RESULT_COLUMNS,
    RowKind,
    Surface,
    build_layout,
    display,
    format_generated_at,
)


def _all_text(layout) -> list[str]:
    values = [layout.title, layout.subtitle, layout.footer]
    values += [f.value for f in layout.left_info + layout.right_info]
    for table in (layout.results, layout.medications):
        if table is not None:
            for row in table.rows:
                values.extend(row.cells)
    return values


def test_results_table_keeps_item_order_and_spans_headings(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload))
    rows = layout.results.rows

    assert layout.results.columns == RESULT_COLUMNS
    assert [r.kind for r in rows] == [
        RowKind.HEADING, RowKind.RESULT, RowKind.RESULT, RowKind.HEADING, RowKind.RESULT,
    ]
    assert rows[0].cells == ("CONTROLS",)
    assert rows[0].spans_all_columns
    assert not rows[1].spans_all_columns
    assert rows[2].cells == ("C2", "Histamine", "6", "Positive")


def test_remarks_follow_positive_flag(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload))
    remarks = {r.cells[1]: (r.cells[3], r.positive) for r in layout.results.rows if r.kind is RowKind.RESULT}

    assert remarks["Saline"] == ("Negative", False)
    assert remarks["Histamine"] == ("Positive", True)


def test_zero_wheal_diameter_is_shown_not_replaced(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload))
    saline = layout.results.rows[1]
    assert saline.cells[2] == "0"


def test_missing_values_render_as_placeholder():
    record = ReportRecord(test_items=[ResultItem(row_label="", antigen="  ", wheal_diameter=None), HeadingItem(text="")])
    layout = build_layout(record)

    assert layout.results.rows[0].cells[:3] == (PLACEHOLDER, PLACEHOLDER, PLACEHOLDER)
    assert layout.results.rows[1].cells == (PLACEHOLDER,)
    for field in layout.left_info + layout.right_info:
        assert field.value == PLACEHOLDER
    for text in _all_text(layout):
        assert text
        assert text.strip()
        assert text not in ("None", "undefined", "null")


def test_empty_items_produce_single_spanning_row():
    layout = build_layout(ReportRecord())
    assert len(layout.results.rows) == 1
    row = layout.results.rows[0]
    assert row.kind is RowKind.EMPTY
    assert row.cells == (NO_TEST_ITEMS,)
    assert row.spans_all_columns


def test_medications_omitted_in_preview_but_placeholder_in_export(report_payload):
    report_payload["medications"] = []
    record = ReportRecord.model_validate(report_payload)

    assert build_layout(record, Surface.PREVIEW).medications is None
    exported = build_layout(record, Surface.EXPORT).medications
    assert exported is not None
    assert [r.cells for r in exported.rows] == [(NO_MEDICATIONS,)]


def test_medication_rows_and_optional_remarks(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload), Surface.PREVIEW)
    assert layout.medications.rows[0].cells == ("Levocetirizine", "5 mg", "Once daily", "10 days", PLACEHOLDER)


def test_info_block_formats_age_and_sex(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload))
    left = {f.label: f.value for f in layout.left_info}
    right = {f.label: f.value for f in layout.right_info}

    assert left == {"Patient Name": "John Q Public", "Age": "34 years", "Sex": "Male"}
    assert right == {"Doctor": "Dr. Asha Rao", "Test Name": "Skin Prick Test - Inhalants", "Mobile": "9876543210"}


def test_subtitle_and_footer(report_payload):
    layout = build_layout(ReportRecord.model_validate(report_payload))
    assert layout.subtitle == "Generated on: March 2, 2024, 3:05 PM"
    assert layout.footer == DISCLAIMER


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (datetime(2024, 3, 2, 0, 0), "March 2, 2024, 12:00 AM"),
        (datetime(2024, 12, 31, 12, 30), "December 31, 2024, 12:30 PM"),
        (datetime(2025, 1, 9, 23, 59), "January 9, 2025, 11:59 PM"),
    ],
)
def test_format_generated_at(value, expected):
    assert format_generated_at(value) == expected


def test_display_keeps_value_verbatim():
    assert display("3-4") == "3-4"
    assert display(2.5) == "2.5"
    assert display(None) == PLACEHOLDER
    assert display("") == PLACEHOLDER


def test_default_interpretation_is_preserved_line_for_line():
    layout = build_layout(ReportRecord())
    assert "\n".join(layout.interpretation_lines) == DEFAULT_INTERPRETATION
    assert "" in layout.interpretation_lines


def test_layout_is_deterministic_and_does_not_mutate_record(report_payload):
    record = ReportRecord.model_validate(report_payload)
    before = record.model_dump()

    first = build_layout(record)
    second = build_layout(record)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert record.model_dump() == before


def test_to_dict_is_plain_json(report_payload):
    data = build_layout(ReportRecord.model_validate(report_payload), Surface.PREVIEW).to_dict()
    assert data["surface"] == "preview"
    assert data["medications"]["rows"][0]["kind"] == "medication"
    heading = data["results"]["rows"][0]
    assert heading["kind"] == "heading"
    assert list(heading["cells"]) == ["CONTROLS"]
    assert heading["positive"] is None

"""Conversions between the editable pandas tables and API payloads."""

import pandas as pd

ITEM_COLUMNS = ["Type", "Row / Heading", "Antigen", "Wheal (mm)", "Positive"]
MEDICATION_COLUMNS = ["Medicine Name", "Dosage", "Frequency", "Duration", "Remarks"]
ITEM_TYPES = ["Heading", "Result"]


def _text(value) -> str:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return ""
    return str(value)


def items_to_frame(items: list[dict]) -> pd.DataFrame:
    rows = []
    for item in items:
        if item.get("kind") == "heading":
            rows.append(["Heading", item.get("text", ""), "", "", False])
        else:
            wheal = item.get("wheal_diameter")
            rows.append([
                "Result",
                item.get("row_label", ""),
                item.get("antigen", ""),
                "" if wheal is None else str(wheal),
                bool(item.get("is_positive")),
            ])
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def frame_to_items(frame: pd.DataFrame) -> list[dict]:
    items = []
    for row in frame.to_dict(orient="records"):
        kind = _text(row.get("Type")) or "Result"
        label = _text(row.get("Row / Heading"))
        if kind == "Heading":
            items.append({"kind": "heading", "text": label})
            continue
        antigen = _text(row.get("Antigen"))
        wheal = _text(row.get("Wheal (mm)"))
        positive = row.get("Positive")
        positive = False if positive is None or pd.isna(positive) else bool(positive)
        if not (label or antigen or wheal or positive):
            continue  # blank row left behind by the editor
        items.append({
            "kind": "result",
            "row_label": label,
            "antigen": antigen,
            "wheal_diameter": wheal or None,
            "is_positive": positive,
        })
    return items


def empty_medications() -> pd.DataFrame:
    return pd.DataFrame(columns=MEDICATION_COLUMNS)


def frame_to_medications(frame: pd.DataFrame) -> list[dict]:
    meds = []
    for row in frame.to_dict(orient="records"):
        values = [_text(row.get(col)) for col in MEDICATION_COLUMNS]
        if not any(values):
            continue
        name, dosage, frequency, duration, remarks = values
        meds.append({
            "name": name,
            "dosage": dosage,
            "frequency": frequency,
            "duration": duration,
            "remarks": remarks or None,
        })
    return meds

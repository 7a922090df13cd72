"""Draws the report layout returned by ``POST /api/reports/preview`` as HTML."""

from html import escape

from utils.theme import result_badge


def _table(table: dict, extra_class: str = "") -> str:
    columns = table["columns"]
    head = "".join(f"<th>{escape(col)}</th>" for col in columns)
    body = []
    for row in table["rows"]:
        kind = row["kind"]
        if kind in ("heading", "empty"):
            body.append(f'<tr class="{kind}"><td colspan="{len(columns)}">{escape(row["cells"][0])}</td></tr>')
            continue
        cells = [f"<td>{escape(value)}</td>" for value in row["cells"]]
        if kind == "result":
            cells[-1] = f'<td class="{"positive" if row["positive"] else ""}">{result_badge(bool(row["positive"]))}</td>'
        body.append(f"<tr>{''.join(cells)}</tr>")
    return (
        f"<h4>{escape(table['title'])}</h4>"
        f'<table class="report-table {extra_class}"><thead><tr>{head}</tr></thead>'
        f"<tbody>{''.join(body)}</tbody></table>"
    )


def _info(fields: list[dict]) -> list[str]:
    return [f"<div><b>{escape(f['label'])}:</b> {escape(f['value'])}</div>" for f in fields]


def layout_to_html(layout: dict) -> str:
    info = []
    # Interleave so the grid reads left column / right column.
    for left, right in zip(_info(layout["left_info"]), _info(layout["right_info"])):
        info.extend([left, right])

    parts = [
        '<div class="report-sheet">',
        f"<h2>{escape(layout['title'])}</h2>",
        f'<div class="report-subtitle">{escape(layout["subtitle"])}</div>',
        f'<div class="report-info">{"".join(info)}</div>',
        _table(layout["results"]),
    ]
    if layout.get("medications"):
        parts.append(_table(layout["medications"], "medications"))
    interpretation = "\n".join(layout["interpretation_lines"])
    parts.extend([
        f"<h4>{escape(layout['interpretation_title'])}</h4>",
        f'<div class="report-interpretation">{escape(interpretation)}</div>',
        f'<div class="report-footer">{escape(layout["footer"])}</div>',
        "</div>",
    ])
    return "".join(parts)

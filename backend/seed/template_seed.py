from backend.database import SessionLocal
from backend.models.template import TestTemplate


def _heading(text: str) -> dict:
    return {"kind": "heading", "text": text}


def _row(label: str, antigen: str) -> dict:
    return {"kind": "result", "row_label": label, "antigen": antigen, "wheal_diameter": None, "is_positive": False}


TEMPLATES = [
    {
        "name": "Skin Prick Test - Inhalants",
        "test_items": [
            _heading("CONTROLS"),
            _row("C1", "Saline (negative control)"),
            _row("C2", "Histamine (positive control)"),
            _heading("HOUSE DUST MITES"),
            _row("A1", "Dermatophagoides pteronyssinus"),
            _row("A2", "Dermatophagoides farinae"),
            _row("A3", "Blomia tropicalis"),
            _heading("POLLENS"),
            _row("B1", "Parthenium hysterophorus"),
            _row("B2", "Amaranthus spinosus"),
            _row("B3", "Cynodon dactylon (Bermuda grass)"),
            _row("B4", "Prosopis juliflora"),
            _heading("MOULDS"),
            _row("D1", "Aspergillus fumigatus"),
            _row("D2", "Alternaria alternata"),
            _row("D3", "Cladosporium herbarum"),
            _heading("EPITHELIA & INSECTS"),
            _row("E1", "Cat dander"),
            _row("E2", "Dog dander"),
            _row("E3", "Cockroach"),
        ],
    },
    {
        "name": "Skin Prick Test - Foods",
        "test_items": [
            _heading("CONTROLS"),
            _row("C1", "Saline (negative control)"),
            _row("C2", "Histamine (positive control)"),
            _heading("FOODS"),
            _row("F1", "Cow's milk"),
            _row("F2", "Egg white"),
            _row("F3", "Egg yolk"),
            _row("F4", "Peanut"),
            _row("F5", "Wheat"),
            _row("F6", "Soybean"),
            _row("F7", "Prawn"),
            _row("F8", "Fish"),
        ],
    },
]


def seed_templates():
    """Create the stock templates that are missing. Never overwrites staff edits."""
    db = SessionLocal()
    try:
        existing = {name for (name,) in db.query(TestTemplate.name).all()}
        for item in TEMPLATES:
            if item["name"] in existing:
                continue
            db.add(TestTemplate(name=item["name"], test_items=item["test_items"]))
        db.commit()
    finally:
        db.close()

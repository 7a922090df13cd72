from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.template import TestTemplate
from backend.schemas.template import TemplateCreate, TemplateOut, TemplateUpdate
from backend.services.validation import ReportValidationError, validate_template

router = APIRouter(prefix="/api/templates", tags=["templates"])


def _serialize(template: TestTemplate) -> dict:
    return TemplateOut.model_validate(template).model_dump(mode="json")


def _get_or_404(db: Session, template_id: str) -> TestTemplate:
    template = db.query(TestTemplate).filter(TestTemplate.id == template_id).first()
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return template


def _ensure_name_free(db: Session, name: str, exclude_id: str | None = None) -> None:
    query = db.query(TestTemplate).filter(TestTemplate.name == name)
    if exclude_id is not None:
        query = query.filter(TestTemplate.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=409, detail=f'A template named "{name}" already exists')


@router.get("")
def list_templates(db: Session = Depends(get_db)):
    rows = db.query(TestTemplate).order_by(TestTemplate.created_at.desc()).all()
    return {"statusCode": 200, "message": "Success", "data": [_serialize(t) for t in rows]}


@router.get("/name/{name}")
def get_template_by_name(name: str, db: Session = Depends(get_db)):
    template = db.query(TestTemplate).filter(TestTemplate.name == name).first()
    if not template:
        raise HTTPException(status_code=404, detail="Template not found")
    return {"statusCode": 200, "message": "Success", "data": _serialize(template)}


@router.get("/{template_id}")
def get_template(template_id: str, db: Session = Depends(get_db)):
    return {"statusCode": 200, "message": "Success", "data": _serialize(_get_or_404(db, template_id))}


@router.post("", status_code=201)
def create_template(payload: TemplateCreate, db: Session = Depends(get_db)):
    try:
        validate_template(payload.name, payload.test_items)
    except ReportValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    name = payload.name.strip()
    _ensure_name_free(db, name)
    template = TestTemplate(name=name, test_items=[item.model_dump(mode="json") for item in payload.test_items])
    db.add(template)
    db.commit()
    db.refresh(template)
    return {"statusCode": 201, "message": "Template saved", "data": _serialize(template)}


@router.put("/{template_id}")
def update_template(template_id: str, payload: TemplateUpdate, db: Session = Depends(get_db)):
    template = _get_or_404(db, template_id)
    if payload.name is not None:
        name = payload.name.strip()
        _ensure_name_free(db, name, exclude_id=template.id)
        template.name = name
    if payload.test_items is not None:
        template.test_items = [item.model_dump(mode="json") for item in payload.test_items]
    db.commit()
    db.refresh(template)
    return {"statusCode": 200, "message": "Template updated", "data": _serialize(template)}


@router.delete("/{template_id}")
def delete_template(template_id: str, db: Session = Depends(get_db)):
    template = _get_or_404(db, template_id)
    db.delete(template)
    db.commit()
    return {"statusCode": 200, "message": "Template deleted", "data": None}

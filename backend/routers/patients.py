from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.patient import Patient
from backend.schemas.patient import PatientCreate, PatientOut

router = APIRouter(prefix="/api/patients", tags=["patients"])


@router.get("/mobile/{mobile}")
def get_patient_by_mobile(mobile: str, db: Session = Depends(get_db)):
    patient = db.query(Patient).filter(Patient.mobile == mobile).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return {"statusCode": 200, "message": "Success", "data": PatientOut.model_validate(patient).model_dump(mode="json")}


@router.get("/{patient_id}")
def get_patient(patient_id: str, db: Session = Depends(get_db)):
    patient = db.query(Patient).filter(Patient.id == patient_id).first()
    if not patient:
        raise HTTPException(status_code=404, detail="Patient not found")
    return {"statusCode": 200, "message": "Success", "data": PatientOut.model_validate(patient).model_dump(mode="json")}


@router.post("", status_code=201)
def create_patient(payload: PatientCreate, db: Session = Depends(get_db)):
    patient = Patient(name=payload.name, age=payload.age, sex=payload.sex.value, mobile=payload.mobile or None)
    db.add(patient)
    db.commit()
    db.refresh(patient)
    return {"statusCode": 201, "message": "Patient created", "data": PatientOut.model_validate(patient).model_dump(mode="json")}

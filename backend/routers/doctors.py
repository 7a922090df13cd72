from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.doctor import Doctor
from backend.schemas.patient import DoctorCreate, DoctorOut

router = APIRouter(prefix="/api/doctors", tags=["doctors"])


@router.get("/name/{name}")
def get_doctor_by_name(name: str, db: Session = Depends(get_db)):
    doctor = db.query(Doctor).filter(Doctor.name == name).first()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return {"statusCode": 200, "message": "Success", "data": DoctorOut.model_validate(doctor).model_dump(mode="json")}


@router.get("/{doctor_id}")
def get_doctor(doctor_id: str, db: Session = Depends(get_db)):
    doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
    if not doctor:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return {"statusCode": 200, "message": "Success", "data": DoctorOut.model_validate(doctor).model_dump(mode="json")}


@router.post("", status_code=201)
def create_doctor(payload: DoctorCreate, db: Session = Depends(get_db)):
    doctor = Doctor(name=payload.name)
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    return {"statusCode": 201, "message": "Doctor created", "data": DoctorOut.model_validate(doctor).model_dump(mode="json")}

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.schemas.sex import Sex


class PatientCreate(BaseModel):
    name: str = Field(min_length=1)
    age: int = Field(gt=0)
    sex: Sex
    mobile: str | None = None

    @field_validator("sex", mode="before")
    @classmethod
    def _normalise_sex(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class PatientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    age: int
    sex: str
    mobile: str | None
    created_at: datetime


class DoctorCreate(BaseModel):
    name: str = Field(min_length=1)


class DoctorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime

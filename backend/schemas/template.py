from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from backend.schemas.report import TestItem


class TemplateCreate(BaseModel):
    name: str = Field(min_length=1, description="Unique template name, also used as the report's test name")
    test_items: list[TestItem] = Field(min_length=1)


class TemplateUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    test_items: list[TestItem] | None = Field(default=None, min_length=1)


class TemplateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    test_items: list[TestItem]
    created_at: datetime

from datetime import datetime

from pydantic import Field

from schemas.base import APIModel


class MedicineCreate(APIModel):
    name: str = Field(min_length=1, max_length=200)
    type: str = Field(min_length=1, max_length=100)
    description: str | None = None


class MedicineUpdate(APIModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    type: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = None


class MedicineOut(APIModel):
    id: int
    name: str
    type: str
    description: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

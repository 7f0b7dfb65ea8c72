from datetime import datetime
from pydantic import BaseModel, Field as PydanticField, constr


class SectorCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100)


class SectorUpdate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=100)


class SectorOut(BaseModel):
    id: int
    name: str
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field as PydanticField, constr

from apps.requests.schemas import SectorMinimal


class ProductCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    description: Optional[str] = PydanticField(default=None, max_length=5000)
    unit: constr(strip_whitespace=True, min_length=1, max_length=50)
    sectorId: int = PydanticField(gt=0)
    status: Literal["available", "unavailable"] = "available"


class ProductUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    description: Optional[str] = PydanticField(default=None, max_length=5000)
    unit: Optional[constr(strip_whitespace=True, min_length=1, max_length=50)] = None
    sectorId: Optional[int] = PydanticField(default=None, gt=0)
    status: Optional[Literal["available", "unavailable"]] = None


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    unit: str
    sector_id: int = PydanticField(alias="sectorId")
    sector: Optional[SectorMinimal] = None
    status: str
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

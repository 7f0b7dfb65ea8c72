from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field as PydanticField, constr


class SupplierCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1, max_length=255)
    cnpj: Optional[constr(strip_whitespace=True, max_length=20)] = None
    contact: Optional[constr(strip_whitespace=True, max_length=255)] = None
    phone: Optional[constr(strip_whitespace=True, max_length=50)] = None
    email: Optional[EmailStr] = None
    observations: Optional[str] = PydanticField(default=None, max_length=5000)


class SupplierUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1, max_length=255)] = None
    cnpj: Optional[constr(strip_whitespace=True, max_length=20)] = None
    contact: Optional[constr(strip_whitespace=True, max_length=255)] = None
    phone: Optional[constr(strip_whitespace=True, max_length=50)] = None
    email: Optional[EmailStr] = None
    observations: Optional[str] = PydanticField(default=None, max_length=5000)


class SupplierOut(BaseModel):
    id: int
    name: str
    cnpj: Optional[str] = None
    contact: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    observations: Optional[str] = None
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

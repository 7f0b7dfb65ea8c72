from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field as PydanticField, constr


class SectorMinimal(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserMinimal(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class ProductMinimal(BaseModel):
    id: int
    name: str
    unit: str

    class Config:
        from_attributes = True


# -------------------------------
# Input payloads
# -------------------------------

class RequestItemInput(BaseModel):
    productId: int = PydanticField(gt=0)
    quantity: int = PydanticField(ge=1)
    deadline: Optional[datetime] = None


class PurchaseRequestCreate(BaseModel):
    items: List[RequestItemInput] = PydanticField(min_length=1)
    observations: Optional[constr(strip_whitespace=True, max_length=5000)] = None


class PurchaseRequestUpdate(BaseModel):
    """
    Requesters may only change observations; adminNotes is admin-only.
    Status changes go through the review endpoints.
    """
    observations: Optional[constr(strip_whitespace=True, max_length=5000)] = None
    adminNotes: Optional[constr(strip_whitespace=True, max_length=5000)] = None


class RequestItemUpdate(BaseModel):
    quantity: Optional[int] = PydanticField(default=None, ge=1)
    deadline: Optional[datetime] = None
    adminNotes: Optional[constr(strip_whitespace=True, max_length=5000)] = None


# -------------------------------
# Responses
# -------------------------------

class RequestItemOut(BaseModel):
    id: int
    purchase_request_id: int = PydanticField(alias="purchaseRequestId")
    product_id: int = PydanticField(alias="productId")
    product: Optional[ProductMinimal] = None
    quantity: int
    status: str
    deadline: Optional[datetime] = None
    admin_notes: Optional[str] = PydanticField(default=None, alias="adminNotes")
    suspension_reason: Optional[str] = PydanticField(default=None, alias="suspensionReason")
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class PurchaseRequestOut(BaseModel):
    id: int
    status: str
    requester_id: int = PydanticField(alias="requesterId")
    requester: Optional[UserMinimal] = None
    sector_id: int = PydanticField(alias="sectorId")
    sector: Optional[SectorMinimal] = None
    observations: Optional[str] = None
    admin_notes: Optional[str] = PydanticField(default=None, alias="adminNotes")
    reviewed_by: Optional[int] = PydanticField(default=None, alias="reviewedBy")
    reviewed_at: Optional[datetime] = PydanticField(default=None, alias="reviewedAt")
    completion_notes: Optional[str] = PydanticField(default=None, alias="completionNotes")
    completed_by: Optional[int] = PydanticField(default=None, alias="completedBy")
    completed_at: Optional[datetime] = PydanticField(default=None, alias="completedAt")
    priority: str
    priority_by: Optional[int] = PydanticField(default=None, alias="priorityBy")
    priority_at: Optional[datetime] = PydanticField(default=None, alias="priorityAt")
    priority_notes: Optional[str] = PydanticField(default=None, alias="priorityNotes")
    items: List[RequestItemOut] = []
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

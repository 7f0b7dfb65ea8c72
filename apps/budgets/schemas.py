from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field as PydanticField

from apps.receipts.schemas import SupplierMinimal


class BudgetCreate(BaseModel):
    supplierId: int = PydanticField(gt=0)
    unitPrice: Decimal = PydanticField(gt=0, max_digits=12, decimal_places=2)


class BudgetUpdate(BaseModel):
    unitPrice: Decimal = PydanticField(gt=0, max_digits=12, decimal_places=2)


class BudgetOut(BaseModel):
    id: int
    purchase_request_id: int = PydanticField(alias="purchaseRequestId")
    request_item_id: int = PydanticField(alias="requestItemId")
    supplier_id: int = PydanticField(alias="supplierId")
    supplier: Optional[SupplierMinimal] = None
    unit_price: Decimal = PydanticField(alias="unitPrice")
    created_at: datetime = PydanticField(alias="createdAt")
    updated_at: datetime = PydanticField(alias="updatedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

from datetime import datetime
from typing import List, Literal, Optional
from pydantic import BaseModel, Field as PydanticField, constr, model_validator


class ReceiptCreate(BaseModel):
    quantityReceived: int = PydanticField(ge=1)
    invoiceNumber: constr(strip_whitespace=True, min_length=1, max_length=100)
    invoiceDate: Optional[datetime] = None
    lotNumber: Optional[constr(strip_whitespace=True, max_length=100)] = None
    expirationDate: Optional[datetime] = None
    supplierId: Optional[int] = PydanticField(default=None, gt=0)
    notes: Optional[str] = PydanticField(default=None, max_length=5000)
    receiptCondition: Literal["good", "damaged", "partial_damage"] = "good"
    qualityChecked: bool = False
    qualityNotes: Optional[str] = PydanticField(default=None, max_length=5000)
    rejectedQuantity: int = PydanticField(default=0, ge=0)

    @model_validator(mode="after")
    def _rejected_within_received(self):
        if self.rejectedQuantity > self.quantityReceived:
            raise ValueError("rejectedQuantity cannot exceed quantityReceived")
        return self


class SupplierMinimal(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ReceiverMinimal(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ReceiptOut(BaseModel):
    id: int
    request_item_id: int = PydanticField(alias="requestItemId")
    quantity_received: int = PydanticField(alias="quantityReceived")
    rejected_quantity: int = PydanticField(alias="rejectedQuantity")
    net_quantity: int = PydanticField(alias="netQuantity")
    received_by: int = PydanticField(alias="receivedBy")
    receiver: Optional[ReceiverMinimal] = None
    invoice_number: str = PydanticField(alias="invoiceNumber")
    invoice_date: Optional[datetime] = PydanticField(default=None, alias="invoiceDate")
    lot_number: Optional[str] = PydanticField(default=None, alias="lotNumber")
    expiration_date: Optional[datetime] = PydanticField(default=None, alias="expirationDate")
    supplier_id: Optional[int] = PydanticField(default=None, alias="supplierId")
    supplier: Optional[SupplierMinimal] = None
    notes: Optional[str] = None
    attachment_path: Optional[str] = PydanticField(default=None, alias="attachmentPath")
    receipt_condition: str = PydanticField(alias="receiptCondition")
    quality_checked: bool = PydanticField(alias="qualityChecked")
    quality_notes: Optional[str] = PydanticField(default=None, alias="qualityNotes")
    created_at: datetime = PydanticField(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True


class ItemReceivingStatus(BaseModel):
    item_id: int = PydanticField(alias="itemId")
    product_name: str = PydanticField(alias="productName")
    quantity_ordered: int = PydanticField(alias="quantityOrdered")
    quantity_received: int = PydanticField(alias="quantityReceived")
    quantity_pending: int = PydanticField(alias="quantityPending")
    status: str
    last_received_at: Optional[datetime] = PydanticField(default=None, alias="lastReceivedAt")

    class Config:
        populate_by_name = True


class ReceivingSummary(BaseModel):
    total_items: int = PydanticField(alias="totalItems")
    complete_items: int = PydanticField(alias="completeItems")
    partial_items: int = PydanticField(alias="partialItems")
    pending_items: int = PydanticField(alias="pendingItems")
    over_delivered_items: int = PydanticField(alias="overDeliveredItems")

    class Config:
        populate_by_name = True


class ReceivingStatusResponse(BaseModel):
    request_id: int = PydanticField(alias="requestId")
    request_status: str = PydanticField(alias="requestStatus")
    items: List[ItemReceivingStatus]
    summary: ReceivingSummary

    class Config:
        populate_by_name = True


class ReceiptsSummaryResponse(BaseModel):
    total_receipts: int = PydanticField(alias="totalReceipts")
    total_quantity: int = PydanticField(alias="totalQuantity")
    total_rejected: int = PydanticField(alias="totalRejected")
    unique_suppliers: int = PydanticField(alias="uniqueSuppliers")
    first_receipt_date: Optional[datetime] = PydanticField(default=None, alias="firstReceiptDate")
    last_receipt_date: Optional[datetime] = PydanticField(default=None, alias="lastReceiptDate")

    class Config:
        populate_by_name = True

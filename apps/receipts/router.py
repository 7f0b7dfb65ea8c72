from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.notifications.broker import NotificationBroker, get_notifier
from apps.receipts.schemas import ReceiptCreate, ReceiptOut, ReceiptsSummaryResponse, ReceivingStatusResponse
from apps.receipts.service import ReceiptService
from apps.storage.service import StorageService
from constants.roles import ADMIN
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_user, require_roles


router = APIRouter(prefix="/api/v1", tags=["Receipts"])


@router.post(
    "/requests/{request_id}/items/{item_id}/receipts",
    response_model=ReceiptOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_receipt(
    request_id: int,
    item_id: int,
    payload: ReceiptCreate,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    """
    Register a delivery for an approved item. The net quantity (received minus
    rejected) across all receipts may not exceed the ordered quantity.
    """
    receipt = await ReceiptService.create_receipt(db, notifier, admin, request_id, item_id, payload)
    return ReceiptOut.model_validate(receipt)


@router.get("/requests/{request_id}/items/{item_id}/receipts", response_model=List[ReceiptOut])
async def list_item_receipts(
    request_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    receipts = await ReceiptService.list_item_receipts(db, current_user, request_id, item_id)
    return [ReceiptOut.model_validate(r) for r in receipts]


@router.get("/requests/{request_id}/receipts/status", response_model=ReceivingStatusResponse)
async def get_receiving_status(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = await ReceiptService.get_receiving_status(db, current_user, request_id)
    return ReceivingStatusResponse.model_validate(data)


@router.get("/requests/{request_id}/receipts/summary", response_model=ReceiptsSummaryResponse)
async def get_receipts_summary(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    data = await ReceiptService.get_receipts_summary(db, current_user, request_id)
    return ReceiptsSummaryResponse.model_validate(data)


@router.post("/receipts/{receipt_id}/invoice", response_model=ReceiptOut)
async def attach_invoice(
    receipt_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
):
    receipt = await ReceiptService.attach_invoice(db, admin, receipt_id, file)
    return ReceiptOut.model_validate(receipt)


@router.get("/receipts/{receipt_id}/invoice")
async def download_invoice(
    receipt_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Invoice file of a receipt, for the request owner or an admin.
    """
    receipt = await ReceiptService.get_invoice(db, current_user, receipt_id)
    return await StorageService.download_response(
        receipt.attachment_path, ReceiptService.invoice_download_name(receipt)
    )

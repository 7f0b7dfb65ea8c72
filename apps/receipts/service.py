import logging
import os
from collections import Counter
from typing import Dict, List
from urllib.parse import urlparse

from fastapi import UploadFile
from sqlalchemy import and_, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.lifecycle.aggregation import classify_receiving
from apps.notifications.broker import NotificationBroker
from apps.receipts.schemas import ReceiptCreate
from apps.requests.service import RequestService
from apps.storage.service import StorageService, safe_filename
from common.exceptions import ConflictError, NotFoundError, ValidationError
from common.transactions import atomic
from constants.statuses import (
    ITEM_APPROVED,
    RECEIVABLE_REQUEST_STATUSES,
    RECEIVING_COMPLETE,
    RECEIVING_OVER_DELIVERED,
    RECEIVING_PARTIAL,
    RECEIVING_PENDING,
)
from models.item_receipt import ItemReceipt
from models.purchase_request import RequestItem
from models.supplier import Supplier
from models.user import User
from security.auth_backend import ensure_admin, ensure_owner_or_admin

logger = logging.getLogger(__name__)


class ReceiptService:
    """
    Append-only receiving log. Receipts never change item or request status.
    """

    @staticmethod
    async def _net_received(db: AsyncSession, item_id: int) -> int:
        res = await db.execute(
            select(func.coalesce(func.sum(ItemReceipt.quantity_received - ItemReceipt.rejected_quantity), 0)).where(
                and_(ItemReceipt.request_item_id == item_id, ItemReceipt.deleted_at.is_(None))
            )
        )
        return int(res.scalar_one())

    @staticmethod
    async def load_receipt(db: AsyncSession, receipt_id: int) -> ItemReceipt:
        res = await db.execute(
            select(ItemReceipt)
            .where(and_(ItemReceipt.id == receipt_id, ItemReceipt.deleted_at.is_(None)))
            .execution_options(populate_existing=True)
        )
        receipt = res.scalar_one_or_none()
        if not receipt:
            raise NotFoundError("Receipt not found.")
        return receipt

    @staticmethod
    async def create_receipt(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
        item_id: int,
        payload: ReceiptCreate,
    ) -> ItemReceipt:
        """
        Record a delivery against an approved item.

        The item row stays locked from the quantity check until the insert
        commits, so two concurrent receipts for the same item cannot both
        pass the guard.
        """
        ensure_admin(admin, "Only administrators can register receipts")

        async with atomic(db):
            res = await db.execute(
                select(RequestItem)
                .where(
                    and_(
                        RequestItem.id == item_id,
                        RequestItem.purchase_request_id == request_id,
                        RequestItem.deleted_at.is_(None),
                    )
                )
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            item = res.scalar_one_or_none()
            if not item or item.purchase_request is None or item.purchase_request.is_deleted:
                raise NotFoundError("Item not found.")

            request = item.purchase_request
            if request.status not in RECEIVABLE_REQUEST_STATUSES:
                raise ConflictError("Receipts can only be registered for approved, partial or completed requests.")
            if item.status != ITEM_APPROVED:
                raise ConflictError("Receipts can only be registered for approved items.")

            already_received = await ReceiptService._net_received(db, item.id)
            attempting = payload.quantityReceived - payload.rejectedQuantity
            if already_received + attempting > item.quantity:
                logger.warning(
                    "Receipt rejected for item %s: ordered=%s received=%s attempting=%s",
                    item.id, item.quantity, already_received, attempting,
                )
                raise ValidationError(
                    f"Quantity exceeds the order. Ordered: {item.quantity}, "
                    f"already received: {already_received}, attempting: {attempting}"
                )

            if payload.supplierId is not None:
                supplier = await db.get(Supplier, payload.supplierId)
                if not supplier or supplier.is_deleted:
                    raise NotFoundError("Supplier not found.")

            receipt = ItemReceipt(
                request_item_id=item.id,
                quantity_received=payload.quantityReceived,
                rejected_quantity=payload.rejectedQuantity,
                received_by=admin.id,
                invoice_number=payload.invoiceNumber,
                invoice_date=payload.invoiceDate,
                lot_number=payload.lotNumber,
                expiration_date=payload.expirationDate,
                supplier_id=payload.supplierId,
                notes=payload.notes,
                receipt_condition=payload.receiptCondition,
                quality_checked=payload.qualityChecked,
                quality_notes=payload.qualityNotes,
            )
            db.add(receipt)

        logger.info(
            "Receipt %s registered for item %s: %s received, %s rejected",
            receipt.id, item_id, payload.quantityReceived, payload.rejectedQuantity,
        )
        notifier.publish(f"item-received:{item_id}")
        return await ReceiptService.load_receipt(db, receipt.id)

    @staticmethod
    async def list_item_receipts(db: AsyncSession, user: User, request_id: int, item_id: int) -> List[ItemReceipt]:
        """
        Receipts of one item, newest first.
        """
        item = await RequestService.load_item(db, item_id, request_id)
        ensure_owner_or_admin(user, item.purchase_request.requester_id)
        res = await db.execute(
            select(ItemReceipt)
            .where(and_(ItemReceipt.request_item_id == item.id, ItemReceipt.deleted_at.is_(None)))
            .order_by(ItemReceipt.created_at.desc(), ItemReceipt.id.desc())
        )
        return list(res.scalars().all())

    @staticmethod
    async def get_receiving_status(db: AsyncSession, user: User, request_id: int) -> dict:
        request = await RequestService.get_request(db, user, request_id)
        approved = [i for i in request.items if i.status == ITEM_APPROVED]

        totals: Dict[int, tuple] = {}
        if approved:
            res = await db.execute(
                select(
                    ItemReceipt.request_item_id,
                    func.coalesce(func.sum(ItemReceipt.quantity_received - ItemReceipt.rejected_quantity), 0),
                    func.max(ItemReceipt.created_at),
                )
                .where(
                    and_(
                        ItemReceipt.request_item_id.in_([i.id for i in approved]),
                        ItemReceipt.deleted_at.is_(None),
                    )
                )
                .group_by(ItemReceipt.request_item_id)
            )
            totals = {row[0]: (int(row[1]), row[2]) for row in res.all()}

        items = []
        counts: Counter = Counter()
        for item in approved:
            received, last_at = totals.get(item.id, (0, None))
            state = classify_receiving(item.quantity, received)
            counts[state] += 1
            items.append({
                "item_id": item.id,
                "product_name": item.product.name if item.product else "",
                "quantity_ordered": item.quantity,
                "quantity_received": received,
                "quantity_pending": item.quantity - received,
                "status": state,
                "last_received_at": last_at,
            })

        return {
            "request_id": request.id,
            "request_status": request.status,
            "items": items,
            "summary": {
                "total_items": len(approved),
                "complete_items": counts[RECEIVING_COMPLETE],
                "partial_items": counts[RECEIVING_PARTIAL],
                "pending_items": counts[RECEIVING_PENDING],
                "over_delivered_items": counts[RECEIVING_OVER_DELIVERED],
            },
        }

    @staticmethod
    async def get_receipts_summary(db: AsyncSession, user: User, request_id: int) -> dict:
        request = await RequestService.get_request(db, user, request_id)
        res = await db.execute(
            select(
                func.count(ItemReceipt.id),
                func.coalesce(func.sum(ItemReceipt.quantity_received), 0),
                func.coalesce(func.sum(ItemReceipt.rejected_quantity), 0),
                func.count(distinct(ItemReceipt.supplier_id)),
                func.min(ItemReceipt.created_at),
                func.max(ItemReceipt.created_at),
            )
            .join(RequestItem, RequestItem.id == ItemReceipt.request_item_id)
            .where(
                and_(
                    RequestItem.purchase_request_id == request.id,
                    RequestItem.deleted_at.is_(None),
                    ItemReceipt.deleted_at.is_(None),
                )
            )
        )
        total, quantity, rejected, suppliers, first_at, last_at = res.one()
        return {
            "total_receipts": int(total),
            "total_quantity": int(quantity),
            "total_rejected": int(rejected),
            "unique_suppliers": int(suppliers),
            "first_receipt_date": first_at,
            "last_receipt_date": last_at,
        }

    @staticmethod
    async def attach_invoice(db: AsyncSession, admin: User, receipt_id: int, file: UploadFile) -> ItemReceipt:
        ensure_admin(admin, "Only administrators can attach invoices")
        receipt = await ReceiptService.load_receipt(db, receipt_id)
        location = await StorageService.save_invoice(file, receipt.id)

        async with atomic(db):
            receipt.attachment_path = location
        return await ReceiptService.load_receipt(db, receipt_id)

    @staticmethod
    async def get_invoice(db: AsyncSession, user: User, receipt_id: int) -> ItemReceipt:
        """
        Receipt whose invoice the caller may download: the request owner or an admin.
        404 when no invoice was attached.
        """
        receipt = await ReceiptService.load_receipt(db, receipt_id)
        ensure_owner_or_admin(user, receipt.request_item.purchase_request.requester_id)
        if not receipt.attachment_path:
            raise NotFoundError("No invoice attached to this receipt.")
        return receipt

    @staticmethod
    def invoice_download_name(receipt: ItemReceipt) -> str:
        """
        NF_<invoice number>_<YYYYMMDD><ext of the stored file>
        """
        extension = os.path.splitext(urlparse(receipt.attachment_path).path)[1] or ".pdf"
        stamp = receipt.created_at.strftime("%Y%m%d") if receipt.created_at else "undated"
        return f"NF_{safe_filename(receipt.invoice_number)}_{stamp}{extension}"

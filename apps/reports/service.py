import csv
import io
from datetime import datetime
from typing import Iterable, List, Optional

from fastapi.responses import StreamingResponse
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.item_receipt import ItemReceipt
from models.purchase_request import PurchaseRequest, RequestItem

REQUEST_COLUMNS = [
    "request_id",
    "created_at",
    "requester",
    "sector",
    "status",
    "priority",
    "item_id",
    "product",
    "unit",
    "quantity",
    "item_status",
    "deadline",
    "completed_at",
]

RECEIPT_COLUMNS = [
    "receipt_id",
    "received_at",
    "request_id",
    "item_id",
    "product",
    "quantity_received",
    "rejected_quantity",
    "net_quantity",
    "invoice_number",
    "invoice_date",
    "lot_number",
    "supplier",
    "condition",
    "quality_checked",
    "received_by",
]


def _fmt(value) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def csv_response(header: List[str], rows: Iterable[list], filename: str) -> StreamingResponse:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(header)
    for row in rows:
        writer.writerow([_fmt(v) for v in row])

    output.seek(0)
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"; charset=utf-8'},
    )


async def export_requests(
    db: AsyncSession,
    status_filter: Optional[str] = None,
    priority: Optional[str] = None,
    sector_id: Optional[int] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> StreamingResponse:
    """
    One row per live item; requests are flattened with their items.
    """
    where_clause = [PurchaseRequest.deleted_at.is_(None)]
    if status_filter:
        where_clause.append(PurchaseRequest.status == status_filter)
    if priority:
        where_clause.append(PurchaseRequest.priority == priority)
    if sector_id:
        where_clause.append(PurchaseRequest.sector_id == sector_id)
    if date_from:
        where_clause.append(PurchaseRequest.created_at >= date_from)
    if date_to:
        where_clause.append(PurchaseRequest.created_at <= date_to)

    res = await db.execute(
        select(PurchaseRequest).where(and_(*where_clause)).order_by(PurchaseRequest.id)
    )
    rows = []
    for request in res.scalars().all():
        for item in request.items:
            rows.append([
                request.id,
                request.created_at,
                request.requester.name if request.requester else "",
                request.sector.name if request.sector else "",
                request.status,
                request.priority,
                item.id,
                item.product.name if item.product else "",
                item.product.unit if item.product else "",
                item.quantity,
                item.status,
                item.deadline,
                request.completed_at,
            ])
    return csv_response(REQUEST_COLUMNS, rows, "requests.csv")


async def export_receipts(db: AsyncSession, request_id: Optional[int] = None) -> StreamingResponse:
    stmt = (
        select(ItemReceipt)
        .join(RequestItem, RequestItem.id == ItemReceipt.request_item_id)
        .where(and_(ItemReceipt.deleted_at.is_(None), RequestItem.deleted_at.is_(None)))
        .order_by(ItemReceipt.created_at, ItemReceipt.id)
    )
    if request_id:
        stmt = stmt.where(RequestItem.purchase_request_id == request_id)

    res = await db.execute(stmt)
    rows = []
    for receipt in res.scalars().all():
        item = receipt.request_item
        rows.append([
            receipt.id,
            receipt.created_at,
            item.purchase_request_id,
            item.id,
            item.product.name if item.product else "",
            receipt.quantity_received,
            receipt.rejected_quantity,
            receipt.net_quantity,
            receipt.invoice_number,
            receipt.invoice_date,
            receipt.lot_number,
            receipt.supplier.name if receipt.supplier else "",
            receipt.receipt_condition,
            "yes" if receipt.quality_checked else "no",
            receipt.receiver.name if receipt.receiver else "",
        ])
    return csv_response(RECEIPT_COLUMNS, rows, "receipts.csv")

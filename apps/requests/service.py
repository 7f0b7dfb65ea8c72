import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.lifecycle.aggregation import compute_request_status
from apps.notifications.broker import NotificationBroker
from apps.requests.schemas import PurchaseRequestCreate, PurchaseRequestUpdate, RequestItemInput, RequestItemUpdate
from common.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from common.pagination import paginate_select
from common.transactions import atomic
from constants.statuses import ITEM_PENDING, PRODUCT_AVAILABLE, REQUEST_PENDING
from models.product import Product
from models.purchase_request import PurchaseRequest, RequestItem
from models.user import User
from security.auth_backend import ensure_owner_or_admin, is_admin

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RequestService:
    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @staticmethod
    async def load_request(db: AsyncSession, request_id: int, for_update: bool = False) -> PurchaseRequest:
        """
        Fetch a live request with its items. With for_update the request row
        stays locked until the surrounding transaction ends.
        """
        stmt = select(PurchaseRequest).where(
            and_(PurchaseRequest.id == request_id, PurchaseRequest.deleted_at.is_(None))
        )
        if for_update:
            stmt = stmt.with_for_update()
        res = await db.execute(stmt.execution_options(populate_existing=True))
        request = res.scalar_one_or_none()
        if not request:
            raise NotFoundError("Request not found.")
        return request

    @staticmethod
    async def load_item(db: AsyncSession, item_id: int, request_id: Optional[int] = None) -> RequestItem:
        stmt = select(RequestItem).where(and_(RequestItem.id == item_id, RequestItem.deleted_at.is_(None)))
        if request_id is not None:
            stmt = stmt.where(RequestItem.purchase_request_id == request_id)
        res = await db.execute(stmt.execution_options(populate_existing=True))
        item = res.scalar_one_or_none()
        if not item:
            raise NotFoundError("Item not found.")
        return item

    @staticmethod
    async def _validate_products(db: AsyncSession, user: User, product_ids: List[int]) -> None:
        """
        Every product must exist, be available and belong to the user's sector.
        """
        if len(set(product_ids)) != len(product_ids):
            raise ValidationError("Each product may appear only once per request.")
        res = await db.execute(
            select(Product.id).where(
                and_(
                    Product.id.in_(product_ids),
                    Product.sector_id == user.sector_id,
                    Product.status == PRODUCT_AVAILABLE,
                    Product.deleted_at.is_(None),
                )
            )
        )
        found = set(res.scalars().all())
        if found != set(product_ids):
            raise ValidationError("Some products were not found or do not belong to your sector.")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    @staticmethod
    async def create_request(
        db: AsyncSession,
        notifier: NotificationBroker,
        user: User,
        payload: PurchaseRequestCreate,
    ) -> PurchaseRequest:
        await RequestService._validate_products(db, user, [i.productId for i in payload.items])

        async with atomic(db):
            request = PurchaseRequest(
                requester_id=user.id,
                sector_id=user.sector_id,
                status=REQUEST_PENDING,
                observations=payload.observations,
            )
            request.items = [
                RequestItem(product_id=i.productId, quantity=i.quantity, deadline=i.deadline, status=ITEM_PENDING)
                for i in payload.items
            ]
            db.add(request)

        logger.info("Request %s created by user %s with %d item(s)", request.id, user.id, len(payload.items))
        notifier.publish(f"new-request:{request.id}")
        return await RequestService.load_request(db, request.id)

    @staticmethod
    async def list_requests(
        db: AsyncSession,
        user: User,
        page: int,
        size: int,
        status_filter: Optional[str] = None,
        priority: Optional[str] = None,
        sector_id: Optional[int] = None,
    ) -> Tuple[List[PurchaseRequest], dict]:
        where_clause = [PurchaseRequest.deleted_at.is_(None)]
        if not is_admin(user):
            where_clause.append(PurchaseRequest.requester_id == user.id)
        if status_filter:
            where_clause.append(PurchaseRequest.status == status_filter)
        if priority:
            where_clause.append(PurchaseRequest.priority == priority)
        if sector_id:
            where_clause.append(PurchaseRequest.sector_id == sector_id)

        stmt = (
            select(PurchaseRequest)
            .where(and_(*where_clause))
            .order_by(PurchaseRequest.created_at.desc(), PurchaseRequest.id.desc())
        )
        return await paginate_select(db, stmt, page, size)

    @staticmethod
    async def get_request(db: AsyncSession, user: User, request_id: int) -> PurchaseRequest:
        request = await RequestService.load_request(db, request_id)
        ensure_owner_or_admin(user, request.requester_id)
        return request

    @staticmethod
    async def update_request(
        db: AsyncSession, user: User, request_id: int, payload: PurchaseRequestUpdate
    ) -> PurchaseRequest:
        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            if is_admin(user):
                if payload.adminNotes is not None:
                    request.admin_notes = payload.adminNotes
            else:
                if request.requester_id != user.id:
                    raise ForbiddenError("Access denied")
                if payload.adminNotes is not None:
                    raise ForbiddenError("Only administrators can change admin notes")
            if payload.observations is not None:
                request.observations = payload.observations
        return await RequestService.load_request(db, request_id)

    @staticmethod
    async def delete_request(db: AsyncSession, user: User, request_id: int) -> None:
        """
        Soft delete. Requesters may only withdraw their own pending requests.
        """
        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            if not is_admin(user):
                if request.requester_id != user.id:
                    raise ForbiddenError("Access denied")
                if request.status != REQUEST_PENDING:
                    raise ConflictError("Only pending requests can be deleted.")
            now = _utcnow()
            for item in request.items:
                item.deleted_at = now
            request.deleted_at = now
        logger.info("Request %s soft-deleted by user %s", request_id, user.id)

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @staticmethod
    async def list_items(db: AsyncSession, user: User, request_id: int) -> List[RequestItem]:
        request = await RequestService.get_request(db, user, request_id)
        return list(request.items)

    @staticmethod
    async def get_item(db: AsyncSession, user: User, request_id: int, item_id: int) -> RequestItem:
        item = await RequestService.load_item(db, item_id, request_id)
        ensure_owner_or_admin(user, item.purchase_request.requester_id)
        return item

    @staticmethod
    async def add_item(db: AsyncSession, user: User, request_id: int, payload: RequestItemInput) -> RequestItem:
        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            # Admins review items, they do not add them
            if request.requester_id != user.id:
                raise ForbiddenError("Only the requester can add items to this request")
            if request.status != REQUEST_PENDING:
                raise ConflictError("Items cannot be added to a request that has already been reviewed.")
            if any(i.product_id == payload.productId for i in request.items):
                raise ConflictError("This product is already part of the request.")
            await RequestService._validate_products(db, user, [payload.productId])

            item = RequestItem(
                purchase_request_id=request.id,
                product_id=payload.productId,
                quantity=payload.quantity,
                deadline=payload.deadline,
                status=ITEM_PENDING,
            )
            db.add(item)
        return await RequestService.load_item(db, item.id)

    @staticmethod
    async def update_item(
        db: AsyncSession, user: User, request_id: int, item_id: int, payload: RequestItemUpdate
    ) -> RequestItem:
        """
        Quantity and deadline are only editable while the request is pending;
        past that point receipts are measured against the ordered quantity.
        """
        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            item = await RequestService.load_item(db, item_id, request_id)

            if not is_admin(user):
                if request.requester_id != user.id:
                    raise ForbiddenError("Access denied")
                if payload.adminNotes is not None:
                    raise ForbiddenError("Only administrators can change admin notes")

            if payload.quantity is not None or payload.deadline is not None:
                if request.status != REQUEST_PENDING:
                    raise ConflictError("Items of a reviewed request cannot be changed.")
                if payload.quantity is not None:
                    item.quantity = payload.quantity
                if payload.deadline is not None:
                    item.deadline = payload.deadline
            if payload.adminNotes is not None:
                item.admin_notes = payload.adminNotes
        return await RequestService.load_item(db, item_id)

    @staticmethod
    async def delete_item(db: AsyncSession, user: User, request_id: int, item_id: int) -> None:
        """
        Soft-delete an item of a pending request. The remaining items may all be
        decided already, so the request status is recomputed.
        """
        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            item = await RequestService.load_item(db, item_id, request_id)
            ensure_owner_or_admin(user, request.requester_id)
            if request.status != REQUEST_PENDING:
                raise ConflictError("Items of a reviewed request cannot be deleted.")

            remaining = [i for i in request.items if i.id != item.id]
            if not remaining:
                raise ConflictError("A request must keep at least one item; delete the request instead.")

            item.deleted_at = _utcnow()
            new_status = compute_request_status(i.status for i in remaining)
            if new_status != request.status:
                logger.info("Request %s status %s -> %s after item %s removal", request.id, request.status, new_status, item.id)
                request.status = new_status

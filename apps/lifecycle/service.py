import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from apps.lifecycle.aggregation import completion_blocker, compute_request_status
from apps.lifecycle.schemas import CompleteRequestPayload, ReviewItemPayload, ReviewRequestPayload, SetPriorityPayload
from apps.notifications.broker import NotificationBroker
from apps.requests.service import RequestService
from common.exceptions import ConflictError, ValidationError
from common.transactions import atomic
from constants.statuses import (
    ITEM_REVIEW_STATUSES,
    ITEM_SUSPENDED,
    PRIORITIES,
    PRIORITY_NORMAL,
    PRIORITY_URGENT,
    REQUEST_APPROVED,
    REQUEST_COMPLETED,
    REVIEWABLE_REQUEST_STATUSES,
)
from models.purchase_request import PurchaseRequest, RequestItem
from models.user import User
from security.auth_backend import ensure_admin

logger = logging.getLogger(__name__)

DEFAULT_URGENT_NOTE = "Marked as urgent"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleService:
    """
    Sole writer of PurchaseRequest.status.

    Every operation locks the request row, validates before mutating, commits
    in one transaction and only then publishes its event.
    """

    @staticmethod
    def _sync_status(request: PurchaseRequest) -> bool:
        """
        Recompute the aggregate from the live items and store it if it changed.
        """
        new_status = compute_request_status(i.status for i in request.items)
        if new_status == request.status:
            return False
        logger.info("Request %s status %s -> %s (recomputed)", request.id, request.status, new_status)
        request.status = new_status
        return True

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    @staticmethod
    async def review_item(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        item_id: int,
        payload: ReviewItemPayload,
        request_id: Optional[int] = None,
    ) -> RequestItem:
        """
        Decide one item and recompute the request status from all its items.

        Decided items may be reviewed again (approved -> rejected etc.); the
        recompute always starts from the current full item set. Items of a
        completed request are frozen until the request is reopened.
        """
        ensure_admin(admin)
        if payload.status not in ITEM_REVIEW_STATUSES:
            raise ValidationError(f"Invalid item status: {payload.status}")
        reason = (payload.suspensionReason or "").strip()
        if payload.status == ITEM_SUSPENDED and not reason:
            raise ValidationError("A suspension reason is required when suspending an item.")

        async with atomic(db):
            item = await RequestService.load_item(db, item_id, request_id)
            request = await RequestService.load_request(db, item.purchase_request_id, for_update=True)
            if request.status == REQUEST_COMPLETED:
                raise ConflictError("Items of a completed request cannot be reviewed. Reopen the request first.")

            previous = item.status
            item.status = payload.status
            item.admin_notes = payload.adminNotes
            item.suspension_reason = reason if payload.status == ITEM_SUSPENDED else None
            logger.info("Item %s of request %s reviewed by %s: %s -> %s", item.id, request.id, admin.id, previous, item.status)

            LifecycleService._sync_status(request)

        notifier.publish(f"review-item:{item.id}:{item.status}")
        return await RequestService.load_item(db, item.id)

    @staticmethod
    async def review_request(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
        payload: ReviewRequestPayload,
    ) -> PurchaseRequest:
        """
        Manual override of the request status. Item statuses are not consulted,
        so the stored value may diverge from the aggregate until the next item
        review recomputes it.
        """
        ensure_admin(admin)
        if payload.status not in REVIEWABLE_REQUEST_STATUSES:
            raise ValidationError(f"Invalid request status: {payload.status}")

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            if request.status == REQUEST_COMPLETED:
                raise ConflictError("A completed request cannot be reviewed. Reopen it first.")

            aggregate = compute_request_status(i.status for i in request.items)
            if aggregate != payload.status:
                logger.warning(
                    "Request %s manually set to %s while its items aggregate to %s",
                    request.id, payload.status, aggregate,
                )
            request.status = payload.status
            request.admin_notes = payload.adminNotes
            request.reviewed_by = admin.id
            request.reviewed_at = _utcnow()

        notifier.publish(f"review-request:{request.id}:{request.status}")
        return await RequestService.load_request(db, request_id)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    @staticmethod
    async def complete_request(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
        payload: CompleteRequestPayload,
    ) -> PurchaseRequest:
        ensure_admin(admin)

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            blocker = completion_blocker(request.status, [i.status for i in request.items])
            if blocker:
                logger.warning("Refusing to complete request %s: %s", request.id, blocker)
                raise ConflictError(blocker)

            request.status = REQUEST_COMPLETED
            request.completion_notes = payload.completionNotes
            request.completed_by = admin.id
            request.completed_at = _utcnow()

        logger.info("Request %s completed by %s", request_id, admin.id)
        notifier.publish(f"complete-request:{request_id}")
        return await RequestService.load_request(db, request_id)

    @staticmethod
    async def reopen_request(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
    ) -> PurchaseRequest:
        """
        Completed -> approved. The target is fixed and not recomputed from
        the items, so a request that was partial comes back as approved.
        """
        ensure_admin(admin)

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            if request.status != REQUEST_COMPLETED:
                raise ConflictError("Only completed requests can be reopened.")

            request.status = REQUEST_APPROVED
            request.completion_notes = None
            request.completed_at = None
            request.completed_by = None

        logger.info("Request %s reopened by %s", request_id, admin.id)
        notifier.publish(f"reopen-request:{request_id}")
        return await RequestService.load_request(db, request_id)

    # ------------------------------------------------------------------
    # Priority
    # ------------------------------------------------------------------

    @staticmethod
    async def set_priority(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
        payload: SetPriorityPayload,
    ) -> PurchaseRequest:
        ensure_admin(admin)
        if payload.priority not in PRIORITIES:
            raise ValidationError(f"Invalid priority: {payload.priority}")

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            request.priority = payload.priority
            request.priority_by = admin.id
            request.priority_at = _utcnow()
            request.priority_notes = payload.notes

        notifier.publish(f"priority-updated:{request_id}:{payload.priority}")
        return await RequestService.load_request(db, request_id)

    @staticmethod
    async def remove_priority(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
    ) -> PurchaseRequest:
        ensure_admin(admin)

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            request.priority = PRIORITY_NORMAL
            request.priority_by = None
            request.priority_at = None
            request.priority_notes = None

        notifier.publish(f"priority-removed:{request_id}")
        return await RequestService.load_request(db, request_id)

    @staticmethod
    async def toggle_urgent(
        db: AsyncSession,
        notifier: NotificationBroker,
        admin: User,
        request_id: int,
    ) -> PurchaseRequest:
        """
        urgent -> normal, anything else -> urgent.
        """
        ensure_admin(admin)

        async with atomic(db):
            request = await RequestService.load_request(db, request_id, for_update=True)
            if request.priority == PRIORITY_URGENT:
                request.priority = PRIORITY_NORMAL
                request.priority_by = None
                request.priority_at = None
                request.priority_notes = None
            else:
                request.priority = PRIORITY_URGENT
                request.priority_by = admin.id
                request.priority_at = _utcnow()
                if not request.priority_notes:
                    request.priority_notes = DEFAULT_URGENT_NOTE
            priority = request.priority

        action = "priority-urgent" if priority == PRIORITY_URGENT else "priority-normal"
        notifier.publish(f"{action}:{request_id}")
        return await RequestService.load_request(db, request_id)

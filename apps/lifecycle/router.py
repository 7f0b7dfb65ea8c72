from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from apps.lifecycle.schemas import CompleteRequestPayload, ReviewItemPayload, ReviewRequestPayload, SetPriorityPayload
from apps.lifecycle.service import LifecycleService
from apps.notifications.broker import NotificationBroker, get_notifier
from apps.requests.schemas import PurchaseRequestOut, RequestItemOut
from constants.roles import ADMIN
from models.base import get_db
from models.user import User
from security.auth_backend import require_roles


router = APIRouter(prefix="/api/v1/requests", tags=["Request Lifecycle"])


@router.patch("/{request_id}/review", response_model=PurchaseRequestOut)
async def review_request(
    request_id: int,
    payload: ReviewRequestPayload,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    """
    Manual override of the request status (approved | partial | rejected).
    """
    request = await LifecycleService.review_request(db, notifier, admin, request_id, payload)
    return PurchaseRequestOut.model_validate(request)


@router.patch("/{request_id}/items/{item_id}/review", response_model=RequestItemOut)
async def review_item(
    request_id: int,
    item_id: int,
    payload: ReviewItemPayload,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    """
    Approve, reject or suspend one item; the request status is recomputed.
    """
    item = await LifecycleService.review_item(db, notifier, admin, item_id, payload, request_id=request_id)
    return RequestItemOut.model_validate(item)


@router.post("/{request_id}/complete", response_model=PurchaseRequestOut)
async def complete_request(
    request_id: int,
    payload: CompleteRequestPayload,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await LifecycleService.complete_request(db, notifier, admin, request_id, payload)
    return PurchaseRequestOut.model_validate(request)


@router.post("/{request_id}/reopen", response_model=PurchaseRequestOut)
async def reopen_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await LifecycleService.reopen_request(db, notifier, admin, request_id)
    return PurchaseRequestOut.model_validate(request)


@router.patch("/{request_id}/priority", response_model=PurchaseRequestOut)
async def set_priority(
    request_id: int,
    payload: SetPriorityPayload,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await LifecycleService.set_priority(db, notifier, admin, request_id, payload)
    return PurchaseRequestOut.model_validate(request)


@router.delete("/{request_id}/priority", response_model=PurchaseRequestOut)
async def remove_priority(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await LifecycleService.remove_priority(db, notifier, admin, request_id)
    return PurchaseRequestOut.model_validate(request)


@router.post("/{request_id}/priority/toggle-urgent", response_model=PurchaseRequestOut)
async def toggle_urgent(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_roles(ADMIN)),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await LifecycleService.toggle_urgent(db, notifier, admin, request_id)
    return PurchaseRequestOut.model_validate(request)

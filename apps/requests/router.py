from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.notifications.broker import NotificationBroker, get_notifier
from apps.requests.schemas import (
    PurchaseRequestCreate,
    PurchaseRequestOut,
    PurchaseRequestUpdate,
    RequestItemInput,
    RequestItemOut,
    RequestItemUpdate,
)
from apps.requests.service import RequestService
from common.responses import paginated_response
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_user


router = APIRouter(prefix="/api/v1/requests", tags=["Purchase Requests"])


@router.get("")
async def list_requests(
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    priority: Optional[str] = Query(default=None),
    sectorId: Optional[int] = Query(default=None),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Admins see every request; requesters only their own.
    """
    items, pagination = await RequestService.list_requests(
        db, current_user, page, size, status_filter=status_filter, priority=priority, sector_id=sectorId
    )
    return paginated_response([PurchaseRequestOut.model_validate(r) for r in items], pagination)


@router.post("", response_model=PurchaseRequestOut, status_code=status.HTTP_201_CREATED)
async def create_request(
    payload: PurchaseRequestCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    notifier: NotificationBroker = Depends(get_notifier),
):
    request = await RequestService.create_request(db, notifier, current_user, payload)
    return PurchaseRequestOut.model_validate(request)


@router.get("/{request_id}", response_model=PurchaseRequestOut)
async def get_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    request = await RequestService.get_request(db, current_user, request_id)
    return PurchaseRequestOut.model_validate(request)


@router.patch("/{request_id}", response_model=PurchaseRequestOut)
async def update_request(
    request_id: int,
    payload: PurchaseRequestUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    request = await RequestService.update_request(db, current_user, request_id, payload)
    return PurchaseRequestOut.model_validate(request)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await RequestService.delete_request(db, current_user, request_id)
    return None


# -------------------------------
# Items
# -------------------------------

@router.get("/{request_id}/items", response_model=List[RequestItemOut])
async def list_items(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = await RequestService.list_items(db, current_user, request_id)
    return [RequestItemOut.model_validate(i) for i in items]


@router.post("/{request_id}/items", response_model=RequestItemOut, status_code=status.HTTP_201_CREATED)
async def add_item(
    request_id: int,
    payload: RequestItemInput,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = await RequestService.add_item(db, current_user, request_id, payload)
    return RequestItemOut.model_validate(item)


@router.get("/{request_id}/items/{item_id}", response_model=RequestItemOut)
async def get_item(
    request_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = await RequestService.get_item(db, current_user, request_id, item_id)
    return RequestItemOut.model_validate(item)


@router.patch("/{request_id}/items/{item_id}", response_model=RequestItemOut)
async def update_item(
    request_id: int,
    item_id: int,
    payload: RequestItemUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    item = await RequestService.update_item(db, current_user, request_id, item_id, payload)
    return RequestItemOut.model_validate(item)


@router.delete("/{request_id}/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    request_id: int,
    item_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await RequestService.delete_item(db, current_user, request_id, item_id)
    return None

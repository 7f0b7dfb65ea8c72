from typing import List

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from apps.attachments.schemas import AttachmentOut
from apps.attachments.service import AttachmentService
from apps.storage.service import StorageService
from models.base import get_db
from models.user import User
from security.auth_backend import get_current_user


router = APIRouter(prefix="/api/v1/requests", tags=["Attachments"])


@router.post("/{request_id}/attachments", response_model=AttachmentOut, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
    request_id: int,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attachment = await AttachmentService.upload(db, current_user, request_id, file)
    return AttachmentOut.model_validate(attachment)


@router.get("/{request_id}/attachments", response_model=List[AttachmentOut])
async def list_attachments(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    attachments = await AttachmentService.list_attachments(db, current_user, request_id)
    return [AttachmentOut.model_validate(a) for a in attachments]


@router.get("/{request_id}/attachments/{attachment_id}")
async def download_attachment(
    request_id: int,
    attachment_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    The file itself for local storage, a redirect to a pre-signed URL for S3.
    """
    attachment = await AttachmentService.get_attachment(db, current_user, request_id, attachment_id)
    return await StorageService.download_response(
        attachment.file_path, attachment.file_name, media_type=attachment.content_type
    )

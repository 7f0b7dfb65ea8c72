import logging
import os
from typing import List

from fastapi import UploadFile
from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from apps.requests.service import RequestService
from apps.storage.service import StorageService
from common.exceptions import NotFoundError
from common.transactions import atomic
from models.request_attachment import RequestAttachment
from models.user import User

logger = logging.getLogger(__name__)


class AttachmentService:
    """
    Files attached to a purchase request. Visible to the request's owner and to admins.
    """

    @staticmethod
    async def upload(db: AsyncSession, user: User, request_id: int, file: UploadFile) -> RequestAttachment:
        request = await RequestService.get_request(db, user, request_id)
        location, size = await StorageService.save_attachment(file, request.id)

        display_name = os.path.basename((file.filename or "").replace("\\", "/"))[:255] or "file"
        async with atomic(db):
            attachment = RequestAttachment(
                purchase_request_id=request.id,
                uploaded_by=user.id,
                file_name=display_name,
                file_path=location,
                content_type=file.content_type,
                size_bytes=size,
            )
            db.add(attachment)
        logger.info("Attachment %s added to request %s by user %s", attachment.id, request.id, user.id)
        res = await db.execute(
            select(RequestAttachment)
            .where(RequestAttachment.id == attachment.id)
            .execution_options(populate_existing=True)
        )
        return res.scalar_one()

    @staticmethod
    async def list_attachments(db: AsyncSession, user: User, request_id: int) -> List[RequestAttachment]:
        await RequestService.get_request(db, user, request_id)
        res = await db.execute(
            select(RequestAttachment)
            .where(
                and_(
                    RequestAttachment.purchase_request_id == request_id,
                    RequestAttachment.deleted_at.is_(None),
                )
            )
            .order_by(RequestAttachment.created_at, RequestAttachment.id)
        )
        return list(res.scalars().all())

    @staticmethod
    async def get_attachment(db: AsyncSession, user: User, request_id: int, attachment_id: int) -> RequestAttachment:
        await RequestService.get_request(db, user, request_id)
        res = await db.execute(
            select(RequestAttachment).where(
                and_(
                    RequestAttachment.id == attachment_id,
                    RequestAttachment.purchase_request_id == request_id,
                    RequestAttachment.deleted_at.is_(None),
                )
            )
        )
        attachment = res.scalar_one_or_none()
        if not attachment:
            raise NotFoundError("Attachment not found.")
        return attachment

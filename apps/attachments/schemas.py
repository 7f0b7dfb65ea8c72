from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field as PydanticField


class AttachmentOut(BaseModel):
    """
    Attachment metadata. The storage location is never exposed; files are
    fetched through the download endpoint.
    """
    id: int
    purchase_request_id: int = PydanticField(alias="purchaseRequestId")
    file_name: str = PydanticField(alias="fileName")
    content_type: Optional[str] = PydanticField(default=None, alias="contentType")
    size_bytes: int = PydanticField(alias="sizeBytes")
    uploaded_by: int = PydanticField(alias="uploadedBy")
    created_at: datetime = PydanticField(alias="createdAt")

    class Config:
        from_attributes = True
        populate_by_name = True

import asyncio
import logging
import os
import re
import uuid
from typing import Optional, Tuple
from urllib.parse import urlparse

import boto3
from fastapi import UploadFile
from fastapi.responses import FileResponse, RedirectResponse

from common.exceptions import NotFoundError, ValidationError
from settings.config import get_settings

logger = logging.getLogger(__name__)

ALLOWED_INVOICE_TYPES = {
    "application/pdf": ".pdf",
    "image/png": ".png",
    "image/jpeg": ".jpg",
}
MAX_INVOICE_BYTES = 10 * 1024 * 1024
MAX_ATTACHMENT_BYTES = 20 * 1024 * 1024
PRESIGNED_URL_TTL_SECONDS = 300

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: Optional[str]) -> str:
    """
    Basename of an uploaded file reduced to [A-Za-z0-9._-]; "file" when nothing is left.
    """
    base = os.path.basename((filename or "").replace("\\", "/"))
    cleaned = _UNSAFE_FILENAME_CHARS.sub("_", base).strip("._")
    return cleaned[:200] or "file"


class StorageService:
    """
    Invoices and request attachments: S3 when AWS_S3_BUCKET is set, the local UPLOAD_DIR otherwise.
    """

    @staticmethod
    def _get_s3_client():
        """
        Construct a boto3 S3 client using application settings.
        Prefers explicit credentials from settings when provided.
        """
        settings = get_settings()
        kwargs: dict = {}

        if settings.AWS_REGION:
            kwargs["region_name"] = settings.AWS_REGION
        if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
            kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
            kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY

        return boto3.client("s3", **kwargs)

    @staticmethod
    def build_invoice_key(receipt_id: int, content_type: Optional[str]) -> str:
        extension = ALLOWED_INVOICE_TYPES.get(content_type or "")
        if extension is None:
            raise ValidationError("Invoice must be a PDF, PNG or JPEG file.")
        return f"receipts/{receipt_id}/invoice-{uuid.uuid4().hex}{extension}"

    @staticmethod
    def build_attachment_key(request_id: int, filename: Optional[str]) -> str:
        return f"requests/{request_id}/attachments/{uuid.uuid4().hex}-{safe_filename(filename)}"

    @staticmethod
    async def _read_upload(file: UploadFile, max_bytes: int, label: str) -> bytes:
        content = await file.read()
        if not content:
            raise ValidationError(f"{label} file is empty.")
        if len(content) > max_bytes:
            raise ValidationError(f"{label} file exceeds the {max_bytes // (1024 * 1024)} MB limit.")
        return content

    @staticmethod
    async def _store(key: str, content: bytes, content_type: Optional[str]) -> str:
        """
        Write bytes under key and return the location: an https S3 URL or a local path.
        Blocking I/O runs in a worker thread.
        """
        settings = get_settings()
        bucket = settings.AWS_S3_BUCKET
        if bucket:
            client = StorageService._get_s3_client()

            def _upload() -> str:
                client.put_object(
                    Bucket=bucket, Key=key, Body=content, ContentType=content_type or "application/octet-stream"
                )
                region = client.meta.region_name or "us-east-1"
                return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

            return await asyncio.to_thread(_upload)

        path = os.path.join(settings.UPLOAD_DIR, key)

        def _write() -> str:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(content)
            return path

        return await asyncio.to_thread(_write)

    @staticmethod
    async def save_invoice(file: UploadFile, receipt_id: int) -> str:
        """
        Store an uploaded invoice and return its location (S3 URL or local path).
        """
        key = StorageService.build_invoice_key(receipt_id, file.content_type)
        content = await StorageService._read_upload(file, MAX_INVOICE_BYTES, "Invoice")
        location = await StorageService._store(key, content, file.content_type)
        logger.info("Stored invoice for receipt %s at %s (%d bytes)", receipt_id, location, len(content))
        return location

    @staticmethod
    async def save_attachment(file: UploadFile, request_id: int) -> Tuple[str, int]:
        """
        Store a request attachment of any type. Returns (location, size in bytes).
        """
        key = StorageService.build_attachment_key(request_id, file.filename)
        content = await StorageService._read_upload(file, MAX_ATTACHMENT_BYTES, "Attachment")
        location = await StorageService._store(key, content, file.content_type)
        logger.info("Stored attachment for request %s at %s (%d bytes)", request_id, location, len(content))
        return location, len(content)

    @staticmethod
    async def generate_presigned_get_url(url: str, download_name: str, expires_in: int = PRESIGNED_URL_TTL_SECONDS) -> str:
        """
        Pre-signed GET for an object URL of the configured bucket, e.g.
        https://{bucket}.s3.{region}.amazonaws.com/path/to/object
        """
        bucket = get_settings().AWS_S3_BUCKET
        key = (urlparse(url).path or "").lstrip("/")
        if not bucket or not key:
            raise NotFoundError("Stored file is not available.")
        client = StorageService._get_s3_client()

        def _generate() -> str:
            return client.generate_presigned_url(
                ClientMethod="get_object",
                Params={
                    "Bucket": bucket,
                    "Key": key,
                    "ResponseContentDisposition": f'attachment; filename="{download_name}"',
                },
                ExpiresIn=expires_in,
            )

        return await asyncio.to_thread(_generate)

    @staticmethod
    async def download_response(location: Optional[str], download_name: str, media_type: Optional[str] = None):
        """
        Serve a stored file: a redirect to a short-lived pre-signed URL for S3
        objects, the file itself for local paths. 404 when nothing is stored.
        """
        if not location:
            raise NotFoundError("No file attached.")
        if location.startswith(("https://", "http://")):
            presigned = await StorageService.generate_presigned_get_url(location, download_name)
            return RedirectResponse(presigned, status_code=307)
        if not await asyncio.to_thread(os.path.isfile, location):
            logger.warning("Stored file missing on disk: %s", location)
            raise NotFoundError("File not found on the server.")
        return FileResponse(location, filename=download_name, media_type=media_type)

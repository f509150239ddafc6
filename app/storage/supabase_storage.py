"""Supabase Storage backend."""

import logging

from fastapi.concurrency import run_in_threadpool
from supabase import Client

from app.core.errors import StorageError
from app.storage.base import SignedUpload, StorageBackend

logger = logging.getLogger(__name__)

# Provider status codes worth translating for the admin panel
_STATUS_MESSAGES = {
    404: 'Bucket "{bucket}" not found. Please create the bucket in Supabase Storage.',
    403: 'Permission denied for bucket "{bucket}". Please check bucket permissions.',
    413: "File too large. Please reduce the file size.",
}


def _provider_message(e: Exception) -> str:
    return getattr(e, "message", None) or str(e) or type(e).__name__


def _status_of(e: Exception) -> int | None:
    status = getattr(e, "status", None) or getattr(e, "status_code", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


class SupabaseStorage(StorageBackend):
    """Store files in Supabase Storage buckets. Client calls are blocking, so they run in the threadpool."""

    def __init__(self, client: Client) -> None:
        self.client = client

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> None:
        opts: dict = {"cache-control": "3600", "upsert": "false"}
        if content_type:
            opts["content-type"] = content_type
        try:
            await run_in_threadpool(
                self.client.storage.from_(bucket).upload, key, content, opts
            )
        except Exception as e:
            message = _provider_message(e)
            template = _STATUS_MESSAGES.get(_status_of(e))
            if template and not getattr(e, "message", None):
                message = template.format(bucket=bucket)
            logger.error("Supabase upload error for %s/%s: %s", bucket, key, message)
            raise StorageError("Failed to upload file", details=message) from e

    def get_public_url(self, bucket: str, key: str) -> str:
        return self.client.storage.from_(bucket).get_public_url(key)

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        try:
            data = await run_in_threadpool(
                self.client.storage.from_(bucket).create_signed_url, key, expires_in
            )
        except Exception as e:
            raise StorageError("Failed to create signed URL", details=_provider_message(e)) from e
        url = (data or {}).get("signedURL") or (data or {}).get("signedUrl")
        if not url:
            raise StorageError("Failed to create signed URL", details="No URL generated")
        return url

    async def create_signed_upload_url(self, bucket: str, key: str) -> SignedUpload:
        try:
            data = await run_in_threadpool(
                self.client.storage.from_(bucket).create_signed_upload_url, key
            )
        except Exception as e:
            raise StorageError("Failed to create upload URL", details=_provider_message(e)) from e
        data = data or {}
        url = data.get("signed_url") or data.get("signedUrl") or data.get("signedURL")
        token = data.get("token")
        if not url or not token:
            raise StorageError("Failed to create upload URL", details="No URL generated")
        return SignedUpload(url=url, token=token, path=data.get("path") or key)

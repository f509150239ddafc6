"""Abstract storage backend."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from app.config import SIGNED_URL_TTL_SECONDS, UPLOAD_TIMEOUT_SECONDS
from app.core.errors import StorageError
from app.core.payload import NormalizedFile

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadResult:
    bucket: str
    key: str
    public_url: str
    signed_url: Optional[str] = None

    @property
    def url(self) -> str:
        """Signed URL when available (works for private buckets), else the public URL."""
        return self.signed_url or self.public_url


@dataclass(frozen=True)
class SignedUpload:
    url: str
    token: str
    path: str


class StorageBackend(ABC):
    """Interface for object storage (local or cloud), addressed by bucket + key."""

    @abstractmethod
    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> None:
        """
        Store content at key. Never overwrites: an existing object at key is a
        StorageError, not a replacement.
        """
        ...

    @abstractmethod
    def get_public_url(self, bucket: str, key: str) -> str:
        ...

    @abstractmethod
    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        """Time-limited read URL. Raises StorageError when the backend can't sign."""
        ...

    @abstractmethod
    async def create_signed_upload_url(self, bucket: str, key: str) -> SignedUpload:
        """URL + token letting a client upload directly to key, bypassing this server."""
        ...

    async def store(self, bucket: str, key: str, file: NormalizedFile) -> UploadResult:
        """Upload file under key and resolve its access URLs. Signed URL failure is not fatal."""
        try:
            await asyncio.wait_for(
                self.upload(bucket, key, file.content, content_type=file.content_type),
                timeout=UPLOAD_TIMEOUT_SECONDS,
            )
        except asyncio.TimeoutError as e:
            raise StorageError(
                "Failed to upload file",
                details=f"Upload to {bucket}/{key} timed out after {UPLOAD_TIMEOUT_SECONDS:g}s",
            ) from e
        logger.info(
            "Uploaded %s/%s (%d bytes, %s)", bucket, key, file.size, file.content_type
        )
        public_url = self.get_public_url(bucket, key)
        signed_url: Optional[str] = None
        try:
            signed_url = await self.create_signed_url(bucket, key, SIGNED_URL_TTL_SECONDS)
        except StorageError as e:
            logger.warning("Signed URL unavailable for %s/%s, using public URL: %s", bucket, key, e.message)
        return UploadResult(bucket=bucket, key=key, public_url=public_url, signed_url=signed_url)

"""Turn a stored file URL into one a client can read now (signed when possible)."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from app.config import DEFAULT_BUCKET
from app.core.errors import StorageError
from app.storage.base import StorageBackend
from app.storage.keys import parse_storage_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessUrl:
    url: str
    expires_at: str
    note: Optional[str] = None


def _expiry(expires_in: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(seconds=expires_in)).isoformat()


async def resolve_access_url(
    storage: StorageBackend,
    stored_url: str,
    expires_in: int,
    *,
    public_fallback: bool = False,
) -> AccessUrl:
    """
    Signed URL for stored_url's object, valid for expires_in seconds.

    Already-signed URLs are returned unchanged. When signing fails the public URL is
    used if public_fallback is set, else the stored URL, with a note saying so.
    """
    location = parse_storage_url(stored_url, DEFAULT_BUCKET)
    if location is None:
        return AccessUrl(
            url=stored_url,
            expires_at=_expiry(expires_in),
            note="URL is not in object storage; returned as stored",
        )
    if location.signed:
        return AccessUrl(url=stored_url, expires_at=_expiry(expires_in))
    try:
        signed = await storage.create_signed_url(location.bucket, location.key, expires_in)
        return AccessUrl(url=signed, expires_at=_expiry(expires_in))
    except StorageError as e:
        logger.warning(
            "Could not sign %s/%s, falling back: %s", location.bucket, location.key, e.message
        )
    if public_fallback:
        return AccessUrl(
            url=storage.get_public_url(location.bucket, location.key),
            expires_at=_expiry(expires_in),
            note="Signed URL unavailable; using public URL",
        )
    return AccessUrl(
        url=stored_url,
        expires_at=_expiry(expires_in),
        note="Signed URL unavailable; using stored URL",
    )

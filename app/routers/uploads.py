"""Upload API: store a file sent by the client, or hand out a pre-signed upload URL."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union

from fastapi import APIRouter, Response

from app.config import UPLOAD_URL_TTL_SECONDS
from app.core.deps import StorageDep, UploadRequestDep
from app.core.errors import InvalidField, MissingRequiredField
from app.core.http import preflight_response
from app.core.requests import ClassifiedRequest, ParsedBody, RequestShape
from app.schemas.upload import FileUploadResponse, SignedUploadResponse
from app.services.uploads import upload_file
from app.storage.base import StorageBackend
from app.storage.keys import build_key

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


def _text(fields: dict[str, Any], name: str) -> Optional[str]:
    value = fields.get(name)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


async def _store_file(storage: StorageBackend, request: ClassifiedRequest) -> FileUploadResponse:
    fields = request.body.fields
    bucket = _text(fields, "bucket")
    if not bucket:
        raise MissingRequiredField("bucket")
    result = await upload_file(
        storage,
        request.file,
        bucket=bucket,
        folder=_text(fields, "folder"),
        owner_id=_text(fields, "author_id"),
        declared_name=_text(fields, "fileName"),
        declared_mime=_text(fields, "fileType"),
    )
    return FileUploadResponse(
        path=result.key,
        url=result.url,
        publicUrl=result.public_url,
        signedUrl=result.signed_url,
    )


async def _signed_upload(storage: StorageBackend, body: ParsedBody) -> SignedUploadResponse:
    fields = body.fields
    file_name = _text(fields, "fileName")
    bucket = _text(fields, "bucket")
    missing = [name for name, value in (("fileName", file_name), ("bucket", bucket)) if not value]
    if missing:
        raise MissingRequiredField(*missing)
    key = build_key(_text(fields, "folder"), _text(fields, "author_id"), file_name)
    signed = await storage.create_signed_upload_url(bucket, key)
    logger.info("Issued upload URL for %s/%s (%s)", bucket, key, _text(fields, "fileType") or "unknown type")
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=UPLOAD_URL_TTL_SECONDS)
    return SignedUploadResponse(
        uploadUrl=signed.url,
        path=signed.path or key,
        token=signed.token,
        expiresAt=expires_at.isoformat(),
    )


@router.options("/upload")
async def upload_preflight() -> Response:
    return preflight_response()


@router.post("/upload", response_model=Union[FileUploadResponse, SignedUploadResponse])
async def upload(classified: UploadRequestDep, storage: StorageDep):
    """
    Multipart (or JSON) body with a "file" field: store it and return its URLs.
    Body without "file" ({fileName, fileType, bucket, folder?}): return a pre-signed upload URL.
    The declared Content-Type is not trusted; the body decides.
    """
    match classified.shape:
        case RequestShape.BINARY_UPLOAD:
            return await _store_file(storage, classified)
        case RequestShape.URL_GENERATION:
            return await _signed_upload(storage, classified.body)
        case RequestShape.MALFORMED:
            raise InvalidField("Invalid request body", details=classified.reason)

"""Upload one client file into storage: normalize, size-check, build key, store."""

import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Iterable, Optional

from app.core.errors import AppError
from app.core.payload import normalize
from app.core.upload_validation import UploadContext, check_size, default_mime_for
from app.storage.base import StorageBackend, UploadResult
from app.storage.keys import build_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OptionalUploadFailure:
    field: str
    error: str
    details: Any = None


@dataclass(frozen=True)
class UploadOutcome:
    """Result of an optional upload: either result or failure is set (neither when no file was sent)."""

    field: str
    result: Optional[UploadResult] = None
    failure: Optional[OptionalUploadFailure] = None

    @property
    def url(self) -> Optional[str]:
        return self.result.url if self.result else None


def upload_warnings(*outcomes: UploadOutcome) -> list[dict]:
    """Failed optional uploads as {field, error, details}, for the response body."""
    return [asdict(o.failure) for o in outcomes if o.failure is not None]


def with_warnings(payload: dict, warnings: list[dict]) -> dict:
    if warnings:
        payload["warnings"] = warnings
    return payload


async def upload_file(
    storage: StorageBackend,
    raw: Any,
    *,
    bucket: str,
    folder: Optional[str] = None,
    owner_id: Optional[str] = None,
    declared_name: Optional[str] = None,
    declared_mime: Optional[str] = None,
    context: UploadContext = "any",
) -> UploadResult:
    """Raises UnsupportedPayload, FileTooLarge or StorageError."""
    file = await normalize(raw, declared_name, declared_mime, default_mime_for(context))
    check_size(context, file.size)
    key = build_key(folder, owner_id, file.filename)
    return await storage.store(bucket, key, file)


async def upload_optional(
    storage: StorageBackend,
    field: str,
    raw: Any,
    **kwargs: Any,
) -> UploadOutcome:
    """Like upload_file, but a failure is logged and returned instead of raised."""
    if raw is None:
        return UploadOutcome(field=field)
    try:
        result = await upload_file(storage, raw, **kwargs)
    except AppError as e:
        logger.warning("Optional upload of %s failed: %s (%s)", field, e.message, e.details)
        return UploadOutcome(
            field=field,
            failure=OptionalUploadFailure(field=field, error=e.message, details=e.details),
        )
    except Exception as e:
        logger.exception("Optional upload of %s failed unexpectedly", field)
        return UploadOutcome(
            field=field,
            failure=OptionalUploadFailure(field=field, error=str(e) or type(e).__name__),
        )
    return UploadOutcome(field=field, result=result)


@dataclass(frozen=True)
class FileField:
    """A file submitted under field, to be stored in folder."""

    field: str
    raw: Any
    folder: str
    context: UploadContext = "any"


async def _no_outcome(field: str) -> UploadOutcome:
    return UploadOutcome(field=field)


async def _no_document() -> None:
    return None


async def upload_cover_and_document(
    storage: StorageBackend,
    cover: Optional[FileField],
    document: Optional[FileField],
    *,
    bucket: str,
    owner_id: Optional[str] = None,
) -> tuple[UploadOutcome, Optional[UploadResult]]:
    """
    Upload an optional cover and a primary document concurrently.

    The cover outcome never raises. A document failure is raised only after both
    uploads have finished, so the cover outcome is always collected first.
    """
    if cover is not None and cover.raw is not None:
        cover_call = upload_optional(
            storage, cover.field, cover.raw,
            bucket=bucket, folder=cover.folder, owner_id=owner_id, context=cover.context,
        )
    else:
        cover_call = _no_outcome(cover.field if cover else "cover")
    if document is not None and document.raw is not None:
        document_call = upload_file(
            storage, document.raw,
            bucket=bucket, folder=document.folder, owner_id=owner_id, context=document.context,
        )
    else:
        document_call = _no_document()

    cover_outcome, document_result = await asyncio.gather(
        cover_call, document_call, return_exceptions=True
    )
    if isinstance(cover_outcome, BaseException):
        raise cover_outcome
    if isinstance(document_result, BaseException):
        if cover_outcome.result is not None:
            logger.warning(
                "Document upload failed after cover was stored at %s/%s",
                cover_outcome.result.bucket,
                cover_outcome.result.key,
            )
        raise document_result
    return cover_outcome, document_result


def merge_cover_images(new_url: Optional[str], existing: Optional[Iterable[str]]) -> list[str]:
    """Prepend new_url to existing cover URLs, dropping exact duplicates and blanks."""
    merged: list[str] = []
    for url in ([new_url] if new_url else []) + list(existing or []):
        if isinstance(url, str) and url.strip() and url not in merged:
            merged.append(url)
    return merged

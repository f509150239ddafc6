"""Audio book CRUD with cover/audio uploads and playback URLs."""

import logging

from app.config import DEFAULT_BUCKET, SIGNED_URL_TTL_SECONDS
from app.core.errors import NotFoundError
from app.core.requests import ParsedBody
from app.db.base import Database
from app.schemas.audio_book import AUDIO_BOOK_FILE_FIELDS, AudioBookCreate, AudioBookUpdate
from app.services.common import (
    attach_relations,
    pagination,
    parse_fields,
    require_fields,
    utc_now_iso,
    validate_references,
)
from app.services.media_access import AccessUrl, resolve_access_url
from app.services.uploads import FileField, upload_cover_and_document, upload_warnings
from app.storage.base import StorageBackend

logger = logging.getLogger(__name__)

TABLE = "audio_books"
COVER_FOLDER = "audio-books/covers"
AUDIO_FOLDER = "audio-books/audio"


def _files(body: ParsedBody) -> tuple[FileField, FileField]:
    return (
        FileField("coverImage", body.file("coverImage"), COVER_FOLDER, "image"),
        FileField("audioFile", body.file("audioFile"), AUDIO_FOLDER, "audio"),
    )


async def _get_row(db: Database, audio_book_id: str, columns: str = "*") -> dict:
    row = await db.table(TABLE).find_unique(audio_book_id, columns=columns)
    if row is None:
        raise NotFoundError("Audio book not found", details={"id": audio_book_id})
    return row


async def list_audio_books(
    db: Database, *, page: int = 1, limit: int = 20, status: str = "published"
) -> dict:
    result = await db.table(TABLE).find_many(
        {"status": status},
        order={"created_at": "desc"},
        skip=(page - 1) * limit,
        take=limit,
        count=True,
    )
    audio_books = await attach_relations(db, result.rows)
    return {"audioBooks": audio_books, "pagination": pagination(page, limit, result.total or 0)}


async def get_audio_book(db: Database, audio_book_id: str) -> dict:
    [row] = await attach_relations(db, [await _get_row(db, audio_book_id)])
    return row


async def create_audio_book(
    db: Database, storage: StorageBackend, body: ParsedBody
) -> tuple[dict, list[dict]]:
    fields = parse_fields(AudioBookCreate, body, files=AUDIO_BOOK_FILE_FIELDS)
    require_fields(fields.model_dump(), "title", "author_id")
    await validate_references(db, author_id=fields.author_id, category_id=fields.category_id)

    cover, audio = _files(body)
    cover_outcome, audio_result = await upload_cover_and_document(
        storage, cover, audio, bucket=DEFAULT_BUCKET, owner_id=fields.author_id
    )
    row = {
        "title": fields.title.strip(),
        "author_id": fields.author_id,
        "category_id": fields.category_id,
        "description": fields.description,
        "audio_url": audio_result.url if audio_result else fields.audio_url,
        "cover_url": cover_outcome.url or fields.cover_url,
        "duration": fields.duration,
        "language": fields.language or "English",
        "is_free": True if fields.is_free is None else fields.is_free,
        "published_date": fields.published_date or utc_now_iso(),
        "status": "pending",
    }
    audio_book = await db.table(TABLE).create(row)
    logger.info("Created audio book %s (%s)", audio_book.get("id"), audio_book.get("title"))
    [audio_book] = await attach_relations(db, [audio_book])
    return audio_book, upload_warnings(cover_outcome)


async def update_audio_book(
    db: Database, storage: StorageBackend, audio_book_id: str, body: ParsedBody
) -> tuple[dict, list[dict]]:
    existing = await _get_row(db, audio_book_id)
    changes = parse_fields(AudioBookUpdate, body, files=AUDIO_BOOK_FILE_FIELDS).model_dump(
        exclude_unset=True
    )
    await validate_references(db, category_id=changes.get("category_id"))

    cover, audio = _files(body)
    cover_outcome, audio_result = await upload_cover_and_document(
        storage, cover, audio, bucket=DEFAULT_BUCKET, owner_id=existing.get("author_id")
    )
    if cover_outcome.url:
        changes["cover_url"] = cover_outcome.url
    if audio_result is not None:
        changes["audio_url"] = audio_result.url
    changes["updated_at"] = utc_now_iso()

    audio_book = await db.table(TABLE).update(audio_book_id, changes)
    if audio_book is None:
        raise NotFoundError("Audio book not found", details={"id": audio_book_id})
    [audio_book] = await attach_relations(db, [audio_book])
    return audio_book, upload_warnings(cover_outcome)


async def delete_audio_book(db: Database, audio_book_id: str) -> None:
    if not await db.table(TABLE).delete(audio_book_id):
        raise NotFoundError("Audio book not found", details={"id": audio_book_id})


async def audio_url(db: Database, storage: StorageBackend, audio_book_id: str) -> AccessUrl:
    row = await _get_row(db, audio_book_id, columns="id,audio_url")
    if not row.get("audio_url"):
        raise NotFoundError("Audio file not found", details={"id": audio_book_id})
    return await resolve_access_url(storage, row["audio_url"], SIGNED_URL_TTL_SECONDS)


async def cover_url(db: Database, storage: StorageBackend, audio_book_id: str) -> AccessUrl:
    row = await _get_row(db, audio_book_id, columns="id,cover_url")
    if not row.get("cover_url"):
        raise NotFoundError("Audio book cover image not found", details={"id": audio_book_id})
    return await resolve_access_url(storage, row["cover_url"], SIGNED_URL_TTL_SECONDS)

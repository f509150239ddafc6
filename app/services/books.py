"""Book listing, creation with cover/PDF uploads, updates and download URLs."""

import logging
from typing import Optional

from app.config import DEFAULT_BUCKET, DOWNLOAD_URL_TTL_SECONDS
from app.core.errors import DatabaseError, NotFoundError
from app.core.requests import ParsedBody
from app.db.base import Database
from app.schemas.book import BOOK_FILE_FIELDS, BookCreate, BookUpdate
from app.services.common import (
    attach_relations,
    pagination,
    parse_fields,
    require_fields,
    utc_now_iso,
    validate_references,
)
from app.services.media_access import AccessUrl, resolve_access_url
from app.services.uploads import (
    FileField,
    merge_cover_images,
    upload_cover_and_document,
    upload_warnings,
)
from app.storage.base import StorageBackend

logger = logging.getLogger(__name__)

TABLE = "books"
COVER_FOLDER = "covers"
PDF_FOLDER = "pdfs"


def _files(body: ParsedBody) -> tuple[FileField, FileField]:
    return (
        FileField("coverImage", body.file("coverImage"), COVER_FOLDER, "image"),
        FileField("pdfFile", body.file("pdfFile"), PDF_FOLDER, "pdf"),
    )


async def list_books(
    db: Database,
    *,
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    author: Optional[str] = None,
    language: Optional[str] = None,
    search: Optional[str] = None,
    status: str = "published",
) -> dict:
    where: dict = {"status": status}
    if category:
        where["category_id"] = category
    if author:
        where["author_id"] = author
    if language:
        where["language"] = language
    if search:
        where["title"] = {"contains": search}
    result = await db.table(TABLE).find_many(
        where,
        order={"created_at": "desc"},
        skip=(page - 1) * limit,
        take=limit,
        count=True,
    )
    books = await attach_relations(db, result.rows)
    return {"books": books, "pagination": pagination(page, limit, result.total or 0)}


async def get_book(db: Database, book_id: str) -> dict:
    book = await db.table(TABLE).find_unique(book_id)
    if book is None:
        raise NotFoundError("Book not found", details={"id": book_id})
    [book] = await attach_relations(db, [book])
    return book


async def create_book(
    db: Database, storage: StorageBackend, body: ParsedBody
) -> tuple[dict, list[dict]]:
    """
    Create a book from metadata fields plus optional coverImage/pdfFile uploads.
    A failed cover upload leaves the cover empty; a failed PDF upload aborts.
    """
    fields = parse_fields(BookCreate, body, files=BOOK_FILE_FIELDS, lists=("cover_images",))
    require_fields(fields.model_dump(), "title", "author_id", "category_id")
    await validate_references(db, author_id=fields.author_id, category_id=fields.category_id)

    cover, pdf = _files(body)
    cover_outcome, pdf_result = await upload_cover_and_document(
        storage, cover, pdf, bucket=DEFAULT_BUCKET, owner_id=fields.author_id
    )
    cover_images = merge_cover_images(
        cover_outcome.url or fields.cover_image_url, fields.cover_images
    )
    price = fields.price or 0
    row = {
        "title": fields.title.strip(),
        "author_id": fields.author_id,
        "category_id": fields.category_id,
        "summary": fields.summary,
        "price": price,
        "original_price": fields.original_price or price,
        "pages": fields.pages,
        "language": fields.language or "English",
        "isbn": fields.isbn,
        "is_free": bool(fields.is_free),
        "pdf_url": pdf_result.url if pdf_result else fields.pdf_url,
        "cover_image_url": cover_images[0] if cover_images else None,
        "cover_images": cover_images,
        "published_date": fields.published_date or utc_now_iso(),
        "status": "pending",
    }
    book = await db.table(TABLE).create(row)
    logger.info("Created book %s (%s)", book.get("id"), book.get("title"))

    try:
        await db.rpc("increment_author_books", {"author_id_param": fields.author_id})
    except DatabaseError as e:
        logger.warning("Could not increment book count for author %s: %s", fields.author_id, e.details)

    [book] = await attach_relations(db, [book])
    return book, upload_warnings(cover_outcome)


async def update_book(
    db: Database, storage: StorageBackend, book_id: str, body: ParsedBody
) -> tuple[dict, list[dict]]:
    """Partial update. An uploaded cover is prepended to cover_images; an uploaded PDF replaces pdf_url."""
    table = db.table(TABLE)
    existing = await table.find_unique(book_id)
    if existing is None:
        raise NotFoundError("Book not found", details={"id": book_id})

    changes = parse_fields(
        BookUpdate, body, files=BOOK_FILE_FIELDS, lists=("cover_images",)
    ).model_dump(exclude_unset=True)
    await validate_references(
        db, author_id=changes.get("author_id"), category_id=changes.get("category_id")
    )

    cover, pdf = _files(body)
    cover_outcome, pdf_result = await upload_cover_and_document(
        storage,
        cover,
        pdf,
        bucket=DEFAULT_BUCKET,
        owner_id=changes.get("author_id") or existing.get("author_id"),
    )
    if cover_outcome.url:
        changes["cover_images"] = merge_cover_images(
            cover_outcome.url, changes.get("cover_images", existing.get("cover_images"))
        )
        changes["cover_image_url"] = changes["cover_images"][0]
    elif "cover_images" in changes and "cover_image_url" not in changes:
        changes["cover_images"] = merge_cover_images(None, changes["cover_images"])
        changes["cover_image_url"] = changes["cover_images"][0] if changes["cover_images"] else None
    if pdf_result is not None:
        changes["pdf_url"] = pdf_result.url
    changes["updated_at"] = utc_now_iso()

    book = await table.update(book_id, changes)
    if book is None:
        raise NotFoundError("Book not found", details={"id": book_id})
    [book] = await attach_relations(db, [book])
    return book, upload_warnings(cover_outcome)


async def delete_book(db: Database, book_id: str) -> None:
    # stored cover/PDF objects are left in place
    if not await db.table(TABLE).delete(book_id):
        raise NotFoundError("Book not found", details={"id": book_id})


async def book_download_url(db: Database, storage: StorageBackend, book_id: str) -> AccessUrl:
    book = await db.table(TABLE).find_unique(book_id, columns="id,pdf_url")
    if book is None:
        raise NotFoundError("Book not found", details={"id": book_id})
    if not book.get("pdf_url"):
        raise NotFoundError("Book PDF not found", details={"id": book_id})
    return await resolve_access_url(storage, book["pdf_url"], DOWNLOAD_URL_TTL_SECONDS)

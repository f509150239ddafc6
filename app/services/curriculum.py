"""Curriculum documents: banner image + PDF uploads, listing by state and status."""

import logging
from datetime import date
from typing import Optional

from app.config import DEFAULT_BUCKET, DOWNLOAD_URL_TTL_SECONDS
from app.core.errors import NotFoundError
from app.core.requests import ParsedBody
from app.db.base import Database
from app.schemas.curriculum import CURRICULUM_FILE_FIELDS, CurriculumCreate, CurriculumUpdate
from app.services.common import pagination, parse_fields, require_fields, utc_now_iso
from app.services.media_access import AccessUrl, resolve_access_url
from app.services.uploads import FileField, upload_cover_and_document, upload_warnings
from app.storage.base import StorageBackend

logger = logging.getLogger(__name__)

TABLE = "curriculum"
BANNER_FOLDER = "curriculum/banners"
PDF_FOLDER = "curriculum/pdfs"


def _files(body: ParsedBody) -> tuple[FileField, FileField]:
    return (
        FileField("bannerImage", body.file("bannerImage", "coverImage"), BANNER_FOLDER, "image"),
        FileField("pdfFile", body.file("pdfFile"), PDF_FOLDER, "pdf"),
    )


async def _get_row(db: Database, curriculum_id: str, columns: str = "*") -> dict:
    row = await db.table(TABLE).find_unique(curriculum_id, columns=columns)
    if row is None:
        raise NotFoundError("Curriculum not found", details={"id": curriculum_id})
    return row


async def list_curriculum(
    db: Database,
    *,
    page: int = 1,
    limit: int = 50,
    state: Optional[str] = None,
    status: str = "active",
) -> dict:
    """Newest first. status="all" lists every status."""
    where: dict = {}
    if status and status != "all":
        where["status"] = status
    if state:
        where["state"] = state
    result = await db.table(TABLE).find_many(
        where,
        order={"published_date": "desc", "created_at": "desc"},
        skip=(page - 1) * limit,
        take=limit,
        count=True,
    )
    return {"curriculums": result.rows, "pagination": pagination(page, limit, result.total or 0)}


async def get_curriculum(db: Database, curriculum_id: str) -> dict:
    return await _get_row(db, curriculum_id)


async def create_curriculum(
    db: Database, storage: StorageBackend, body: ParsedBody
) -> tuple[dict, list[dict]]:
    fields = parse_fields(CurriculumCreate, body, files=CURRICULUM_FILE_FIELDS)
    require_fields(fields.model_dump(), "title")

    banner, pdf = _files(body)
    banner_outcome, pdf_result = await upload_cover_and_document(
        storage, banner, pdf, bucket=DEFAULT_BUCKET
    )
    row = {
        "title": fields.title.strip(),
        "description": fields.description,
        "state": fields.state,
        "state_name": fields.state_name,
        "language": fields.language or "English",
        "banner_url": banner_outcome.url or fields.banner_url,
        "pdf_url": pdf_result.url if pdf_result else fields.pdf_url,
        "published_date": fields.published_date or date.today().isoformat(),
        "status": fields.status or "active",
    }
    for optional in ("scheme_name", "grade", "subject"):
        value = getattr(fields, optional)
        if value:
            row[optional] = value
    curriculum = await db.table(TABLE).create(row)
    logger.info("Created curriculum %s (%s)", curriculum.get("id"), curriculum.get("title"))
    return curriculum, upload_warnings(banner_outcome)


async def update_curriculum(
    db: Database, storage: StorageBackend, curriculum_id: str, body: ParsedBody
) -> tuple[dict, list[dict]]:
    await _get_row(db, curriculum_id, columns="id")
    changes = parse_fields(CurriculumUpdate, body, files=CURRICULUM_FILE_FIELDS).model_dump(
        exclude_unset=True
    )
    banner, pdf = _files(body)
    banner_outcome, pdf_result = await upload_cover_and_document(
        storage, banner, pdf, bucket=DEFAULT_BUCKET
    )
    if banner_outcome.url:
        changes["banner_url"] = banner_outcome.url
    if pdf_result is not None:
        changes["pdf_url"] = pdf_result.url
    changes["updated_at"] = utc_now_iso()

    curriculum = await db.table(TABLE).update(curriculum_id, changes)
    if curriculum is None:
        raise NotFoundError("Curriculum not found", details={"id": curriculum_id})
    return curriculum, upload_warnings(banner_outcome)


async def delete_curriculum(db: Database, curriculum_id: str) -> None:
    if not await db.table(TABLE).delete(curriculum_id):
        raise NotFoundError("Curriculum not found", details={"id": curriculum_id})


async def banner_url(db: Database, storage: StorageBackend, curriculum_id: str) -> AccessUrl:
    row = await _get_row(db, curriculum_id, columns="id,banner_url")
    if not row.get("banner_url"):
        raise NotFoundError("Curriculum banner image not found", details={"id": curriculum_id})
    return await resolve_access_url(
        storage, row["banner_url"], DOWNLOAD_URL_TTL_SECONDS, public_fallback=True
    )


async def pdf_download_url(db: Database, storage: StorageBackend, curriculum_id: str) -> AccessUrl:
    row = await _get_row(db, curriculum_id, columns="id,pdf_url")
    if not row.get("pdf_url"):
        raise NotFoundError("Curriculum PDF not found", details={"id": curriculum_id})
    return await resolve_access_url(
        storage, row["pdf_url"], DOWNLOAD_URL_TTL_SECONDS, public_fallback=True
    )

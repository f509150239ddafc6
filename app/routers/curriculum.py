"""Curriculum CRUD API plus banner/PDF URLs."""

from typing import Optional

from fastapi import APIRouter, Query

from app.core.deps import DbDep, EntityBodyDep, StorageDep
from app.schemas.upload import DownloadUrlResponse, ImageUrlResponse
from app.services import curriculum
from app.services.uploads import with_warnings

router = APIRouter(prefix="/curriculum", tags=["curriculum"])


@router.get("")
async def list_curriculum(
    db: DbDep,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    state: Optional[str] = None,
    status: str = Query("active", description='Status filter; "all" disables it'),
) -> dict:
    return await curriculum.list_curriculum(db, page=page, limit=limit, state=state, status=status)


@router.post("", status_code=201)
async def create_curriculum(body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    row, warnings = await curriculum.create_curriculum(db, storage, body)
    return with_warnings({"curriculum": row}, warnings)


@router.get("/{curriculum_id}")
async def get_curriculum(curriculum_id: str, db: DbDep) -> dict:
    return {"curriculum": await curriculum.get_curriculum(db, curriculum_id)}


@router.put("/{curriculum_id}")
async def update_curriculum(curriculum_id: str, body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    row, warnings = await curriculum.update_curriculum(db, storage, curriculum_id, body)
    return with_warnings({"curriculum": row}, warnings)


@router.delete("/{curriculum_id}")
async def delete_curriculum(curriculum_id: str, db: DbDep) -> dict:
    await curriculum.delete_curriculum(db, curriculum_id)
    return {"success": True, "message": "Curriculum deleted successfully"}


@router.get("/{curriculum_id}/image", response_model=ImageUrlResponse, response_model_exclude_none=True)
async def get_banner_url(curriculum_id: str, db: DbDep, storage: StorageDep) -> ImageUrlResponse:
    access = await curriculum.banner_url(db, storage, curriculum_id)
    return ImageUrlResponse(imageUrl=access.url, expiresAt=access.expires_at, note=access.note)


@router.get("/{curriculum_id}/download", response_model=DownloadUrlResponse, response_model_exclude_none=True)
async def download_curriculum(curriculum_id: str, db: DbDep, storage: StorageDep) -> DownloadUrlResponse:
    access = await curriculum.pdf_download_url(db, storage, curriculum_id)
    return DownloadUrlResponse(downloadUrl=access.url, expiresAt=access.expires_at, note=access.note)

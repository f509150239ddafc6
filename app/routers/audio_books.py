"""Audio book CRUD API plus playback/cover URLs."""

from fastapi import APIRouter, Query

from app.core.deps import DbDep, EntityBodyDep, StorageDep
from app.schemas.upload import AudioUrlResponse, ImageUrlResponse
from app.services import audio_books
from app.services.uploads import with_warnings

router = APIRouter(prefix="/audio-books", tags=["audio-books"])


@router.get("")
async def list_audio_books(
    db: DbDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: str = "published",
) -> dict:
    return await audio_books.list_audio_books(db, page=page, limit=limit, status=status)


@router.post("", status_code=201)
async def create_audio_book(body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    """Required: title, author_id. Files: coverImage, audioFile."""
    audio_book, warnings = await audio_books.create_audio_book(db, storage, body)
    return with_warnings({"audioBook": audio_book}, warnings)


@router.get("/{audio_book_id}")
async def get_audio_book(audio_book_id: str, db: DbDep) -> dict:
    return {"audioBook": await audio_books.get_audio_book(db, audio_book_id)}


@router.put("/{audio_book_id}")
async def update_audio_book(audio_book_id: str, body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    audio_book, warnings = await audio_books.update_audio_book(db, storage, audio_book_id, body)
    return with_warnings({"audioBook": audio_book}, warnings)


@router.delete("/{audio_book_id}")
async def delete_audio_book(audio_book_id: str, db: DbDep) -> dict:
    await audio_books.delete_audio_book(db, audio_book_id)
    return {"success": True, "message": "Audio book deleted successfully"}


@router.get("/{audio_book_id}/audio", response_model=AudioUrlResponse, response_model_exclude_none=True)
async def get_audio_url(audio_book_id: str, db: DbDep, storage: StorageDep) -> AudioUrlResponse:
    access = await audio_books.audio_url(db, storage, audio_book_id)
    return AudioUrlResponse(audioUrl=access.url, expiresAt=access.expires_at, note=access.note)


@router.get("/{audio_book_id}/image", response_model=ImageUrlResponse, response_model_exclude_none=True)
async def get_image_url(audio_book_id: str, db: DbDep, storage: StorageDep) -> ImageUrlResponse:
    access = await audio_books.cover_url(db, storage, audio_book_id)
    return ImageUrlResponse(imageUrl=access.url, expiresAt=access.expires_at, note=access.note)

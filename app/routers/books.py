"""Book CRUD API. Create/update accept JSON or multipart with coverImage/pdfFile files."""

from typing import Optional

from fastapi import APIRouter, Query

from app.core.deps import DbDep, EntityBodyDep, StorageDep
from app.schemas.upload import DownloadUrlResponse
from app.services import books
from app.services.uploads import with_warnings

router = APIRouter(prefix="/books", tags=["books"])


@router.get("")
async def list_books(
    db: DbDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category: Optional[str] = Query(None, description="Filter by category id"),
    author: Optional[str] = Query(None, description="Filter by author id"),
    language: Optional[str] = None,
    search: Optional[str] = Query(None, description="Case-insensitive title match"),
    status: str = "published",
) -> dict:
    return await books.list_books(
        db,
        page=page,
        limit=limit,
        category=category,
        author=author,
        language=language,
        search=search,
        status=status,
    )


@router.post("", status_code=201)
async def create_book(body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    """Create a book (status pending). Required: title, author_id, category_id."""
    book, warnings = await books.create_book(db, storage, body)
    return with_warnings({"book": book}, warnings)


@router.get("/{book_id}")
async def get_book(book_id: str, db: DbDep) -> dict:
    return {"book": await books.get_book(db, book_id)}


@router.put("/{book_id}")
async def update_book(book_id: str, body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    book, warnings = await books.update_book(db, storage, book_id, body)
    return with_warnings({"book": book}, warnings)


@router.delete("/{book_id}")
async def delete_book(book_id: str, db: DbDep) -> dict:
    await books.delete_book(db, book_id)
    return {"success": True, "message": "Book deleted successfully"}


@router.get("/{book_id}/download", response_model=DownloadUrlResponse, response_model_exclude_none=True)
async def download_book(book_id: str, db: DbDep, storage: StorageDep) -> DownloadUrlResponse:
    """Time-limited URL for the book's PDF."""
    access = await books.book_download_url(db, storage, book_id)
    return DownloadUrlResponse(downloadUrl=access.url, expiresAt=access.expires_at, note=access.note)

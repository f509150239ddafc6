"""Authors, categories and dashboard read APIs for the admin panel."""

from typing import Optional

from fastapi import APIRouter, Query

from app.core.deps import DbDep
from app.schemas.profile import AuthorCreate
from app.services import authors, dashboard

router = APIRouter(tags=["authors"])


@router.get("/authors")
async def list_authors(
    db: DbDep,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
) -> dict:
    return await authors.list_authors(db, page=page, limit=limit)


@router.post("/authors", status_code=201)
async def create_author(body: AuthorCreate, db: DbDep) -> dict:
    """Required: name, email."""
    return {"author": await authors.create_author(db, body)}


@router.get("/authors/{author_id}")
async def get_author(author_id: str, db: DbDep) -> dict:
    return {"author": await authors.get_author(db, author_id)}


@router.get("/categories")
async def list_categories(db: DbDep) -> dict:
    return await authors.list_categories(db)


@router.get("/dashboard")
async def get_dashboard(
    db: DbDep,
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
) -> dict:
    """Entity counts and revenue over completed payments in [startDate, endDate]."""
    return await dashboard.get_dashboard(db, start_date, end_date)

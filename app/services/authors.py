"""Authors: the authors table merged with publisher/author users."""

import logging
from collections import Counter

from app.core.errors import NotFoundError
from app.db.base import Database
from app.schemas.profile import AuthorCreate
from app.services.common import AUTHOR_ROLES, find_authors, pagination, require_fields

logger = logging.getLogger(__name__)

_USER_AUTHOR_COLUMNS = ("id", "name", "email", "mobile", "bio", "avatar_url", "status", "role", "created_at")


def _from_user(user: dict) -> dict:
    author = {column: user.get(column) for column in _USER_AUTHOR_COLUMNS}
    author["bio"] = user.get("bio") or user.get("description") or ""
    author["status"] = user.get("status") or "active"
    return author


async def _counts(db: Database, table: str, author_ids: list[str]) -> Counter:
    if not author_ids:
        return Counter()
    page = await db.table(table).find_many({"author_id": author_ids}, columns="author_id")
    return Counter(row["author_id"] for row in page.rows)


async def list_authors(db: Database, *, page: int = 1, limit: int = 20) -> dict:
    """Newest first, each with books_count and audio_books_count. Paginated after merging."""
    users = await db.table("users").find_many({"role": AUTHOR_ROLES})
    authors_table = await db.table("authors").find_many()

    merged: dict[str, dict] = {user["id"]: _from_user(user) for user in users.rows}
    for author in authors_table.rows:
        merged[author["id"]] = {**merged.get(author["id"], {}), **author}

    ids = list(merged)
    books = await _counts(db, "books", ids)
    audio_books = await _counts(db, "audio_books", ids)
    for author_id, author in merged.items():
        author["books_count"] = books[author_id]
        author["audio_books_count"] = audio_books[author_id]

    ordered = sorted(merged.values(), key=lambda a: a.get("created_at") or "", reverse=True)
    start = (page - 1) * limit
    return {
        "authors": ordered[start:start + limit],
        "pagination": pagination(page, limit, len(ordered)),
    }


async def get_author(db: Database, author_id: str) -> dict:
    found = await find_authors(db, [author_id])
    if author_id not in found:
        raise NotFoundError("Author not found", details={"id": author_id})
    author = found[author_id]
    if author.get("role") in AUTHOR_ROLES:
        author = _from_user(author)
    author["books_count"] = (await _counts(db, "books", [author_id]))[author_id]
    author["audio_books_count"] = (await _counts(db, "audio_books", [author_id]))[author_id]
    return author


async def create_author(db: Database, fields: AuthorCreate) -> dict:
    require_fields(fields.model_dump(), "name", "email")
    author = await db.table("authors").create(
        {
            "name": fields.name.strip(),
            "email": fields.email.strip(),
            "mobile": fields.mobile,
            "bio": fields.bio,
            "avatar_url": fields.avatar_url,
            "status": fields.status or "active",
        }
    )
    logger.info("Created author %s (%s)", author.get("id"), author.get("name"))
    return author


async def list_categories(db: Database) -> dict:
    page = await db.table("categories").find_many(order={"name": "asc"})
    return {"categories": page.rows}

"""Helpers shared by the entity services: required fields, pagination, relations."""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, TypeVar

from pydantic import BaseModel

from app.core.errors import EntityValidationError, MissingRequiredField
from app.core.requests import ParsedBody
from app.db.base import Database

logger = logging.getLogger(__name__)

AUTHOR_ROLES = ["publisher", "author"]

M = TypeVar("M", bound=BaseModel)


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def require_fields(data: dict, *names: str) -> None:
    """Raise MissingRequiredField listing every name that is absent or blank in data."""
    missing = [name for name in names if is_blank(data.get(name))]
    if missing:
        raise MissingRequiredField(*missing)


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def _ids(rows: Iterable[dict], column: str) -> list[str]:
    return sorted({row[column] for row in rows if row.get(column)})


async def find_authors(db: Database, ids: list[str]) -> dict[str, dict]:
    """Authors by id: the authors table first, then users with an author/publisher role."""
    if not ids:
        return {}
    page = await db.table("authors").find_many({"id": ids})
    found = {row["id"]: row for row in page.rows}
    remaining = [i for i in ids if i not in found]
    if remaining:
        users = await db.table("users").find_many({"id": remaining, "role": AUTHOR_ROLES})
        found.update({row["id"]: row for row in users.rows})
    return found


async def attach_relations(db: Database, rows: list[dict]) -> list[dict]:
    """Add author and category objects to each row (None when the reference is missing)."""
    if not rows:
        return rows
    authors = await find_authors(db, _ids(rows, "author_id"))
    category_ids = _ids(rows, "category_id")
    categories: dict[str, dict] = {}
    if category_ids:
        page = await db.table("categories").find_many({"id": category_ids})
        categories = {row["id"]: row for row in page.rows}
    return [
        {
            **row,
            "author": authors.get(row.get("author_id")),
            "category": categories.get(row.get("category_id")),
        }
        for row in rows
    ]


async def validate_references(
    db: Database,
    author_id: Optional[str] = None,
    category_id: Optional[str] = None,
) -> None:
    """Raise EntityValidationError naming the author or category id that does not exist."""
    if author_id and author_id not in await find_authors(db, [author_id]):
        raise EntityValidationError(
            f"Author not found: {author_id}",
            details={"author_id": author_id},
        )
    if category_id and await db.table("categories").find_unique(category_id) is None:
        raise EntityValidationError(
            f"Category not found: {category_id}",
            details={"category_id": category_id},
        )


def parse_fields(
    model: type[M],
    body: ParsedBody,
    *,
    files: tuple[str, ...] = (),
    lists: tuple[str, ...] = (),
    keep_blank: bool = False,
) -> M:
    """Validate body's scalar fields (file fields excluded) plus list fields against model."""
    data = body.data(exclude=files + lists, keep_blank=keep_blank)
    for name in lists:
        value = body.list_field(name)
        if value is not None:
            data[name] = value
    return model.model_validate(data)

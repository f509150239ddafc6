"""Profile update API used by the mobile app (JSON or multipart with an avatar file)."""

from fastapi import APIRouter, Response

from app.core.deps import DbDep, EntityBodyDep, StorageDep
from app.core.http import preflight_response
from app.services.profiles import update_profile

router = APIRouter(prefix="/profile", tags=["profile"])


@router.options("/update")
async def profile_update_preflight() -> Response:
    return preflight_response()


@router.api_route("/update", methods=["PUT", "POST"])
async def profile_update(body: EntityBodyDep, db: DbDep, storage: StorageDep) -> dict:
    """Update a user's profile. user_id (or author_id) must be a UUID."""
    return await update_profile(db, storage, body)

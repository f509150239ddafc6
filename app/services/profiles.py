"""Profile updates for app users, with an optional avatar upload."""

import logging
import uuid

from app.config import DEFAULT_BUCKET
from app.core.errors import InvalidField, MissingRequiredField, NotFoundError
from app.core.requests import ParsedBody
from app.db.base import Database
from app.schemas.profile import PROFILE_TEXT_FIELDS, ProfileUpdate
from app.services.common import parse_fields, utc_now_iso
from app.services.uploads import upload_optional, upload_warnings, with_warnings
from app.storage.base import StorageBackend

logger = logging.getLogger(__name__)

AVATAR_FOLDER = "avatars"


def _user_id(fields: ProfileUpdate) -> str:
    target = (fields.user_id or fields.author_id or "").strip()
    if not target:
        raise MissingRequiredField("user_id")
    try:
        uuid.UUID(target)
    except ValueError:
        raise InvalidField(
            "Invalid user_id or author_id format",
            details=f'Expected UUID format (e.g., "550e8400-e29b-41d4-a716-446655440000"), '
            f'but received: "{target}"',
        ) from None
    return target


async def update_profile(db: Database, storage: StorageBackend, body: ParsedBody) -> dict:
    """Update the users row named by user_id (or author_id). Returns the success envelope."""
    fields = parse_fields(ProfileUpdate, body, files=("avatar",), keep_blank=True)
    user_id = _user_id(fields)

    users = db.table("users")
    if await users.find_unique(user_id, columns="id") is None:
        raise NotFoundError("User not found", details=f"No user found with ID: {user_id}")

    changes: dict = {"updated_at": utc_now_iso()}
    submitted = fields.model_dump(exclude_unset=True)
    for field, column in PROFILE_TEXT_FIELDS.items():
        if field in submitted:
            value = submitted[field]
            changes[column] = (value.strip() or None) if isinstance(value, str) else value
    if fields.avatar_url:
        changes["avatar_url"] = fields.avatar_url

    avatar = await upload_optional(
        storage,
        "avatar",
        body.file("avatar"),
        bucket=DEFAULT_BUCKET,
        folder=AVATAR_FOLDER,
        owner_id=user_id,
        context="image",
    )
    if avatar.url:
        changes["avatar_url"] = avatar.url

    user = await users.update(user_id, changes)
    if user is None:
        raise NotFoundError(
            "User not found after update",
            details=f"User with ID {user_id} was not found after update operation",
        )
    logger.info("Updated profile for user %s (%s)", user_id, ", ".join(sorted(changes)))
    response = {
        "success": True,
        "message": "Profile updated successfully",
        "data": {**user, "profile_picture": user.get("avatar_url") or avatar.url},
    }
    return with_warnings(response, upload_warnings(avatar))

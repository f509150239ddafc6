"""Upload contexts: contextual default MIME type and size limit per kind of file."""

from typing import Literal, Optional

from app.config import (
    MAX_FILE_SIZE_ANY,
    MAX_FILE_SIZE_AUDIO,
    MAX_FILE_SIZE_IMAGE,
    MAX_FILE_SIZE_PDF,
)
from app.core.errors import FileTooLarge

UploadContext = Literal["pdf", "image", "audio", "any"]

# Used when neither the payload nor the client names a type
DEFAULT_MIME_BY_CONTEXT: dict[UploadContext, Optional[str]] = {
    "pdf": "application/pdf",
    "image": "image/jpeg",
    "audio": "audio/mpeg",
    "any": None,
}

MAX_SIZE_BY_CONTEXT: dict[UploadContext, int] = {
    "pdf": MAX_FILE_SIZE_PDF,
    "image": MAX_FILE_SIZE_IMAGE,
    "audio": MAX_FILE_SIZE_AUDIO,
    "any": MAX_FILE_SIZE_ANY,
}


def default_mime_for(context: UploadContext) -> Optional[str]:
    return DEFAULT_MIME_BY_CONTEXT.get(context)


def get_max_size(context: UploadContext) -> int:
    """Return max allowed size in bytes for the given upload context."""
    return MAX_SIZE_BY_CONTEXT.get(context, MAX_FILE_SIZE_ANY)


def check_size(context: UploadContext, size: int) -> None:
    max_size = get_max_size(context)
    if size > max_size:
        raise FileTooLarge(
            f"File too large. Max size for {context}: {max_size // (1024 * 1024)} MB",
            details={"size": size, "max_size": max_size},
        )

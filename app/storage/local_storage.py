"""Local filesystem storage."""

from pathlib import Path

import aiofiles

from app.config import LOCAL_FILES_BASE_URL, LOCAL_STORAGE_PATH
from app.core.errors import StorageError
from app.storage.base import SignedUpload, StorageBackend


class LocalStorage(StorageBackend):
    """
    Store files on local disk under <root>/<bucket>/<key>.
    Public URL is /files/<bucket>/<key> (served by app.main). There is no signing,
    so stored records fall back to the public URL.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.root = Path(root or LOCAL_STORAGE_PATH).resolve()

    def _path(self, bucket: str, key: str) -> Path:
        """Resolve bucket/key under root, preventing path traversal."""
        relative = f"{bucket}/{key}".lstrip("/").replace("..", "")
        resolved = (self.root / relative).resolve()
        if not str(resolved).startswith(str(self.root)):
            raise StorageError("Invalid storage key", details=key)
        return resolved

    async def upload(
        self,
        bucket: str,
        key: str,
        content: bytes,
        content_type: str | None = None,
    ) -> None:
        path = self._path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with aiofiles.open(path, "xb") as f:
                await f.write(content)
        except FileExistsError as e:
            raise StorageError("The resource already exists", details=f"{bucket}/{key}") from e
        except OSError as e:
            raise StorageError("Failed to upload file", details=str(e)) from e

    def get_public_url(self, bucket: str, key: str) -> str:
        if LOCAL_FILES_BASE_URL:
            return f"{LOCAL_FILES_BASE_URL}/{bucket}/{key}"
        return f"/files/{bucket}/{key}"

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        raise StorageError("Signed URLs are not supported by local storage")

    async def create_signed_upload_url(self, bucket: str, key: str) -> SignedUpload:
        raise StorageError(
            "Failed to create upload URL",
            details="Direct uploads are not supported by local storage",
        )

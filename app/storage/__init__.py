# Storage backends

from app.config import STORAGE_BACKEND
from app.storage.base import SignedUpload, StorageBackend, UploadResult


def create_storage(supabase_client=None) -> StorageBackend:
    """Build the configured backend. The app keeps one instance on app.state."""
    if STORAGE_BACKEND == "supabase":
        from app.storage.supabase_storage import SupabaseStorage

        if supabase_client is None:
            raise RuntimeError("A Supabase client is required when STORAGE_BACKEND=supabase")
        return SupabaseStorage(supabase_client)

    from app.storage.local_storage import LocalStorage

    return LocalStorage()


__all__ = ["create_storage", "SignedUpload", "StorageBackend", "UploadResult"]

"""Storage keys: build collision-resistant object paths and map stored URLs back to them."""

import re
import time
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import unquote, urlparse

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_SUPABASE_OBJECT_PATH = re.compile(r"/storage/v1/object/(public|sign|authenticated)/([^/]+)/(.+)")
_LOCAL_PREFIX = "/files/"


@dataclass(frozen=True)
class StorageLocation:
    bucket: str
    key: str
    signed: bool = False


def sanitize_filename(filename: str) -> str:
    """Basename of filename with anything outside [A-Za-z0-9._-] replaced by '_'. The extension is kept."""
    name = PurePosixPath((filename or "").replace("\\", "/")).name
    suffix = PurePosixPath(name).suffix
    if _UNSAFE_CHARS.search(suffix):
        suffix = ""
    stem = _UNSAFE_CHARS.sub("_", name[: len(name) - len(suffix)])[:128].lstrip("._")
    return f"{stem or 'file'}{suffix}"


def _segment(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip().strip("/")
    return value or None


def build_key(
    folder: Optional[str],
    owner_id: Optional[str],
    filename: str,
    now_ms: Optional[int] = None,
) -> str:
    """
    Build storage key: [folder/][owner_id/]<unix millis>-<filename>.
    The timestamp is always present so uploads of the same name never collide
    (the gateway uploads with upsert disabled).
    """
    timestamp = now_ms if now_ms is not None else time.time_ns() // 1_000_000
    parts = [p for p in (_segment(folder), _segment(owner_id)) if p]
    parts.append(f"{timestamp}-{sanitize_filename(filename)}")
    return "/".join(parts)


def parse_storage_url(url: Optional[str], default_bucket: str) -> Optional[StorageLocation]:
    """
    Extract bucket and key from a stored file URL.
    Handles Supabase public/signed URLs, local /files/<bucket>/<key> URLs and bare keys
    (which live in default_bucket). Returns None for URLs that point elsewhere.
    """
    if not url or not url.strip():
        return None
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        path = urlparse(url).path
        match = _SUPABASE_OBJECT_PATH.search(path)
        if match:
            kind, bucket, key = match.groups()
            return StorageLocation(bucket=bucket, key=unquote(key), signed=kind == "sign")
        local_at = path.find(_LOCAL_PREFIX)
        if local_at == -1:
            return None
        path = path[local_at:]
    else:
        path = url.split("?", 1)[0]
    if path.startswith(_LOCAL_PREFIX):
        bucket, _, key = path.removeprefix(_LOCAL_PREFIX).partition("/")
        if bucket and key:
            return StorageLocation(bucket=bucket, key=unquote(key))
        return None
    key = path.lstrip("/")
    if not key:
        return None
    return StorageLocation(bucket=default_bucket, key=key)

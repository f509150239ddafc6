"""
Tests for storage keys, the local filesystem backend and URL resolution.
"""
import asyncio
import re

import pytest
from httpx import AsyncClient

from app.core.errors import StorageError
from app.core.payload import NormalizedFile
from app.storage.base import StorageBackend
from app.storage.keys import build_key, parse_storage_url, sanitize_filename
from app.storage.local_storage import LocalStorage


class TestBuildKey:
    """Tests for storage key construction."""

    def test_bare_filename(self):
        assert re.fullmatch(r"\d+-a\.pdf", build_key(None, None, "a.pdf"))

    def test_folder_and_owner(self):
        assert re.fullmatch(r"pdfs/u1/\d+-a\.pdf", build_key("pdfs", "u1", "a.pdf"))

    def test_folder_only(self):
        assert re.fullmatch(r"covers/\d+-c\.jpg", build_key("covers", None, "c.jpg"))

    def test_owner_only(self):
        assert re.fullmatch(r"u1/\d+-c\.jpg", build_key("", "u1", "c.jpg"))

    def test_timestamp_is_used(self):
        assert build_key("pdfs", None, "a.pdf", now_ms=1700000000123) == "pdfs/1700000000123-a.pdf"

    def test_consecutive_milliseconds_never_collide(self):
        first = build_key("pdfs", "u1", "a.pdf", now_ms=1000)
        second = build_key("pdfs", "u1", "a.pdf", now_ms=1001)
        assert first != second

    def test_surrounding_slashes_are_stripped(self):
        assert build_key("/audio-books/audio/", None, "x.mp3", now_ms=5) == "audio-books/audio/5-x.mp3"

    def test_unsafe_characters_are_replaced(self):
        assert sanitize_filename("My Book (final).pdf") == "My_Book__final_.pdf"
        assert sanitize_filename("../../secret") == "secret"
        assert sanitize_filename("...") == "file"

    def test_non_ascii_name_keeps_extension(self):
        assert build_key("pdfs", None, "कृषि.pdf", now_ms=1) == "pdfs/1-file.pdf"
        assert sanitize_filename("खेती guide.pdf") == "guide.pdf"


class TestParseStorageUrl:
    """Tests for mapping stored URLs back to bucket + key."""

    def test_supabase_public_url(self):
        location = parse_storage_url(
            "https://abc.supabase.co/storage/v1/object/public/books/pdfs/1-a.pdf", "books"
        )
        assert (location.bucket, location.key, location.signed) == ("books", "pdfs/1-a.pdf", False)

    def test_supabase_signed_url(self):
        location = parse_storage_url(
            "https://abc.supabase.co/storage/v1/object/sign/media/covers/1-c.jpg?token=xyz", "books"
        )
        assert (location.bucket, location.key, location.signed) == ("media", "covers/1-c.jpg", True)

    def test_encoded_key(self):
        location = parse_storage_url(
            "https://abc.supabase.co/storage/v1/object/public/books/covers/1-my%20cover.jpg", "books"
        )
        assert location.key == "covers/1-my cover.jpg"

    def test_local_files_url(self):
        location = parse_storage_url("/files/books/pdfs/1-a.pdf", "other")
        assert (location.bucket, location.key) == ("books", "pdfs/1-a.pdf")

    def test_local_files_absolute_url(self):
        location = parse_storage_url("http://localhost:8000/files/books/pdfs/1-a.pdf", "other")
        assert (location.bucket, location.key) == ("books", "pdfs/1-a.pdf")

    def test_bare_key_uses_default_bucket(self):
        location = parse_storage_url("pdfs/1-a.pdf", "books")
        assert (location.bucket, location.key) == ("books", "pdfs/1-a.pdf")

    def test_foreign_url_is_not_storage(self):
        assert parse_storage_url("https://cdn.example.com/a.pdf", "books") is None
        assert parse_storage_url("", "books") is None


class TestLocalStorage:
    """Tests for the filesystem backend."""

    @pytest.mark.asyncio
    async def test_store_writes_file_and_falls_back_to_public_url(self, tmp_path):
        storage = LocalStorage(root=tmp_path)
        file = NormalizedFile(content=b"0123456789", filename="a.pdf", content_type="application/pdf")
        result = await storage.store("books", "pdfs/1-a.pdf", file)
        assert (tmp_path / "books" / "pdfs" / "1-a.pdf").read_bytes() == b"0123456789"
        assert result.signed_url is None
        assert result.url == result.public_url == "/files/books/pdfs/1-a.pdf"

    @pytest.mark.asyncio
    async def test_upload_never_overwrites(self, tmp_path):
        storage = LocalStorage(root=tmp_path)
        await storage.upload("books", "k.bin", b"first")
        with pytest.raises(StorageError) as exc_info:
            await storage.upload("books", "k.bin", b"second")
        assert "already exists" in exc_info.value.message
        assert (tmp_path / "books" / "k.bin").read_bytes() == b"first"

    @pytest.mark.asyncio
    async def test_path_traversal_stays_under_root(self, tmp_path):
        storage = LocalStorage(root=tmp_path / "root")
        await storage.upload("books", "../../escape.bin", b"x")
        assert not (tmp_path / "escape.bin").exists()

    @pytest.mark.asyncio
    async def test_signed_upload_url_is_unsupported(self, tmp_path):
        with pytest.raises(StorageError):
            await LocalStorage(root=tmp_path).create_signed_upload_url("books", "k")

    @pytest.mark.asyncio
    async def test_round_trip_through_files_route(self, client: AsyncClient):
        """Bytes stored locally come back byte-for-byte from the public URL."""
        payload = bytes(range(256)) * 4
        storage = LocalStorage()
        result = await storage.store(
            "books", f"roundtrip/{id(payload)}-blob.bin",
            NormalizedFile(content=payload, filename="blob.bin", content_type="application/octet-stream"),
        )
        response = await client.get(result.public_url)
        assert response.status_code == 200
        assert response.content == payload


class _SlowStorage(StorageBackend):
    async def upload(self, bucket, key, content, content_type=None):
        await asyncio.sleep(10)

    def get_public_url(self, bucket, key):
        return f"/files/{bucket}/{key}"

    async def create_signed_url(self, bucket, key, expires_in):
        return "unused"

    async def create_signed_upload_url(self, bucket, key):
        raise StorageError("unused")


class TestStoreTimeout:
    @pytest.mark.asyncio
    async def test_upload_timeout_is_storage_error(self, monkeypatch):
        monkeypatch.setattr("app.storage.base.UPLOAD_TIMEOUT_SECONDS", 0.01)
        file = NormalizedFile(content=b"x", filename="x", content_type="text/plain")
        with pytest.raises(StorageError) as exc_info:
            await _SlowStorage().store("books", "k", file)
        assert "timed out" in exc_info.value.details

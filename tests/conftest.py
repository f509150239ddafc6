"""
Test configuration and fixtures.
The API runs against in-memory fakes of the relational store and the object store;
the local filesystem backend writes to a temporary directory.
"""
import itertools
import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

# Set test environment before any imports
os.environ["STORAGE_BACKEND"] = "local"
os.environ["LOCAL_STORAGE_PATH"] = tempfile.mkdtemp(prefix="agribook-test-")
os.environ["LOCAL_FILES_BASE_URL"] = ""
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""

import pytest
from typing import Any, AsyncGenerator, Optional

from httpx import AsyncClient, ASGITransport

from app.core.deps import get_db, get_storage
from app.core.errors import DatabaseError, StorageError
from app.db.base import Database, Order, Page, TableGateway, Where
from app.main import app
from app.storage.base import SignedUpload, StorageBackend

FAKE_STORAGE_HOST = "https://project.supabase.test"
AUTHOR_ID = "0b6f3c1e-6a57-4c1c-9d44-2f4f7e0c9a11"
PUBLISHER_ID = "5d0e7b52-8f0a-4d8e-9b4c-7f3a1c2e9d22"
CATEGORY_ID = "c7a9d3f1-1b2c-4e5d-8f6a-9b0c1d2e3f44"
USER_ID = "550e8400-e29b-41d4-a716-446655440000"

_clock = itertools.count(1)


def _tick() -> str:
    """Strictly increasing created_at values so newest-first ordering is deterministic."""
    return (datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=next(_clock))).isoformat()


def _matches(row: dict, where: Optional[Where]) -> bool:
    for column, condition in (where or {}).items():
        ops = condition if isinstance(condition, dict) else {"equals": condition}
        value = row.get(column)
        for op, expected in ops.items():
            if op == "equals":
                if expected is None:
                    ok = value is None
                elif isinstance(expected, (list, tuple, set)):
                    ok = value in expected
                else:
                    ok = value == expected
            elif op == "in":
                ok = value in expected
            elif op == "not":
                ok = value != expected
            elif op == "contains":
                ok = isinstance(value, str) and str(expected).lower() in value.lower()
            elif op in ("gt", "gte", "lt", "lte"):
                if value is None:
                    ok = False
                else:
                    ok = {
                        "gt": value > expected,
                        "gte": value >= expected,
                        "lt": value < expected,
                        "lte": value <= expected,
                    }[op]
            else:
                raise ValueError(f"Unsupported filter operator: {op}")
            if not ok:
                return False
    return True


class FakeTable(TableGateway):
    def __init__(self, name: str) -> None:
        self.name = name
        self.rows: list[dict] = []
        self.fail_on: set[str] = set()

    def _check(self, op: str) -> None:
        if op in self.fail_on:
            raise DatabaseError(f"Database error on {self.name}", details=f"injected {op} failure")

    def seed(self, **row: Any) -> dict:
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", _tick())
        self.rows.append(row)
        return dict(row)

    async def find_many(
        self,
        where: Optional[Where] = None,
        *,
        order: Optional[Order] = None,
        skip: int = 0,
        take: Optional[int] = None,
        columns: str = "*",
        count: bool = False,
    ) -> Page:
        self._check("find_many")
        rows = [dict(r) for r in self.rows if _matches(r, where)]
        for column, direction in reversed(list((order or {}).items())):
            rows.sort(
                key=lambda r: (r.get(column) is not None, r.get(column) or ""),
                reverse=direction == "desc",
            )
        total = len(rows)
        rows = rows[skip:] if take is None else rows[skip:skip + take]
        return Page(rows=rows, total=total if count else None)

    async def find_unique(self, id: str, columns: str = "*") -> Optional[dict]:
        self._check("find_unique")
        for row in self.rows:
            if row.get("id") == id:
                return dict(row)
        return None

    async def create(self, data: dict) -> dict:
        self._check("create")
        return self.seed(**data)

    async def update(self, id: str, data: dict) -> Optional[dict]:
        self._check("update")
        for row in self.rows:
            if row.get("id") == id:
                row.update(data)
                return dict(row)
        return None

    async def delete(self, id: str) -> bool:
        self._check("delete")
        before = len(self.rows)
        self.rows = [r for r in self.rows if r.get("id") != id]
        return len(self.rows) < before

    async def count(self, where: Optional[Where] = None) -> int:
        self._check("count")
        return sum(1 for r in self.rows if _matches(r, where))


class FakeDatabase(Database):
    def __init__(self) -> None:
        self.tables: dict[str, FakeTable] = {}
        self.rpc_calls: list[tuple[str, dict]] = []
        self.rpc_error: Optional[DatabaseError] = None

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name)
        return self.tables[name]

    async def rpc(self, function: str, params: Optional[dict] = None) -> Any:
        self.rpc_calls.append((function, params or {}))
        if self.rpc_error is not None:
            raise self.rpc_error
        return None


class FakeStorage(StorageBackend):
    """Supabase-shaped URLs over an in-memory dict. Uploads under fail_prefixes are rejected."""

    def __init__(self, can_sign: bool = True) -> None:
        self.objects: dict[tuple[str, str], tuple[bytes, Optional[str]]] = {}
        self.can_sign = can_sign
        self.fail_prefixes: set[str] = set()
        self.signed_upload_error: Optional[StorageError] = None

    async def upload(self, bucket: str, key: str, content: bytes, content_type: str | None = None) -> None:
        if any(key.startswith(prefix) for prefix in self.fail_prefixes):
            raise StorageError("Failed to upload file", details=f"injected failure for {key}")
        if (bucket, key) in self.objects:
            raise StorageError("The resource already exists", details=f"{bucket}/{key}")
        self.objects[(bucket, key)] = (content, content_type)

    def get_public_url(self, bucket: str, key: str) -> str:
        return f"{FAKE_STORAGE_HOST}/storage/v1/object/public/{bucket}/{key}"

    async def create_signed_url(self, bucket: str, key: str, expires_in: int) -> str:
        if not self.can_sign:
            raise StorageError("Signing disabled")
        return f"{FAKE_STORAGE_HOST}/storage/v1/object/sign/{bucket}/{key}?token=read-{expires_in}"

    async def create_signed_upload_url(self, bucket: str, key: str) -> SignedUpload:
        if self.signed_upload_error is not None:
            raise self.signed_upload_error
        token = f"upload-token-{len(key)}"
        return SignedUpload(
            url=f"{FAKE_STORAGE_HOST}/storage/v1/object/upload/sign/{bucket}/{key}?token={token}",
            token=token,
            path=key,
        )


@pytest.fixture
def fake_db() -> FakeDatabase:
    db = FakeDatabase()
    db.table("authors").seed(id=AUTHOR_ID, name="Ravi Kumar", email="ravi@example.com", status="active")
    db.table("users").seed(id=PUBLISHER_ID, name="Green Press", email="press@example.com", role="publisher")
    db.table("users").seed(id=USER_ID, name="Asha", email="asha@example.com", role="user", status="active")
    db.table("categories").seed(id=CATEGORY_ID, name="Soil Science")
    return db


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
async def client(fake_db: FakeDatabase, fake_storage: FakeStorage) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with fake database and storage."""
    app.dependency_overrides[get_db] = lambda: fake_db
    app.dependency_overrides[get_storage] = lambda: fake_storage

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()

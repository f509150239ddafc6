"""
Tests for profile updates, authors, categories and the dashboard.
"""
import pytest
from httpx import AsyncClient

from app.services.dashboard import split_payment, summarize_revenue
from tests.conftest import AUTHOR_ID, PUBLISHER_ID, USER_ID, FakeDatabase, FakeStorage

JPEG = b"\xff\xd8\xff\xe0 tiny"


class TestProfileUpdate:
    """Tests for /api/profile/update."""

    @pytest.mark.asyncio
    async def test_json_update_maps_fields(self, client: AsyncClient, fake_db: FakeDatabase):
        response = await client.put(
            "/api/profile/update",
            json={"user_id": USER_ID, "full_name": "  Asha Rao ", "phone": "9876543210", "bio": "   "},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Profile updated successfully"
        assert data["data"]["name"] == "Asha Rao"
        assert data["data"]["mobile"] == "9876543210"
        assert data["data"]["bio"] is None

    @pytest.mark.asyncio
    async def test_multipart_avatar_upload(self, client: AsyncClient, fake_storage: FakeStorage):
        response = await client.post(
            "/api/profile/update",
            data={"user_id": USER_ID, "city": "Mysuru"},
            files={"avatar": ("me.jpg", JPEG, "image/jpeg")},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert f"/avatars/{USER_ID}/" in data["avatar_url"]
        assert data["profile_picture"] == data["avatar_url"]
        assert data["city"] == "Mysuru"

    @pytest.mark.asyncio
    async def test_avatar_failure_is_not_fatal(self, client: AsyncClient, fake_storage: FakeStorage):
        fake_storage.fail_prefixes.add("avatars/")
        response = await client.post(
            "/api/profile/update",
            data={"author_id": USER_ID, "city": "Mysuru"},
            files={"avatar": ("me.jpg", JPEG, "image/jpeg")},
        )

        assert response.status_code == 200
        assert response.json()["data"]["profile_picture"] is None
        assert response.json()["warnings"][0]["field"] == "avatar"

    @pytest.mark.asyncio
    async def test_missing_user_id(self, client: AsyncClient):
        response = await client.put("/api/profile/update", json={"full_name": "X"})

        assert response.status_code == 400
        assert "user_id" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_non_uuid_user_id(self, client: AsyncClient):
        response = await client.put("/api/profile/update", json={"user_id": "12345"})

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Invalid user_id or author_id format"
        assert "12345" in data["details"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient):
        response = await client.put(
            "/api/profile/update", json={"user_id": "00000000-0000-4000-8000-000000000000"}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    @pytest.mark.asyncio
    async def test_options(self, client: AsyncClient):
        response = await client.options("/api/profile/update")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


class TestAuthorsAndCategories:
    """Tests for /api/authors and /api/categories."""

    @pytest.mark.asyncio
    async def test_list_merges_users_and_authors_with_counts(self, client: AsyncClient, fake_db: FakeDatabase):
        fake_db.table("books").seed(title="A", author_id=AUTHOR_ID)
        fake_db.table("books").seed(title="B", author_id=AUTHOR_ID)
        fake_db.table("audio_books").seed(title="C", author_id=PUBLISHER_ID)

        response = await client.get("/api/authors")

        assert response.status_code == 200
        authors = {a["id"]: a for a in response.json()["authors"]}
        assert set(authors) == {AUTHOR_ID, PUBLISHER_ID}
        assert authors[AUTHOR_ID]["books_count"] == 2
        assert authors[PUBLISHER_ID]["audio_books_count"] == 1
        assert authors[PUBLISHER_ID]["status"] == "active"
        assert response.json()["pagination"]["total"] == 2

    @pytest.mark.asyncio
    async def test_create_author(self, client: AsyncClient):
        response = await client.post("/api/authors", json={"name": "Meena", "email": "meena@example.com"})

        assert response.status_code == 201
        assert response.json()["author"]["status"] == "active"

    @pytest.mark.asyncio
    async def test_create_author_requires_email(self, client: AsyncClient):
        response = await client.post("/api/authors", json={"name": "Meena"})

        assert response.status_code == 400
        assert "email" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_get_author(self, client: AsyncClient):
        response = await client.get(f"/api/authors/{PUBLISHER_ID}")

        assert response.status_code == 200
        assert response.json()["author"]["name"] == "Green Press"

    @pytest.mark.asyncio
    async def test_categories_sorted_by_name(self, client: AsyncClient, fake_db: FakeDatabase):
        fake_db.table("categories").seed(name="Horticulture")

        response = await client.get("/api/categories")

        assert [c["name"] for c in response.json()["categories"]] == ["Horticulture", "Soil Science"]


class TestRevenueSplit:
    """Tests for the GST / commission split."""

    def test_computed_from_gst_inclusive_amount(self):
        split = split_payment({"amount": 118})
        assert split.gst == 18.0
        assert split.commission == 30.0
        assert split.author_earnings == 70.0

    def test_stored_values_win(self):
        split = split_payment({"amount": 118, "gst_amount": 18, "platform_commission": 20, "author_earnings": 80})
        assert (split.commission, split.author_earnings) == (20.0, 80.0)

    def test_zero_stored_values_are_recomputed(self):
        split = split_payment({"amount": "236", "gst_amount": 0, "platform_commission": 0, "author_earnings": 0})
        assert (split.gst, split.commission, split.author_earnings) == (36.0, 60.0, 140.0)

    def test_summary_groups_by_author(self):
        summary = summarize_revenue([
            {"amount": 118, "author_id": "a"},
            {"amount": 118, "author_id": "a"},
            {"amount": 236, "author_id": "b"},
        ])
        assert summary["totalRevenue"] == 472.0
        assert summary["totalPayments"] == 3
        assert summary["totalGST"] == 72.0
        assert summary["platformProfit"] == 120.0
        by_author = {entry["authorId"]: entry for entry in summary["authorRevenue"]}
        assert by_author["a"] == {"authorId": "a", "revenue": 236.0, "earnings": 140.0, "payments": 2}


class TestDashboard:
    @pytest.mark.asyncio
    async def test_counts_and_revenue(self, client: AsyncClient, fake_db: FakeDatabase):
        fake_db.table("books").seed(title="A", status="pending")
        fake_db.table("books").seed(title="B", status="published")
        payments = fake_db.table("payments")
        payments.seed(amount=118, status="completed", author_id=AUTHOR_ID, created_at="2024-03-10T00:00:00+00:00")
        payments.seed(amount=118, status="completed", author_id=AUTHOR_ID, created_at="2023-12-31T00:00:00+00:00")
        payments.seed(amount=500, status="failed", author_id=AUTHOR_ID, created_at="2024-03-11T00:00:00+00:00")

        response = await client.get("/api/dashboard", params={"startDate": "2024-01-01", "endDate": "2024-12-31"})

        assert response.status_code == 200
        data = response.json()
        assert data["totalBooks"] == 2
        assert data["pendingBooks"] == 1
        assert data["totalAuthors"] == 1
        assert data["totalUsers"] == 2
        assert data["activeUsers"] == 1
        assert data["totalPayments"] == 1
        assert data["totalRevenue"] == 118.0
        assert data["totalAuthorEarnings"] == 70.0

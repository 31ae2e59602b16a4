"""HTTP tests for the quotes API, run against an SQLite-backed store."""

from datetime import timedelta

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from quotes.dependencies import clamp_pagination, get_db, get_quote_service
from quotes.main import app, mount_frontend
from quotes.services.quote_service import QuoteService


@pytest_asyncio.fixture
async def client(quote_service: QuoteService, session_factory):
    """AsyncClient wired to the test store instead of the configured database."""

    async def _get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_quote_service] = lambda: quote_service
    app.dependency_overrides[get_db] = _get_test_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def client_headers(ip: str) -> dict:
    return {"X-Forwarded-For": f"{ip}, 10.1.1.1", "User-Agent": "pytest"}


class TestQuotesApi:
    """End-to-end through the FastAPI routes."""

    async def test_create_and_get(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/quotes", json={"text": "Carpe diem.", "author": "Horace"}
        )
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["likes_count"] == 0
        assert created["is_liked"] is False

        response = await client.get(f"/api/v1/quotes/{created['id']}")
        assert response.status_code == 200
        assert response.json()["data"]["text"] == "Carpe diem."

    async def test_create_requires_text_and_author(self, client: AsyncClient):
        response = await client.post("/api/v1/quotes", json={"text": "", "author": "x"})
        assert response.status_code == 422

    async def test_get_unknown_id_is_404(self, client: AsyncClient):
        response = await client.get("/api/v1/quotes/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["status"] == "error"
        assert body["error"]["code"] == "not_found"

    async def test_random_on_empty_store_is_404(self, client: AsyncClient):
        response = await client.get("/api/v1/quotes/random")
        assert response.status_code == 404

    async def test_like_flow(self, client: AsyncClient, make_quote):
        quote = await make_quote()
        url = f"/api/v1/quotes/{quote.id}/like"

        first = await client.put(url, headers=client_headers("203.0.113.5"))
        second = await client.put(url, headers=client_headers("203.0.113.5"))
        other = await client.put(url, headers=client_headers("203.0.113.6"))

        assert first.status_code == 200
        assert first.json()["data"]["likes_count"] == 1
        assert first.json()["data"]["is_liked"] is True
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "already_liked"
        assert other.json()["data"]["likes_count"] == 2

    async def test_like_unknown_quote_is_404(self, client: AsyncClient):
        response = await client.put("/api/v1/quotes/missing/like")
        assert response.status_code == 404

    async def test_is_liked_uses_forwarded_ip(self, client: AsyncClient, make_quote):
        quote = await make_quote()
        await client.put(f"/api/v1/quotes/{quote.id}/like", headers=client_headers("198.51.100.1"))

        mine = await client.get(
            f"/api/v1/quotes/{quote.id}/is-liked", headers=client_headers("198.51.100.1")
        )
        theirs = await client.get(
            f"/api/v1/quotes/{quote.id}/is-liked", headers=client_headers("198.51.100.2")
        )

        assert mine.json()["data"] == {"is_liked": True}
        assert theirs.json()["data"] == {"is_liked": False}

    async def test_list_with_meta_and_like_status(self, client: AsyncClient, make_quote):
        quotes = [await make_quote(text=f"q{i}", age=timedelta(minutes=i)) for i in range(12)]
        await client.put(f"/api/v1/quotes/{quotes[0].id}/like", headers=client_headers("10.0.0.9"))

        response = await client.get(
            "/api/v1/quotes", params={"page": 1, "page_size": 5}, headers=client_headers("10.0.0.9")
        )

        body = response.json()
        assert body["meta"] == {"page": 1, "page_size": 5, "total": 12, "total_pages": 3}
        assert len(body["data"]) == 5
        assert body["data"][0]["id"] == quotes[0].id
        assert body["data"][0]["is_liked"] is True
        assert body["data"][1]["is_liked"] is False

    async def test_list_clamps_pagination(self, client: AsyncClient, make_quote):
        await make_quote()

        response = await client.get("/api/v1/quotes", params={"page": 0, "page_size": 500})

        meta = response.json()["meta"]
        assert meta["page"] == 1
        assert meta["page_size"] == 10

    async def test_list_search(self, client: AsyncClient, make_quote):
        await make_quote(text="Dwell on the beauty of life.", author="Marcus Aurelius")
        await make_quote(text="Other", author="Someone")

        response = await client.get("/api/v1/quotes", params={"search": "aurelius"})

        data = response.json()["data"]
        assert [q["author"] for q in data] == ["Marcus Aurelius"]

    async def test_update_ignores_empty_fields(self, client: AsyncClient, make_quote):
        quote = await make_quote(text="Original", author="Author")

        response = await client.put(
            f"/api/v1/quotes/{quote.id}", json={"text": "Changed", "author": ""}
        )

        data = response.json()["data"]
        assert data["text"] == "Changed"
        assert data["author"] == "Author"

    async def test_update_unknown_is_404(self, client: AsyncClient):
        response = await client.put("/api/v1/quotes/missing", json={"text": "x"})
        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient, make_quote):
        quote = await make_quote()

        response = await client.delete(f"/api/v1/quotes/{quote.id}")
        again = await client.delete(f"/api/v1/quotes/{quote.id}")

        assert response.json()["data"] == {"deleted": True}
        assert again.status_code == 404

    async def test_top_and_reset(self, client: AsyncClient, make_quote):
        old = await make_quote(text="old", age=timedelta(days=10))
        new = await make_quote(text="new", age=timedelta(days=1))
        for i in range(3):
            await client.put(f"/api/v1/quotes/{old.id}/like", headers=client_headers(f"10.0.0.{i}"))

        weekly = await client.get("/api/v1/quotes/top/weekly")
        all_time = await client.get("/api/v1/quotes/top/alltime")
        assert weekly.json()["data"]["id"] == new.id
        assert all_time.json()["data"]["id"] == old.id

        reset = await client.delete("/api/v1/quotes/likes/reset")
        assert reset.json()["data"] == {"likes_removed": 3}

        fetched = await client.get(f"/api/v1/quotes/{old.id}", headers=client_headers("10.0.0.0"))
        assert fetched.json()["data"]["likes_count"] == 0
        assert fetched.json()["data"]["is_liked"] is False

    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestFrontendFallback:
    """SPA fallback serving next to the API."""

    async def test_api_paths_are_not_served_as_frontend(self, tmp_path):
        (tmp_path / "index.html").write_text("<html>spa</html>")
        spa = FastAPI()
        assert mount_frontend(spa, str(tmp_path))

        async with AsyncClient(transport=ASGITransport(app=spa), base_url="http://test") as ac:
            page = await ac.get("/apiary")
            missing = await ac.get("/api/unknown")

        assert page.status_code == 200
        assert "spa" in page.text
        assert missing.status_code == 404
        assert missing.json()["error"]["code"] == "not_found"


@pytest.mark.parametrize(
    "page, page_size, expected",
    [
        (1, 10, (1, 10)),
        (0, 10, (1, 10)),
        (-3, 50, (1, 50)),
        (2, 0, (2, 10)),
        (2, 101, (2, 10)),
        (4, 100, (4, 100)),
    ],
)
def test_clamp_pagination(page, page_size, expected):
    assert clamp_pagination(page, page_size) == expected

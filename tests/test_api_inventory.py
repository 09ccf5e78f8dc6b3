"""Tests for inventory API endpoints."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardledger.db.database import get_session
from cardledger.main import app
from cardledger.models.db import Base


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def client(async_engine):
    """Provide an async test client with overridden database session."""
    async_session = async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_session():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def candidate_json(**overrides) -> dict:
    candidate = {
        "id": "swsh4-44",
        "name": "Pikachu VMAX",
        "set_name": "Vivid Voltage",
        "number": "44",
        "rarity": "Rare Holo VMAX",
        "image_url": "https://img.test/44_hires.png",
        "language": "en",
        "price": "45.00",
        "source_tag": "primary_catalog",
    }
    candidate.update(overrides)
    return candidate


async def add(client: AsyncClient, headers: dict | None = None, **body) -> dict:
    payload = {"candidate": candidate_json(), **body}
    response = await client.post("/inventory", json=payload, headers=headers or {})
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAddItem:
    async def test_add_confirmed_candidate(self, client: AsyncClient) -> None:
        item = await add(client, listed_price="49.99", condition="Near Mint")

        assert item["id"] > 0
        assert item["card_name"] == "Pikachu VMAX"
        assert item["card_number"] == "44"
        assert item["market_price"] == "45.00"
        assert item["listed_price"] == "49.99"
        assert item["condition"] == "Near Mint"
        assert item["source"] == "primary_catalog"
        assert item["availability"] is True

    async def test_unknown_price(self, client: AsyncClient) -> None:
        response = await client.post(
            "/inventory", json={"candidate": candidate_json(price=None, source_tag="secondary_catalog")}
        )

        assert response.status_code == 201
        assert response.json()["data"]["market_price"] is None

    async def test_idempotency_key_prevents_duplicates(self, client: AsyncClient) -> None:
        headers = {"Idempotency-Key": "confirm-abc"}

        first = await add(client, headers=headers)
        second = await add(client, headers=headers)

        assert first["id"] == second["id"]
        listing = await client.get("/inventory")
        assert len(listing.json()["data"]) == 1

    async def test_negative_listed_price_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/inventory", json={"candidate": candidate_json(), "listed_price": "-1"}
        )

        assert response.status_code == 422

    async def test_unknown_source_tag_rejected(self, client: AsyncClient) -> None:
        response = await client.post(
            "/inventory", json={"candidate": candidate_json(source_tag="ebay")}
        )

        assert response.status_code == 422


class TestReadItems:
    async def test_get_item(self, client: AsyncClient) -> None:
        item = await add(client)

        response = await client.get(f"/inventory/{item['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["card_name"] == "Pikachu VMAX"

    async def test_get_missing_item(self, client: AsyncClient) -> None:
        response = await client.get("/inventory/999")

        assert response.status_code == 404
        body = response.json()
        assert body["outcome"] == "known_failure"
        assert body["failure"]["kind"] == "not_found"

    async def test_list_with_filters(self, client: AsyncClient) -> None:
        await add(client)
        await add(client, language="ja", candidate=candidate_json(name="Pikachu", set_name="Base Set"))
        await add(client, candidate=candidate_json(name="Charizard", source_tag="sheet"))

        by_name = await client.get("/inventory", params={"card_name": "pika"})
        by_language = await client.get("/inventory", params={"language": "ja"})
        by_source = await client.get("/inventory", params={"source": "sheet"})

        assert len(by_name.json()["data"]) == 2
        assert [i["card_name"] for i in by_language.json()["data"]] == ["Pikachu"]
        assert [i["card_name"] for i in by_source.json()["data"]] == ["Charizard"]

    async def test_count(self, client: AsyncClient) -> None:
        await add(client)
        await add(client)

        response = await client.get(
            "/inventory/count", params={"card_name": "pikachu vmax", "set_name": "Vivid Voltage"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["count"] == 2

    async def test_count_requires_name(self, client: AsyncClient) -> None:
        response = await client.get("/inventory/count")

        assert response.status_code == 422

    async def test_stats(self, client: AsyncClient) -> None:
        await add(client, listed_price="10.00", condition="Near Mint")
        await add(client, listed_price="2.50", language="ja", candidate=candidate_json(source_tag="sheet"))

        response = await client.get("/inventory/stats")

        data = response.json()["data"]
        assert data["total_items"] == 2
        assert data["total_listed_value"] == "12.50"
        assert data["by_source"] == {"primary_catalog": 1, "sheet": 1}
        assert data["by_language"] == {"en": 1, "ja": 1}


class TestEditItems:
    async def test_patch_changes_only_sent_fields(self, client: AsyncClient) -> None:
        item = await add(client, listed_price="49.99", condition="Near Mint")

        response = await client.patch(
            f"/inventory/{item['id']}", json={"listed_price": "39.99", "availability": False}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["listed_price"] == "39.99"
        assert data["availability"] is False
        assert data["condition"] == "Near Mint"

    async def test_patch_cannot_null_required_fields(self, client: AsyncClient) -> None:
        item = await add(client, condition="Near Mint")

        response = await client.patch(
            f"/inventory/{item['id']}", json={"card_name": None, "condition": None}
        )
        stored = await client.get(f"/inventory/{item['id']}")

        assert response.status_code == 422
        assert stored.json()["data"]["condition"] == "Near Mint"

    async def test_patch_can_clear_optional_fields(self, client: AsyncClient) -> None:
        item = await add(client, listed_price="49.99")

        response = await client.patch(f"/inventory/{item['id']}", json={"listed_price": None})

        assert response.status_code == 200
        assert response.json()["data"]["listed_price"] is None

    async def test_patch_missing_item(self, client: AsyncClient) -> None:
        response = await client.patch("/inventory/999", json={"condition": "Damaged"})

        assert response.status_code == 404

    async def test_delete(self, client: AsyncClient) -> None:
        item = await add(client)

        deleted = await client.delete(f"/inventory/{item['id']}")
        again = await client.delete(f"/inventory/{item['id']}")

        assert deleted.status_code == 200
        assert deleted.json()["data"] == {"id": item["id"], "deleted": True}
        assert again.status_code == 404

"""Tests for card lookup API endpoints."""

import asyncio

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient

from cardledger.api.cards import get_identifier, get_resolver
from cardledger.config import settings
from cardledger.main import app
from cardledger.models.card import CardQuery, SourceTag
from cardledger.models.resolution import SourceResult, WarningKind
from cardledger.services.card_identifier import CardIdentifier
from cardledger.services.card_resolver import CardResolver
from cardledger.sources.registry import build_resolver


class StubSource:
    def __init__(self, source_tag: SourceTag, result: SourceResult, delay: float = 0.0) -> None:
        self.source_tag = source_tag
        self.result = result
        self.delay = delay
        self.queries: list[CardQuery] = []

    async def search(self, query: CardQuery, limit: int) -> SourceResult:
        self.queries.append(query)
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.result


@pytest.fixture
def sources(make_candidate) -> list[StubSource]:
    """Empty catalog of record, primary catalog knows Pikachu VMAX at $45.00."""
    return [
        StubSource(SourceTag.SHEET, SourceResult()),
        StubSource(SourceTag.PRIMARY_CATALOG, SourceResult(candidates=[make_candidate()])),
        StubSource(SourceTag.SECONDARY_CATALOG, SourceResult()),
    ]


@pytest.fixture
async def client(sources: list[StubSource]):
    """Provide an async test client with a stubbed resolver."""
    app.dependency_overrides[get_resolver] = lambda: CardResolver(sources)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


class TestResolveEndpoint:
    async def test_resolves_to_primary_catalog(self, client: AsyncClient) -> None:
        response = await client.post("/cards/resolve", json={"name": "Pikachu VMAX", "language": "en"})

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "success"
        data = body["data"]
        assert data["status"] == "matched"
        assert data["source_tag"] == "primary_catalog"
        assert len(data["candidates"]) == 1
        assert data["candidates"][0]["name"] == "Pikachu VMAX"
        assert data["candidates"][0]["price"] == "45.00"
        assert data["attempted"] == ["sheet", "primary_catalog"]

    async def test_query_fields_reach_sources(
        self, client: AsyncClient, sources: list[StubSource]
    ) -> None:
        await client.post(
            "/cards/resolve",
            json={"name": "Pikachu VMAX", "set_name": "Vivid Voltage", "language": "ja", "condition": "Near Mint"},
        )

        assert sources[0].queries == [
            CardQuery(name="Pikachu VMAX", language="ja", set_name="Vivid Voltage", condition="Near Mint")
        ]

    async def test_nothing_found_is_success(self, client: AsyncClient, sources: list[StubSource]) -> None:
        sources[1].result = SourceResult()

        response = await client.post("/cards/resolve", json={"name": "Missingno"})

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "no_source_matched"
        assert data["candidates"] == []
        assert data["source_tag"] is None
        assert "manually" in data["message"]

    async def test_errors_are_reported_as_warnings(
        self, client: AsyncClient, sources: list[StubSource]
    ) -> None:
        sources[0].result = SourceResult.failed(SourceTag.SHEET, WarningKind.TRANSIENT, "timed out")

        response = await client.post("/cards/resolve", json={"name": "Pikachu VMAX"})

        data = response.json()["data"]
        assert data["status"] == "matched"
        assert data["warnings"] == [{"source_tag": "sheet", "kind": "transient", "message": "timed out"}]

    async def test_every_source_failing_is_known_failure(
        self, client: AsyncClient, sources: list[StubSource]
    ) -> None:
        for source in sources:
            source.result = SourceResult.failed(source.source_tag, WarningKind.TRANSIENT, "down")

        response = await client.post("/cards/resolve", json={"name": "Pikachu VMAX"})

        assert response.status_code == 503
        body = response.json()
        assert body["outcome"] == "known_failure"
        assert body["failure"]["kind"] == "lookup_failed"

    async def test_blank_name(self, client: AsyncClient, sources: list[StubSource]) -> None:
        response = await client.post("/cards/resolve", json={"name": "   "})

        assert response.status_code == 400
        assert response.json()["failure"]["kind"] == "missing_required"
        assert sources[0].queries == []

    async def test_missing_name_is_validation_error(self, client: AsyncClient) -> None:
        response = await client.post("/cards/resolve", json={"language": "en"})

        assert response.status_code == 422

    async def test_limit(self, client: AsyncClient, sources: list[StubSource], make_candidate) -> None:
        sources[0].result = SourceResult(
            candidates=[make_candidate(card_id=str(i), source_tag=SourceTag.SHEET) for i in range(30)]
        )

        capped = await client.post("/cards/resolve", json={"name": "Pikachu", "limit": 50})
        small = await client.post("/cards/resolve", json={"name": "Pikachu", "limit": 2})

        assert len(capped.json()["data"]["candidates"]) == 20
        assert len(small.json()["data"]["candidates"]) == 2

    async def test_timeout(
        self, client: AsyncClient, sources: list[StubSource], monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings, "resolution_timeout_seconds", 0.05)
        sources[0].delay = 1.0

        response = await client.post("/cards/resolve", json={"name": "Pikachu VMAX"})

        assert response.status_code == 504
        assert response.json()["failure"]["kind"] == "timeout"


class TestIdentifyEndpoint:
    async def test_identify_then_resolve(
        self, client: AsyncClient, sources: list[StubSource], make_vision_client
    ) -> None:
        vision = make_vision_client('{"name": "Pikachu VMAX", "set": "Vivid Voltage", "language": "English"}')
        app.dependency_overrides[get_identifier] = lambda: CardIdentifier(vision, "test-model")

        response = await client.post(
            "/cards/identify",
            json={"image_base64": "aGVsbG8=", "media_type": "image/png", "condition": "Near Mint"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["query"]["name"] == "Pikachu VMAX"
        assert data["query"]["set_name"] == "Vivid Voltage"
        assert data["query"]["language"] == "en"
        assert data["source_tag"] == "primary_catalog"
        assert sources[0].queries[0].condition == "Near Mint"

    async def test_unreadable_photo(
        self, client: AsyncClient, sources: list[StubSource], make_vision_client
    ) -> None:
        vision = make_vision_client("Sorry, the image is too blurry.")
        app.dependency_overrides[get_identifier] = lambda: CardIdentifier(vision, "test-model")

        response = await client.post("/cards/identify", json={"image_base64": "aGVsbG8="})

        assert response.status_code == 502
        assert response.json()["failure"]["kind"] == "identification_failed"
        assert sources[0].queries == []

    async def test_identifier_not_configured(self, client: AsyncClient) -> None:
        response = await client.post("/cards/identify", json={"image_base64": "aGVsbG8="})

        assert response.status_code == 503
        assert response.json()["failure"]["kind"] == "service_unavailable"


class TestResolverNotStarted:
    async def test_resolve_without_resolver(self) -> None:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.post("/cards/resolve", json={"name": "Pikachu"})

        assert response.status_code == 503
        assert response.json()["outcome"] == "known_failure"


@pytest.fixture
async def catalog_client(test_settings):
    """Client whose resolver talks to the real adapters against mocked catalogs."""
    async with httpx.AsyncClient() as http_client:
        resolver = build_resolver(test_settings, http_client)
        app.dependency_overrides[get_resolver] = lambda: resolver

        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    app.dependency_overrides.clear()


class TestCatalogCardEndpoint:
    @respx.mock
    async def test_primary_catalog_card(self, catalog_client: AsyncClient) -> None:
        respx.get("https://ptcg.test/v2/cards/swsh4-44").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": {
                        "id": "swsh4-44",
                        "name": "Pikachu VMAX",
                        "set": {"id": "swsh4", "name": "Vivid Voltage"},
                        "tcgplayer": {"prices": {"holofoil": {"market": 45.0}}},
                    }
                },
            )
        )

        response = await catalog_client.get("/cards/primary_catalog/swsh4-44")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["source_tag"] == "primary_catalog"
        assert [c["price"] for c in data["candidates"]] == ["45.00"]

    @respx.mock
    async def test_unknown_id_is_not_found(self, catalog_client: AsyncClient) -> None:
        respx.get("https://ptcg.test/v2/cards/nope-1").mock(return_value=httpx.Response(404))

        response = await catalog_client.get("/cards/primary_catalog/nope-1")

        assert response.status_code == 404
        assert response.json()["failure"]["kind"] == "not_found"

    @respx.mock
    async def test_variant_filters_reach_secondary_catalog(self, catalog_client: AsyncClient) -> None:
        route = respx.get("https://justtcg.test/v1/cards").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": "pokemon-base-set-pikachu",
                            "name": "Pikachu",
                            "variants": [
                                {"id": "v-1", "printing": "Normal", "condition": "Near Mint", "price": 1.25}
                            ],
                        }
                    ]
                },
            )
        )

        response = await catalog_client.get(
            "/cards/secondary_catalog/pokemon-base-set-pikachu",
            params={"condition": "Near Mint", "printing": "Normal"},
        )

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["data"]["candidates"]] == ["v-1"]
        params = route.calls.last.request.url.params
        assert params["cardId"] == "pokemon-base-set-pikachu"
        assert params["condition"] == "Near Mint"
        assert params["printing"] == "Normal"

    @respx.mock
    async def test_catalog_error_is_lookup_failure(self, catalog_client: AsyncClient) -> None:
        respx.get("https://justtcg.test/v1/cards").mock(return_value=httpx.Response(403))

        response = await catalog_client.get("/cards/secondary_catalog/pokemon-base-set-pikachu")

        assert response.status_code == 503
        assert response.json()["failure"]["kind"] == "lookup_failed"

    async def test_unknown_source_tag_rejected(self, catalog_client: AsyncClient) -> None:
        response = await catalog_client.get("/cards/ebay/123")

        assert response.status_code == 422

    async def test_unregistered_source_is_unavailable(self, client: AsyncClient) -> None:
        response = await client.get("/cards/sheet/SV-001")

        assert response.status_code == 503
        assert response.json()["failure"]["kind"] == "service_unavailable"

"""Builds the priority-ordered source chain from configuration."""

import httpx

from cardledger.config import MAX_ENRICHMENT_CONCURRENCY, MAX_RESOLUTION_RESULTS, Settings
from cardledger.services.card_resolver import CardResolver
from cardledger.services.fetcher import RetryPolicy
from cardledger.sources.base import BaseCatalogSource
from cardledger.sources.justtcg import JustTcgSource
from cardledger.sources.pokemon_tcg import PokemonTcgSource
from cardledger.sources.sheet import SheetCatalogSource


def build_sources(settings: Settings, client: httpx.AsyncClient) -> list[BaseCatalogSource]:
    """
    Create every catalog adapter, catalog-of-record first.

    Order: spreadsheet catalog, primary card-price API, secondary card-price API.
    """
    policy = RetryPolicy.from_settings(settings)
    return [
        SheetCatalogSource(settings, client, policy),
        PokemonTcgSource(settings, client, policy),
        JustTcgSource(settings, client, policy, MAX_ENRICHMENT_CONCURRENCY),
    ]


def build_resolver(settings: Settings, client: httpx.AsyncClient) -> CardResolver:
    """Create a resolver over the configured source chain."""
    return CardResolver(build_sources(settings, client), max_results=MAX_RESOLUTION_RESULTS)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client for every outbound catalog call."""
    return httpx.AsyncClient(
        timeout=settings.http_timeout_seconds,
        follow_redirects=True,
        headers={"User-Agent": f"{settings.app_name}/1.0"},
    )

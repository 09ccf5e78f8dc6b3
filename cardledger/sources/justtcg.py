"""
JustTCG catalog (secondary card-price API).

Search results nest sale variants per card; these are flattened into one
candidate per variant. Cards that come back without variants are
re-fetched by id, with a bounded number of detail requests in flight.
"""

import asyncio
import logging

import httpx

from cardledger.config import MAX_ENRICHMENT_CONCURRENCY, Settings
from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.parsers.common import ParseError, format_records
from cardledger.parsers.justtcg import (
    JustTcgCard,
    filter_language,
    flatten_card,
    has_variants,
    parse_card_list,
)
from cardledger.services.fetcher import DEFAULT_RETRY_POLICY, FetchError, RetryPolicy
from cardledger.sources.base import BaseCatalogSource

logger = logging.getLogger(__name__)


class JustTcgSource(BaseCatalogSource):
    """Secondary card-price catalog backed by api.justtcg.com."""

    source_tag = SourceTag.SECONDARY_CATALOG

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        enrichment_concurrency: int = MAX_ENRICHMENT_CONCURRENCY,
    ) -> None:
        super().__init__(client, retry_policy)
        self._api_key = settings.justtcg_api_key
        self._base_url = settings.justtcg_base_url.rstrip("/")
        self._game = settings.justtcg_game
        self._enrichment_concurrency = max(1, enrichment_concurrency)

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    @property
    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key}

    async def _get_cards(self, params: dict[str, str | int]) -> tuple[list[JustTcgCard], str]:
        payload, raw_text = await self._get_json(
            f"{self._base_url}/cards",
            params=params,
            headers=self._headers,
        )
        return parse_card_list(payload, raw_text), raw_text

    @staticmethod
    def _card_params(
        card_id: str, condition: str | None = None, printing: str | None = None
    ) -> dict[str, str | int]:
        params: dict[str, str | int] = {"cardId": card_id}
        if condition:
            params["condition"] = condition
        if printing:
            params["printing"] = printing
        return params

    async def fetch_card(
        self,
        card_id: str,
        condition: str | None = None,
        printing: str | None = None,
    ) -> JustTcgCard | None:
        """
        Fetch one card with its variants, optionally narrowed to a
        condition and printing.

        Raises:
            FetchError: If the request fails
            ParseError: If the body is malformed
        """
        cards, _ = await self._get_cards(self._card_params(card_id, condition, printing))
        return cards[0] if cards else None

    async def enrich(self, cards: list[JustTcgCard]) -> list[JustTcgCard]:
        """
        Fill in variants for cards the search returned without them.

        Detail requests run concurrently, at most ``enrichment_concurrency``
        at a time. A failed detail request keeps the bare card.
        """
        semaphore = asyncio.Semaphore(self._enrichment_concurrency)

        async def enrich_one(card: JustTcgCard) -> JustTcgCard:
            card_id = card.get("id")
            if has_variants(card) or not card_id:
                return card

            async with semaphore:
                try:
                    detailed = await self.fetch_card(str(card_id))
                except (FetchError, ParseError) as e:
                    logger.warning(
                        "JUSTTCG_ENRICHMENT_FAILED",
                        extra={"card_id": card_id, "error": str(e)},
                    )
                    return card

            return detailed if detailed is not None and has_variants(detailed) else card

        return list(await asyncio.gather(*(enrich_one(card) for card in cards)))

    async def _search(self, query: CardQuery, limit: int) -> list[CandidateCard]:
        params: dict[str, str | int] = {
            "game": self._game,
            "q": query.name.strip(),
            "limit": limit,
        }
        if query.condition:
            params["condition"] = query.condition

        found, raw_text = await self._get_cards(params)
        cards = await self.enrich(found)

        flattened = format_records(cards, flatten_card, raw_text)
        candidates = [candidate for variants in flattened for candidate in variants]
        return filter_language(candidates, query.language)

    async def _lookup(
        self, card_id: str, condition: str | None, printing: str | None
    ) -> list[CandidateCard]:
        cards, raw_text = await self._get_cards(self._card_params(card_id, condition, printing))
        flattened = format_records(cards[:1], flatten_card, raw_text)
        return [candidate for variants in flattened for candidate in variants]

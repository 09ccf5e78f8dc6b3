"""
Pokémon TCG API v2 catalog (primary card-price API).

Matching is delegated to the API's own query syntax:
https://docs.pokemontcg.io/api-reference/cards/search-cards
"""

import asyncio
import logging
import re
from urllib.parse import quote

import httpx

from cardledger.config import Settings
from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.parsers.common import ParseError, format_records
from cardledger.parsers.pokemon_tcg import (
    card_to_candidate,
    parse_card_list,
    parse_set_map,
    parse_single_card,
)
from cardledger.services.fetcher import (
    DEFAULT_RETRY_POLICY,
    FetchError,
    PermanentError,
    RetryPolicy,
)
from cardledger.sources.base import BaseCatalogSource

logger = logging.getLogger(__name__)

# Trailing mechanic suffixes that the catalog spells inconsistently
NAME_SUFFIX_PATTERN = re.compile(r"\s+(GX|V|EX|MEGA|BREAK|Prism Star|Tag Team)$", re.IGNORECASE)


def clean_name(name: str) -> str:
    """Strip a trailing mechanic suffix and query-breaking quotes."""
    return NAME_SUFFIX_PATTERN.sub("", name.replace('"', "").strip()).strip()


def build_card_query(name: str, set_id: str | None) -> str:
    """
    Build the search expression for a card name.

    With a set id the lookup is exact and set-scoped. Without one, the
    suffix-stripped name is matched as a prefix.
    """
    if set_id:
        exact = name.replace('"', "").strip()
        return f'name:"{exact}" set.id:"{set_id}"'
    return f'name:"{clean_name(name)}*"'


def build_fallback_query(name: str) -> str | None:
    """
    Build the looser first-word query, or None if the name is one word.

    Example: "Charizard ex" -> 'name:"Charizard*"'
    """
    cleaned = clean_name(name)
    if " " not in cleaned:
        return None
    first_word = cleaned.split()[0]
    return f'name:"{first_word}*"'


class PokemonTcgSource(BaseCatalogSource):
    """Primary card-price catalog backed by api.pokemontcg.io."""

    source_tag = SourceTag.PRIMARY_CATALOG

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        super().__init__(client, retry_policy)
        self._api_key = settings.pokemon_tcg_api_key
        self._base_url = settings.pokemon_tcg_base_url.rstrip("/")
        self._set_ids: dict[str, str] | None = None
        self._set_lock = asyncio.Lock()

    @property
    def _headers(self) -> dict[str, str]:
        # The API works keyless at a lower rate limit
        return {"X-Api-Key": self._api_key} if self._api_key else {}

    async def _load_set_ids(self) -> dict[str, str]:
        async with self._set_lock:
            if self._set_ids is None:
                payload, raw_text = await self._get_json(
                    f"{self._base_url}/sets",
                    params={"pageSize": 500},
                    headers=self._headers,
                )
                self._set_ids = parse_set_map(payload, raw_text)
                logger.info("SET_IDS_LOADED", extra={"sets": len(self._set_ids)})
            return self._set_ids

    async def resolve_set_id(self, set_name: str | None) -> str | None:
        """
        Map a set hint to a catalog set id.

        The set list is fetched once per source instance. If it cannot be
        loaded the lookup proceeds unscoped and the load is retried on the
        next query.
        """
        if not set_name or not set_name.strip():
            return None

        try:
            set_ids = await self._load_set_ids()
        except (FetchError, ParseError) as e:
            logger.warning("SET_IDS_UNAVAILABLE", extra={"error": str(e)})
            return None

        return set_ids.get(set_name.strip().lower())

    async def _query_cards(self, q: str, limit: int) -> list[CandidateCard]:
        logger.debug("POKEMON_TCG_QUERY", extra={"q": q})
        payload, raw_text = await self._get_json(
            f"{self._base_url}/cards",
            params={"q": q, "pageSize": limit},
            headers=self._headers,
        )
        return format_records(parse_card_list(payload, raw_text), card_to_candidate, raw_text)

    async def _search(self, query: CardQuery, limit: int) -> list[CandidateCard]:
        set_id = await self.resolve_set_id(query.set_name)
        candidates = await self._query_cards(build_card_query(query.name, set_id), limit)

        if candidates or set_id:
            return candidates

        fallback = build_fallback_query(query.name)
        if fallback is None:
            return candidates

        logger.info("POKEMON_TCG_FALLBACK_QUERY", extra={"q": fallback})
        return await self._query_cards(fallback, limit)

    async def _lookup(
        self, card_id: str, condition: str | None, printing: str | None
    ) -> list[CandidateCard]:
        try:
            payload, raw_text = await self._get_json(
                f"{self._base_url}/cards/{quote(card_id, safe='')}",
                headers=self._headers,
            )
        except PermanentError as e:
            if e.status_code == 404:
                return []
            raise

        card = parse_single_card(payload, raw_text)
        return format_records([card] if card else [], card_to_candidate, raw_text)

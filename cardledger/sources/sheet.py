"""
Spreadsheet-backed catalog of record.

Reads the master catalog from Google Sheets and keyword-matches rows
locally, tolerating partial or garbled identified names.
"""

import logging

import httpx

from cardledger.config import Settings
from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.parsers.common import format_records
from cardledger.parsers.sheet import (
    SheetRow,
    parse_values,
    row_keywords,
    row_name,
    row_to_candidate,
)
from cardledger.services.fetcher import DEFAULT_RETRY_POLICY, RetryPolicy
from cardledger.services.name_normalizer import (
    extract_key_terms,
    generate_variations,
    matches_entry,
)
from cardledger.sources.base import BaseCatalogSource

logger = logging.getLogger(__name__)


def match_rows(rows: list[SheetRow], card_name: str) -> list[SheetRow]:
    """
    Filter catalog rows by loose name/alias overlap.

    Args:
        rows: Parsed catalog rows
        card_name: Name to look for

    Returns:
        Matching rows in sheet order
    """
    terms = extract_key_terms(generate_variations(card_name))
    if not terms:
        return []
    return [row for row in rows if matches_entry(row_name(row), row_keywords(row), terms)]


class SheetCatalogSource(BaseCatalogSource):
    """Catalog of record kept in a Google Sheet (read with an API key)."""

    source_tag = SourceTag.SHEET

    def __init__(
        self,
        settings: Settings,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ) -> None:
        super().__init__(client, retry_policy)
        self._api_key = settings.google_sheets_api_key
        self._sheet_id = settings.google_sheet_id
        self._range = settings.google_sheet_range
        self._base_url = settings.google_sheets_base_url.rstrip("/")

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._sheet_id)

    @property
    def values_url(self) -> str:
        return f"{self._base_url}/spreadsheets/{self._sheet_id}/values/{self._range}"

    async def fetch_rows(self) -> tuple[list[SheetRow], str]:
        """Read every catalog row, with the raw body for diagnosis."""
        payload, raw_text = await self._get_json(
            self.values_url,
            headers={"X-goog-api-key": self._api_key},
        )
        return parse_values(payload, raw_text), raw_text

    async def _search(self, query: CardQuery, limit: int) -> list[CandidateCard]:
        rows, raw_text = await self.fetch_rows()
        matches = match_rows(rows, query.name)

        logger.debug(
            "SHEET_MATCHED",
            extra={"query": query.name, "rows": len(rows), "matches": len(matches)},
        )
        return format_records(
            matches[:limit],
            lambda row: row_to_candidate(row, query.language),
            raw_text,
        )

    async def _lookup(
        self, card_id: str, condition: str | None, printing: str | None
    ) -> list[CandidateCard]:
        rows, raw_text = await self.fetch_rows()
        candidates = format_records(rows, lambda row: row_to_candidate(row, "en"), raw_text)
        return [candidate for candidate in candidates if candidate.id == card_id]

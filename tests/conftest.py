from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from anthropic.types import TextBlock

from cardledger.config import Settings
from cardledger.models.card import CandidateCard, SourceTag
from cardledger.services.fetcher import RetryPolicy


@pytest.fixture
def no_delay_policy() -> RetryPolicy:
    """Full attempt budget with no sleeping between attempts."""
    return RetryPolicy(max_attempts=5, initial_backoff=0.0, max_jitter=0.0)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every catalog configured against stable test URLs."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        anthropic_api_key="",
        google_sheets_api_key="sheet-key",
        google_sheet_id="sheet-123",
        google_sheet_range="master_catalog!A:I",
        google_sheets_base_url="https://sheets.test/v4",
        pokemon_tcg_api_key="ptcg-key",
        pokemon_tcg_base_url="https://ptcg.test/v2",
        justtcg_api_key="jt-key",
        justtcg_base_url="https://justtcg.test/v1",
    )


def build_candidate(
    name: str = "Pikachu VMAX",
    set_name: str = "Vivid Voltage",
    price: str | None = "45.00",
    source_tag: SourceTag = SourceTag.PRIMARY_CATALOG,
    card_id: str | None = None,
    **kwargs,
) -> CandidateCard:
    """Build a candidate with sensible defaults."""
    return CandidateCard(
        id=card_id or f"{source_tag.value}-{name.lower().replace(' ', '-')}",
        name=name,
        set_name=set_name,
        number=kwargs.pop("number", "044"),
        rarity=kwargs.pop("rarity", "Rare Holo VMAX"),
        image_url=kwargs.pop("image_url", None),
        language=kwargs.pop("language", "en"),
        price=Decimal(price) if price is not None else None,
        source_tag=source_tag,
        **kwargs,
    )


@pytest.fixture
def make_candidate():
    """Factory for CandidateCard test values."""
    return build_candidate


@pytest.fixture
def make_vision_client():
    """Factory for an Anthropic client stub whose messages.create returns one text block."""

    def build(reply: str) -> MagicMock:
        client = MagicMock()
        response = MagicMock()
        response.content = [TextBlock(type="text", text=reply)]
        client.messages.create = AsyncMock(return_value=response)
        return client

    return build

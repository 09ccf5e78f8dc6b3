"""
Pokémon TCG API v2 parser.

Cards: https://docs.pokemontcg.io/api-reference/cards/card-object
Prices are US dollars (tcgplayer) and euros averaged by cardmarket;
both are reported as-is in the major unit.
"""

from typing import Any, TypedDict

from cardledger.models.card import CandidateCard, SourceTag
from cardledger.parsers.common import (
    ParseError,
    as_mapping,
    as_optional_text,
    as_text,
    require_list,
)
from cardledger.services.price_extractor import extract_price


class PokemonTcgSet(TypedDict, total=False):
    """Subset of the set object we use."""

    id: str
    name: str


class PokemonTcgCard(TypedDict, total=False):
    """Subset of the card object we use."""

    id: str
    name: str
    number: str
    rarity: str
    set: PokemonTcgSet
    images: dict[str, str]
    tcgplayer: dict[str, Any]
    cardmarket: dict[str, Any]


def parse_card_list(payload: Any, raw_text: str = "") -> list[PokemonTcgCard]:
    """Extract cards from a ``/cards`` search response."""
    return [card for card in require_list(payload, "data", raw_text) if isinstance(card, dict)]


def parse_set_map(payload: Any, raw_text: str = "") -> dict[str, str]:
    """
    Build a set name -> set id mapping from a ``/sets`` response.

    Names are lower-cased so set hints match regardless of case.
    """
    mapping: dict[str, str] = {}
    for entry in require_list(payload, "data", raw_text):
        if isinstance(entry, dict) and entry.get("name") and entry.get("id"):
            mapping[str(entry["name"]).strip().lower()] = str(entry["id"])
    return mapping


def card_to_candidate(card: PokemonTcgCard) -> CandidateCard:
    """Format a catalog card as a candidate. The API only lists English prints."""
    card_set = as_mapping(card.get("set"))
    images = as_mapping(card.get("images"))

    return CandidateCard(
        id=as_text(card.get("id")),
        name=as_text(card.get("name")),
        set_name=as_text(card_set.get("name")),
        number=as_text(card.get("number")),
        rarity=as_text(card.get("rarity")),
        image_url=as_optional_text(images.get("large") or images.get("small")),
        language="en",
        price=extract_price(card),  # type: ignore[arg-type]
        source_tag=SourceTag.PRIMARY_CATALOG,
        raw_payload=dict(card),
    )


def parse_single_card(payload: Any, raw_text: str = "") -> PokemonTcgCard | None:
    """Extract the card from a ``/cards/{id}`` response."""
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}", raw_text)
    card = payload.get("data")
    if card is None:
        return None
    if not isinstance(card, dict):
        raise ParseError("Expected 'data' to be a card object", raw_text)
    return card  # type: ignore[return-value]

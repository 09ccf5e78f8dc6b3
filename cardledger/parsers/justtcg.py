"""
JustTCG v1 parser.

A JustTCG card nests one sale variant per printing/condition/language.
Each variant is flattened into its own candidate so callers see a flat
list with per-variant price. Variant prices are US dollars.
"""

from typing import Any, TypedDict

from cardledger.models.card import CandidateCard, SourceTag
from cardledger.parsers.common import as_optional_text, as_text, require_list
from cardledger.services.price_extractor import to_price

# Query language code -> JustTCG variant language label
LANGUAGE_LABELS: dict[str, str] = {
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "es": "Spanish",
    "pt": "Portuguese",
}


class JustTcgVariant(TypedDict, total=False):
    """One sale variant of a card."""

    id: str
    printing: str
    condition: str
    language: str
    price: float
    lastUpdated: int
    tcgplayerSkuId: str


class JustTcgCard(TypedDict, total=False):
    """Subset of the card object we use."""

    id: str
    name: str
    game: str
    set: str
    set_name: str
    number: str
    rarity: str
    image_url: str
    tcgplayerId: str
    variants: list[JustTcgVariant]


def parse_card_list(payload: Any, raw_text: str = "") -> list[JustTcgCard]:
    """Extract cards from a ``/cards`` response."""
    return [card for card in require_list(payload, "data", raw_text) if isinstance(card, dict)]


def has_variants(card: JustTcgCard) -> bool:
    variants = card.get("variants")
    return isinstance(variants, list) and len(variants) > 0


def _set_name(card: JustTcgCard) -> str:
    return as_text(card.get("set_name") or card.get("set"))


def flatten_card(card: JustTcgCard) -> list[CandidateCard]:
    """
    Flatten a card into one candidate per sale variant.

    A card without variants yields a single candidate with unknown price.
    """
    base = {
        "name": as_text(card.get("name")),
        "set_name": _set_name(card),
        "number": as_text(card.get("number")),
        "rarity": as_text(card.get("rarity")),
        "image_url": as_optional_text(card.get("image_url")),
        "source_tag": SourceTag.SECONDARY_CATALOG,
    }

    if not has_variants(card):
        return [
            CandidateCard(
                id=as_text(card.get("id")),
                language="",
                price=None,
                raw_payload=dict(card),
                **base,  # type: ignore[arg-type]
            )
        ]

    candidates: list[CandidateCard] = []
    for variant in card.get("variants", []):
        if not isinstance(variant, dict):
            continue
        candidates.append(
            CandidateCard(
                id=as_text(variant.get("id") or card.get("id")),
                language=as_text(variant.get("language")),
                price=to_price(variant.get("price")),
                printing=as_optional_text(variant.get("printing")),
                condition=as_optional_text(variant.get("condition")),
                raw_payload={**{k: v for k, v in card.items() if k != "variants"}, **variant},
                **base,  # type: ignore[arg-type]
            )
        )
    return candidates


def filter_language(candidates: list[CandidateCard], language: str) -> list[CandidateCard]:
    """
    Keep variants printed in the query language.

    Falls back to every variant when none match, so a thin language
    catalog still yields something to price from.
    """
    label = LANGUAGE_LABELS.get(language.lower())
    if not label:
        return candidates

    matching = [c for c in candidates if c.language.lower() == label.lower()]
    return matching or candidates

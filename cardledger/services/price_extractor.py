"""
Market price extraction from vendor pricing payloads.

Sources nest prices differently (Pokémon TCG API: ``cardmarket.prices`` and
``tcgplayer.prices``; TCGdex-style: ``pricing.cardmarket`` and
``pricing.tcgplayer``; flat aggregator payloads: ``avg``). Paths are tried in
a fixed priority: aggregator averages first, then per-printing market
prices in printing order.

A missing price is None, never zero.
"""

from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Any

from cardledger.models.card import CandidateCard

CENT = Decimal("0.01")

# Aggregator averages, highest priority first
AGGREGATE_PRICE_PATHS: tuple[tuple[str, ...], ...] = (
    ("cardmarket", "prices", "averageSellPrice"),
    ("pricing", "cardmarket", "avg"),
    ("avg",),
)

# Containers of per-printing prices
PRINTING_CONTAINERS: tuple[tuple[str, ...], ...] = (
    ("tcgplayer", "prices"),
    ("pricing", "tcgplayer"),
    ("tcgplayer",),
)

PRINTING_PRIORITY = ("holofoil", "normal", "reverseHolofoil", "1stEditionHolofoil")

MARKET_FIELDS = ("market", "marketPrice")


def to_price(value: Any) -> Decimal | None:
    """
    Convert a raw price value to Decimal dollars quantized to cents.

    Accepts int, float, Decimal and numeric strings. Returns None for
    missing, boolean, non-numeric, negative, non-finite or absurdly large
    values.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip().lstrip("$").replace(",", "")
        if not value:
            return None
    elif not isinstance(value, (int, float, Decimal)):
        return None

    try:
        price = Decimal(str(value))
    except InvalidOperation:
        return None

    if not price.is_finite() or price < 0:
        return None

    try:
        return price.quantize(CENT)
    except InvalidOperation:
        # Too many digits to hold at cent precision
        return None


def _dig(payload: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    node: Any = payload
    for key in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(key)
    return node


def extract_price(candidate: CandidateCard | Mapping[str, Any]) -> Decimal | None:
    """
    Extract a single best-guess market price.

    Args:
        candidate: A CandidateCard (its raw payload is inspected) or a raw
            source payload

    Returns:
        First numeric price found along the priority paths, or None if
        the payload carries no usable price ("price unknown")
    """
    payload = candidate.raw_payload if isinstance(candidate, CandidateCard) else candidate
    if not isinstance(payload, Mapping):
        return None

    for path in AGGREGATE_PRICE_PATHS:
        price = to_price(_dig(payload, path))
        if price is not None:
            return price

    for container_path in PRINTING_CONTAINERS:
        container = _dig(payload, container_path)
        if not isinstance(container, Mapping):
            continue
        for printing in PRINTING_PRIORITY:
            entry = container.get(printing)
            if not isinstance(entry, Mapping):
                continue
            for field_name in MARKET_FIELDS:
                price = to_price(entry.get(field_name))
                if price is not None:
                    return price

    return None

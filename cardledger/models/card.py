"""
Card Models.

Defines the boundary between an identification (noisy, possibly
non-English) and the catalog entries offered back to the admin.

INVARIANTS:
- CardQuery is UNTRUSTED input from identification or manual entry
- CandidateCard is produced only by a source adapter
- CandidateCard.price is Decimal dollars or None ("price unknown"), never a 0 stand-in
- All models are frozen (immutable after construction)
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any


class SourceTag(str, Enum):
    """Provenance marker naming the adapter that produced a candidate."""

    SHEET = "sheet"
    PRIMARY_CATALOG = "primary_catalog"
    SECONDARY_CATALOG = "secondary_catalog"


@dataclass(frozen=True, slots=True)
class CardQuery:
    """
    A card to resolve.

    Attributes:
        name: Card name as identified (required, may be garbled)
        language: Language code of the physical card (e.g., "en", "ja")
        set_name: Set hint from identification, used for lookup and ranking
        condition: Condition hint (e.g., "Near Mint")
        number: Collector number if it was visible
    """

    name: str
    language: str = "en"
    set_name: str | None = None
    condition: str | None = None
    number: str | None = None


@dataclass(frozen=True, slots=True)
class CandidateCard:
    """
    A catalog entry offered as a possible match for a query.

    Attributes:
        id: Source-specific identifier (SKU, catalog id, or variant id)
        name: Display name as stored by the source
        set_name: Set or collection name
        number: Collector number within the set
        rarity: Rarity label as reported by the source
        image_url: Card image, if the source has one
        language: Language of this printing
        price: Market price in dollars, None when unknown
        source_tag: Which adapter produced this candidate
        printing: Printing/finish of a flattened sale variant
        condition: Condition of a flattened sale variant
        raw_payload: The unmodified source record, kept for price extraction
    """

    id: str
    name: str
    set_name: str
    number: str
    rarity: str
    image_url: str | None
    language: str
    price: Decimal | None
    source_tag: SourceTag
    printing: str | None = None
    condition: str | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

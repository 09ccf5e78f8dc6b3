"""
Spreadsheet catalog parser.

Reads the Google Sheets v4 ``values`` payload of the master catalog:
the first row holds column headers, every later row is one card.

Columns used (case-insensitive, any order): sku, card_name (or name),
set (or set_name), card_number, rarity, price (dollars), image_url
(or image), language, keywords (or aliases).
"""

from typing import Any, TypedDict

from cardledger.models.card import CandidateCard, SourceTag
from cardledger.parsers.common import ParseError, as_text, require_list, slugify
from cardledger.services.name_normalizer import split_keywords
from cardledger.services.price_extractor import to_price


class SheetRow(TypedDict, total=False):
    """One catalog row keyed by lower-cased header."""

    sku: str
    card_name: str
    name: str
    set: str
    set_name: str
    card_number: str
    rarity: str
    price: str
    image_url: str
    image: str
    language: str
    keywords: str
    aliases: str


def parse_values(payload: Any, raw_text: str = "") -> list[SheetRow]:
    """
    Convert a values payload into header-keyed rows.

    Args:
        payload: Decoded JSON from ``spreadsheets.values.get``
        raw_text: Original body, attached to any ParseError

    Returns:
        One SheetRow per data row; short rows are padded with ""

    Raises:
        ParseError: If ``values`` is not a list of lists
    """
    values = require_list(payload, "values", raw_text)
    if not values:
        return []

    if not all(isinstance(row, list) for row in values):
        raise ParseError("Expected 'values' to be a list of rows", raw_text)

    headers = [as_text(h).lower() for h in values[0]]
    rows: list[SheetRow] = []
    for raw_row in values[1:]:
        row: dict[str, str] = {}
        for index, header in enumerate(headers):
            if header:
                row[header] = as_text(raw_row[index]) if index < len(raw_row) else ""
        rows.append(row)  # type: ignore[arg-type]

    return rows


def row_name(row: SheetRow) -> str:
    return row.get("card_name") or row.get("name") or ""


def row_keywords(row: SheetRow) -> list[str]:
    return split_keywords(row.get("keywords") or row.get("aliases") or "")


def row_to_candidate(row: SheetRow, default_language: str) -> CandidateCard:
    """
    Format a catalog row as a candidate.

    Sheet prices are dollars. A blank or non-numeric price is None.
    """
    name = row_name(row) or "Unknown"
    set_name = row.get("set") or row.get("set_name") or "Unknown Set"
    sku = row.get("sku", "")
    image = row.get("image_url") or row.get("image") or None

    return CandidateCard(
        id=sku or f"{slugify(set_name)}-{slugify(name)}",
        name=name,
        set_name=set_name,
        number=row.get("card_number") or sku,
        rarity=row.get("rarity") or "Common",
        image_url=image,
        language=row.get("language") or default_language,
        price=to_price(row.get("price")),
        source_tag=SourceTag.SHEET,
        raw_payload=dict(row),
    )

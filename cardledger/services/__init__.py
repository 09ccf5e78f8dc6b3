from cardledger.services.card_resolver import CardResolver, CatalogSource, rank_candidates
from cardledger.services.fetcher import (
    FetchError,
    PermanentError,
    RetryPolicy,
    TransientError,
    fetch_with_retry,
)
from cardledger.services.name_normalizer import (
    extract_key_terms,
    generate_variations,
    matches_entry,
)
from cardledger.services.price_extractor import extract_price, to_price

__all__ = [
    "CardResolver",
    "CatalogSource",
    "FetchError",
    "PermanentError",
    "RetryPolicy",
    "TransientError",
    "extract_key_terms",
    "extract_price",
    "fetch_with_retry",
    "generate_variations",
    "matches_entry",
    "rank_candidates",
    "to_price",
]

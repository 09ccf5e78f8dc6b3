"""
Card name normalization for fuzzy matching.

Identification output and catalog entries format names inconsistently
("Lillie's Determination", "lillies determination", "Pikachu & Zekrom",
"ピカチュウ"). This module expands a raw name into spelling variations and
reduces those to key terms for loose substring matching.

Matching is deliberately recall-oriented: overlap in either direction
counts. Ranking downstream recovers precision.
"""

import re
import unicodedata
from collections.abc import Iterable

# Words removed to build the stop-word-stripped variation
_VARIATION_STOP_WORDS = re.compile(r"\b(the|a|an|of|and)\b", re.IGNORECASE)

# Tokens dropped from key terms: generic English plus card-game words that
# appear in too many names to discriminate (trainer titles, rarity suffixes)
KEY_TERM_STOP_WORDS = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
        "of", "with", "by", "from", "as", "is", "was", "are", "were", "been",
        "be", "have", "has", "had", "do", "does", "did", "will", "would",
        "should", "can", "could", "may", "might", "must", "shall",
        # card-game terms
        "determination", "resolve", "orders", "command", "full", "force",
        "supporter", "trainer", "item", "stadium", "energy",
        "gx", "ex", "v", "vmax", "vstar",
    }
)  # fmt: skip

MIN_TERM_LENGTH = 3

_TOKEN_SPLIT = re.compile(r"[\s\-_']+")
_KEYWORD_SPLIT = re.compile(r"[,;]")


def generate_variations(raw_name: str) -> set[str]:
    """
    Generate spelling variations of a card name.

    Args:
        raw_name: Name as identified or typed

    Returns:
        Deduplicated, non-empty variations. Always contains the trimmed,
        lower-cased original when the input is not blank. Empty set for
        blank input.

    Examples:
        >>> "lillie determination" in generate_variations("Lillie's Determination")
        True
        >>> "lillies determination" in generate_variations("Lillie's Determination")
        True
    """
    name = raw_name.replace("’", "'").strip().lower()
    if not name:
        return set()

    variations = {
        name,
        # ampersands
        name.replace("&", "and"),
        name.replace("&", " "),
        re.sub(r"[&＆]", "", name),
        name.replace("&", "＆"),
        # whitespace
        re.sub(r"\s+", "", name),
        # possessives
        re.sub(r"'s\s", " ", name),
        name.replace("'s", ""),
        name.replace("'", ""),
        # hyphens
        name.replace("-", " "),
        name.replace("-", ""),
        re.sub(r"\s+", "-", name),
        # unicode forms (full-width and Japanese text)
        unicodedata.normalize("NFKC", name),
        unicodedata.normalize("NFC", name),
        unicodedata.normalize("NFD", name),
    }

    stripped = re.sub(r"\s+", " ", _VARIATION_STOP_WORDS.sub(" ", name)).strip()
    if stripped:
        variations.add(stripped)

    return {v for v in variations if v.strip()}


def extract_key_terms(variations: Iterable[str]) -> set[str]:
    """
    Reduce name variations to discriminating search terms.

    Each variation is tokenized on whitespace, hyphen, underscore and
    apostrophe. Tokens of at least three characters that are not stop words
    are kept, and so is each full variation of at least three characters.

    Args:
        variations: Output of generate_variations

    Returns:
        Terms for substring-overlap matching against catalog entries
    """
    terms: set[str] = set()

    for variation in variations:
        for token in _TOKEN_SPLIT.split(variation):
            if len(token) >= MIN_TERM_LENGTH and token not in KEY_TERM_STOP_WORDS:
                terms.add(token)

        if len(variation) >= MIN_TERM_LENGTH and variation not in KEY_TERM_STOP_WORDS:
            terms.add(variation)

    return terms


def split_keywords(raw: str) -> list[str]:
    """Split a comma/semicolon separated alias cell into lower-cased keywords."""
    return [k.strip() for k in _KEYWORD_SPLIT.split(raw.lower()) if k.strip()]


def _overlaps(text: str, term: str) -> bool:
    return term in text or text in term


def matches_entry(name: str, keywords: Iterable[str], terms: Iterable[str]) -> bool:
    """
    Loose match of a stored catalog entry against query key terms.

    An entry matches if its normalized display name, or any of its alias
    keywords, overlaps any term as a substring in either direction. Blank
    names and keywords never match.

    Args:
        name: Entry display name
        keywords: Entry alias/keyword tokens
        terms: Output of extract_key_terms

    Returns:
        True if the entry is a candidate for the query
    """
    term_list = list(terms)
    normalized_name = name.strip().lower()

    if normalized_name and any(_overlaps(normalized_name, t) for t in term_list):
        return True

    for keyword in keywords:
        normalized_keyword = keyword.strip().lower()
        if normalized_keyword and any(_overlaps(normalized_keyword, t) for t in term_list):
            return True

    return False

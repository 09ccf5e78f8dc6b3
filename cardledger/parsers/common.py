"""Shared helpers for turning source responses into candidates."""

import re
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

import httpx

# Raw text kept on a ParseError for diagnosis
MAX_RAW_TEXT = 2000

Record = TypeVar("Record")
Formatted = TypeVar("Formatted")


class ParseError(Exception):
    """Raised when a source returns a body that does not have the expected shape."""

    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text[:MAX_RAW_TEXT]
        super().__init__(message)


def read_json(response: httpx.Response) -> Any:
    """
    Decode a JSON body.

    Raises:
        ParseError: If the body is not valid JSON
    """
    try:
        return response.json()
    except ValueError as e:
        raise ParseError(f"Response is not valid JSON: {e}", raw_text=response.text) from e


def require_list(payload: Any, key: str, raw_text: str) -> list[Any]:
    """
    Return ``payload[key]`` as a list of objects.

    A missing key is an empty list; anything else that is not a list of
    objects is a ParseError.
    """
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}", raw_text)

    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseError(f"Expected '{key}' to be a list", raw_text)
    return items


def slugify(text: str) -> str:
    """Lower-case, whitespace runs to hyphens."""
    return re.sub(r"\s+", "-", text.strip().lower())


def as_text(value: Any) -> str:
    """Stringify a scalar field, None as empty string."""
    if value is None:
        return ""
    return str(value).strip()


def as_optional_text(value: Any) -> str | None:
    """Like ``as_text``, but blank is None."""
    return as_text(value) or None


def as_mapping(value: Any) -> dict[str, Any]:
    """Return ``value`` if it is a JSON object, else an empty one."""
    return value if isinstance(value, dict) else {}


def format_records(
    records: Iterable[Record],
    formatter: Callable[[Record], Formatted],
    raw_text: str,
) -> list[Formatted]:
    """
    Apply ``formatter`` to every record.

    Raises:
        ParseError: If any record has a shape the formatter cannot handle
    """
    try:
        return [formatter(record) for record in records]
    except (AttributeError, KeyError, TypeError, ValueError, ArithmeticError) as e:
        raise ParseError(f"Unexpected record shape: {type(e).__name__}: {e}", raw_text) from e

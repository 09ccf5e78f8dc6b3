"""
Card identification from a photo.

Asks a vision model for the card's printed name, set, number, rarity and
language, and turns its reply into a CardQuery. The model is an external
collaborator: this module only builds the request and validates the
answer, refusing to hand an empty name to resolution.
"""

import json
import logging
import re
from typing import Any

import anthropic
from anthropic.types import TextBlock

from cardledger.config import Settings
from cardledger.models.card import CardQuery
from cardledger.models.failure import IdentificationError

logger = logging.getLogger(__name__)

IDENTIFY_PROMPT = """Identify this trading card from the photo.

Respond with ONLY a JSON object, no prose:
{
  "name": "card name as printed, in English if you know it",
  "set": "set name",
  "number": "collector number, e.g. 025/198",
  "rarity": "rarity",
  "language": "language of the printed card, e.g. English or Japanese"
}

Use null for anything you cannot read."""

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

# Language names the model tends to answer with -> query language codes
_LANGUAGE_CODES: dict[str, str] = {
    "english": "en",
    "en": "en",
    "japanese": "ja",
    "jp": "ja",
    "ja": "ja",
    "korean": "ko",
    "chinese": "zh",
    "french": "fr",
    "german": "de",
    "italian": "it",
    "spanish": "es",
    "portuguese": "pt",
}


def normalize_language(value: Any, default: str = "en") -> str:
    """Map a language name or code to a short code."""
    if not isinstance(value, str) or not value.strip():
        return default
    return _LANGUAGE_CODES.get(value.strip().lower(), value.strip().lower())


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_identification(
    text: str,
    language_hint: str | None = None,
    condition: str | None = None,
) -> CardQuery:
    """
    Parse the model's reply into a CardQuery.

    The first ``{...}`` span in the reply is decoded, so surrounding prose
    or code fences are tolerated.

    Args:
        text: Raw model reply
        language_hint: Admin-supplied language, preferred over the model's
        condition: Admin-supplied condition, carried through

    Raises:
        IdentificationError: If no JSON object is found, it does not
            decode, or the card name is missing
    """
    match = _JSON_OBJECT.search(text)
    if match is None:
        raise IdentificationError(detail="Vision reply contained no JSON object")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning("IDENTIFICATION_UNPARSEABLE", extra={"raw_text": text[:500]})
        raise IdentificationError(detail=f"Vision reply was not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise IdentificationError(detail="Vision reply was not a JSON object")

    name = _optional_text(data.get("name") or data.get("cardName"))
    if name is None:
        raise IdentificationError(detail="Vision reply did not include a card name")

    return CardQuery(
        name=name,
        language=normalize_language(language_hint or data.get("language")),
        set_name=_optional_text(data.get("set") or data.get("setName")),
        condition=condition,
        number=_optional_text(data.get("number") or data.get("cardNumber")),
    )


class CardIdentifier:
    """Vision-model card identification."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 512,
    ) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens

    async def identify(
        self,
        image_base64: str,
        media_type: str = "image/jpeg",
        language_hint: str | None = None,
        condition: str | None = None,
    ) -> CardQuery:
        """
        Identify a card from a base64-encoded photo.

        Raises:
            IdentificationError: If the vision call fails or yields no name
        """
        if not image_base64 or not image_base64.strip():
            raise IdentificationError(detail="No image data provided")

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "image",
                                "source": {
                                    "type": "base64",
                                    "media_type": media_type,  # type: ignore[typeddict-item]
                                    "data": image_base64,
                                },
                            },
                            {"type": "text", "text": IDENTIFY_PROMPT},
                        ],
                    }
                ],
            )
        except anthropic.APIError as e:
            logger.error("IDENTIFICATION_API_ERROR", extra={"error": str(e)})
            raise IdentificationError(detail=f"Vision service error: {type(e).__name__}") from e

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        query = parse_identification(text, language_hint, condition)

        logger.info(
            "CARD_IDENTIFIED",
            extra={"card_name": query.name, "set_name": query.set_name, "language": query.language},
        )
        return query

    async def close(self) -> None:
        await self._client.close()


def build_identifier(settings: Settings) -> CardIdentifier | None:
    """Create the identifier, or None when no vision API key is configured."""
    if not settings.anthropic_api_key:
        logger.warning("IDENTIFIER_NOT_CONFIGURED")
        return None
    client = anthropic.AsyncAnthropic(
        api_key=settings.anthropic_api_key,
        timeout=settings.http_timeout_seconds * 4,
    )
    return CardIdentifier(client, settings.anthropic_model)

"""
Card lookup API endpoints.

Resolves a manual entry or a photo to catalog candidates. Nothing here
writes to the inventory; the admin confirms a candidate through
POST /inventory.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from cardledger.config import DEFAULT_RESOLUTION_LIMIT, settings
from cardledger.models.card import CandidateCard, CardQuery, SourceTag
from cardledger.models.failure import (
    ApiResponse,
    CatalogCardNotFoundError,
    LookupFailedError,
    ResolutionTimeoutError,
    ServiceNotReadyError,
)
from cardledger.models.resolution import ResolutionResult, ResolutionStatus, WarningKind
from cardledger.services.card_identifier import CardIdentifier
from cardledger.services.card_resolver import CardResolver
from cardledger.sources.base import BaseCatalogSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cards", tags=["cards"])

NO_MATCH_MESSAGE = "No catalog has this card. Check the name or enter it manually."


class CandidatePayload(BaseModel):
    """A catalog candidate as shown to (and sent back by) the admin."""

    id: str
    name: str
    set_name: str = ""
    number: str = ""
    rarity: str = ""
    image_url: str | None = None
    language: str = "en"
    price: Decimal | None = Field(
        default=None,
        description="Market price in dollars; null when no source knew it",
    )
    source_tag: SourceTag
    printing: str | None = None
    condition: str | None = None

    @classmethod
    def from_candidate(cls, card: CandidateCard) -> "CandidatePayload":
        return cls(
            id=card.id,
            name=card.name,
            set_name=card.set_name,
            number=card.number,
            rarity=card.rarity,
            image_url=card.image_url,
            language=card.language,
            price=card.price,
            source_tag=card.source_tag,
            printing=card.printing,
            condition=card.condition,
        )

    def to_candidate(self) -> CandidateCard:
        return CandidateCard(
            id=self.id,
            name=self.name,
            set_name=self.set_name,
            number=self.number,
            rarity=self.rarity,
            image_url=self.image_url,
            language=self.language,
            price=self.price,
            source_tag=self.source_tag,
            printing=self.printing,
            condition=self.condition,
        )


class QueryPayload(BaseModel):
    """The query that was resolved."""

    name: str
    set_name: str | None = None
    language: str = "en"
    condition: str | None = None
    number: str | None = None


class WarningPayload(BaseModel):
    source_tag: SourceTag
    kind: WarningKind
    message: str


class ResolveData(BaseModel):
    """Outcome of a lookup."""

    status: ResolutionStatus
    message: str
    query: QueryPayload
    source_tag: SourceTag | None = Field(
        default=None,
        description="Source the candidates came from; null when nothing matched",
    )
    candidates: list[CandidatePayload] = Field(default_factory=list)
    warnings: list[WarningPayload] = Field(
        default_factory=list,
        description="Sources that errored and were treated as empty",
    )
    attempted: list[SourceTag] = Field(default_factory=list)


class CardDetailData(BaseModel):
    """One catalog card, as its sale variants."""

    source_tag: SourceTag
    card_id: str
    candidates: list[CandidatePayload] = Field(default_factory=list)


class ResolveRequest(BaseModel):
    """Request model for a manual lookup."""

    name: str = Field(..., description="Card name", examples=["Pikachu VMAX"])
    set_name: str | None = Field(default=None, examples=["Vivid Voltage"])
    language: str = Field(default="en", examples=["en", "ja"])
    condition: str | None = None
    limit: int = Field(default=DEFAULT_RESOLUTION_LIMIT, ge=1)


class IdentifyRequest(BaseModel):
    """Request model for a photo lookup."""

    image_base64: str = Field(..., min_length=1, description="Base64-encoded card photo")
    media_type: Literal["image/jpeg", "image/png", "image/webp", "image/gif"] = "image/jpeg"
    language: str | None = Field(
        default=None,
        description="Overrides the language read from the photo",
    )
    condition: str | None = None
    limit: int = Field(default=DEFAULT_RESOLUTION_LIMIT, ge=1)


def get_resolver(request: Request) -> CardResolver:
    """Dependency that provides the resolver built at startup."""
    resolver: CardResolver | None = getattr(request.app.state, "resolver", None)
    if resolver is None:
        raise ServiceNotReadyError(detail="Card resolver has not been started")
    return resolver


def get_identifier(request: Request) -> CardIdentifier:
    """Dependency that provides the vision identifier, if configured."""
    identifier: CardIdentifier | None = getattr(request.app.state, "identifier", None)
    if identifier is None:
        raise ServiceNotReadyError(detail="Photo identification is not configured")
    return identifier


def find_source(resolver: CardResolver, source_tag: SourceTag) -> BaseCatalogSource:
    """The registered source with this tag."""
    for source in resolver.sources:
        if source.source_tag is source_tag and isinstance(source, BaseCatalogSource):
            return source
    raise ServiceNotReadyError(detail=f"No {source_tag.value} source is registered")


def _message(result: ResolutionResult) -> str:
    if result.status is ResolutionStatus.MATCHED and result.source_tag is not None:
        return f"Found {len(result.candidates)} candidate(s) in {result.source_tag.value}."
    return NO_MATCH_MESSAGE


def to_resolve_data(query: CardQuery, result: ResolutionResult) -> ResolveData:
    """Convert a resolution result to its API shape."""
    return ResolveData(
        status=result.status,
        message=_message(result),
        query=QueryPayload(
            name=query.name,
            set_name=query.set_name,
            language=query.language,
            condition=query.condition,
            number=query.number,
        ),
        source_tag=result.source_tag,
        candidates=[CandidatePayload.from_candidate(card) for card in result.candidates],
        warnings=[
            WarningPayload(source_tag=w.source_tag, kind=w.kind, message=w.message)
            for w in result.warnings
        ],
        attempted=result.attempted,
    )


async def resolve_with_deadline(
    resolver: CardResolver, query: CardQuery, limit: int
) -> ResolutionResult:
    """
    Resolve within the configured deadline.

    Raises:
        InvalidQueryError: If the name is blank
        LookupFailedError: If every source errored
        ResolutionTimeoutError: If the deadline passes
    """
    timeout = settings.resolution_timeout_seconds
    try:
        return await asyncio.wait_for(resolver.resolve_or_fail(query, limit), timeout=timeout)
    except TimeoutError as e:
        logger.warning("RESOLUTION_TIMEOUT", extra={"query": query.name, "timeout": timeout})
        raise ResolutionTimeoutError(timeout) from e


@router.post("/resolve", response_model=ApiResponse[ResolveData])
async def resolve_card(
    request: ResolveRequest,
    resolver: Annotated[CardResolver, Depends(get_resolver)],
) -> ApiResponse[ResolveData]:
    """
    Look up a manually entered card.

    A card no catalog knows is a success with status "no_source_matched".
    If every catalog errored the response is a known failure instead.
    """
    query = CardQuery(
        name=request.name,
        language=request.language,
        set_name=request.set_name,
        condition=request.condition,
    )
    result = await resolve_with_deadline(resolver, query, request.limit)
    return ApiResponse.success(to_resolve_data(query, result))


@router.post("/identify", response_model=ApiResponse[ResolveData])
async def identify_card(
    request: IdentifyRequest,
    resolver: Annotated[CardResolver, Depends(get_resolver)],
    identifier: Annotated[CardIdentifier, Depends(get_identifier)],
) -> ApiResponse[ResolveData]:
    """Identify a card from a photo, then look it up."""
    query = await identifier.identify(
        request.image_base64,
        media_type=request.media_type,
        language_hint=request.language,
        condition=request.condition,
    )
    result = await resolve_with_deadline(resolver, query, request.limit)
    return ApiResponse.success(to_resolve_data(query, result))


@router.get("/{source_tag}/{card_id}", response_model=ApiResponse[CardDetailData])
async def get_catalog_card(
    source_tag: SourceTag,
    card_id: str,
    resolver: Annotated[CardResolver, Depends(get_resolver)],
    condition: str | None = None,
    printing: str | None = None,
) -> ApiResponse[CardDetailData]:
    """
    Fetch one card straight from a catalog, by that catalog's id.

    ``condition`` and ``printing`` narrow the sale variants where the
    catalog has them (secondary_catalog).
    """
    source = find_source(resolver, source_tag)
    result = await source.lookup(card_id, condition=condition, printing=printing)

    if result.warning is not None:
        raise LookupFailedError(detail=f"{source_tag.value}: {result.warning.message}")
    if not result.candidates:
        raise CatalogCardNotFoundError(source_tag.value, card_id)

    return ApiResponse.success(
        CardDetailData(
            source_tag=source_tag,
            card_id=card_id,
            candidates=[CandidatePayload.from_candidate(card) for card in result.candidates],
        )
    )

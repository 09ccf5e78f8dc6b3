"""
Inventory API endpoints.

Stores admin-confirmed candidates and supports admin edits.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query, status
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.api.cards import CandidatePayload
from cardledger.db import (
    InventoryFilters,
    count_items,
    delete_item,
    get_item,
    inventory_stats,
    list_items,
    persist,
    update_item,
)
from cardledger.db.database import get_session
from cardledger.models.db import InventoryItemDB
from cardledger.models.failure import ApiResponse, ItemNotFoundError

router = APIRouter(prefix="/inventory", tags=["inventory"])


class InventoryItemResponse(BaseModel):
    """A stored inventory item."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    card_name: str
    set_name: str | None = None
    card_number: str | None = None
    rarity: str | None = None
    image_url: str | None = None
    market_price: Decimal | None = None
    listed_price: Decimal | None = None
    condition: str
    language: str
    source: str
    availability: bool
    added_at: datetime | None = None
    updated_at: datetime | None = None


class InventoryCreateRequest(BaseModel):
    """Request model for confirming a candidate into the inventory."""

    candidate: CandidatePayload
    listed_price: Decimal | None = Field(default=None, ge=0, description="Shop price in dollars")
    condition: str | None = Field(default=None, examples=["Near Mint"])
    language: str | None = Field(default=None, description="Overrides the candidate's language")


class InventoryUpdateRequest(BaseModel):
    """Request model for an admin edit. Only fields that are sent are changed."""

    card_name: str | None = None
    set_name: str | None = None
    card_number: str | None = None
    rarity: str | None = None
    image_url: str | None = None
    market_price: Decimal | None = Field(default=None, ge=0)
    listed_price: Decimal | None = Field(default=None, ge=0)
    condition: str | None = None
    language: str | None = None
    availability: bool | None = None

    @field_validator("card_name", "condition", "language", "availability")
    @classmethod
    def reject_null(cls, value: object) -> object:
        """These columns are required; they may be omitted but not cleared."""
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class CountResponse(BaseModel):
    card_name: str
    set_name: str | None = None
    count: int


class StatsResponse(BaseModel):
    """Inventory totals."""

    total_items: int = 0
    total_listed_value: Decimal = Decimal("0.00")
    by_source: dict[str, int] = Field(default_factory=dict)
    by_language: dict[str, int] = Field(default_factory=dict)
    by_condition: dict[str, int] = Field(default_factory=dict)


class DeleteResponse(BaseModel):
    id: int
    deleted: bool


def _to_response(item: InventoryItemDB) -> InventoryItemResponse:
    return InventoryItemResponse.model_validate(item)


@router.post(
    "",
    response_model=ApiResponse[InventoryItemResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_item(
    request: InventoryCreateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    idempotency_key: Annotated[str | None, Header(max_length=128)] = None,
) -> ApiResponse[InventoryItemResponse]:
    """
    Confirm a candidate into the inventory.

    Resending with the same Idempotency-Key header returns the item the
    first request created.
    """
    item = await persist(
        session,
        request.candidate.to_candidate(),
        listed_price=request.listed_price,
        condition=request.condition,
        language=request.language,
        idempotency_key=idempotency_key,
    )
    return ApiResponse.success(_to_response(item))


@router.get("", response_model=ApiResponse[list[InventoryItemResponse]])
async def get_items(
    session: Annotated[AsyncSession, Depends(get_session)],
    card_name: str | None = None,
    set_name: str | None = None,
    language: str | None = None,
    condition: str | None = None,
    source: str | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> ApiResponse[list[InventoryItemResponse]]:
    """List inventory items, newest first."""
    filters = InventoryFilters(
        card_name=card_name,
        set_name=set_name,
        language=language,
        condition=condition,
        source=source,
    )
    items = await list_items(session, filters, limit=limit, offset=offset)
    return ApiResponse.success([_to_response(item) for item in items])


@router.get("/count", response_model=ApiResponse[CountResponse])
async def get_count(
    session: Annotated[AsyncSession, Depends(get_session)],
    card_name: Annotated[str, Query(min_length=1)],
    set_name: str | None = None,
) -> ApiResponse[CountResponse]:
    """How many copies of a card are in stock."""
    count = await count_items(session, card_name, set_name)
    return ApiResponse.success(CountResponse(card_name=card_name, set_name=set_name, count=count))


@router.get("/stats", response_model=ApiResponse[StatsResponse])
async def get_stats(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[StatsResponse]:
    stats = await inventory_stats(session)
    return ApiResponse.success(
        StatsResponse(
            total_items=stats.total_items,
            total_listed_value=stats.total_listed_value,
            by_source=stats.by_source,
            by_language=stats.by_language,
            by_condition=stats.by_condition,
        )
    )


@router.get("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
async def get_one(
    item_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[InventoryItemResponse]:
    item = await get_item(session, item_id)
    return ApiResponse.success(_to_response(item))


@router.patch("/{item_id}", response_model=ApiResponse[InventoryItemResponse])
async def edit_item(
    item_id: int,
    request: InventoryUpdateRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[InventoryItemResponse]:
    """Apply an admin edit."""
    item = await update_item(session, item_id, request.model_dump(exclude_unset=True))
    return ApiResponse.success(_to_response(item))


@router.delete("/{item_id}", response_model=ApiResponse[DeleteResponse])
async def remove_item(
    item_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ApiResponse[DeleteResponse]:
    deleted = await delete_item(session, item_id)
    if not deleted:
        raise ItemNotFoundError(item_id)
    return ApiResponse.success(DeleteResponse(id=item_id, deleted=True))

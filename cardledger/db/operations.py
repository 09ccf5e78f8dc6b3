"""
Inventory persistence operations.

The only place resolution output reaches storage: an admin-confirmed
candidate is written as an InventoryItemDB. Database failures surface as
PersistenceError so callers can show a known failure instead of a 500.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.models.card import CandidateCard
from cardledger.models.db import InventoryItemDB
from cardledger.models.failure import ItemNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

# Columns an admin edit may change
UPDATABLE_FIELDS = frozenset(
    {
        "card_name",
        "set_name",
        "card_number",
        "rarity",
        "image_url",
        "market_price",
        "listed_price",
        "condition",
        "language",
        "availability",
    }
)


@dataclass(frozen=True)
class InventoryFilters:
    """Optional filters for listing inventory. Text filters are substring, case-insensitive."""

    card_name: str | None = None
    set_name: str | None = None
    language: str | None = None
    condition: str | None = None
    source: str | None = None


@dataclass
class InventoryStats:
    """Inventory totals."""

    total_items: int = 0
    total_listed_value: Decimal = Decimal("0.00")
    by_source: dict[str, int] = field(default_factory=dict)
    by_language: dict[str, int] = field(default_factory=dict)
    by_condition: dict[str, int] = field(default_factory=dict)


async def get_item_by_idempotency_key(
    session: AsyncSession, idempotency_key: str
) -> InventoryItemDB | None:
    """Get the item created by an earlier submit with this key."""
    result = await session.execute(
        select(InventoryItemDB).where(InventoryItemDB.idempotency_key == idempotency_key)
    )
    return result.scalar_one_or_none()


async def persist(
    session: AsyncSession,
    candidate: CandidateCard,
    listed_price: Decimal | None = None,
    condition: str | None = None,
    language: str | None = None,
    idempotency_key: str | None = None,
) -> InventoryItemDB:
    """
    Store an admin-confirmed candidate as an inventory item.

    When ``idempotency_key`` was already used, the stored item is returned
    and nothing new is inserted, so a retried submit never duplicates.

    Args:
        session: Database session
        candidate: The candidate the admin picked
        listed_price: Shop price in dollars, if set
        condition: Card condition; falls back to the candidate's, then "unknown"
        language: Card language; falls back to the candidate's, then "en"
        idempotency_key: Client-supplied key for the submit

    Raises:
        PersistenceError: If the write fails
    """
    try:
        if idempotency_key:
            existing = await get_item_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                logger.info(
                    "INVENTORY_DUPLICATE_SUBMIT",
                    extra={"item_id": existing.id, "idempotency_key": idempotency_key},
                )
                return existing

        item = InventoryItemDB(
            card_name=candidate.name,
            set_name=candidate.set_name or None,
            card_number=candidate.number or None,
            rarity=candidate.rarity or None,
            image_url=candidate.image_url,
            market_price=candidate.price,
            listed_price=listed_price,
            condition=condition or candidate.condition or "unknown",
            language=language or candidate.language or "en",
            source=candidate.source_tag.value,
            availability=True,
            idempotency_key=idempotency_key,
        )
        session.add(item)
        await session.flush()
        await session.refresh(item)
    except IntegrityError as e:
        # A concurrent submit with the same key won the insert
        await session.rollback()
        if idempotency_key:
            existing = await get_item_by_idempotency_key(session, idempotency_key)
            if existing is not None:
                return existing
        raise PersistenceError(detail=str(e.orig)) from e
    except SQLAlchemyError as e:
        logger.error("INVENTORY_PERSIST_FAILED", extra={"card_name": candidate.name, "error": str(e)})
        raise PersistenceError(detail=type(e).__name__) from e

    logger.info(
        "INVENTORY_ITEM_ADDED",
        extra={"item_id": item.id, "card_name": item.card_name, "source": item.source},
    )
    return item


async def get_item(session: AsyncSession, item_id: int) -> InventoryItemDB:
    """
    Get an inventory item by id.

    Raises:
        ItemNotFoundError: If no item has this id
    """
    item = await session.get(InventoryItemDB, item_id)
    if item is None:
        raise ItemNotFoundError(item_id)
    return item


def _apply_filters(
    statement: Select[Any], filters: InventoryFilters | None
) -> Select[Any]:
    if filters is None:
        return statement
    if filters.card_name:
        statement = statement.where(InventoryItemDB.card_name.ilike(f"%{filters.card_name}%"))
    if filters.set_name:
        statement = statement.where(InventoryItemDB.set_name.ilike(f"%{filters.set_name}%"))
    if filters.language:
        statement = statement.where(InventoryItemDB.language == filters.language)
    if filters.condition:
        statement = statement.where(InventoryItemDB.condition == filters.condition)
    if filters.source:
        statement = statement.where(InventoryItemDB.source == filters.source)
    return statement


async def list_items(
    session: AsyncSession,
    filters: InventoryFilters | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[InventoryItemDB]:
    """List inventory items, newest first."""
    statement = _apply_filters(select(InventoryItemDB), filters)
    result = await session.execute(
        statement.order_by(InventoryItemDB.added_at.desc(), InventoryItemDB.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def update_item(
    session: AsyncSession, item_id: int, changes: dict[str, Any]
) -> InventoryItemDB:
    """
    Apply an admin edit to an item.

    Keys outside UPDATABLE_FIELDS are ignored.

    Raises:
        ItemNotFoundError: If no item has this id
        PersistenceError: If the write fails
    """
    item = await get_item(session, item_id)

    ignored = sorted(set(changes) - UPDATABLE_FIELDS)
    if ignored:
        logger.info("INVENTORY_UPDATE_IGNORED_FIELDS", extra={"item_id": item_id, "fields": ignored})

    for key, value in changes.items():
        if key in UPDATABLE_FIELDS:
            setattr(item, key, value)

    try:
        await session.flush()
        await session.refresh(item)
    except SQLAlchemyError as e:
        raise PersistenceError(detail=type(e).__name__) from e

    return item


async def delete_item(session: AsyncSession, item_id: int) -> bool:
    """
    Delete an inventory item.

    Returns True if deleted, False if not found.
    """
    item = await session.get(InventoryItemDB, item_id)
    if item is None:
        return False

    await session.delete(item)
    await session.flush()
    logger.info("INVENTORY_ITEM_DELETED", extra={"item_id": item_id})
    return True


async def count_items(
    session: AsyncSession, card_name: str, set_name: str | None = None
) -> int:
    """Count stored copies of a card. Names compare case-insensitively."""
    statement = (
        select(func.count())
        .select_from(InventoryItemDB)
        .where(func.lower(InventoryItemDB.card_name) == card_name.strip().lower())
    )
    if set_name:
        statement = statement.where(func.lower(InventoryItemDB.set_name) == set_name.strip().lower())

    result = await session.execute(statement)
    return int(result.scalar_one())


async def _count_by(session: AsyncSession, column: Any) -> dict[str, int]:
    result = await session.execute(select(column, func.count()).group_by(column))
    return {str(key): int(count) for key, count in result.all()}


async def inventory_stats(session: AsyncSession) -> InventoryStats:
    """Totals by source, language and condition, plus summed listed value."""
    total = await session.execute(
        select(func.count(), func.coalesce(func.sum(InventoryItemDB.listed_price), 0)).select_from(
            InventoryItemDB
        )
    )
    total_items, total_value = total.one()

    return InventoryStats(
        total_items=int(total_items),
        total_listed_value=Decimal(str(total_value)).quantize(Decimal("0.01")),
        by_source=await _count_by(session, InventoryItemDB.source),
        by_language=await _count_by(session, InventoryItemDB.language),
        by_condition=await _count_by(session, InventoryItemDB.condition),
    )

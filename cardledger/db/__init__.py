from cardledger.db.database import get_session, init_db
from cardledger.db.operations import (
    UPDATABLE_FIELDS,
    InventoryFilters,
    InventoryStats,
    count_items,
    delete_item,
    get_item,
    get_item_by_idempotency_key,
    inventory_stats,
    list_items,
    persist,
    update_item,
)

__all__ = [
    "UPDATABLE_FIELDS",
    "InventoryFilters",
    "InventoryStats",
    "count_items",
    "delete_item",
    "get_item",
    "get_item_by_idempotency_key",
    "get_session",
    "init_db",
    "inventory_stats",
    "list_items",
    "persist",
    "update_item",
]

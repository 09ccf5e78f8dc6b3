from cardledger.api.cards import router as cards_router
from cardledger.api.health import router as health_router
from cardledger.api.inventory import router as inventory_router

__all__ = [
    "cards_router",
    "health_router",
    "inventory_router",
]

"""
SQLAlchemy ORM models for persistent storage.

Only admin-confirmed cards are stored; resolution candidates never are.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class InventoryItemDB(Base):
    """
    A card in the shop inventory.

    Created on admin confirmation of a candidate, mutated by admin edits.
    Prices are dollars; market_price is NULL when no source knew a price.
    """

    __tablename__ = "inventory_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_name: Mapped[str] = mapped_column(String(255), index=True)
    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    card_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    rarity: Mapped[str | None] = mapped_column(String(100), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    market_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    listed_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    condition: Mapped[str] = mapped_column(String(50), default="unknown")
    language: Mapped[str] = mapped_column(String(20), default="en", index=True)
    source: Mapped[str] = mapped_column(String(50), default="manual", index=True)
    availability: Mapped[bool] = mapped_column(Boolean, default=True)

    # Client-supplied key; a retried submit with the same key returns the same row
    idempotency_key: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True, index=True
    )

    # Timestamps
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<InventoryItemDB(id={self.id}, card={self.card_name})>"

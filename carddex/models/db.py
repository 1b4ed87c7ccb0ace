"""
SQLAlchemy ORM models for the catalog cache.

Models mirror the dataclass models but add database persistence.
Natural keys are enforced with unique constraints so repeated upserts
can never produce duplicate rows.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class CachedSetDB(Base):
    """
    A set cached from a provider catalog.

    One row per (game_slug, set_id).
    """

    __tablename__ = "cached_sets"
    __table_args__ = (UniqueConstraint("game_slug", "set_id", name="uq_game_set"),)
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    set_id: Mapped[str] = mapped_column(String(64))
    game_slug: Mapped[str] = mapped_column(String(20), index=True)
    name: Mapped[str] = mapped_column(String(255))
    series: Mapped[str] = mapped_column(String(255))
    release_date: Mapped[str] = mapped_column(String(32))
    release_date_estimated: Mapped[bool] = mapped_column(Boolean, default=False)
    total_cards: Mapped[int] = mapped_column(Integer, default=0)
    logo_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    symbol_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Maintained separately from ingestion
    print_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_in_print: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    print_status_manual: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CachedSetDB(game={self.game_slug}, set_id={self.set_id})>"


class CachedCardDB(Base):
    """
    A card cached from a provider catalog.

    card_id is unique across all games. set_id is a soft reference to
    CachedSetDB.set_id and is not enforced.
    """

    __tablename__ = "cached_cards"
    __table_args__ = (Index("ix_cached_cards_game_set", "game_slug", "set_id"),)
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    card_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    game_slug: Mapped[str] = mapped_column(String(20), index=True)
    set_id: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(255))
    number: Mapped[str] = mapped_column(String(64))
    supertype: Mapped[str] = mapped_column(String(255))

    # Order matters and meaning differs per game, so stored as JSON lists
    subtypes: Mapped[list[Any]] = mapped_column(JSON, default=list)
    types: Mapped[list[Any]] = mapped_column(JSON, default=list)

    rarity: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_small: Mapped[str] = mapped_column(Text, default="")
    image_large: Mapped[str] = mapped_column(Text, default="")
    tcgplayer_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_market: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<CachedCardDB(card_id={self.card_id}, set_id={self.set_id})>"

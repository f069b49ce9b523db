"""SQLAlchemy ORM models for the CharaSphere database.

This module defines all database tables using SQLAlchemy declarative ORM.
Table and column names follow the hosted Supabase schema, so some columns keep
their camelCase database names while the Python attributes are snake_case.
"""

from __future__ import annotations

import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SeriesModel(Base):
    """A series (franchise) that roster characters belong to."""

    __tablename__ = "Series"

    seriesid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    universe: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ability: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    characters: Mapped[List["RosterModel"]] = relationship("RosterModel", back_populates="series")


class RosterModel(Base):
    """A collectible character in the master roster."""

    __tablename__ = "Roster"

    characterid: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    bio: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rarity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    seriesid: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("Series.seriesid"), nullable=True
    )
    dialogs: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON string
    image1url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image2url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image3url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image4url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image5url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image6url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    series: Mapped[Optional["SeriesModel"]] = relationship(
        "SeriesModel", back_populates="characters"
    )
    generated_images: Mapped[List["GeneratedImageModel"]] = relationship(
        "GeneratedImageModel", back_populates="character"
    )

    __table_args__ = (
        Index("idx_roster_claimed", "claimed"),
        Index("idx_roster_name", "name"),
    )


class UserCollectionModel(Base):
    """Join row between a user and a character they own."""

    __tablename__ = "UserCollection"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    userid: Mapped[str] = mapped_column(Text, nullable=False)
    characterid: Mapped[int] = mapped_column(
        Integer, ForeignKey("Roster.characterid"), nullable=False
    )
    favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    selected_image_id: Mapped[Optional[int]] = mapped_column(
        "selectedImageId", Integer, nullable=True
    )
    custom_name: Mapped[Optional[str]] = mapped_column("customName", Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), nullable=False, default=_utcnow
    )

    character: Mapped["RosterModel"] = relationship("RosterModel")

    __table_args__ = (
        UniqueConstraint("userid", "characterid", name="uq_usercollection_user_character"),
        Index("idx_usercollection_userid", "userid"),
    )


class PlayerStatsModel(Base):
    """Per-user economy row: gold, moves and play cards."""

    __tablename__ = "playerstats"

    userid: Mapped[str] = mapped_column(Text, primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    gold: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    moves: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    cards: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cards_collected: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_move_refresh: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )


class GridProgressModel(Base):
    """Per-user saved grid board."""

    __tablename__ = "gridprogress"

    user_id: Mapped[str] = mapped_column(Text, primary_key=True)
    tilemap: Mapped[str] = mapped_column(Text, nullable=False, default="[]")  # JSON string
    gold_collected: Mapped[int] = mapped_column(
        "goldCollected", Integer, nullable=False, default=0
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )


class GeneratedImageModel(Base):
    """A generated artwork record linked loosely to a character."""

    __tablename__ = "GeneratedImage"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[Optional[int]] = mapped_column(
        "characterId", Integer, ForeignKey("Roster.characterid"), nullable=True
    )
    collection_id: Mapped[Optional[int]] = mapped_column("collectionId", Integer, nullable=True)
    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    prompt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    style: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        "createdAt", DateTime(timezone=True), nullable=False, default=_utcnow
    )

    character: Mapped[Optional["RosterModel"]] = relationship(
        "RosterModel", back_populates="generated_images"
    )

    __table_args__ = (Index("idx_generatedimage_character", "characterId"),)

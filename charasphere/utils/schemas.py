"""Pydantic schemas (DTOs) for API responses and data transfer.

These schemas are decoupled from the ORM models and provide a clean
interface for serialization, validation, and API responses.
"""

from __future__ import annotations

import datetime
import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


def _load_json_list(raw: Optional[str], field_name: str) -> List[Any]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid JSON stored in %s: %r", field_name, raw)
        return []
    return value if isinstance(value, list) else []


class Series(BaseModel):
    """Series reference data."""

    seriesid: int
    name: str
    universe: Optional[str] = None
    ability: Optional[str] = None

    @classmethod
    def from_orm(cls, series_orm) -> "Series":
        """Convert a SeriesModel ORM object to a Series schema."""
        return cls(
            seriesid=series_orm.seriesid,
            name=series_orm.name,
            universe=series_orm.universe,
            ability=series_orm.ability,
        )


class GeneratedImage(BaseModel):
    """Generated artwork record."""

    id: int
    character_id: Optional[int] = None
    collection_id: Optional[int] = None
    seed: Optional[int] = None
    prompt: Optional[str] = None
    style: Optional[str] = None
    url: str
    created_at: Optional[datetime.datetime] = None

    @classmethod
    def from_orm(cls, image_orm) -> "GeneratedImage":
        return cls(
            id=image_orm.id,
            character_id=image_orm.character_id,
            collection_id=image_orm.collection_id,
            seed=image_orm.seed,
            prompt=image_orm.prompt,
            style=image_orm.style,
            url=image_orm.url,
            created_at=image_orm.created_at,
        )


class Character(BaseModel):
    """Roster character data transfer object."""

    characterid: int
    name: str
    bio: Optional[str] = None
    rarity: int
    seriesid: Optional[int] = None
    dialogs: List[str] = []
    image1url: Optional[str] = None
    image2url: Optional[str] = None
    image3url: Optional[str] = None
    image4url: Optional[str] = None
    image5url: Optional[str] = None
    image6url: Optional[str] = None
    claimed: bool = False
    series: Optional[Series] = None
    generated_images: List[GeneratedImage] = []

    @property
    def series_name(self) -> str:
        return self.series.name if self.series else "an unknown series"

    def image_urls(self) -> List[str]:
        """Return the filled image slots in slot order."""
        return [
            url
            for url in (
                self.image1url,
                self.image2url,
                self.image3url,
                self.image4url,
                self.image5url,
                self.image6url,
            )
            if url
        ]

    @classmethod
    def from_orm(cls, character_orm, include_images: bool = False) -> "Character":
        """Convert a RosterModel ORM object to a Character schema.

        The series relationship is included when loaded; generated images only
        when ``include_images`` is set.
        """
        series = Series.from_orm(character_orm.series) if character_orm.series else None
        generated_images = []
        if include_images:
            generated_images = [
                GeneratedImage.from_orm(image) for image in character_orm.generated_images
            ]
        return cls(
            characterid=character_orm.characterid,
            name=character_orm.name,
            bio=character_orm.bio,
            rarity=character_orm.rarity,
            seriesid=character_orm.seriesid,
            dialogs=[str(d) for d in _load_json_list(character_orm.dialogs, "Roster.dialogs")],
            image1url=character_orm.image1url,
            image2url=character_orm.image2url,
            image3url=character_orm.image3url,
            image4url=character_orm.image4url,
            image5url=character_orm.image5url,
            image6url=character_orm.image6url,
            claimed=character_orm.claimed,
            series=series,
            generated_images=generated_images,
        )


class CollectionEntry(BaseModel):
    """A character owned by a user."""

    id: int
    userid: str
    characterid: int
    favorite: bool = False
    selected_image_id: Optional[int] = None
    custom_name: Optional[str] = None
    created_at: Optional[datetime.datetime] = None
    character: Optional[Character] = None

    @classmethod
    def from_orm(cls, entry_orm, include_character: bool = True) -> "CollectionEntry":
        character = None
        if include_character and entry_orm.character is not None:
            character = Character.from_orm(entry_orm.character)
        return cls(
            id=entry_orm.id,
            userid=entry_orm.userid,
            characterid=entry_orm.characterid,
            favorite=entry_orm.favorite,
            selected_image_id=entry_orm.selected_image_id,
            custom_name=entry_orm.custom_name,
            created_at=entry_orm.created_at,
            character=character,
        )


class PlayerStats(BaseModel):
    """Economy ledger row for a player."""

    userid: str
    email: Optional[str] = None
    gold: int
    moves: int
    cards: int
    cards_collected: int
    last_move_refresh: datetime.datetime

    @classmethod
    def from_orm(cls, stats_orm) -> "PlayerStats":
        last_refresh = stats_orm.last_move_refresh
        if last_refresh is not None and last_refresh.tzinfo is None:
            last_refresh = last_refresh.replace(tzinfo=datetime.timezone.utc)
        return cls(
            userid=stats_orm.userid,
            email=stats_orm.email,
            gold=stats_orm.gold,
            moves=stats_orm.moves,
            cards=stats_orm.cards,
            cards_collected=stats_orm.cards_collected,
            last_move_refresh=last_refresh,
        )


class Tile(BaseModel):
    """One cell of the exploration grid.

    Field aliases keep the camelCase keys the web client stores in the tilemap blob.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    type: str
    x: int
    y: int
    discovered: bool = False
    character_id: Optional[int] = Field(default=None, alias="characterId")
    event_text: Optional[str] = Field(default=None, alias="eventText")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GridProgress(BaseModel):
    """Saved board for a player."""

    user_id: str
    tilemap: List[Tile]
    gold_collected: int = 0
    updated_at: Optional[datetime.datetime] = None

    @property
    def player_position(self) -> Optional[int]:
        for tile in self.tilemap:
            if tile.type == "P":
                return tile.id
        return None

    @classmethod
    def from_orm(cls, grid_orm) -> "GridProgress":
        tiles = []
        for raw_tile in _load_json_list(grid_orm.tilemap, "gridprogress.tilemap"):
            if isinstance(raw_tile, dict):
                tiles.append(Tile.model_validate(raw_tile))
        return cls(
            user_id=grid_orm.user_id,
            tilemap=tiles,
            gold_collected=grid_orm.gold_collected,
            updated_at=grid_orm.updated_at,
        )


class PullResult(BaseModel):
    """Outcome of a single gacha pull."""

    success: bool
    characterId: Optional[int] = None
    character: Optional[Character] = None
    error: Optional[str] = None
    gold_remaining: Optional[int] = Field(default=None, exclude=True)


class TileDiscovery(BaseModel):
    """Outcome of moving onto a tile."""

    tile: Tile
    reward: int = 0
    character: Optional[Character] = None
    event_text: Optional[str] = None
    moves_remaining: int
    gold: int
    gold_collected: int
    tilemap: List[Tile]
    grid_cleared: bool = False

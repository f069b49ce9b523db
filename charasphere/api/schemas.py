"""
API Request/Response schemas for the FastAPI server.

These are HTTP-specific contracts that define what the API accepts and returns.
They compose or reference the domain DTOs from utils.schemas but are separate
concerns from the database layer. Field aliases keep the camelCase keys the web
client sends and expects.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from charasphere.utils.schemas import Character, CollectionEntry, PullResult, Tile


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class UserRequest(ApiModel):
    """Any request body that names the acting user."""

    user_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("userId", "userid", "user_id")
    )


# =============================================================================
# PLAYER SCHEMAS
# =============================================================================


class PlayerInitRequest(UserRequest):
    email: Optional[str] = None


class BuyCardsRequest(UserRequest):
    quantity: int = Field(default=1, ge=1)


class UseMovesRequest(UserRequest):
    moves: int = Field(ge=1)


class PlayerStatsResponse(ApiModel):
    gold: int
    moves: int
    cards: int
    cards_collected: int = Field(alias="cardsCollected")
    last_refresh: Optional[str] = Field(default=None, alias="lastRefresh")


class PlayerInitResponse(ApiModel):
    message: str
    player: Optional[PlayerStatsResponse] = None
    pulls: List[PullResult] = []


class BuyCardsResponse(ApiModel):
    success: bool
    new_gold: int = Field(alias="newGold")
    new_cards: int = Field(alias="newCards")
    cost: int


class RefreshMovesResponse(ApiModel):
    moves: int
    last_refresh: Optional[str] = Field(default=None, alias="lastRefresh")


class UseMovesResponse(ApiModel):
    success: bool
    remaining_moves: int = Field(alias="remainingMoves")


# =============================================================================
# GACHA SCHEMAS
# =============================================================================


class GachaResponse(ApiModel):
    success: bool
    pull: PullResult
    gold_remaining: Optional[int] = None


class StarterPackResponse(ApiModel):
    success: bool
    characters: List[CollectionEntry]


# =============================================================================
# GRID GAME SCHEMAS
# =============================================================================


class GameStateView(ApiModel):
    tilemap: List[Tile]
    gold_collected: int = Field(alias="goldCollected")
    player_position: Optional[int] = Field(default=None, alias="playerPosition")


class NewGameResponse(ApiModel):
    success: bool
    game_state: GameStateView = Field(alias="gameState")
    cards_remaining: int = Field(alias="cardsRemaining")
    resumed: bool = False


class GameStateResponse(ApiModel):
    stats: PlayerStatsResponse
    grid: List[Tile]
    gold_collected: int = Field(default=0, alias="goldCollected")


class GameStateSaveRequest(UserRequest):
    moves: Optional[int] = Field(default=None, ge=0)
    gold: Optional[int] = Field(default=None, ge=0)
    last_move_refresh: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("lastMoveRefresh", "last_move_refresh")
    )
    grid: Optional[List[Tile]] = Field(
        default=None, validation_alias=AliasChoices("grid", "tilemap")
    )
    gold_collected: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("goldCollected", "gold_collected")
    )


class DiscoverTileRequest(UserRequest):
    tile_id: int = Field(validation_alias=AliasChoices("tileId", "tile_id"))


class DiscoverTileResponse(ApiModel):
    success: bool
    reward: int
    character: Optional[Character] = None
    event_content: Optional[str] = Field(default=None, alias="eventContent")
    encounter: Optional[str] = None
    updated_tilemap: List[Tile] = Field(alias="updatedTilemap")
    moves_remaining: int = Field(alias="movesRemaining")
    gold: int
    gold_collected: int = Field(alias="goldCollected")
    grid_cleared: bool = Field(default=False, alias="gridCleared")


# =============================================================================
# ROSTER AND COLLECTION SCHEMAS
# =============================================================================


class CharactersResponse(ApiModel):
    characters: List[Character]


class StoreImageRequest(ApiModel):
    character_id: int = Field(
        validation_alias=AliasChoices("characterId", "characterid", "character_id")
    )
    image_url: str = Field(validation_alias=AliasChoices("imageUrl", "image_url", "url"))
    prompt: Optional[str] = None
    style: Optional[str] = None
    seed: Optional[int] = None
    collection_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("collectionId", "collection_id")
    )


class StoreImageResponse(ApiModel):
    success: bool
    field: str


class SuccessResponse(ApiModel):
    success: bool


class CollectionResponse(ApiModel):
    collection: List[CollectionEntry]


class FavoriteRequest(UserRequest):
    character_id: int = Field(
        validation_alias=AliasChoices("characterId", "characterid", "character_id")
    )
    favorite: Optional[bool] = None
    selected_image_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("selectedImageId", "selected_image_id")
    )
    custom_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("customName", "custom_name")
    )


class FavoriteResponse(ApiModel):
    success: bool
    entry: CollectionEntry


# =============================================================================
# AI SCHEMAS
# =============================================================================


class GrokRequest(ApiModel):
    message: Optional[str] = None
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("apiKey", "api_key"))


class GrokResponse(ApiModel):
    content: str
    image_url: Optional[str] = None


class FluxRequest(ApiModel):
    prompt: Optional[str] = None
    api_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("apiKey", "api_key"))
    seed: Optional[int] = None


class FluxResponse(ApiModel):
    image_url: Optional[str] = None
    error: Optional[str] = None


class DialogCharacter(ApiModel):
    name: str
    series: Optional[str] = None


class GenerateDialogRequest(ApiModel):
    outgoing_character: DialogCharacter = Field(
        validation_alias=AliasChoices("outgoingCharacter", "outgoing_character")
    )
    incoming_character: DialogCharacter = Field(
        validation_alias=AliasChoices("incomingCharacter", "incoming_character")
    )


class DialogResponse(ApiModel):
    outgoing: str
    incoming: str


class EventContentRequest(ApiModel):
    character_id: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("characterId", "characterid", "character_id")
    )


# E1/E2/E3 keys are returned as a plain mapping
EventContentResponse = Dict[str, str]


# =============================================================================
# SYNC SCHEMAS
# =============================================================================


class SyncRequest(ApiModel):
    direction: Optional[str] = None


class SyncResponse(ApiModel):
    success: bool
    message: str

"""Service layer for CharaSphere business logic.

This module provides service functions that encapsulate business logic
for the game's domain entities. Services use SQLAlchemy ORM directly
and return Pydantic DTOs from utils.schemas.

Available services:
- player_service: Economy ledger (stats, gold, moves, play cards)
- character_service: Roster reads and character image slots
- collection_service: User collections (list, favorite, selected image)
- gacha_service: Pulls, starter pack, welcome pulls, character claims
- grid_service: Saved boards, new games and tile discovery
"""

from charasphere.utils.services.player_service import (
    buy_cards,
    ensure_player_stats,
    get_player_stats,
    player_exists,
    refresh_moves,
    save_player_state,
    use_moves,
)

from charasphere.utils.services.character_service import (
    ImageSlotsFullError,
    delete_image,
    get_all_characters,
    get_character_by_id,
    store_image,
)

from charasphere.utils.services.collection_service import (
    get_favorite_entry,
    get_user_collection,
    update_collection_entry,
)

from charasphere.utils.services.gacha_service import (
    grant_starter_pack,
    initialize_player,
    perform_pull,
)

from charasphere.utils.services.grid_service import (
    clear_if_complete,
    create_game,
    delete_grid,
    discover_tile,
    get_grid,
    get_unfinished_grid,
    pick_board_characters,
    save_grid,
)

__all__ = [
    # Player
    "buy_cards",
    "ensure_player_stats",
    "get_player_stats",
    "player_exists",
    "refresh_moves",
    "save_player_state",
    "use_moves",
    # Character
    "ImageSlotsFullError",
    "delete_image",
    "get_all_characters",
    "get_character_by_id",
    "store_image",
    # Collection
    "get_favorite_entry",
    "get_user_collection",
    "update_collection_entry",
    # Gacha
    "grant_starter_pack",
    "initialize_player",
    "perform_pull",
    # Grid
    "clear_if_complete",
    "create_game",
    "delete_grid",
    "discover_tile",
    "get_grid",
    "get_unfinished_grid",
    "pick_board_characters",
    "save_grid",
]

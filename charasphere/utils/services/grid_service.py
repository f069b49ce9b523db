"""Grid service for saved exploration boards.

The board is stored as one JSON blob per user in ``gridprogress``. Moves are
server-authoritative: discover_tile validates, charges and pays out in a
single transaction and deletes the row once every tile has been discovered.
"""

from __future__ import annotations

import json
import logging
import random
from typing import Dict, List, Optional, Sequence, Tuple

from charasphere.settings.constants import MOVE_COST
from charasphere.utils import grid
from charasphere.utils.models import GridProgressModel
from charasphere.utils.schemas import Character, GridProgress, Tile, TileDiscovery
from charasphere.utils.services import character_service, gacha_service, player_service
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)

NO_ACTIVE_GAME = "No active game"
INVALID_TILE = "Invalid tile ID"
NOT_ADJACENT = "Tile is not adjacent to the player"
NOT_ENOUGH_MOVES = "Not enough moves"
NO_CARDS = "No play cards available! Buy more cards with gold."


def _dump_tilemap(tilemap: Sequence[Tile]) -> str:
    return json.dumps([tile.to_dict() for tile in tilemap])


def _grid_row_query(session, user_id: str, lock: bool = False):
    query = session.query(GridProgressModel).filter(GridProgressModel.user_id == user_id)
    # Row lock serialises concurrent moves on the same board (no-op on SQLite)
    return query.with_for_update() if lock else query


def _get_grid_row(session, user_id: str, lock: bool = False) -> Optional[GridProgressModel]:
    return _grid_row_query(session, user_id, lock=lock).first()


def get_grid(user_id: str) -> Optional[GridProgress]:
    with get_session() as session:
        row = _get_grid_row(session, user_id)
        return GridProgress.from_orm(row) if row else None


def get_unfinished_grid(user_id: str) -> Optional[GridProgress]:
    """The saved board if it still has undiscovered tiles."""
    progress = get_grid(user_id)
    if progress and not grid.is_board_complete(progress.tilemap):
        return progress
    return None


def save_grid(
    user_id: str, tilemap: Sequence[Tile], gold_collected: Optional[int] = None
) -> GridProgress:
    """Upsert the whole board for a user."""
    with get_session(commit=True) as session:
        row = _get_grid_row(session, user_id)
        if row is None:
            row = GridProgressModel(user_id=user_id, gold_collected=0)
            session.add(row)
        row.tilemap = _dump_tilemap(tilemap)
        if gold_collected is not None:
            row.gold_collected = max(0, gold_collected)
        session.flush()
        return GridProgress.from_orm(row)


def delete_grid(user_id: str) -> bool:
    """Delete a user's board. Returns True if there was one."""
    with get_session(commit=True) as session:
        deleted = (
            session.query(GridProgressModel).filter(GridProgressModel.user_id == user_id).delete()
        )
        if deleted:
            logger.info(f"Deleted grid for user {user_id}")
        return deleted > 0


def clear_if_complete(user_id: str) -> bool:
    """Delete the board if every tile is discovered.

    Returns True only when a completed board was removed; calling it again is a no-op.
    """
    with get_session(commit=True) as session:
        row = _get_grid_row(session, user_id)
        if row is None:
            return False
        if not grid.is_board_complete(GridProgress.from_orm(row).tilemap):
            return False
        session.delete(row)
        logger.info(f"Cleared completed grid for user {user_id}")
        return True


def pick_board_characters() -> Dict[str, Character]:
    """Pick unclaimed characters for the C1-C4 tiles, keyed by tile type.

    The characters are only reserved on the board; they are claimed when discovered.
    """
    with get_session() as session:
        picks = character_service.pick_unclaimed_characters(session, len(grid.CHARACTER_TILES))
        return {
            tile_type: Character.from_orm(character)
            for tile_type, character in zip(grid.CHARACTER_TILES, picks)
        }


def create_game(
    user_id: str,
    character_ids: Optional[Dict[str, int]] = None,
    event_texts: Optional[Dict[str, str]] = None,
    rng=random,
) -> Tuple[Optional[GridProgress], Optional[int], Optional[str]]:
    """
    Spend one play card and start a fresh board.

    Returns:
        Tuple of (board, cards remaining, error_message).
    """
    tilemap = grid.generate_board(character_ids, event_texts, rng=rng)

    with get_session(commit=True) as session:
        player_service.ensure_stats_row_orm(session, user_id)
        if not player_service.use_card(session, user_id):
            return None, None, NO_CARDS

        row = _get_grid_row(session, user_id, lock=True)
        if row is None:
            row = GridProgressModel(user_id=user_id)
            session.add(row)
        row.tilemap = _dump_tilemap(tilemap)
        row.gold_collected = 0
        session.flush()

        session.expire_all()
        cards = player_service.get_stats_row_orm(session, user_id).cards
        logger.info(f"Started new board for user {user_id}; {cards} card(s) left")
        return GridProgress.from_orm(_get_grid_row(session, user_id)), cards, None


def discover_tile(
    user_id: str, tile_id: int, rng=random
) -> Tuple[Optional[TileDiscovery], Optional[str]]:
    """
    Move the player onto a tile and resolve it.

    The move must be adjacent to the player tile and costs MOVE_COST moves. Gold
    tiles pay their dice roll, event and character tiles their fixed reward, and a
    character tile also claims its character if nobody owns it yet. The tile left
    behind becomes claimed ("C").

    The board row is locked for the whole transaction, so a concurrent move on
    the same board waits and then validates against the updated tilemap.

    Returns:
        Tuple of (discovery, error_message). Nothing is changed on error.
    """
    with get_session(commit=True) as session:
        row = _get_grid_row(session, user_id, lock=True)
        if row is None:
            return None, NO_ACTIVE_GAME

        progress = GridProgress.from_orm(row)
        target = grid.get_tile(progress.tilemap, tile_id)
        if target is None:
            return None, INVALID_TILE

        player_tile = grid.get_player_tile(progress.tilemap)
        if player_tile is None:
            logger.warning(f"Board for user {user_id} has no player tile")
            return None, NO_ACTIVE_GAME
        if not grid.is_valid_move(player_tile, target):
            return None, NOT_ADJACENT

        player_service.ensure_stats_row_orm(session, user_id)
        if not player_service.deduct_moves(session, user_id, MOVE_COST):
            return None, NOT_ENOUGH_MOVES

        reward = 0 if target.discovered else grid.calculate_gold_reward(target.type, rng)

        character = None
        if target.type in grid.CHARACTER_TILES and target.character_id and not target.discovered:
            claimed = gacha_service.claim_character(session, user_id, target.character_id)
            if claimed is not None:
                character = Character.from_orm(claimed)
            else:
                logger.info(f"Character {target.character_id} on tile {tile_id} already claimed")

        event_text = target.event_text if target.type in grid.EVENT_TILES else None

        player_service.credit_gold(session, user_id, reward)
        tilemap: List[Tile] = grid.move_player(progress.tilemap, player_tile.id, tile_id)
        gold_collected = progress.gold_collected + reward

        cleared = grid.is_board_complete(tilemap)
        if cleared:
            session.delete(row)
            logger.info(f"User {user_id} cleared their board with {gold_collected} gold")
        else:
            row.tilemap = _dump_tilemap(tilemap)
            row.gold_collected = gold_collected
        session.flush()

        session.expire_all()
        stats = player_service.get_stats_row_orm(session, user_id)
        return (
            TileDiscovery(
                tile=target,
                reward=reward,
                character=character,
                event_text=event_text,
                moves_remaining=stats.moves,
                gold=stats.gold,
                gold_collected=gold_collected,
                tilemap=tilemap,
                grid_cleared=cleared,
            ),
            None,
        )

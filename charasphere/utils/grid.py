"""
Exploration grid logic.

This module handles:
- Board generation (5x5 grid, player on the centre tile, shuffled tile bag)
- Tile rewards (dice-rolled gold tiles, fixed event and character tiles)
- Movement validation and player movement
- Board completion

Everything here is pure; persistence lives in utils.services.grid_service.
"""

import logging
import random
from typing import Dict, List, Optional, Sequence

from charasphere.settings.constants import (
    CHARACTER_TILE_REWARD,
    EVENT_TILE_REWARD,
    GOLD_TILE_BONUS,
    GRID_HEIGHT,
    GRID_WIDTH,
    get_tile_bag,
)
from charasphere.utils.schemas import Tile

logger = logging.getLogger(__name__)

PLAYER_TILE = "P"
CLAIMED_TILE = "C"
GOLD_TILES = ("G1", "G2", "G3")
EVENT_TILES = ("E1", "E2", "E3")
CHARACTER_TILES = ("C1", "C2", "C3", "C4")
# C4 holds the hidden watcher who narrates the event tiles
WATCHER_TILE = "C4"


def tile_id_for(x: int, y: int) -> int:
    """Row-major, 1-based tile id."""
    return y * GRID_WIDTH + x + 1


def center_tile_id() -> int:
    return tile_id_for(GRID_WIDTH // 2, GRID_HEIGHT // 2)


def roll_d3(rng=random) -> int:
    return rng.randint(1, 3)


def calculate_gold_reward(tile_type: str, rng=random) -> int:
    """
    Gold paid out for discovering a tile of the given type.

    G1/G2/G3 roll one, two or three d3 and add a flat bonus (4-6, 5-9, 6-12).
    Event and character tiles pay a fixed amount. Anything else pays nothing.
    """
    if tile_type in GOLD_TILES:
        dice = int(tile_type[1])
        return sum(roll_d3(rng) for _ in range(dice)) + GOLD_TILE_BONUS
    if tile_type in EVENT_TILES:
        return EVENT_TILE_REWARD
    if tile_type in CHARACTER_TILES:
        return CHARACTER_TILE_REWARD
    return 0


def in_bounds(x: int, y: int) -> bool:
    return 0 <= x < GRID_WIDTH and 0 <= y < GRID_HEIGHT


def is_valid_move(from_tile: Tile, to_tile: Tile) -> bool:
    """A move is legal to any in-bounds tile touching the current one, diagonals included."""
    if not in_bounds(to_tile.x, to_tile.y):
        return False
    dx = abs(to_tile.x - from_tile.x)
    dy = abs(to_tile.y - from_tile.y)
    return dx <= 1 and dy <= 1 and not (dx == 0 and dy == 0)


def get_tile(tilemap: Sequence[Tile], tile_id: int) -> Optional[Tile]:
    for tile in tilemap:
        if tile.id == tile_id:
            return tile
    return None


def get_player_tile(tilemap: Sequence[Tile]) -> Optional[Tile]:
    for tile in tilemap:
        if tile.type == PLAYER_TILE:
            return tile
    return None


def move_player(tilemap: Sequence[Tile], from_id: int, to_id: int) -> List[Tile]:
    """Return a new tilemap with the player moved from ``from_id`` to ``to_id``.

    The tile being left becomes claimed; the destination becomes the player tile.
    Both end up discovered.
    """
    updated = []
    for tile in tilemap:
        if tile.id == from_id:
            updated.append(tile.model_copy(update={"type": CLAIMED_TILE, "discovered": True}))
        elif tile.id == to_id:
            updated.append(tile.model_copy(update={"type": PLAYER_TILE, "discovered": True}))
        else:
            updated.append(tile)
    return updated


def is_board_complete(tilemap: Sequence[Tile]) -> bool:
    """A board is complete once every tile has been discovered."""
    return bool(tilemap) and all(tile.discovered for tile in tilemap)


def generate_board(
    character_ids: Optional[Dict[str, int]] = None,
    event_texts: Optional[Dict[str, str]] = None,
    rng=random,
) -> List[Tile]:
    """
    Generate a fresh board.

    Args:
        character_ids: Roster ids to place on character tiles, keyed by tile type
        event_texts: Narration for event tiles, keyed by tile type
        rng: Random source used for the shuffle

    Returns:
        List of GRID_WIDTH * GRID_HEIGHT tiles in row-major order.
    """
    character_ids = character_ids or {}
    event_texts = event_texts or {}

    bag = get_tile_bag()
    needed = GRID_WIDTH * GRID_HEIGHT - 1
    if len(bag) < needed:
        logger.warning("Tile bag has %d tiles, padding with G1 to fill %d", len(bag), needed)
        bag.extend(["G1"] * (needed - len(bag)))
    elif len(bag) > needed:
        logger.warning("Tile bag has %d tiles, trimming to %d", len(bag), needed)
        bag = bag[:needed]
    rng.shuffle(bag)

    center = center_tile_id()
    tiles: List[Tile] = []
    bag_iter = iter(bag)
    for y in range(GRID_HEIGHT):
        for x in range(GRID_WIDTH):
            tile_id = tile_id_for(x, y)
            if tile_id == center:
                tiles.append(Tile(id=tile_id, type=PLAYER_TILE, x=x, y=y, discovered=True))
                continue
            tile_type = next(bag_iter)
            tiles.append(
                Tile(
                    id=tile_id,
                    type=tile_type,
                    x=x,
                    y=y,
                    discovered=False,
                    character_id=character_ids.get(tile_type),
                    event_text=event_texts.get(tile_type),
                )
            )

    logger.debug("Generated board with player at tile %s", center)
    return tiles

"""
Grid game API endpoints.

This module contains all endpoints for the 5x5 exploration board including:
- Starting or resuming a board (/new-game)
- Reading, saving and resetting stats and board (/game-state)
- Moving onto a tile (/discover-tile)
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from charasphere.api.config import grok_util
from charasphere.api.dependencies import get_player, verify_user_match
from charasphere.api.helpers import game_state_view, stats_response
from charasphere.api.schemas import (
    DiscoverTileRequest,
    DiscoverTileResponse,
    GameStateResponse,
    GameStateSaveRequest,
    NewGameResponse,
    SuccessResponse,
    UserRequest,
)
from charasphere.utils import content, grid
from charasphere.utils.services import collection_service, grid_service, player_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["game"])

_DISCOVER_ERROR_STATUS = {
    grid_service.NO_ACTIVE_GAME: 404,
    grid_service.INVALID_TILE: 400,
    grid_service.NOT_ADJACENT: 400,
    grid_service.NOT_ENOUGH_MOVES: 400,
}


def _no_cards_error() -> HTTPException:
    return HTTPException(
        status_code=400, detail={"error": grid_service.NO_CARDS, "requiredCards": 1}
    )


async def _player_character(user_id: str):
    """The user's favorite character, who narrates on their behalf."""
    entry = await asyncio.to_thread(collection_service.get_favorite_entry, user_id)
    return entry.character if entry else None


@router.post("/new-game", response_model=NewGameResponse)
async def new_game(
    request: UserRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """
    Start a new board, spending one play card.

    - An unfinished saved board is returned as-is without spending a card
    - Character tiles get unclaimed roster characters; the C4 character writes the event texts
    """
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        stats = await asyncio.to_thread(player_service.get_player_stats, user_id)

        existing = await asyncio.to_thread(grid_service.get_unfinished_grid, user_id)
        if existing:
            logger.info(f"Resuming unfinished board for user {user_id}")
            return NewGameResponse(
                success=True,
                game_state=game_state_view(existing),
                cards_remaining=stats.cards,
                resumed=True,
            )

        if stats.cards <= 0:
            raise _no_cards_error()

        picks = await asyncio.to_thread(grid_service.pick_board_characters)
        player_character = await _player_character(user_id)
        event_texts = await content.generate_watcher_events(
            grok_util, picks.get(grid.WATCHER_TILE), player_character
        )

        progress, cards_remaining, error = await asyncio.to_thread(
            grid_service.create_game,
            user_id,
            {tile_type: character.characterid for tile_type, character in picks.items()},
            event_texts,
        )
        if error:
            raise _no_cards_error()

        return NewGameResponse(
            success=True,
            game_state=game_state_view(progress),
            cards_remaining=cards_remaining,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating new game for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create new game")


@router.get("/game-state", response_model=GameStateResponse)
async def get_game_state(
    user_id: Optional[str] = Query(None, alias="userId"),
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Get the player's stats and saved board (empty when there is none)."""
    user_id = await verify_user_match(user_id, validated_user)

    try:
        stats = await asyncio.to_thread(player_service.get_player_stats, user_id)
        progress = await asyncio.to_thread(grid_service.get_grid, user_id)
        return GameStateResponse(
            stats=stats_response(stats),
            grid=progress.tilemap if progress else [],
            gold_collected=progress.gold_collected if progress else 0,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching game state for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch game state")


@router.post("/game-state", response_model=SuccessResponse)
async def save_game_state(
    request: GameStateSaveRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Upsert stats and, when provided, the board. Last writer wins."""
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        await asyncio.to_thread(
            player_service.save_player_state,
            user_id,
            request.moves,
            request.gold,
            request.last_move_refresh,
        )
        if request.grid is not None:
            await asyncio.to_thread(
                grid_service.save_grid, user_id, request.grid, request.gold_collected
            )
            await asyncio.to_thread(grid_service.clear_if_complete, user_id)
        else:
            logger.debug(f"No grid provided by {user_id}, skipping board save")
        return SuccessResponse(success=True)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving game state for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to save game state")


@router.delete("/game-state", response_model=SuccessResponse)
async def reset_game_state(
    user_id: Optional[str] = Query(None, alias="userId"),
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Throw away the saved board."""
    user_id = await verify_user_match(user_id, validated_user)

    try:
        await asyncio.to_thread(grid_service.delete_grid, user_id)
        return SuccessResponse(success=True)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting grid for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete grid")


@router.post("/discover-tile", response_model=DiscoverTileResponse)
async def discover_tile(
    request: DiscoverTileRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """
    Move onto an adjacent tile, spending one move.

    - Gold tiles pay a dice roll, event tiles 10 gold plus the watcher's line
    - Character tiles pay 20 gold and add the character to the collection
    - Clearing the last tile removes the board and reports gridCleared
    """
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        discovery, error = await asyncio.to_thread(
            grid_service.discover_tile, user_id, request.tile_id
        )
        if error:
            raise HTTPException(status_code=_DISCOVER_ERROR_STATUS.get(error, 400), detail=error)

        encounter = None
        if discovery.character is not None:
            player_character = await _player_character(user_id)
            encounter = await content.generate_encounter_line(
                grok_util, player_character, discovery.character
            )

        logger.info(
            "User %s discovered tile %s (%s) for %d gold",
            user_id,
            request.tile_id,
            discovery.tile.type,
            discovery.reward,
        )
        return DiscoverTileResponse(
            success=True,
            reward=discovery.reward,
            character=discovery.character,
            event_content=discovery.event_text,
            encounter=encounter,
            updated_tilemap=discovery.tilemap,
            moves_remaining=discovery.moves_remaining,
            gold=discovery.gold,
            gold_collected=discovery.gold_collected,
            grid_cleared=discovery.grid_cleared,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error discovering tile for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to discover tile")

"""
Player economy API endpoints.

This module contains all endpoints for the playerstats ledger including:
- Initializing a new player with welcome pulls
- Reading player stats
- Buying play cards
- Refreshing and spending moves
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from charasphere.api.dependencies import get_player, get_validated_user, verify_user_match
from charasphere.api.helpers import format_timestamp, stats_response
from charasphere.api.schemas import (
    BuyCardsRequest,
    BuyCardsResponse,
    PlayerInitRequest,
    PlayerInitResponse,
    PlayerStatsResponse,
    RefreshMovesResponse,
    UseMovesRequest,
    UseMovesResponse,
    UserRequest,
)
from charasphere.settings.constants import CARD_COST
from charasphere.utils.services import gacha_service, player_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["player"])


@router.post("/player-init", response_model=PlayerInitResponse)
async def player_init(
    request: PlayerInitRequest,
    validated_user: Dict[str, Any] = Depends(get_validated_user),
):
    """
    Create a player with welcome gold and three free pulls.

    Returns the existing stats unchanged if the player was already initialized.
    """
    user_id = await verify_user_match(request.user_id, validated_user)
    email = request.email or validated_user.get("email")

    try:
        stats, pulls, created = await asyncio.to_thread(
            gacha_service.initialize_player, user_id, email
        )
        if not created:
            return PlayerInitResponse(message="Player already exists", player=stats_response(stats))

        logger.info(
            "Player %s initialized with %d successful welcome pulls",
            user_id,
            sum(1 for p in pulls if p.success),
        )
        return PlayerInitResponse(
            message="Player initialized successfully", player=stats_response(stats), pulls=pulls
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error initializing player {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to initialize player")


@router.get("/player-stats", response_model=PlayerStatsResponse)
async def player_stats(
    user_id: Optional[str] = Query(None, alias="userId"),
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Get gold, moves, cards and the last move refresh for a player."""
    user_id = await verify_user_match(user_id, validated_user)

    try:
        stats = await asyncio.to_thread(player_service.get_player_stats, user_id)
        if stats is None:
            raise HTTPException(status_code=404, detail="Player not found")
        return stats_response(stats)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching stats for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch player stats")


@router.post("/buy-cards", response_model=BuyCardsResponse)
async def buy_cards(
    request: BuyCardsRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Buy play cards at CARD_COST gold each."""
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        success, stats, cost = await asyncio.to_thread(
            player_service.buy_cards, user_id, request.quantity
        )
        if not success:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": f"Not enough gold! Cards cost {CARD_COST} gold each.",
                    "requiredGold": cost,
                    "currentGold": stats.gold,
                },
            )
        return BuyCardsResponse(success=True, new_gold=stats.gold, new_cards=stats.cards, cost=cost)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error buying cards for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to buy cards")


@router.post("/refresh-moves", response_model=RefreshMovesResponse)
async def refresh_moves(
    request: UserRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Add moves for the whole minutes elapsed since the last refresh."""
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        moves, last_refresh = await asyncio.to_thread(player_service.refresh_moves, user_id)
        return RefreshMovesResponse(moves=moves, last_refresh=format_timestamp(last_refresh))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error refreshing moves for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to refresh moves")


@router.post("/use-moves", response_model=UseMovesResponse)
async def use_moves(
    request: UseMovesRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Spend moves."""
    user_id = await verify_user_match(request.user_id, validated_user)

    try:
        remaining = await asyncio.to_thread(player_service.use_moves, user_id, request.moves)
        if remaining is None:
            raise HTTPException(status_code=400, detail="Not enough moves")
        return UseMovesResponse(success=True, remaining_moves=remaining)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error using moves for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to use moves")

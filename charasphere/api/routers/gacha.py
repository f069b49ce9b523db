"""
Gacha API endpoints.

This module contains all endpoints that award roster characters:
- Gold-priced pulls (/gacha and /pull)
- The one-time starter pack
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from charasphere.api.dependencies import get_player, verify_user_match
from charasphere.api.limiter import PULL_RATE_LIMIT, limiter
from charasphere.api.schemas import GachaResponse, StarterPackResponse, UserRequest
from charasphere.settings.constants import PULL_COST
from charasphere.utils.schemas import PullResult
from charasphere.utils.services import gacha_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["gacha"])


@router.post("/gacha", response_model=GachaResponse)
@limiter.limit(PULL_RATE_LIMIT)
async def gacha(
    request: Request,
    body: UserRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """
    Spend PULL_COST gold on one random unclaimed character.

    Unlike /pull, failures are reported with an HTTP error status.
    """
    user_id = await verify_user_match(body.user_id, validated_user)

    try:
        result = await asyncio.to_thread(gacha_service.perform_pull, user_id)
        if result.error == gacha_service.NOT_ENOUGH_GOLD:
            raise HTTPException(
                status_code=400,
                detail={
                    "error": "Not enough gold",
                    "required": PULL_COST,
                    "current": result.gold_remaining or 0,
                },
            )
        if result.error == gacha_service.NO_CHARACTERS:
            raise HTTPException(status_code=404, detail=result.error)
        if not result.success:
            raise HTTPException(status_code=500, detail=result.error)
        return GachaResponse(success=True, pull=result, gold_remaining=result.gold_remaining)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error performing gacha pull for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error during pull")


@router.post("/pull", response_model=PullResult)
@limiter.limit(PULL_RATE_LIMIT)
async def pull(
    request: Request,
    body: UserRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """One pull, returning the bare result; expected failures come back as success=False."""
    user_id = await verify_user_match(body.user_id, validated_user)

    try:
        return await asyncio.to_thread(gacha_service.perform_pull, user_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error performing pull for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error during pull")


@router.post("/starter-pack", response_model=StarterPackResponse)
async def starter_pack(validated_user: Dict[str, Any] = Depends(get_player)):
    """Give three random characters to a user whose collection is still empty."""
    user_id = validated_user["sub"]

    try:
        entries, error = await asyncio.to_thread(gacha_service.grant_starter_pack, user_id)
        if error == gacha_service.NO_STARTER_CHARACTERS:
            raise HTTPException(status_code=404, detail=error)
        if error:
            raise HTTPException(status_code=400, detail=error)
        return StarterPackResponse(success=True, characters=entries)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error granting starter pack to {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to grant starter pack")

"""
Roster API endpoints.

This module contains the endpoints that read the character roster and manage
the six image slots of each character.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from charasphere.api.dependencies import get_player
from charasphere.api.schemas import (
    CharactersResponse,
    StoreImageRequest,
    StoreImageResponse,
    SuccessResponse,
)
from charasphere.utils.services import character_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["characters"])


@router.get("/characters", response_model=CharactersResponse)
async def list_characters(validated_user: Dict[str, Any] = Depends(get_player)):
    """List every roster character ordered by name, with series and generated images."""
    try:
        characters = await asyncio.to_thread(character_service.get_all_characters)
        return CharactersResponse(characters=characters)
    except Exception as e:
        logger.error(f"Error fetching characters: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch characters")


@router.post("/store-image", response_model=StoreImageResponse)
async def store_image(
    request: StoreImageRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Put an image URL into the first empty slot of a character."""
    try:
        slot = await asyncio.to_thread(
            character_service.store_image,
            request.character_id,
            request.image_url,
            request.prompt,
            request.style,
            request.seed,
            request.collection_id,
        )
        if slot is None:
            raise HTTPException(status_code=404, detail="Character not found")
        return StoreImageResponse(success=True, field=slot)
    except character_service.ImageSlotsFullError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error storing image for character {request.character_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to store image")


@router.delete("/delete-image", response_model=SuccessResponse)
async def delete_image(
    character_id: int = Query(..., alias="characterid"),
    field: Optional[str] = Query(None),
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Clear one image slot (image1url..image6url)."""
    if not field:
        raise HTTPException(status_code=400, detail="Image field is required")

    try:
        deleted = await asyncio.to_thread(character_service.delete_image, character_id, field)
        if not deleted:
            raise HTTPException(status_code=404, detail="Character not found")
        return SuccessResponse(success=True)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting {field} for character {character_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete image")

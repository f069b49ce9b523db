"""
Collection API endpoints.

Reads the characters a user owns and updates the per-entry preferences
(favorite flag, selected image, custom name).
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from charasphere.api.dependencies import get_player, verify_user_match
from charasphere.api.schemas import CollectionResponse, FavoriteRequest, FavoriteResponse
from charasphere.utils.services import collection_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/collection", tags=["collection"])


@router.get("", response_model=CollectionResponse)
async def get_collection(
    user_id: Optional[str] = Query(None, alias="userId"),
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Get every collection entry of the user with its character."""
    user_id = await verify_user_match(user_id, validated_user)

    try:
        entries = await asyncio.to_thread(collection_service.get_user_collection, user_id)
        return CollectionResponse(collection=entries)
    except Exception as e:
        logger.error(f"Error fetching collection for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch collection")


@router.post("/favorite", response_model=FavoriteResponse)
async def update_favorite(
    request: FavoriteRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """
    Update favorite, selectedImageId and/or customName of an owned character.

    Fields left out of the body keep their stored value; explicit nulls clear them.
    """
    user_id = await verify_user_match(request.user_id, validated_user)

    changes = {}
    if "selected_image_id" in request.model_fields_set:
        changes["selected_image_id"] = request.selected_image_id
    if "custom_name" in request.model_fields_set:
        changes["custom_name"] = request.custom_name

    try:
        entry = await asyncio.to_thread(
            collection_service.update_collection_entry,
            user_id,
            request.character_id,
            request.favorite,
            **changes,
        )
        if entry is None:
            raise HTTPException(status_code=404, detail="Character not in collection")
        return FavoriteResponse(success=True, entry=entry)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating collection entry for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to update collection")

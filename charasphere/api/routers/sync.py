"""
Roster sheet synchronization endpoint.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException

from charasphere.api.config import sheets_util
from charasphere.api.dependencies import get_validated_user
from charasphere.api.schemas import SyncRequest, SyncResponse
from charasphere.utils.sheets import SheetsSyncError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])

SYNC_DIRECTIONS = {
    "from_sheets": "sync_from_sheets",
    "to_sheets": "sync_to_sheets",
}


@router.post("/sync", response_model=SyncResponse)
async def sync_roster(
    request: SyncRequest,
    validated_user: Dict[str, Any] = Depends(get_validated_user),
):
    """Copy the roster from the sheet into the database (from_sheets) or back (to_sheets)."""
    method = SYNC_DIRECTIONS.get(request.direction or "")
    if method is None:
        raise HTTPException(status_code=400, detail="Invalid sync direction")

    logger.info(f"User {validated_user['sub']} started roster sync {request.direction}")
    try:
        result = await asyncio.to_thread(getattr(sheets_util, method))
        return SyncResponse(**result)
    except SheetsSyncError as e:
        logger.error(f"Roster sync {request.direction} failed: {e}")
        raise HTTPException(status_code=500, detail="Sync failed")
    except Exception as e:
        logger.error(f"Unexpected error during roster sync {request.direction}: {e}")
        raise HTTPException(status_code=500, detail="Sync failed")

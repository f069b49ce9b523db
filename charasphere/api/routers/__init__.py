"""
API Routers package.

This module exports all API routers for use in the main FastAPI application.
"""

from charasphere.api.routers.ai import router as ai_router
from charasphere.api.routers.characters import router as characters_router
from charasphere.api.routers.collection import router as collection_router
from charasphere.api.routers.gacha import router as gacha_router
from charasphere.api.routers.game import router as game_router
from charasphere.api.routers.player import router as player_router
from charasphere.api.routers.sync import router as sync_router

__all__ = [
    "ai_router",
    "characters_router",
    "collection_router",
    "gacha_router",
    "game_router",
    "player_router",
    "sync_router",
]

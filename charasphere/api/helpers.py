"""
Helper functions for the API server.

This module provides utility functions used across multiple routers for
timestamp normalization and DTO-to-response conversion.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from charasphere.api.schemas import GameStateView, PlayerStatsResponse
from charasphere.utils.schemas import GridProgress, PlayerStats

logger = logging.getLogger(__name__)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure a datetime is in UTC timezone.

    Args:
        dt: Datetime to normalize

    Returns:
        Datetime in UTC or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """
    Format a datetime as an ISO 8601 timestamp string.

    Args:
        dt: Datetime to format

    Returns:
        ISO 8601 formatted string with Z suffix for UTC, or None
    """
    normalized = ensure_utc(dt)
    if normalized is None:
        return None

    iso_value = normalized.isoformat()
    if iso_value.endswith("+00:00"):
        iso_value = iso_value[:-6] + "Z"
    return iso_value


def stats_response(stats: PlayerStats) -> PlayerStatsResponse:
    return PlayerStatsResponse(
        gold=stats.gold,
        moves=stats.moves,
        cards=stats.cards,
        cards_collected=stats.cards_collected,
        last_refresh=format_timestamp(stats.last_move_refresh),
    )


def game_state_view(progress: GridProgress) -> GameStateView:
    return GameStateView(
        tilemap=progress.tilemap,
        gold_collected=progress.gold_collected,
        player_position=progress.player_position,
    )

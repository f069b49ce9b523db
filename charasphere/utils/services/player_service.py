"""Player service for the economy ledger.

This module provides all playerstats business logic: auto-initialisation,
gold and move balances, the move refresh timer and play card purchases.
Deductions use guarded conditional UPDATEs so a balance never goes negative
under concurrent requests.
"""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from charasphere.settings.constants import (
    CARD_COST,
    MAX_MOVES,
    MOVES_PER_MINUTE,
    STARTING_CARDS,
    STARTING_GOLD,
    STARTING_MOVES,
)
from charasphere.utils.models import PlayerStatsModel
from charasphere.utils.schemas import PlayerStats
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _as_utc(value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def get_stats_row_orm(session: Session, user_id: str) -> Optional[PlayerStatsModel]:
    return session.query(PlayerStatsModel).filter(PlayerStatsModel.userid == user_id).first()


def ensure_stats_row_orm(
    session: Session,
    user_id: str,
    email: Optional[str] = None,
    gold: int = STARTING_GOLD,
) -> PlayerStatsModel:
    """Ensure a playerstats row exists and return it."""
    stats = get_stats_row_orm(session, user_id)
    if stats is None:
        stats = PlayerStatsModel(
            userid=user_id,
            email=email,
            gold=gold,
            moves=STARTING_MOVES,
            cards=STARTING_CARDS,
            cards_collected=0,
            last_move_refresh=_utcnow(),
        )
        session.add(stats)
        session.flush()
        logger.info(f"Created playerstats row for user {user_id}")
    return stats


def deduct_gold(session: Session, user_id: str, amount: int) -> bool:
    """Deduct gold inside an existing transaction. Returns False if the balance is short."""
    affected = (
        session.query(PlayerStatsModel)
        .filter(PlayerStatsModel.userid == user_id, PlayerStatsModel.gold >= amount)
        .update({PlayerStatsModel.gold: PlayerStatsModel.gold - amount}, synchronize_session=False)
    )
    return affected == 1


def deduct_moves(session: Session, user_id: str, amount: int) -> bool:
    """Deduct moves inside an existing transaction. Returns False if the balance is short."""
    affected = (
        session.query(PlayerStatsModel)
        .filter(PlayerStatsModel.userid == user_id, PlayerStatsModel.moves >= amount)
        .update(
            {PlayerStatsModel.moves: PlayerStatsModel.moves - amount}, synchronize_session=False
        )
    )
    return affected == 1


def credit_gold(session: Session, user_id: str, amount: int) -> None:
    """Add gold inside an existing transaction."""
    if amount <= 0:
        return
    session.query(PlayerStatsModel).filter(PlayerStatsModel.userid == user_id).update(
        {PlayerStatsModel.gold: PlayerStatsModel.gold + amount}, synchronize_session=False
    )


def increment_cards_collected(session: Session, user_id: str, amount: int = 1) -> None:
    session.query(PlayerStatsModel).filter(PlayerStatsModel.userid == user_id).update(
        {PlayerStatsModel.cards_collected: PlayerStatsModel.cards_collected + amount},
        synchronize_session=False,
    )


def get_player_stats(user_id: str) -> Optional[PlayerStats]:
    """Get the playerstats row for a user, or None if the user has never played."""
    with get_session() as session:
        stats = get_stats_row_orm(session, user_id)
        return PlayerStats.from_orm(stats) if stats else None


def player_exists(user_id: str) -> bool:
    with get_session() as session:
        return get_stats_row_orm(session, user_id) is not None


def ensure_player_stats(user_id: str, email: Optional[str] = None) -> PlayerStats:
    """Get the stats for a user, creating the default row on first sight."""
    with get_session(commit=True) as session:
        stats = ensure_stats_row_orm(session, user_id, email=email)
        return PlayerStats.from_orm(stats)


def compute_refreshed_moves(
    moves: int, last_refresh: datetime.datetime, now: Optional[datetime.datetime] = None
) -> int:
    """Moves after applying the refresh timer.

    Every whole elapsed minute adds MOVES_PER_MINUTE. The result is always
    capped at MAX_MOVES, so a balance above the cap is brought down to it.
    """
    now = now or _utcnow()
    elapsed = (now - _as_utc(last_refresh)).total_seconds()
    minutes = max(0, int(elapsed // 60))
    return min(MAX_MOVES, moves + minutes * MOVES_PER_MINUTE)


def refresh_moves(
    user_id: str, now: Optional[datetime.datetime] = None
) -> Tuple[int, datetime.datetime]:
    """
    Apply the move refresh timer for a user.

    The row is only written when the move count actually changes.

    Returns:
        Tuple of (moves, last_move_refresh) after the refresh.
    """
    now = now or _utcnow()
    with get_session(commit=True) as session:
        stats = ensure_stats_row_orm(session, user_id)
        last_refresh = _as_utc(stats.last_move_refresh)
        new_moves = compute_refreshed_moves(stats.moves, last_refresh, now)

        if new_moves != stats.moves:
            logger.info(f"Refreshed moves for user {user_id}: {stats.moves} -> {new_moves}")
            stats.moves = new_moves
            stats.last_move_refresh = now
            last_refresh = now

        return stats.moves, last_refresh


def use_moves(user_id: str, amount: int) -> Optional[int]:
    """Spend moves. Returns the remaining moves, or None if the player has too few."""
    with get_session(commit=True) as session:
        ensure_stats_row_orm(session, user_id)
        if not deduct_moves(session, user_id, amount):
            return None
        session.expire_all()
        return get_stats_row_orm(session, user_id).moves


def buy_cards(user_id: str, quantity: int = 1) -> Tuple[bool, PlayerStats, int]:
    """
    Buy play cards with gold.

    Args:
        user_id: Player buying the cards
        quantity: Number of cards (at least 1)

    Returns:
        Tuple of (success, stats after the attempt, total cost). Stats are unchanged
        when the purchase fails.
    """
    cost = CARD_COST * quantity
    with get_session(commit=True) as session:
        ensure_stats_row_orm(session, user_id)
        if not deduct_gold(session, user_id, cost):
            session.expire_all()
            return False, PlayerStats.from_orm(get_stats_row_orm(session, user_id)), cost

        session.query(PlayerStatsModel).filter(PlayerStatsModel.userid == user_id).update(
            {PlayerStatsModel.cards: PlayerStatsModel.cards + quantity},
            synchronize_session=False,
        )
        session.expire_all()
        stats = get_stats_row_orm(session, user_id)
        logger.info(f"User {user_id} bought {quantity} card(s) for {cost} gold")
        return True, PlayerStats.from_orm(stats), cost


def use_card(session: Session, user_id: str) -> bool:
    """Spend one play card inside an existing transaction."""
    affected = (
        session.query(PlayerStatsModel)
        .filter(PlayerStatsModel.userid == user_id, PlayerStatsModel.cards >= 1)
        .update({PlayerStatsModel.cards: PlayerStatsModel.cards - 1}, synchronize_session=False)
    )
    return affected == 1


def save_player_state(
    user_id: str,
    moves: Optional[int] = None,
    gold: Optional[int] = None,
    last_move_refresh: Optional[datetime.datetime] = None,
) -> PlayerStats:
    """Upsert the client-reported stats (last writer wins)."""
    with get_session(commit=True) as session:
        stats = ensure_stats_row_orm(session, user_id)
        stats.moves = max(0, min(MAX_MOVES, moves if moves is not None else STARTING_MOVES))
        stats.gold = max(0, gold if gold is not None else STARTING_GOLD)
        stats.last_move_refresh = _as_utc(last_move_refresh) or _utcnow()
        session.flush()
        return PlayerStats.from_orm(stats)

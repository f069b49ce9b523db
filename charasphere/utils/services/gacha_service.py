"""Gacha service for awarding roster characters.

Pulls, the starter pack, welcome pulls and character tiles all claim a
character the same way: pick a random unclaimed roster row, flip ``claimed``
with a guarded UPDATE and insert the UserCollection row, all in one
transaction. A pick that loses the race to another request is retried.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session, selectinload

from charasphere.settings.constants import (
    PULL_CLAIM_ATTEMPTS,
    PULL_COST,
    STARTER_PACK_SIZE,
    WELCOME_GOLD,
    WELCOME_PULLS,
)
from charasphere.utils.models import RosterModel
from charasphere.utils.schemas import Character, CollectionEntry, PlayerStats, PullResult
from charasphere.utils.services import character_service, collection_service, player_service
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)

NOT_ENOUGH_GOLD = f"Not enough gold (requires {PULL_COST})"
NO_CHARACTERS = "No available characters"
STATS_UNAVAILABLE = "Failed to check player stats"
COLLECTION_NOT_EMPTY = "Starter pack is only available to new collections"
NO_STARTER_CHARACTERS = "No starter characters available"


class _PullAborted(Exception):
    """Raised inside a pull transaction to roll it back with a tagged result."""

    def __init__(self, result: PullResult):
        super().__init__(result.error)
        self.result = result


def _mark_claimed(session: Session, character_id: int) -> bool:
    """Flip claimed for one character. Returns False if someone else got there first."""
    affected = (
        session.query(RosterModel)
        .filter(RosterModel.characterid == character_id, RosterModel.claimed.is_(False))
        .update({RosterModel.claimed: True}, synchronize_session=False)
    )
    return affected == 1


def claim_random_character(session: Session, user_id: str) -> Optional[RosterModel]:
    """Claim one random unclaimed character into a user's collection.

    Returns the claimed roster row, or None if the roster is exhausted.
    """
    for attempt in range(1, PULL_CLAIM_ATTEMPTS + 1):
        candidates = character_service.pick_unclaimed_characters(session, 1)
        if not candidates:
            return None

        character = candidates[0]
        if _mark_claimed(session, character.characterid):
            collection_service.add_to_collection(session, user_id, character.characterid)
            session.refresh(character)
            return character

        logger.info(
            f"Character {character.characterid} was claimed concurrently "
            f"(attempt {attempt}/{PULL_CLAIM_ATTEMPTS})"
        )
    return None


def claim_character(session: Session, user_id: str, character_id: int) -> Optional[RosterModel]:
    """Claim a specific character if it is still unclaimed. Used by character tiles."""
    if not _mark_claimed(session, character_id):
        return None
    collection_service.add_to_collection(session, user_id, character_id)
    player_service.increment_cards_collected(session, user_id)
    return (
        session.query(RosterModel)
        .options(selectinload(RosterModel.series))
        .filter(RosterModel.characterid == character_id)
        .first()
    )


def _pull_in_session(session: Session, user_id: str, cost: int) -> PullResult:
    stats = player_service.get_stats_row_orm(session, user_id)
    if stats is None:
        return PullResult(success=False, error=STATS_UNAVAILABLE)
    if stats.gold < cost:
        return PullResult(success=False, error=NOT_ENOUGH_GOLD, gold_remaining=stats.gold)

    character = claim_random_character(session, user_id)
    if character is None:
        return PullResult(success=False, error=NO_CHARACTERS, gold_remaining=stats.gold)

    if cost and not player_service.deduct_gold(session, user_id, cost):
        # Gold was spent by a concurrent request between the check and the claim
        raise _PullAborted(PullResult(success=False, error=NOT_ENOUGH_GOLD))
    player_service.increment_cards_collected(session, user_id)

    session.expire(stats)
    return PullResult(
        success=True,
        characterId=character.characterid,
        character=Character.from_orm(character),
        gold_remaining=stats.gold,
    )


def perform_pull(user_id: str, cost: int = PULL_COST) -> PullResult:
    """
    Perform one gacha pull.

    Everything happens in a single transaction; a failure after the character
    was claimed rolls the claim back.

    Returns:
        PullResult with success=False and a tagged error for expected failures.
    """
    try:
        with get_session(commit=True) as session:
            result = _pull_in_session(session, user_id, cost)
    except _PullAborted as aborted:
        logger.warning(f"Pull for user {user_id} rolled back: {aborted.result.error}")
        return aborted.result

    if result.success:
        logger.info(f"User {user_id} pulled character {result.characterId}")
    else:
        logger.info(f"Pull for user {user_id} failed: {result.error}")
    return result


def grant_starter_pack(user_id: str) -> Tuple[List[CollectionEntry], Optional[str]]:
    """Give STARTER_PACK_SIZE random characters to a user with an empty collection.

    Returns (entries, error_message).
    """
    with get_session(commit=True) as session:
        if collection_service.count_collection(session, user_id) > 0:
            return [], COLLECTION_NOT_EMPTY

        player_service.ensure_stats_row_orm(session, user_id)
        claimed_ids = []
        for _ in range(STARTER_PACK_SIZE):
            character = claim_random_character(session, user_id)
            if character is None:
                break
            claimed_ids.append(character.characterid)

        if not claimed_ids:
            return [], NO_STARTER_CHARACTERS

        player_service.increment_cards_collected(session, user_id, len(claimed_ids))
        session.flush()
        logger.info(f"Granted starter pack of {len(claimed_ids)} to user {user_id}")

    collection = collection_service.get_user_collection(user_id)
    return [entry for entry in collection if entry.characterid in claimed_ids], None


def initialize_player(
    user_id: str, email: Optional[str]
) -> Tuple[PlayerStats, List[PullResult], bool]:
    """
    Create a new player with WELCOME_GOLD and WELCOME_PULLS free pulls.

    A pull that finds no character is reported but does not stop the others.

    Returns:
        Tuple of (stats, welcome pull results, created). When the player already
        existed nothing is changed and the pull list is empty.
    """
    with get_session(commit=True) as session:
        existing = player_service.get_stats_row_orm(session, user_id)
        if existing is not None:
            return PlayerStats.from_orm(existing), [], False

        stats = player_service.ensure_stats_row_orm(
            session, user_id, email=email, gold=WELCOME_GOLD
        )
        pulls = [_pull_in_session(session, user_id, cost=0) for _ in range(WELCOME_PULLS)]
        failed = [p for p in pulls if not p.success]
        if failed:
            logger.warning(f"{len(failed)} welcome pull(s) failed for user {user_id}")

        session.flush()
        session.expire(stats)
        logger.info(f"Initialized player {user_id} with {len(pulls) - len(failed)} welcome pulls")
        return PlayerStats.from_orm(stats), pulls, True

"""Collection service for user-owned characters."""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from charasphere.utils.models import RosterModel, UserCollectionModel
from charasphere.utils.schemas import CollectionEntry
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)

_UNSET = object()


def add_to_collection(session: Session, user_id: str, character_id: int) -> UserCollectionModel:
    """Insert a collection row inside an existing transaction."""
    entry = UserCollectionModel(userid=user_id, characterid=character_id, favorite=False)
    session.add(entry)
    session.flush()
    return entry


def count_collection(session: Session, user_id: str) -> int:
    return session.query(UserCollectionModel).filter(UserCollectionModel.userid == user_id).count()


def get_user_collection(user_id: str) -> List[CollectionEntry]:
    """Get every character a user owns, oldest first."""
    with get_session() as session:
        entries = (
            session.query(UserCollectionModel)
            .options(
                selectinload(UserCollectionModel.character).selectinload(RosterModel.series)
            )
            .filter(UserCollectionModel.userid == user_id)
            .order_by(UserCollectionModel.created_at, UserCollectionModel.id)
            .all()
        )
        return [CollectionEntry.from_orm(entry) for entry in entries]


def get_favorite_entry(user_id: str) -> Optional[CollectionEntry]:
    """The user's favorite character, used as their on-board persona."""
    with get_session() as session:
        entry = (
            session.query(UserCollectionModel)
            .options(
                selectinload(UserCollectionModel.character).selectinload(RosterModel.series)
            )
            .filter(UserCollectionModel.userid == user_id, UserCollectionModel.favorite.is_(True))
            .order_by(UserCollectionModel.id)
            .first()
        )
        return CollectionEntry.from_orm(entry) if entry else None


def update_collection_entry(
    user_id: str,
    character_id: int,
    favorite: Optional[bool] = None,
    selected_image_id=_UNSET,
    custom_name=_UNSET,
) -> Optional[CollectionEntry]:
    """
    Update the mutable fields of a collection row.

    Only favorite, selectedImageId and customName can change after a row is created.
    Passing None for selected_image_id or custom_name clears them; leaving them out
    keeps the stored value.

    Returns:
        The updated entry, or None if the user does not own the character.
    """
    with get_session(commit=True) as session:
        entry = (
            session.query(UserCollectionModel)
            .filter(
                UserCollectionModel.userid == user_id,
                UserCollectionModel.characterid == character_id,
            )
            .first()
        )
        if entry is None:
            return None

        if favorite is not None:
            entry.favorite = favorite
        if selected_image_id is not _UNSET:
            entry.selected_image_id = selected_image_id
        if custom_name is not _UNSET:
            entry.custom_name = custom_name

        session.flush()
        logger.info(f"Updated collection entry {entry.id} for user {user_id}")
        return CollectionEntry.from_orm(entry)

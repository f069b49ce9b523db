"""Character service for the master roster.

This module provides roster reads and the image-slot operations
(store into the first empty slot, clear a named slot).
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from charasphere.settings.constants import IMAGE_FIELDS, MAX_CHARACTER_IMAGES
from charasphere.utils.models import GeneratedImageModel, RosterModel
from charasphere.utils.schemas import Character
from charasphere.utils.session import get_session

logger = logging.getLogger(__name__)


class ImageSlotsFullError(Exception):
    """Raised when every image slot of a character is already filled."""


def get_all_characters() -> List[Character]:
    """Get every roster character ordered by name, with series and generated images."""
    with get_session() as session:
        characters = (
            session.query(RosterModel)
            .options(selectinload(RosterModel.series), selectinload(RosterModel.generated_images))
            .order_by(RosterModel.name)
            .all()
        )
        return [Character.from_orm(c, include_images=True) for c in characters]


def get_character_by_id(character_id: int) -> Optional[Character]:
    with get_session() as session:
        character = (
            session.query(RosterModel)
            .options(selectinload(RosterModel.series))
            .filter(RosterModel.characterid == character_id)
            .first()
        )
        return Character.from_orm(character) if character else None


def pick_unclaimed_characters(session: Session, limit: int) -> List[RosterModel]:
    """Random unclaimed characters, read inside an existing transaction."""
    return (
        session.query(RosterModel)
        .options(selectinload(RosterModel.series))
        .filter(RosterModel.claimed.is_(False))
        .order_by(func.random())
        .limit(limit)
        .all()
    )


def store_image(
    character_id: int,
    image_url: str,
    prompt: Optional[str] = None,
    style: Optional[str] = None,
    seed: Optional[int] = None,
    collection_id: Optional[int] = None,
) -> Optional[str]:
    """
    Store an image URL in the first empty slot of a character.

    When a prompt, style or seed is given a GeneratedImage record is written too.

    Returns:
        Name of the slot that was filled, or None if the character does not exist.

    Raises:
        ImageSlotsFullError: If all MAX_CHARACTER_IMAGES slots are taken.
    """
    with get_session(commit=True) as session:
        character = (
            session.query(RosterModel).filter(RosterModel.characterid == character_id).first()
        )
        if character is None:
            return None

        slot = next(
            (field for field in IMAGE_FIELDS[:MAX_CHARACTER_IMAGES] if not getattr(character, field)),
            None,
        )
        if slot is None:
            raise ImageSlotsFullError(f"Maximum of {MAX_CHARACTER_IMAGES} images allowed")

        setattr(character, slot, image_url)

        if prompt is not None or style is not None or seed is not None:
            session.add(
                GeneratedImageModel(
                    character_id=character_id,
                    collection_id=collection_id,
                    seed=seed,
                    prompt=prompt,
                    style=style,
                    url=image_url,
                )
            )

        logger.info(f"Stored image for character {character_id} in {slot}")
        return slot


def delete_image(character_id: int, field: str) -> bool:
    """Clear one named image slot. Returns False if the character does not exist."""
    if field not in IMAGE_FIELDS:
        raise ValueError(f"Invalid image field: {field}")

    with get_session(commit=True) as session:
        character = (
            session.query(RosterModel).filter(RosterModel.characterid == character_id).first()
        )
        if character is None:
            return False
        setattr(character, field, None)
        logger.info(f"Cleared {field} for character {character_id}")
        return True

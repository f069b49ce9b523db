"""
In-character text for the grid game.

Each generator asks Grok first and falls back to canned text when no key is
configured, the call fails, or the reply cannot be parsed.
"""

import logging
import random
from typing import Dict, Optional

from charasphere.settings.constants import (
    CHARACTER_EVENT_PROMPT,
    CHARACTER_SYSTEM_INSTRUCTIONS,
    ENCOUNTER_PROMPT,
    EVENT_CONTENT_PROMPT,
    EVENT_TILE_REWARD,
    HANDOFF_DIALOG_PROMPT,
)
from charasphere.utils.grok import GrokError, GrokUtil
from charasphere.utils.schemas import Character

logger = logging.getLogger(__name__)

EVENT_KEYS = ("E1", "E2", "E3")
UNKNOWN_SERIES = "an unknown series"
DEFAULT_PLAYER_NAME = "the explorer"

WATCHER_FALLBACK_EVENTS = {
    "E1": "A mysterious voice shares some wisdom, rewarding you with {reward} gold.",
    "E2": "An unseen helper guides you to a discovery, leaving {reward} gold as a gift.",
    "E3": "A hidden ally assists in overcoming a challenge, providing {reward} gold for your efforts.",
}

CHARACTER_FALLBACK_EVENTS = {
    "E1": '{name}: "What a fortunate discovery!"',
    "E2": '{name}: "This gold will serve me well."',
    "E3": '{name}: "A modest treasure, but welcome nonetheless."',
}

HANDOFF_DIALOGS = [
    {
        "outgoing": "Take care of our friends here, {incoming}!",
        "incoming": "Leave it to me, {outgoing}! I'll make sure to discover every tile!",
    },
    {
        "outgoing": "Time for me to rest. Show them what you've got, {incoming}!",
        "incoming": "Thanks {outgoing}! I'll make the most of these moves!",
    },
    {
        "outgoing": "{incoming}, the adventure is yours now. Make it count!",
        "incoming": "I won't let you down, {outgoing}! Let's find some treasure!",
    },
]


def _system_for(character: Optional[Character]) -> Optional[str]:
    if character is None or not character.bio:
        return None
    return CHARACTER_SYSTEM_INSTRUCTIONS.format(bio=character.bio)


def _complete_events(reply: Optional[Dict], fallback: Dict[str, str]) -> Dict[str, str]:
    """Take E1-E3 from a parsed reply, filling any missing key from the fallback."""
    events = {}
    for key in EVENT_KEYS:
        value = (reply or {}).get(key)
        events[key] = value.strip() if isinstance(value, str) and value.strip() else fallback[key]
    return events


def watcher_fallback_events(reward: int = EVENT_TILE_REWARD) -> Dict[str, str]:
    return {key: text.format(reward=reward) for key, text in WATCHER_FALLBACK_EVENTS.items()}


def character_fallback_events(name: str) -> Dict[str, str]:
    return {key: text.format(name=name) for key, text in CHARACTER_FALLBACK_EVENTS.items()}


def canned_handoff_dialog(outgoing_name: str, incoming_name: str, rng=random) -> Dict[str, str]:
    template = rng.choice(HANDOFF_DIALOGS)
    return {
        side: line.format(outgoing=outgoing_name, incoming=incoming_name)
        for side, line in template.items()
    }


def encounter_fallback(player_name: str, other_name: str) -> str:
    return f"{player_name} encounters {other_name}!"


async def generate_watcher_events(
    grok: GrokUtil,
    watcher: Optional[Character],
    player: Optional[Character] = None,
    reward: int = EVENT_TILE_REWARD,
) -> Dict[str, str]:
    """Event tile texts written in the voice of the hidden watcher (the C4 character)."""
    fallback = watcher_fallback_events(reward)
    if watcher is None or not grok.configured:
        return fallback

    prompt = EVENT_CONTENT_PROMPT.format(
        watcher_name=watcher.name,
        watcher_series=watcher.series.name if watcher.series else UNKNOWN_SERIES,
        player_name=player.name if player else DEFAULT_PLAYER_NAME,
        reward=reward,
    )
    reply = await grok.complete_json(prompt, system=_system_for(watcher))
    if reply is None:
        logger.info(f"Using fallback event texts for watcher {watcher.characterid}")
    return _complete_events(reply, fallback)


async def generate_character_events(
    grok: GrokUtil, character: Character, reward: int = EVENT_TILE_REWARD
) -> Dict[str, str]:
    """Three in-character reactions to finding gold."""
    fallback = character_fallback_events(character.name)
    if not grok.configured:
        return fallback

    prompt = CHARACTER_EVENT_PROMPT.format(
        name=character.name,
        series=character.series.name if character.series else UNKNOWN_SERIES,
        reward=reward,
    )
    reply = await grok.complete_json(prompt, system=_system_for(character))
    return _complete_events(reply, fallback)


async def generate_encounter_line(
    grok: GrokUtil, player: Optional[Character], other: Character
) -> str:
    """One or two sentences spoken when the player's character meets a newly claimed one."""
    player_name = player.name if player else DEFAULT_PLAYER_NAME
    fallback = encounter_fallback(player_name, other.name)
    if player is None or not grok.configured:
        return fallback

    prompt = ENCOUNTER_PROMPT.format(
        player_name=player.name,
        player_series=player.series.name if player.series else UNKNOWN_SERIES,
        other_name=other.name,
        other_series=other.series.name if other.series else UNKNOWN_SERIES,
    )
    try:
        line = await grok.complete(prompt, system=_system_for(player))
    except GrokError as e:
        logger.warning(f"Encounter line generation failed: {e}")
        return fallback
    return line or fallback


async def generate_handoff_dialog(
    grok: GrokUtil,
    outgoing_name: str,
    incoming_name: str,
    outgoing_series: Optional[str] = None,
    incoming_series: Optional[str] = None,
    rng=random,
) -> Dict[str, str]:
    """Dialog pair for swapping the active character."""
    fallback = canned_handoff_dialog(outgoing_name, incoming_name, rng=rng)
    if not grok.configured:
        return fallback

    prompt = HANDOFF_DIALOG_PROMPT.format(
        outgoing_name=outgoing_name,
        outgoing_context=f" from {outgoing_series}" if outgoing_series else "",
        incoming_name=incoming_name,
        incoming_context=f" from {incoming_series}" if incoming_series else "",
    )
    reply = await grok.complete_json(prompt)
    if not reply:
        return fallback

    outgoing = reply.get("outgoing")
    incoming = reply.get("incoming")
    if not (isinstance(outgoing, str) and isinstance(incoming, str) and outgoing and incoming):
        return fallback
    return {"outgoing": outgoing.strip(), "incoming": incoming.strip()}

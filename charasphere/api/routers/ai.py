"""
AI content bridge endpoints.

This module forwards requests to the Grok chat model and the Flux image
generator, and serves in-character text for the game:
- Chat with optional image generation (/grok)
- Image generation (/flux)
- Character hand-off dialog (/generate-dialog)
- Event tile lines for a character (/event-content)

Vendor failures on /grok and /flux come back with status 200 so the client can
show them inline.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from charasphere.api.config import flux_util, grok_util
from charasphere.api.dependencies import get_player
from charasphere.api.limiter import AI_RATE_LIMIT, limiter
from charasphere.api.schemas import (
    DialogResponse,
    EventContentRequest,
    EventContentResponse,
    FluxRequest,
    FluxResponse,
    GenerateDialogRequest,
    GrokRequest,
    GrokResponse,
)
from charasphere.utils import content
from charasphere.utils.flux import FluxError
from charasphere.utils.grok import GrokError
from charasphere.utils.services import character_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ai"])

IMAGE_GENERATED_MESSAGE = "I've generated an image based on your request."
IMAGE_FAILED_MESSAGE = "I tried to generate an image but encountered an error. "


@router.post("/grok", response_model=GrokResponse, response_model_exclude_none=True)
@limiter.limit(AI_RATE_LIMIT)
async def grok_chat(
    request: Request,
    body: GrokRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """
    Chat with the image assistant.

    When the model calls generate_image, the prompt is sent to Flux with the same
    caller key and the resulting URL is returned alongside the reply.
    """
    api_key = body.api_key or grok_util.api_key
    if not api_key:
        raise HTTPException(status_code=401, detail="API key is required")
    if not body.message:
        raise HTTPException(status_code=400, detail="Message is required")

    try:
        reply, image_prompt = await grok_util.chat_with_image_tool(body.message, api_key=api_key)
    except GrokError as e:
        return GrokResponse(content=f"Error: {e}")

    if not image_prompt:
        return GrokResponse(content=reply or "No response from Grok")

    logger.info(f"Grok requested an image: {image_prompt[:80]!r}")
    try:
        image_url, error = await flux_util.generate_image(image_prompt, api_key=body.api_key)
    except FluxError as e:
        image_url, error = None, str(e)

    if not image_url:
        logger.warning(f"Image generation for chat failed: {error}")
        return GrokResponse(content=IMAGE_FAILED_MESSAGE + (error or "Failed to generate image"))

    return GrokResponse(content=reply or IMAGE_GENERATED_MESSAGE, image_url=image_url)


@router.post("/flux", response_model=FluxResponse, response_model_exclude_none=True)
@limiter.limit(AI_RATE_LIMIT)
async def flux_image(
    request: Request,
    body: FluxRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Generate one splash-art image and wait for it."""
    if not body.prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")
    if not (body.api_key or flux_util.api_key):
        raise HTTPException(status_code=401, detail="No API key provided")

    try:
        image_url, error = await flux_util.generate_image(
            body.prompt, api_key=body.api_key, seed=body.seed
        )
    except FluxError as e:
        logger.error(f"Flux polling failed: {e}")
        return FluxResponse(error="Internal server error")

    if error:
        return FluxResponse(error=error)
    return FluxResponse(image_url=image_url)


@router.post("/generate-dialog", response_model=DialogResponse)
@limiter.limit(AI_RATE_LIMIT)
async def generate_dialog(
    request: Request,
    body: GenerateDialogRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Dialog pair for handing the active slot from one character to another."""
    outgoing = body.outgoing_character
    incoming = body.incoming_character

    try:
        dialog = await content.generate_handoff_dialog(
            grok_util, outgoing.name, incoming.name, outgoing.series, incoming.series
        )
        return DialogResponse(**dialog)
    except Exception as e:
        logger.error(f"Error generating dialog: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate dialog")


@router.post("/event-content", response_model=EventContentResponse)
@limiter.limit(AI_RATE_LIMIT)
async def event_content(
    request: Request,
    body: EventContentRequest,
    validated_user: Dict[str, Any] = Depends(get_player),
):
    """Three in-character reactions (E1, E2, E3) to finding gold."""
    if not body.character_id:
        raise HTTPException(status_code=400, detail="Character ID is required")

    try:
        character = await asyncio.to_thread(
            character_service.get_character_by_id, body.character_id
        )
        if character is None:
            raise HTTPException(status_code=404, detail="Character not found")
        return await content.generate_character_events(grok_util, character)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating event content for {body.character_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to generate event content")

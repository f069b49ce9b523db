import asyncio
import logging
import random
from typing import Optional, Tuple

import httpx

from charasphere.settings.constants import (
    FLUX_MAX_NETWORK_RETRIES,
    FLUX_MAX_POLL_ATTEMPTS,
    FLUX_POLL_INTERVAL_SECONDS,
    FLUX_PROMPT_TEMPLATE,
    FLUX_RETRY_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

DEFAULT_FLUX_API_URL = "https://api.bfl.ml"

TIMED_OUT = "Generation timed out"
TASK_FAILED = "Error creating generation task"


class FluxError(Exception):
    """Raised when polling keeps failing after every network retry."""


class FluxUtil:
    """Submit-then-poll client for the Flux image generation API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_poll_attempts: int = FLUX_MAX_POLL_ATTEMPTS,
        poll_interval: float = FLUX_POLL_INTERVAL_SECONDS,
        max_retries: int = FLUX_MAX_NETWORK_RETRIES,
        retry_delay: float = FLUX_RETRY_DELAY_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_FLUX_API_URL).rstrip("/")
        self.max_poll_attempts = max_poll_attempts
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    @staticmethod
    def format_prompt(prompt: str) -> str:
        return FLUX_PROMPT_TEMPLATE.format(prompt=prompt)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=30.0, transport=self._transport)

    async def _poll_once(self, client: httpx.AsyncClient, task_id: str, key: str) -> Optional[str]:
        """One poll, retrying network errors. Returns the sample URL when ready."""
        for retry in range(1, self.max_retries + 1):
            try:
                response = await client.get(
                    "/v1/get_result", params={"id": task_id}, headers={"X-Key": key}
                )
                if response.status_code == 404:
                    # Task not registered yet
                    return None
                response.raise_for_status()
                result = response.json()
                if result.get("status") == "Ready" and (result.get("result") or {}).get("sample"):
                    return result["result"]["sample"]
                return None
            except (httpx.HTTPError, ValueError) as e:
                if retry == self.max_retries:
                    raise FluxError(f"Result check failed after {self.max_retries} retries: {e}") from e
                logger.info(f"Flux poll retry {retry}/{self.max_retries} after error: {e}")
                await asyncio.sleep(self.retry_delay)
        return None

    async def generate_image(
        self,
        prompt: str,
        api_key: Optional[str] = None,
        seed: Optional[int] = None,
        format_prompt: bool = True,
    ) -> Tuple[Optional[str], Optional[str]]:
        """
        Generate a 512x768 image and wait for it.

        Args:
            prompt: What to draw
            api_key: Caller-supplied key, falling back to the server key
            seed: Generation seed (random when omitted)
            format_prompt: Wrap the prompt in the splash-art template

        Returns:
            Tuple of (image_url, error_message).

        Raises:
            FluxError: If polling fails on every network retry.
        """
        key = api_key or self.api_key
        if not key:
            return None, "No API key provided"

        body = {
            "prompt": self.format_prompt(prompt) if format_prompt else prompt,
            "width": 512,
            "height": 768,
            "output_format": "jpeg",
            "prompt_upsampling": False,
            "seed": seed if seed is not None else random.randrange(1_000_000),
            "safety_tolerance": 6,
        }

        async with self._client() as client:
            try:
                response = await client.post("/v1/generate", json=body, headers={"X-Key": key})
            except httpx.HTTPError as e:
                logger.error(f"Flux task submission failed: {e}")
                return None, TASK_FAILED
            if response.is_error:
                logger.error(f"Flux API error: {response.status_code} {response.text}")
                return None, TASK_FAILED

            try:
                task_id = response.json().get("id")
            except ValueError:
                task_id = None
            if not task_id:
                logger.error(f"Flux API returned no task id: {response.text}")
                return None, TASK_FAILED
            logger.info(f"Flux task {task_id} created (seed={body['seed']})")

            for attempt in range(1, self.max_poll_attempts + 1):
                image_url = await self._poll_once(client, task_id, key)
                if image_url:
                    logger.info(f"Flux task {task_id} ready after {attempt} poll(s)")
                    return image_url, None
                await asyncio.sleep(self.poll_interval)

        logger.warning(f"Flux task {task_id} timed out after {self.max_poll_attempts} polls")
        return None, TIMED_OUT

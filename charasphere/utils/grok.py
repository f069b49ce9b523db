import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from charasphere.settings.constants import GROK_SYSTEM_INSTRUCTIONS

logger = logging.getLogger(__name__)

DEFAULT_GROK_MODEL = "grok-2-1212"
DEFAULT_GROK_BASE_URL = "https://api.x.ai/v1"

GENERATE_IMAGE_FUNCTION = {
    "name": "generate_image",
    "description": (
        "Generate an anime-style artwork based on a text description. The image will be "
        "generated in a League of Legends splash art style with high quality and dynamic "
        "composition."
    ),
    "parameters": {
        "type": "object",
        "properties": {
            "prompt": {
                "type": "string",
                "description": (
                    "The description of what to generate. Will be automatically formatted into "
                    "a League of Legends style splash art with anime aesthetics."
                ),
            }
        },
        "required": ["prompt"],
    },
}


class GrokError(Exception):
    """Raised when the completion vendor returns an error or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse the outermost ``{...}`` fragment of a model reply.

    Models often wrap JSON in prose or code fences; anything outside the first
    opening and last closing brace is ignored.
    """
    if not text:
        return None
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        value = json.loads(text[start : end + 1])
    except ValueError:
        logger.debug(f"Could not parse JSON fragment from reply: {text[:200]!r}")
        return None
    return value if isinstance(value, dict) else None


class GrokUtil:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.model = model or DEFAULT_GROK_MODEL
        self.base_url = base_url or DEFAULT_GROK_BASE_URL
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _is_caller_key(self, api_key: Optional[str]) -> bool:
        return bool(api_key) and api_key != self.api_key

    def _get_client(self, api_key: Optional[str] = None) -> AsyncOpenAI:
        """Shared client for the server key; a throwaway one for caller-supplied keys."""
        key = api_key or self.api_key
        if not key:
            raise GrokError("API key is required", status_code=401)
        if self._is_caller_key(api_key):
            return AsyncOpenAI(api_key=api_key, base_url=self.base_url, timeout=self.timeout)
        if self._client is None:
            self._client = AsyncOpenAI(api_key=key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def _create(self, api_key: Optional[str], **payload):
        client = self._get_client(api_key)
        try:
            return await client.chat.completions.create(model=self.model, **payload)
        except APIStatusError as e:
            body = e.response.text if e.response is not None else str(e)
            logger.error(f"Grok API error: {e.status_code} - {body}")
            raise GrokError(f"{e.status_code} - {body}", status_code=e.status_code) from e
        except (APIConnectionError, APITimeoutError) as e:
            logger.error(f"Grok API unreachable: {e}")
            raise GrokError(f"Connection error - {e}") from e
        finally:
            # Throwaway clients own an HTTP connection pool
            if self._is_caller_key(api_key):
                await client.close()

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        history: Optional[List[Dict[str, str]]] = None,
        api_key: Optional[str] = None,
    ) -> str:
        """Plain chat completion. Returns the reply text (possibly empty)."""
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.extend(history or [])
        messages.append({"role": "user", "content": prompt})

        logger.debug(f"Grok completion request: {prompt[:120]!r}")
        response = await self._create(api_key, messages=messages)
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()

    async def complete_json(
        self, prompt: str, system: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Completion parsed as a JSON object. Returns None on any vendor or parse failure."""
        try:
            reply = await self.complete(prompt, system=system)
        except GrokError as e:
            logger.warning(f"Grok JSON completion failed: {e}")
            return None
        return extract_json_object(reply)

    async def chat_with_image_tool(
        self, message: str, api_key: Optional[str] = None
    ) -> Tuple[str, Optional[str]]:
        """
        Chat as the image assistant with the generate_image function forced.

        Returns:
            Tuple of (reply content, image prompt). The image prompt is None when the
            model did not call the function.

        Raises:
            GrokError: If the vendor call fails.
        """
        response = await self._create(
            api_key,
            messages=[
                {"role": "system", "content": GROK_SYSTEM_INSTRUCTIONS},
                {"role": "user", "content": message},
            ],
            functions=[GENERATE_IMAGE_FUNCTION],
            function_call={"name": GENERATE_IMAGE_FUNCTION["name"]},
        )
        if not response.choices:
            return "", None

        reply = response.choices[0].message
        content = (reply.content or "").strip()
        function_call = getattr(reply, "function_call", None)
        if function_call is None or function_call.name != GENERATE_IMAGE_FUNCTION["name"]:
            return content, None

        try:
            arguments = json.loads(function_call.arguments or "{}")
        except ValueError:
            logger.warning(f"Unparseable generate_image arguments: {function_call.arguments!r}")
            return content, None

        image_prompt = arguments.get("prompt") if isinstance(arguments, dict) else None
        return content, image_prompt or None

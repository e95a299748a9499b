"""Azure OpenAI client for newsletter copy and cover images."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from runway.errors import ConfigurationError, GenerationError
from runway.models.settings import Settings

logger = logging.getLogger(__name__)


class AzureOpenAIClient:
    """Client for the hosted chat completion and image generation endpoints.

    Every call is a single attempt: a non-2xx response raises
    :class:`GenerationError` carrying the response body, and network errors
    propagate unchanged. Callers decide whether to fall back.
    """

    def __init__(
        self,
        settings: Settings,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """Initialize the client.

        Args:
            settings: Settings with endpoint, key and deployment values
            session: Optional shared HTTP session; one is created per
                request when omitted
        """
        if not settings.text_generation_configured:
            missing = [
                name
                for name in (
                    "azure_openai_endpoint",
                    "azure_openai_api_key",
                    "azure_openai_deployment_name",
                )
                if not getattr(settings, name)
            ]
            raise ConfigurationError(
                f"Missing required Azure OpenAI config: {', '.join(missing)}"
            )

        self.settings = settings
        self.session = session
        self.endpoint = settings.azure_openai_endpoint.rstrip("/")
        self.headers = {
            "Content-Type": "application/json",
            "api-key": settings.azure_openai_api_key,
        }
        self.timeout = settings.llm_timeout
        self.image_timeout = settings.image_timeout

    @property
    def chat_url(self) -> str:
        return (
            f"{self.endpoint}/openai/deployments/"
            f"{self.settings.azure_openai_deployment_name}/chat/completions"
            f"?api-version={self.settings.azure_openai_api_version}"
        )

    @property
    def image_url(self) -> str:
        if not self.settings.image_generation_configured:
            raise ConfigurationError("Image generation is not configured")
        endpoint = self.settings.azure_image_endpoint.rstrip("/")
        return (
            f"{endpoint}/openai/deployments/"
            f"{self.settings.azure_image_deployment_name}/images/generations"
            f"?api-version={self.settings.azure_image_api_version}"
        )

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str = "",
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> str:
        """Generate newsletter copy.

        Args:
            prompt: User prompt with articles and instructions
            system_prompt: Role description for the model
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate

        Returns:
            The first choice's message content
        """
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": 0.95,
            "frequency_penalty": 0.5,
            "presence_penalty": 0.5,
        }

        logger.debug(f"Requesting chat completion ({len(prompt)} prompt chars)")
        data = await self._post_json(self.chat_url, payload, self.headers, self.timeout)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected chat completion payload: {e}") from e

        if not content:
            raise GenerationError("Chat completion returned empty content")
        return content

    async def generate_image(self, prompt: str) -> str:
        """Generate a cover image.

        Returns:
            A ``data:image/png;base64,...`` URI, or a plain URL when the
            service returns one instead of inline data
        """
        payload = {
            "prompt": prompt,
            "n": 1,
            "size": "1024x1024",
            "quality": "medium",
            "output_format": "png",
            "output_compression": 100,
        }
        headers = {
            "Content-Type": "application/json",
            "api-key": self.settings.azure_image_api_key or "",
        }

        data = await self._post_json(self.image_url, payload, headers, self.image_timeout)

        try:
            image = data["data"][0]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Unexpected image payload: {e}") from e

        if image.get("b64_json"):
            return f"data:image/png;base64,{image['b64_json']}"
        if image.get("url"):
            return image["url"]
        raise GenerationError("Image payload contained neither b64_json nor url")

    async def test_connection(self) -> bool:
        """Send a tiny completion to check credentials and deployment."""
        payload = {
            "messages": [{"role": "user", "content": "Test connection"}],
            "max_tokens": 5,
        }
        try:
            await self._post_json(self.chat_url, payload, self.headers, 30.0)
            return True
        except (GenerationError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Azure OpenAI connection test failed: {e}")
            return False

    async def _post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
    ) -> Dict[str, Any]:
        """POST a JSON payload and return the decoded JSON response."""
        if self.session is not None:
            return await self._send(self.session, url, payload, headers, timeout)

        async with aiohttp.ClientSession() as session:
            return await self._send(session, url, payload, headers, timeout)

    async def _send(
        self,
        session: aiohttp.ClientSession,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
        timeout: float,
    ) -> Dict[str, Any]:
        async with session.post(
            url,
            headers=headers,
            json=payload,
            timeout=aiohttp.ClientTimeout(total=timeout),
        ) as response:
            if response.status < 200 or response.status >= 300:
                error_text = await response.text()
                raise GenerationError(
                    "Azure OpenAI API error", status=response.status, body=error_text
                )
            return await response.json()

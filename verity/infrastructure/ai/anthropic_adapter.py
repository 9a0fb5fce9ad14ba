"""Anthropic Messages API implementation of the LLM provider interface."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import ProviderError
from ...domain.ports.llm_provider import CompletionOptions

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicConfig(BaseModel):
    """Configuration for the Anthropic adapter."""

    api_key: str = Field(..., description="Anthropic API key")
    model: str = Field(default="claude-3-haiku-20240307", description="Default model")
    base_url: str = Field(default="https://api.anthropic.com/v1", description="API base URL")
    timeout: float = Field(default=60.0, description="API timeout in seconds")


class AnthropicAdapter:
    """Anthropic implementation of the LLM provider interface."""

    def __init__(
        self,
        config: AnthropicConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the adapter.

        Args:
            config: Adapter configuration
            transport: Optional HTTP transport, used by tests
        """
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
                headers={
                    "x-api-key": self._config.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                    "Content-Type": "application/json",
                },
            )
            logger.info(f"🤖 Anthropic provider ready (model: {self._config.model})")

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Generate a completion with the Messages API.

        Raises:
            ProviderError: If the provider is not initialized or the API call fails
        """
        if self._client is None:
            raise ProviderError("Anthropic provider not initialized")

        options = options or CompletionOptions()
        body = {
            "model": options.model or self._config.model,
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
            "messages": [{"role": "user", "content": user_prompt}],
        }
        if system_prompt:
            body["system"] = system_prompt

        try:
            response = await self._client.post("/messages", json=body)
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Anthropic request failed: {e}") from e

        if not isinstance(payload, dict):
            raise ProviderError("Anthropic returned an unexpected response")
        error = payload.get("error")
        if error:
            raise ProviderError(f"Anthropic error: {error.get('message', error)}")
        if response.status_code >= 400:
            raise ProviderError(f"Anthropic request failed with status {response.status_code}")

        content = payload.get("content") or []
        if not content:
            raise ProviderError("Anthropic returned no content")
        return content[0].get("text", "")

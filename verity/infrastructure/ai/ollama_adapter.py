"""Ollama (local models) implementation of the LLM provider interface."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import ProviderError
from ...domain.ports.llm_provider import CompletionOptions

logger = logging.getLogger(__name__)


class OllamaConfig(BaseModel):
    """Configuration for the Ollama adapter."""

    base_url: str = Field(default="http://localhost:11434", description="Ollama server URL")
    model: str = Field(default="llama3", description="Default local model")
    timeout: float = Field(default=120.0, description="Request timeout in seconds")


class OllamaAdapter:
    """Ollama implementation of the LLM provider interface."""

    def __init__(
        self,
        config: Optional[OllamaConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or OllamaConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider_name(self) -> str:
        return "ollama"

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
            )
            logger.info(f"🤖 Ollama provider ready ({self._config.base_url}, model: {self._config.model})")

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
        """Generate a completion with the non-streaming generate API.

        Raises:
            ProviderError: If the provider is not initialized or the request fails
        """
        if self._client is None:
            raise ProviderError("Ollama provider not initialized")

        options = options or CompletionOptions()
        body = {
            "model": options.model or self._config.model,
            "prompt": user_prompt,
            "stream": False,
            "options": {
                "temperature": options.temperature,
                "num_predict": options.max_tokens,
            },
        }
        if system_prompt:
            body["system"] = system_prompt

        try:
            response = await self._client.post("/api/generate", json=body)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Ollama request failed: {e}") from e

        if not isinstance(payload, dict):
            raise ProviderError("Ollama returned an unexpected response")
        if payload.get("error"):
            raise ProviderError(f"Ollama error: {payload['error']}")
        return payload.get("response", "")

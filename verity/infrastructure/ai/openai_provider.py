"""OpenAI implementation of the LLM provider interface."""

import logging
from typing import Optional

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field

from ...domain.errors import ProviderError
from ...domain.ports.llm_provider import CompletionOptions

logger = logging.getLogger(__name__)


class OpenAIConfig(BaseModel):
    """Configuration for the OpenAI provider."""

    api_key: str = Field(..., description="OpenAI API key")
    model: str = Field(default="gpt-4o-mini", description="Default chat model")
    base_url: Optional[str] = Field(default=None, description="Override for OpenAI-compatible endpoints")
    timeout: float = Field(default=60.0, description="API timeout in seconds")


class OpenAIProvider:
    """OpenAI chat-completions implementation of the LLM provider interface."""

    def __init__(self, config: OpenAIConfig):
        """Initialize the provider."""
        self._config = config
        self._client: Optional[AsyncOpenAI] = None

    @property
    def provider_name(self) -> str:
        return "openai"

    async def initialize(self) -> None:
        """Create the API client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                timeout=self._config.timeout,
            )
            logger.info(f"🤖 OpenAI provider ready (model: {self._config.model})")

    async def shutdown(self) -> None:
        """Close the API client."""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Generate a chat completion.

        Raises:
            ProviderError: If the provider is not initialized or the API call fails
        """
        if self._client is None:
            raise ProviderError("OpenAI provider not initialized")

        options = options or CompletionOptions()
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        try:
            response = await self._client.chat.completions.create(
                model=options.model or self._config.model,
                messages=messages,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise ProviderError("OpenAI returned no choices")
        return response.choices[0].message.content or ""

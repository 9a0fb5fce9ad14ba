"""Google Gemini implementation of the LLM provider interface."""

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field

from ...domain.errors import ProviderError
from ...domain.ports.llm_provider import CompletionOptions

logger = logging.getLogger(__name__)


class GeminiConfig(BaseModel):
    """Configuration for the Gemini adapter."""

    api_key: str = Field(..., description="Gemini API key")
    model: str = Field(default="gemini-1.5-flash", description="Default model")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="API base URL",
    )
    timeout: float = Field(default=60.0, description="API timeout in seconds")


class GeminiAdapter:
    """Gemini generateContent implementation of the LLM provider interface."""

    def __init__(
        self,
        config: GeminiConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def provider_name(self) -> str:
        return "gemini"

    async def initialize(self) -> None:
        """Create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                transport=self._transport,
                headers={"Content-Type": "application/json"},
            )
            logger.info(f"🤖 Gemini provider ready (model: {self._config.model})")

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
        """Generate a completion.

        Raises:
            ProviderError: If the provider is not initialized or the API call fails
        """
        if self._client is None:
            raise ProviderError("Gemini provider not initialized")

        options = options or CompletionOptions()
        model = options.model or self._config.model
        body = {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "temperature": options.temperature,
                "maxOutputTokens": options.max_tokens,
            },
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        try:
            response = await self._client.post(
                f"/models/{model}:generateContent",
                params={"key": self._config.api_key},
                json=body,
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Gemini request failed: {e}") from e

        if not isinstance(payload, dict):
            raise ProviderError("Gemini returned an unexpected response")
        error = payload.get("error")
        if error:
            raise ProviderError(f"Gemini error: {error.get('message')} (code {error.get('code')})")
        if response.status_code >= 400:
            raise ProviderError(f"Gemini request failed with status {response.status_code}")

        candidates = payload.get("candidates") or []
        parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
        if not parts:
            raise ProviderError("Gemini returned no content")
        return parts[0].get("text", "")

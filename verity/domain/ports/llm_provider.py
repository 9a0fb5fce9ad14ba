"""Protocol for language-model providers."""

from typing import Optional, Protocol

from pydantic import BaseModel, Field


class CompletionOptions(BaseModel):
    """Options for a single completion request."""

    max_tokens: int = Field(default=2048, gt=0, description="Maximum tokens in the response")
    temperature: float = Field(default=0.0, ge=0.0, le=2.0, description="Sampling temperature")
    model: Optional[str] = Field(default=None, description="Override the provider's default model")


class LLMProvider(Protocol):
    """Protocol defining the interface for language-model providers.

    Every backend is reduced to one capability: turn an optional system
    instruction plus a user prompt into free text. Implementations raise
    ``ProviderError`` on transport, authentication or quota failures.
    """

    async def initialize(self) -> None:
        """Initialize the provider."""
        ...

    async def shutdown(self) -> None:
        """Clean up resources."""
        ...

    async def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        """Generate a completion."""
        ...

    @property
    def provider_name(self) -> str:
        """Get the provider name."""
        ...

"""Factory for creating and managing LLM providers."""

import logging
from typing import Dict, Tuple, Type

from pydantic import BaseModel, ValidationError

from ...domain.errors import ConfigurationError
from ...domain.ports.llm_provider import LLMProvider
from .anthropic_adapter import AnthropicAdapter, AnthropicConfig
from .gemini_adapter import GeminiAdapter, GeminiConfig
from .ollama_adapter import OllamaAdapter, OllamaConfig
from .openai_provider import OpenAIConfig, OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """Factory for creating and managing LLM providers."""

    def __init__(self):
        """Initialize the factory with the built-in providers."""
        self._providers: Dict[str, Tuple[Type[LLMProvider], Type[BaseModel]]] = {}
        self._instances: Dict[str, LLMProvider] = {}

        self.register_provider("openai", OpenAIProvider, OpenAIConfig)
        self.register_provider("anthropic", AnthropicAdapter, AnthropicConfig)
        self.register_provider("gemini", GeminiAdapter, GeminiConfig)
        self.register_provider("ollama", OllamaAdapter, OllamaConfig)

    def register_provider(
        self,
        name: str,
        provider_class: Type[LLMProvider],
        config_class: Type[BaseModel],
    ) -> None:
        """Register a new LLM provider.

        Args:
            name: Provider name
            provider_class: Provider class, constructed with a config instance
            config_class: Pydantic model holding the provider's settings
        """
        self._providers[name] = (provider_class, config_class)

    async def create_provider(self, name: str, **settings) -> LLMProvider:
        """Create and initialize a provider instance.

        Args:
            name: Provider name
            **settings: Fields of the provider's config model; ``None``
                values fall back to the model defaults

        Returns:
            Initialized provider instance

        Raises:
            ConfigurationError: If the provider is unknown or its settings
                are invalid
        """
        if name not in self._providers:
            raise ConfigurationError(f"Unsupported LLM provider: {name}")

        if name not in self._instances:
            provider_class, config_class = self._providers[name]
            try:
                config = config_class(**{k: v for k, v in settings.items() if v is not None})
            except ValidationError as e:
                raise ConfigurationError(f"Invalid settings for LLM provider '{name}': {e}") from e

            provider = provider_class(config)
            await provider.initialize()
            self._instances[name] = provider
            logger.info(f"✅ LLM provider '{name}' initialized")

        return self._instances[name]

    async def shutdown(self) -> None:
        """Shutdown all provider instances."""
        for provider in self._instances.values():
            await provider.shutdown()
        self._instances.clear()

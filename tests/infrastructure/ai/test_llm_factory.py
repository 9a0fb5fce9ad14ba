"""Tests for the LLM provider factory."""

import pytest

from verity.domain.errors import ConfigurationError
from verity.infrastructure.ai.factory import LLMProviderFactory
from verity.infrastructure.ai.ollama_adapter import OllamaAdapter, OllamaConfig
from verity.infrastructure.ai.openai_provider import OpenAIProvider

from conftest import FakeLLM


class RecordingProvider(FakeLLM):
    def __init__(self, config: OllamaConfig):
        super().__init__()
        self.config = config


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["openai", "anthropic", "gemini"])
async def test_hosted_providers_registered(name):
    provider = await LLMProviderFactory().create_provider(name, api_key="sk-test")
    assert provider.provider_name == name
    await provider.shutdown()


@pytest.mark.asyncio
async def test_create_provider_initializes_and_caches():
    factory = LLMProviderFactory()
    factory.register_provider("recording", RecordingProvider, OllamaConfig)

    provider = await factory.create_provider("recording", model="phi3", base_url=None)

    assert provider.initialized
    assert provider.config.model == "phi3"
    assert provider.config.base_url == "http://localhost:11434"
    assert await factory.create_provider("recording") is provider

    await factory.shutdown()
    assert provider.closed
    assert await factory.create_provider("recording") is not provider


@pytest.mark.asyncio
async def test_create_builtin_providers():
    factory = LLMProviderFactory()

    openai = await factory.create_provider("openai", api_key="sk-test", model="gpt-4o")
    ollama = await factory.create_provider("ollama")

    assert isinstance(openai, OpenAIProvider)
    assert isinstance(ollama, OllamaAdapter)
    assert openai.provider_name == "openai"
    await factory.shutdown()


@pytest.mark.asyncio
async def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Unsupported LLM provider"):
        await LLMProviderFactory().create_provider("watson")


@pytest.mark.asyncio
async def test_missing_api_key():
    with pytest.raises(ConfigurationError, match="anthropic"):
        await LLMProviderFactory().create_provider("anthropic")

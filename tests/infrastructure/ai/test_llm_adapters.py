"""Tests for the LLM provider adapters."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from openai import OpenAIError

from verity.domain.errors import ProviderError
from verity.domain.ports.llm_provider import CompletionOptions
from verity.infrastructure.ai.anthropic_adapter import ANTHROPIC_VERSION, AnthropicAdapter, AnthropicConfig
from verity.infrastructure.ai.gemini_adapter import GeminiAdapter, GeminiConfig
from verity.infrastructure.ai.ollama_adapter import OllamaAdapter, OllamaConfig
from verity.infrastructure.ai.openai_provider import OpenAIConfig, OpenAIProvider


class Recorder:
    """MockTransport handler that records requests and replays one response."""

    def __init__(self, status_code: int = 200, payload=None, text: str = None):
        self.status_code = status_code
        self.payload = payload
        self.text = text
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def body(self) -> dict:
        return json.loads(self.requests[-1].content)


def chat_completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest_asyncio.fixture
async def openai_provider():
    provider = OpenAIProvider(OpenAIConfig(api_key="test-key"))
    await provider.initialize()
    yield provider
    await provider.shutdown()


@pytest.mark.asyncio
async def test_openai_sends_system_and_user_messages(openai_provider):
    create = AsyncMock(return_value=chat_completion('{"claims": []}'))
    with patch.object(openai_provider._client.chat.completions, "create", new=create):
        result = await openai_provider.complete(
            "You extract claims.", "Text to analyze", CompletionOptions(max_tokens=100, temperature=0.2)
        )

    assert result == '{"claims": []}'
    kwargs = create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["max_tokens"] == 100
    assert kwargs["temperature"] == 0.2
    assert kwargs["messages"] == [
        {"role": "system", "content": "You extract claims."},
        {"role": "user", "content": "Text to analyze"},
    ]


@pytest.mark.asyncio
async def test_openai_omits_empty_system_prompt(openai_provider):
    create = AsyncMock(return_value=chat_completion("ok"))
    with patch.object(openai_provider._client.chat.completions, "create", new=create):
        await openai_provider.complete(None, "hello", CompletionOptions(model="gpt-4o"))

    assert create.call_args.kwargs["messages"] == [{"role": "user", "content": "hello"}]
    assert create.call_args.kwargs["model"] == "gpt-4o"


@pytest.mark.asyncio
async def test_openai_errors_become_provider_errors(openai_provider):
    create = AsyncMock(side_effect=OpenAIError("rate limited"))
    with patch.object(openai_provider._client.chat.completions, "create", new=create):
        with pytest.raises(ProviderError, match="rate limited"):
            await openai_provider.complete(None, "hello")


@pytest.mark.asyncio
async def test_openai_without_choices_fails(openai_provider):
    create = AsyncMock(return_value=SimpleNamespace(choices=[]))
    with patch.object(openai_provider._client.chat.completions, "create", new=create):
        with pytest.raises(ProviderError, match="no choices"):
            await openai_provider.complete(None, "hello")


@pytest.mark.asyncio
async def test_openai_requires_initialize():
    provider = OpenAIProvider(OpenAIConfig(api_key="test-key"))
    with pytest.raises(ProviderError, match="not initialized"):
        await provider.complete(None, "hello")


@pytest.mark.asyncio
async def test_anthropic_request_and_response():
    handler = Recorder(payload={"content": [{"type": "text", "text": '{"reasoning": "ok"}'}]})
    adapter = AnthropicAdapter(AnthropicConfig(api_key="sk-ant"), transport=httpx.MockTransport(handler))
    await adapter.initialize()
    try:
        result = await adapter.complete("Be strict.", "Claim: x", CompletionOptions(max_tokens=50))
    finally:
        await adapter.shutdown()

    assert result == '{"reasoning": "ok"}'
    request = handler.requests[0]
    assert request.url.path == "/v1/messages"
    assert request.headers["x-api-key"] == "sk-ant"
    assert request.headers["anthropic-version"] == ANTHROPIC_VERSION
    assert handler.body["system"] == "Be strict."
    assert handler.body["max_tokens"] == 50
    assert handler.body["messages"] == [{"role": "user", "content": "Claim: x"}]


@pytest.mark.asyncio
async def test_anthropic_error_payload():
    handler = Recorder(400, {"type": "error", "error": {"type": "invalid_request_error", "message": "bad model"}})
    adapter = AnthropicAdapter(AnthropicConfig(api_key="sk-ant"), transport=httpx.MockTransport(handler))
    await adapter.initialize()
    with pytest.raises(ProviderError, match="bad model"):
        await adapter.complete(None, "x")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_anthropic_empty_content():
    adapter = AnthropicAdapter(
        AnthropicConfig(api_key="sk-ant"), transport=httpx.MockTransport(Recorder(payload={"content": []}))
    )
    await adapter.initialize()
    with pytest.raises(ProviderError, match="no content"):
        await adapter.complete(None, "x")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_gemini_request_and_response():
    handler = Recorder(payload={"candidates": [{"content": {"parts": [{"text": "answer"}]}}]})
    adapter = GeminiAdapter(GeminiConfig(api_key="g-key"), transport=httpx.MockTransport(handler))
    await adapter.initialize()
    try:
        result = await adapter.complete("System", "User", CompletionOptions(temperature=0.3))
    finally:
        await adapter.shutdown()

    assert result == "answer"
    request = handler.requests[0]
    assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert request.url.params["key"] == "g-key"
    assert handler.body["systemInstruction"] == {"parts": [{"text": "System"}]}
    assert handler.body["contents"][0]["parts"] == [{"text": "User"}]
    assert handler.body["generationConfig"]["temperature"] == 0.3


@pytest.mark.asyncio
async def test_gemini_error_payload():
    handler = Recorder(403, {"error": {"code": 403, "message": "API key not valid"}})
    adapter = GeminiAdapter(GeminiConfig(api_key="g-key"), transport=httpx.MockTransport(handler))
    await adapter.initialize()
    with pytest.raises(ProviderError, match="API key not valid"):
        await adapter.complete(None, "x")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_ollama_request_and_response():
    handler = Recorder(payload={"response": "local answer", "done": True})
    adapter = OllamaAdapter(OllamaConfig(model="mistral"), transport=httpx.MockTransport(handler))
    await adapter.initialize()
    try:
        result = await adapter.complete("System", "User", CompletionOptions(max_tokens=64))
    finally:
        await adapter.shutdown()

    assert result == "local answer"
    assert handler.requests[0].url.path == "/api/generate"
    assert handler.body["model"] == "mistral"
    assert handler.body["stream"] is False
    assert handler.body["system"] == "System"
    assert handler.body["options"]["num_predict"] == 64


@pytest.mark.asyncio
async def test_ollama_http_error():
    adapter = OllamaAdapter(transport=httpx.MockTransport(Recorder(500, text="boom")))
    await adapter.initialize()
    with pytest.raises(ProviderError, match="Ollama request failed"):
        await adapter.complete(None, "x")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_ollama_error_field():
    adapter = OllamaAdapter(transport=httpx.MockTransport(Recorder(payload={"error": "model not found"})))
    await adapter.initialize()
    with pytest.raises(ProviderError, match="model not found"):
        await adapter.complete(None, "x")
    await adapter.shutdown()


@pytest.mark.asyncio
async def test_ollama_requires_initialize():
    with pytest.raises(ProviderError, match="not initialized"):
        await OllamaAdapter().complete(None, "x")

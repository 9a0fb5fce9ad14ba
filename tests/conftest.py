"""Test configuration and common fixtures."""

import asyncio
import json
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from verity.domain.models.evidence import Evidence, EvidenceSourceType
from verity.domain.ports.llm_provider import CompletionOptions
from verity.domain.services.claim_verifier import EVIDENCE_SYSTEM_PROMPT, KNOWLEDGE_SYSTEM_PROMPT
from verity.infrastructure.config import LLMConfig, SearchConfig, VerityConfig
from verity.infrastructure.storage.memory_store import InMemoryStore


def extraction_payload(*texts: str, claim_type: str = "factual") -> str:
    """Build an extraction response for the given claim texts."""
    return json.dumps(
        {"claims": [{"text": t, "type": claim_type, "sentence_index": i} for i, t in enumerate(texts)]}
    )


def verdict_payload(status: str = "verified", confidence: float = 0.9, reasoning: str = "Looks right") -> str:
    """Build a verification response."""
    return json.dumps(
        {"verification_status": status, "confidence_score": confidence, "reasoning": reasoning}
    )


class FakeLLM:
    """Scripted LLM provider.

    Routes each call by its system prompt: extraction calls return
    ``extraction``, evidence-backed calls return ``evidence_verdict`` and
    knowledge-only calls return ``knowledge_verdict``. Tracks how many
    verification calls run at the same time.
    """

    def __init__(
        self,
        extraction: str = extraction_payload("The Earth orbits the Sun."),
        evidence_verdict: str = verdict_payload(),
        knowledge_verdict: str = verdict_payload("mixed", 0.5, "Probably"),
        delay: float = 0.0,
        fail_verification: bool = False,
    ):
        self.extraction = extraction
        self.evidence_verdict = evidence_verdict
        self.knowledge_verdict = knowledge_verdict
        self.delay = delay
        self.fail_verification = fail_verification
        self.calls: List[Dict[str, Optional[str]]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.initialized = False
        self.closed = False

    @property
    def provider_name(self) -> str:
        return "fake"

    async def initialize(self) -> None:
        self.initialized = True

    async def shutdown(self) -> None:
        self.closed = True

    @property
    def extraction_calls(self) -> int:
        return sum(1 for c in self.calls if c["kind"] == "extract")

    @property
    def evidence_calls(self) -> int:
        return sum(1 for c in self.calls if c["kind"] == "evidence")

    @property
    def knowledge_calls(self) -> int:
        return sum(1 for c in self.calls if c["kind"] == "knowledge")

    async def complete(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: Optional[CompletionOptions] = None,
    ) -> str:
        if system_prompt == EVIDENCE_SYSTEM_PROMPT:
            kind, response = "evidence", self.evidence_verdict
        elif system_prompt == KNOWLEDGE_SYSTEM_PROMPT:
            kind, response = "knowledge", self.knowledge_verdict
        else:
            self.calls.append({"kind": "extract", "user": user_prompt})
            return self.extraction

        self.calls.append({"kind": kind, "user": user_prompt})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if self.fail_verification:
                raise RuntimeError("model unavailable")
            return response
        finally:
            self.in_flight -= 1


class FakeSource:
    """In-memory evidence source."""

    def __init__(
        self,
        name: str = "fake-source",
        evidences: Optional[List[Evidence]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        available: bool = True,
    ):
        self._name = name
        self._evidences = evidences or []
        self._error = error
        self._delay = delay
        self._available = available
        self.queries: List[str] = []
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    @property
    def available(self) -> bool:
        return self._available

    async def search(self, query: str, max_results: int = 5) -> List[Evidence]:
        self.queries.append(query)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._evidences[:max_results]

    async def shutdown(self) -> None:
        self.closed = True


def make_evidence(url: str, snippet: str = "Supporting text", source: str = "Example") -> Evidence:
    """Build an evidence item."""
    return Evidence(
        source_name=source,
        source_url=url,
        source_type=EvidenceSourceType.WEB_PAGE,
        snippet=snippet,
    )


@pytest.fixture
def fake_llm() -> FakeLLM:
    """Provide a scripted LLM provider."""
    return FakeLLM()


@pytest.fixture
def fake_source() -> FakeSource:
    """Provide a source returning two evidences."""
    return FakeSource(
        name="web",
        evidences=[
            make_evidence("https://example.com/a", "The Earth orbits the Sun once a year."),
            make_evidence("https://example.com/b", "Heliocentrism is the accepted model."),
        ],
    )


@pytest_asyncio.fixture
async def memory_store() -> InMemoryStore:
    """Provide an empty in-memory store."""
    store = InMemoryStore()
    yield store
    await store.close()


@pytest.fixture
def test_config() -> VerityConfig:
    """Provide a configuration that needs no network or API keys."""
    return VerityConfig(
        llm=LLMConfig(provider="ollama"),
        search=SearchConfig(sources=[]),
    )

"""Dependency injection configuration for hexagonal architecture."""

import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import Request

from ..domain.ports.analysis_store import AnalysisStore
from ..domain.ports.evidence_source import EvidenceSource
from ..domain.ports.llm_provider import LLMProvider
from ..domain.services.claim_extractor import ClaimExtractor
from ..domain.services.claim_verifier import ClaimVerifier
from ..domain.services.evidence_aggregator import EvidenceAggregator
from ..domain.services.verification_engine import VerificationEngine
from .ai.factory import LLMProviderFactory
from .config import VerityConfig, load_config
from .search.factory import SearchSourceFactory
from .storage.memory_store import InMemoryStore
from .storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Builds and owns the verification engine and its collaborators.

    Capabilities are resolved once here and injected into the engine; any
    of them can be supplied up front, which is how tests swap in fakes.
    """

    def __init__(
        self,
        config: VerityConfig,
        llm_provider: Optional[LLMProvider] = None,
        search_sources: Optional[List[EvidenceSource]] = None,
        store: Optional[AnalysisStore] = None,
    ):
        """Initialize the container.

        Args:
            config: Service configuration
            llm_provider: Pre-built LLM provider; created from config when omitted
            search_sources: Pre-built sources; created from config when omitted
            store: Pre-built store; created from config when omitted
        """
        self._config = config
        self._llm_factory = LLMProviderFactory()
        self._search_factory = SearchSourceFactory()
        self._llm_provider = llm_provider
        self._search_sources = search_sources
        self._store = store
        self._owns_llm_provider = llm_provider is None
        self._owns_search_sources = search_sources is None
        self._engine: Optional[VerificationEngine] = None

    @property
    def config(self) -> VerityConfig:
        return self._config

    @property
    def llm_provider(self) -> Optional[LLMProvider]:
        return self._llm_provider

    @property
    def search_sources(self) -> List[EvidenceSource]:
        return list(self._search_sources or [])

    @property
    def engine(self) -> VerificationEngine:
        if self._engine is None:
            raise RuntimeError("Service container not initialized")
        return self._engine

    async def initialize(self) -> None:
        """Create providers, sources and the store, then assemble the engine.

        Raises:
            ConfigurationError: If a configured provider or source is invalid
            StoreError: If the database cannot be opened
        """
        if self._engine is not None:
            return

        logger.info("🔧 Setting up service container...")
        llm_config = self._config.llm
        if self._llm_provider is None:
            self._llm_provider = await self._llm_factory.create_provider(
                llm_config.provider,
                api_key=llm_config.api_key or None,
                model=llm_config.model,
                base_url=llm_config.base_url,
                timeout=llm_config.timeout,
            )
        else:
            await self._llm_provider.initialize()

        if self._search_sources is None:
            search = self._config.search
            self._search_sources = self._search_factory.create_sources(
                search.sources,
                timeout=search.request_timeout,
                cache_ttl=search.cache_ttl,
            )

        if self._store is None:
            if self._config.database.driver == "sqlite":
                self._store = SQLiteStore(self._config.database.path)
            else:
                self._store = InMemoryStore()

        self._engine = self._build_engine()
        logger.info("✅ Service container setup completed")

    def _build_engine(self) -> VerificationEngine:
        engine_config = self._config.engine
        aggregator = EvidenceAggregator(self._search_sources, timeout=self._config.search.timeout)
        return VerificationEngine(
            extractor=ClaimExtractor(self._llm_provider, self._config.custom_claim_types),
            verifier=ClaimVerifier(self._llm_provider),
            aggregator=aggregator,
            store=self._store,
            max_concurrent_claims=engine_config.max_concurrent_claims,
            evidence_per_source=engine_config.evidence_per_source,
            persist_in_background=engine_config.persist_in_background,
        )

    async def shutdown(self) -> None:
        """Drain background work and release every resource."""
        if self._engine is not None:
            await self._engine.aclose()
        if self._owns_search_sources:
            await self._search_factory.shutdown()
        else:
            for source in self._search_sources or []:
                await source.shutdown()
        if self._owns_llm_provider:
            await self._llm_factory.shutdown()
        elif self._llm_provider is not None:
            await self._llm_provider.shutdown()
        if self._store is not None:
            await self._store.close()
        self._engine = None
        logger.info("👋 Service container shut down")


@lru_cache()
def get_service_container() -> ServiceContainer:
    """Get the global service container built from the loaded configuration."""
    return ServiceContainer(load_config())


# Convenience functions for FastAPI dependency injection
def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency for the application's service container."""
    return request.app.state.container


def get_verification_engine(request: Request) -> VerificationEngine:
    """FastAPI dependency for the verification engine."""
    return get_container(request).engine

"""Factory for creating and managing evidence search sources."""

import logging
from typing import Dict, List, Tuple, Type

from pydantic import ValidationError

from ...domain.errors import ConfigurationError
from ...domain.ports.evidence_source import EvidenceSource
from .base import SearchSourceConfig
from .duckduckgo_adapter import DuckDuckGoAdapter, DuckDuckGoConfig
from .pubmed_adapter import PubMedAdapter
from .wikipedia_adapter import WikipediaAdapter, WikipediaConfig

logger = logging.getLogger(__name__)


class SearchSourceFactory:
    """Factory for creating and managing evidence search sources.

    Keeps a registry of source classes by name and owns the lifecycle of
    the instances it creates.
    """

    def __init__(self):
        """Initialize the factory with the built-in sources."""
        self._registry: Dict[str, Tuple[Type[EvidenceSource], Type[SearchSourceConfig]]] = {}
        self._active: Dict[str, EvidenceSource] = {}

        self.register_source("duckduckgo", DuckDuckGoAdapter, DuckDuckGoConfig)
        self.register_source("wikipedia", WikipediaAdapter, WikipediaConfig)
        self.register_source("pubmed", PubMedAdapter, SearchSourceConfig)

    def register_source(
        self,
        name: str,
        source_class: Type[EvidenceSource],
        config_class: Type[SearchSourceConfig] = SearchSourceConfig,
    ) -> None:
        """Register a new search source class.

        Args:
            name: Unique identifier for the source
            source_class: Source class, constructed with a config instance
            config_class: Pydantic model holding the source's settings

        Raises:
            ValueError: If the name is already registered
        """
        if name in self._registry:
            raise ValueError(f"Search source {name} already registered")
        self._registry[name] = (source_class, config_class)

    def create_source(self, name: str, **settings) -> EvidenceSource:
        """Create a search source instance.

        Args:
            name: Registered source name
            **settings: Fields of the source's config model

        Returns:
            Source instance

        Raises:
            ConfigurationError: If the source is unknown or its settings are
                invalid
        """
        if name not in self._registry:
            raise ConfigurationError(f"Unknown search source: {name}")
        if name in self._active:
            return self._active[name]

        source_class, config_class = self._registry[name]
        try:
            config = config_class(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings for search source '{name}': {e}") from e

        source = source_class(config)
        self._active[name] = source
        logger.info(f"🔌 Search source '{name}' created")
        return source

    def create_sources(self, names: List[str], **settings) -> List[EvidenceSource]:
        """Create several sources sharing the same settings, in order."""
        return [self.create_source(name, **settings) for name in names]

    async def shutdown(self) -> None:
        """Shutdown all source instances."""
        for name, source in self._active.items():
            await source.shutdown()
            logger.debug(f"Search source '{name}' shut down")
        self._active.clear()

"""Shared plumbing for HTTP-backed evidence sources."""

import logging
from typing import Dict, List, Optional

import httpx
from cachetools import TTLCache
from pydantic import BaseModel, Field

from ...domain.errors import SearchError
from ...domain.models.evidence import Evidence

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class SearchSourceConfig(BaseModel):
    """Configuration common to every HTTP search source."""

    enabled: bool = Field(default=True, description="Whether the source takes part in searches")
    timeout: float = Field(default=10.0, description="Request timeout in seconds")
    cache_ttl: int = Field(default=3600, description="Cache TTL in seconds")
    cache_maxsize: int = Field(default=1000, description="Maximum cache size")
    user_agent: str = Field(default="Verity/1.0 (fact-checking service)", description="User agent")


class HTTPSearchSource:
    """Base class for evidence sources that query a web API.

    Subclasses implement ``_search``; this class owns the HTTP client,
    the per-query TTL cache and the translation of transport errors into
    ``SearchError``.
    """

    source_name = "search"

    def __init__(
        self,
        config: Optional[SearchSourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the source.

        Args:
            config: Source configuration
            transport: Optional HTTP transport, used by tests
        """
        self._config = config or SearchSourceConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._cache: TTLCache = TTLCache(
            maxsize=self._config.cache_maxsize,
            ttl=self._config.cache_ttl,
        )

    @property
    def name(self) -> str:
        return self.source_name

    @property
    def available(self) -> bool:
        return self._config.enabled

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._config.timeout,
                transport=self._transport,
                follow_redirects=True,
                headers=self._default_headers(),
            )
        return self._client

    def _default_headers(self) -> Dict[str, str]:
        return {"User-Agent": self._config.user_agent}

    async def search(self, query: str, max_results: int = 5) -> List[Evidence]:
        """Search for evidence, serving repeated queries from the cache.

        Raises:
            SearchError: If the upstream API cannot be reached or answers
                with an error
        """
        cache_key = f"{query}:{max_results}"
        if cache_key in self._cache:
            logger.debug(f"📦 {self.name} cache hit for: {query[:60]}")
            return self._cache[cache_key]

        try:
            results = await self._search(query, max_results)
        except httpx.HTTPStatusError as e:
            raise SearchError(f"{self.name} returned status {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            raise SearchError(f"{self.name} request timed out") from e
        except httpx.HTTPError as e:
            raise SearchError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise SearchError(f"{self.name} returned an invalid response: {e}") from e

        results = results[:max_results]
        self._cache[cache_key] = results
        logger.debug(f"🔎 {self.name} returned {len(results)} results for: {query[:60]}")
        return results

    async def _search(self, query: str, max_results: int) -> List[Evidence]:
        raise NotImplementedError

    async def _get_json(self, url: str, params: Optional[Dict] = None) -> Dict:
        response = await self.client.get(url, params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        return payload

    async def shutdown(self) -> None:
        """Close the HTTP client and drop cached results."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._cache.clear()

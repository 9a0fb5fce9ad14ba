"""Wikipedia evidence source backed by the MediaWiki API."""

import logging
from typing import List, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import Field

from ...domain.errors import SearchError
from ...domain.models.evidence import Evidence, EvidenceSourceType
from .base import HTTPSearchSource, SearchSourceConfig
from .keywords import extract_keywords

logger = logging.getLogger(__name__)

SNIPPET_LIMIT = 600


class WikipediaConfig(SearchSourceConfig):
    """Configuration for the Wikipedia source."""

    languages: List[str] = Field(
        default_factory=lambda: ["pt", "en"],
        description="Wikipedia editions to search, in order",
    )


class WikipediaAdapter(HTTPSearchSource):
    """Searches Wikipedia editions and returns article intro extracts.

    Editions are queried in order until enough results are collected. A
    failing edition is skipped; the search only fails when every edition
    does.
    """

    source_name = "Wikipedia"

    def __init__(
        self,
        config: Optional[WikipediaConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config or WikipediaConfig(), transport)

    @property
    def languages(self) -> Sequence[str]:
        return self._config.languages

    async def _search(self, query: str, max_results: int) -> List[Evidence]:
        keywords = extract_keywords(query) or query
        evidences: List[Evidence] = []
        last_error: Optional[Exception] = None
        failures = 0

        for lang in self.languages:
            if len(evidences) >= max_results:
                break
            try:
                evidences.extend(await self._search_language(lang, keywords, max_results - len(evidences)))
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"⚠️ Wikipedia ({lang}) search failed: {e}")
                last_error = e
                failures += 1

        if not evidences and failures == len(self.languages) and last_error is not None:
            raise SearchError(f"Wikipedia search failed: {last_error}") from last_error
        return evidences

    async def _search_language(self, lang: str, keywords: str, limit: int) -> List[Evidence]:
        api_url = f"https://{lang}.wikipedia.org/w/api.php"
        search_data = await self._get_json(
            api_url,
            params={
                "action": "query",
                "list": "search",
                "srsearch": keywords,
                "srlimit": limit,
                "format": "json",
            },
        )
        hits = search_data.get("query", {}).get("search", [])
        page_ids = [str(hit["pageid"]) for hit in hits if "pageid" in hit]
        if not page_ids:
            return []

        extract_data = await self._get_json(
            api_url,
            params={
                "action": "query",
                "prop": "extracts",
                "exintro": "true",
                "explaintext": "true",
                "pageids": "|".join(page_ids),
                "format": "json",
            },
        )
        pages = extract_data.get("query", {}).get("pages", {})

        source_name = "Wikipedia" if lang == "en" else f"Wikipedia ({lang.upper()})"
        evidences = []
        # Keep search ranking rather than the API's page-id ordering
        for page_id in page_ids:
            page = pages.get(page_id)
            if not page or not page.get("extract"):
                continue
            snippet = page["extract"].strip()
            if len(snippet) > SNIPPET_LIMIT:
                snippet = snippet[:SNIPPET_LIMIT] + "..."
            title = page.get("title", "")
            evidences.append(
                Evidence(
                    source_name=source_name,
                    source_url=f"https://{lang}.wikipedia.org/wiki/{quote(title.replace(' ', '_'))}",
                    source_type=EvidenceSourceType.ENCYCLOPEDIA,
                    snippet=snippet,
                )
            )
        return evidences

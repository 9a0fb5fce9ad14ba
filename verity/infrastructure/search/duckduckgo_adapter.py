"""DuckDuckGo evidence source (instant answers plus web results)."""

import asyncio
import logging
from typing import List, NamedTuple, Optional
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup
from pydantic import Field

from ...domain.errors import SearchError
from ...domain.models.evidence import Evidence, EvidenceSourceType
from .base import BROWSER_USER_AGENT, HTTPSearchSource, SearchSourceConfig
from .keywords import extract_keywords

logger = logging.getLogger(__name__)

INSTANT_ANSWER_URL = "https://api.duckduckgo.com/"
HTML_SEARCH_URL = "https://html.duckduckgo.com/html/"

SKIPPED_DOMAINS = ("facebook.com", "instagram.com", "twitter.com", "x.com", "linkedin.com")
PAGE_CONTENT_LIMIT = 1000
MAX_PAGE_BYTES = 500 * 1024


class DuckDuckGoConfig(SearchSourceConfig):
    """Configuration for the DuckDuckGo source."""

    user_agent: str = Field(default=BROWSER_USER_AGENT, description="User agent")
    fetch_pages: bool = Field(default=True, description="Fetch result pages for fuller snippets")
    max_concurrent_fetches: int = Field(default=3, description="Concurrent page fetches")
    attempts: int = Field(default=2, description="Attempts per search endpoint")
    retry_delay: float = Field(default=0.5, description="Delay between attempts in seconds")


class SearchHit(NamedTuple):
    title: str
    url: str
    snippet: str


def decode_redirect_url(raw_url: str) -> str:
    """Unwrap a DuckDuckGo ``/l/?uddg=`` redirect link to the target URL."""
    if "uddg=" not in raw_url:
        return raw_url
    target = parse_qs(urlparse(raw_url).query).get("uddg")
    return target[0] if target else raw_url


def extract_page_text(html: str) -> str:
    """Extract readable text from an HTML page."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "nav", "header", "footer"]):
        tag.decompose()

    paragraphs = [p.get_text(" ", strip=True) for p in soup.find_all("p")]
    text = " ".join(p for p in paragraphs if len(p) > 40)
    if not text:
        text = soup.get_text(" ", strip=True)
    return " ".join(text.split())


def parse_results_page(html: str, limit: int) -> List[SearchHit]:
    """Parse organic results out of the HTML search page."""
    soup = BeautifulSoup(html, "html.parser")
    hits = []
    for result in soup.select(".result"):
        link = result.select_one("a.result__a")
        if link is None or not link.get("href"):
            continue
        url = decode_redirect_url(link["href"])
        if not url or url.startswith("//duckduckgo.com"):
            continue
        snippet = result.select_one(".result__snippet")
        hits.append(
            SearchHit(
                title=link.get_text(strip=True),
                url=url,
                snippet=snippet.get_text(" ", strip=True) if snippet else "",
            )
        )
        if len(hits) >= limit:
            break
    return hits


def _domain(url: str) -> str:
    host = urlparse(url).netloc
    return host[4:] if host.startswith("www.") else host or url


def is_skipped_domain(url: str) -> bool:
    """Whether a URL belongs to a site whose pages are not worth fetching."""
    host = urlparse(url).hostname or ""
    return any(host == domain or host.endswith("." + domain) for domain in SKIPPED_DOMAINS)


class DuckDuckGoAdapter(HTTPSearchSource):
    """Searches DuckDuckGo through its instant-answer API and HTML results.

    The claim is first reduced to keywords. Both endpoints are tried with
    a short retry; web results are enriched with the text of the linked
    page when it can be fetched.
    """

    source_name = "DuckDuckGo"

    def __init__(
        self,
        config: Optional[DuckDuckGoConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config or DuckDuckGoConfig(), transport)

    async def _search(self, query: str, max_results: int) -> List[Evidence]:
        keywords = extract_keywords(query) or query
        logger.debug(f"🦆 DuckDuckGo keywords: {keywords}")

        evidences: List[Evidence] = []
        last_error: Optional[Exception] = None

        for fetch in (self._instant_answers, self._web_results):
            try:
                evidences.extend(await self._with_retry(fetch, keywords, max_results))
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"⚠️ DuckDuckGo {fetch.__name__.strip('_')} failed: {e}")
                last_error = e

        unique: List[Evidence] = []
        seen = set()
        for evidence in evidences:
            if not evidence.snippet or evidence.source_url in seen:
                continue
            seen.add(evidence.source_url)
            unique.append(evidence)
            if len(unique) >= max_results:
                break

        if not unique and last_error is not None:
            raise SearchError(f"DuckDuckGo search failed: {last_error}") from last_error
        return unique

    async def _with_retry(self, fetch, keywords: str, max_results: int) -> List[Evidence]:
        attempts = max(1, self._config.attempts)
        for attempt in range(1, attempts + 1):
            try:
                return await fetch(keywords, max_results)
            except (httpx.HTTPError, ValueError):
                if attempt == attempts:
                    raise
                await asyncio.sleep(self._config.retry_delay)
        return []

    async def _instant_answers(self, keywords: str, max_results: int) -> List[Evidence]:
        data = await self._get_json(
            INSTANT_ANSWER_URL,
            params={"q": keywords, "format": "json", "no_html": 1, "skip_disambig": 1},
        )

        evidences = []
        if data.get("Abstract"):
            evidences.append(
                Evidence(
                    source_name="DuckDuckGo",
                    source_url=data.get("AbstractURL", ""),
                    source_type=EvidenceSourceType.SEARCH_ENGINE,
                    snippet=data["Abstract"],
                )
            )
        for topic in data.get("RelatedTopics", []):
            if len(evidences) >= max_results:
                break
            if isinstance(topic, dict) and topic.get("Text"):
                evidences.append(
                    Evidence(
                        source_name="DuckDuckGo",
                        source_url=topic.get("FirstURL", ""),
                        source_type=EvidenceSourceType.SEARCH_ENGINE,
                        snippet=topic["Text"],
                    )
                )
        return evidences

    async def _web_results(self, keywords: str, max_results: int) -> List[Evidence]:
        response = await self.client.get(
            HTML_SEARCH_URL,
            params={"q": keywords},
            headers={
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "pt-PT,pt;q=0.9,en-US;q=0.8,en;q=0.7",
            },
        )
        response.raise_for_status()
        hits = parse_results_page(response.text, max_results + 2)

        semaphore = asyncio.Semaphore(max(1, self._config.max_concurrent_fetches))

        async def to_evidence(hit: SearchHit) -> Optional[Evidence]:
            content = ""
            if self._config.fetch_pages:
                async with semaphore:
                    content = await self._fetch_page_content(hit.url)
            content = content or hit.snippet
            if not content:
                return None
            if len(content) > PAGE_CONTENT_LIMIT:
                content = content[:PAGE_CONTENT_LIMIT] + "..."
            return Evidence(
                source_name=_domain(hit.url),
                source_url=hit.url,
                source_type=EvidenceSourceType.WEB_PAGE,
                snippet=content,
            )

        results = await asyncio.gather(*(to_evidence(hit) for hit in hits))
        return [e for e in results if e is not None][:max_results]

    async def _fetch_page_content(self, url: str) -> str:
        if is_skipped_domain(url):
            return ""
        body = bytearray()
        try:
            async with self.client.stream(
                "GET", url, headers={"Accept": "text/html,application/xhtml+xml"}
            ) as response:
                response.raise_for_status()
                encoding = response.encoding or "utf-8"
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) >= MAX_PAGE_BYTES:
                        break
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug(f"Failed to fetch {url}: {e}")
            return ""
        return extract_page_text(bytes(body[:MAX_PAGE_BYTES]).decode(encoding, errors="replace"))

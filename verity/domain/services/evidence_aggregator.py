"""Fan-out evidence search across all configured sources."""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from ..models.evidence import Evidence, RunWarning
from ..ports.evidence_source import EvidenceSource

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_TIMEOUT = 15.0
NO_SOURCES_MESSAGE = "No search sources configured"


class EvidenceAggregator:
    """Queries every available evidence source in parallel for one claim.

    Source failures never propagate out of ``search``. A source that
    raises, or is still running when the time budget runs out, is
    reported as a ``RunWarning`` and the remaining sources' results are
    still returned.
    """

    def __init__(self, sources: Sequence[EvidenceSource], timeout: float = DEFAULT_SEARCH_TIMEOUT):
        """Initialize the aggregator.

        Args:
            sources: Candidate sources; unavailable ones are dropped here
            timeout: Wall-clock ceiling for one search, in seconds
        """
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self._sources: List[EvidenceSource] = [s for s in sources if s.available]
        self._timeout = timeout

        skipped = len(sources) - len(self._sources)
        if skipped:
            logger.info(f"⏭️ Skipping {skipped} unavailable search source(s)")

    @property
    def has_sources(self) -> bool:
        return bool(self._sources)

    @property
    def source_names(self) -> List[str]:
        return [s.name for s in self._sources]

    @property
    def timeout(self) -> float:
        return self._timeout

    async def search(
        self,
        query: str,
        per_source_limit: int,
        max_total: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> Tuple[List[Evidence], List[RunWarning]]:
        """Search all sources for evidence about a query.

        Args:
            query: Claim text to search for
            per_source_limit: Maximum evidences requested from each source
            max_total: Optional cap on the merged result
            timeout: Caller's remaining deadline; the shorter of this and the
                aggregator ceiling applies

        Returns:
            Tuple of (merged evidences, warnings)
        """
        if not self._sources:
            return [], [RunWarning(source="search", message=NO_SOURCES_MESSAGE)]

        ceiling = self._timeout if timeout is None else max(0.0, min(self._timeout, timeout))

        tasks: List[Tuple[str, asyncio.Task]] = [
            (source.name, asyncio.create_task(source.search(query, per_source_limit)))
            for source in self._sources
        ]

        try:
            await asyncio.wait([t for _, t in tasks], timeout=ceiling)
        finally:
            pending = [t for _, t in tasks if not t.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        warnings: List[RunWarning] = []
        per_source: List[List[Evidence]] = []
        for name, task in tasks:
            if task.cancelled():
                logger.warning(f"⏱️ Search source {name} timed out after {ceiling:g}s")
                warnings.append(RunWarning(source=name, message=f"Search timed out after {ceiling:g}s"))
                continue

            error = task.exception()
            if error is not None:
                message = str(error) or type(error).__name__
                logger.warning(f"⚠️ Search source {name} failed: {message}")
                warnings.append(RunWarning(source=name, message=message))
                continue

            per_source.append(task.result() or [])

        evidences = self._merge(per_source, max_total)
        logger.debug(f"🔎 Collected {len(evidences)} evidences for query: {query[:80]}")
        return evidences, warnings

    @staticmethod
    def _merge(per_source: List[List[Evidence]], max_total: Optional[int]) -> List[Evidence]:
        merged: List[Evidence] = []
        seen_urls = set()
        for results in per_source:
            for evidence in results:
                if not evidence.snippet.strip():
                    continue
                if evidence.source_url:
                    if evidence.source_url in seen_urls:
                        continue
                    seen_urls.add(evidence.source_url)
                merged.append(evidence)

        if max_total is not None:
            merged = merged[:max(0, max_total)]
        return merged

"""In-process implementation of the analysis store."""

import asyncio
from typing import Dict, List, Optional

from ...domain.models.analysis import AnalysisResult
from ...domain.models.claim import Claim


class InMemoryStore:
    """Analysis store kept in process memory.

    Used for the ``memory`` database driver and in tests. Contents are lost
    when the process exits.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._analyses: Dict[str, AnalysisResult] = {}
        self._claims: Dict[str, List[Claim]] = {}

    async def get_analysis_by_hash(self, document_hash: str) -> Optional[AnalysisResult]:
        async with self._lock:
            matches = [a for a in self._analyses.values() if a.document_hash == document_hash]
        if not matches:
            return None
        return max(matches, key=lambda a: a.created_at)

    async def get_analysis(self, analysis_id: str) -> Optional[AnalysisResult]:
        async with self._lock:
            return self._analyses.get(analysis_id)

    async def save_analysis(self, result: AnalysisResult) -> None:
        async with self._lock:
            self._analyses[result.id] = result

    async def save_claims(self, analysis_id: str, claims: List[Claim]) -> None:
        async with self._lock:
            self._claims.setdefault(analysis_id, []).extend(claims)

    async def get_claims_by_analysis(self, analysis_id: str) -> List[Claim]:
        async with self._lock:
            claims = list(self._claims.get(analysis_id, []))
        return sorted(claims, key=lambda c: c.sentence_index)

    async def list_analyses(self, limit: int = 20, offset: int = 0) -> List[AnalysisResult]:
        async with self._lock:
            analyses = sorted(self._analyses.values(), key=lambda a: a.created_at, reverse=True)
        return analyses[offset:offset + limit]

    async def close(self) -> None:
        async with self._lock:
            self._analyses.clear()
            self._claims.clear()

"""Repository contract for persisting analyses and their claims."""

from typing import List, Optional, Protocol

from ..models.analysis import AnalysisResult
from ..models.claim import Claim


class AnalysisStore(Protocol):
    """Persistence contract required by the verification engine.

    All operations may raise ``StoreError``. The engine treats both read
    and write failures as non-fatal.
    """

    async def get_analysis_by_hash(self, document_hash: str) -> Optional[AnalysisResult]:
        """Get the most recent analysis for a document hash."""
        ...

    async def get_analysis(self, analysis_id: str) -> Optional[AnalysisResult]:
        """Get an analysis by ID."""
        ...

    async def save_analysis(self, result: AnalysisResult) -> None:
        """Store an analysis result."""
        ...

    async def save_claims(self, analysis_id: str, claims: List[Claim]) -> None:
        """Store the claims of an analysis."""
        ...

    async def get_claims_by_analysis(self, analysis_id: str) -> List[Claim]:
        """Get the claims of an analysis ordered by sentence index."""
        ...

    async def list_analyses(self, limit: int = 20, offset: int = 0) -> List[AnalysisResult]:
        """List analyses, newest first."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...

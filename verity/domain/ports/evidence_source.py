"""Protocol for evidence search sources."""

from typing import List, Protocol

from ..models.evidence import Evidence


class EvidenceSource(Protocol):
    """Protocol for a searchable source of evidence.

    Sources are independently fallible: ``search`` may raise
    ``SearchError`` (or time out) and the aggregator turns that into a
    warning for the run.
    """

    async def search(self, query: str, max_results: int = 5) -> List[Evidence]:
        """Search for evidence related to the query."""
        ...

    async def shutdown(self) -> None:
        """Release network resources."""
        ...

    @property
    def name(self) -> str:
        """Get the source name."""
        ...

    @property
    def available(self) -> bool:
        """Whether the source is configured and usable."""
        ...

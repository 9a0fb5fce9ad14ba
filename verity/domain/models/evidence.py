"""Domain models for evidence snippets and run warnings."""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


class EvidenceSourceType(str, Enum):
    """Kind of source an evidence snippet was retrieved from."""

    WEB_PAGE = "web_page"
    SEARCH_ENGINE = "search_engine"
    ENCYCLOPEDIA = "encyclopedia"
    ACADEMIC = "academic"


class Evidence(BaseModel):
    """A retrieved snippet plus the metadata of where it came from."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    source_name: str = Field(..., description="Human readable source name")
    source_url: str = Field(default="", description="URL of the source document")
    source_type: EvidenceSourceType = Field(default=EvidenceSourceType.WEB_PAGE)
    snippet: str = Field(default="", description="Relevant excerpt")
    relevance_score: float = Field(default=0.0, description="Relevance score (0-1)")
    retrieved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RunWarning(BaseModel):
    """Non-fatal diagnostic attached to a single verification run."""

    model_config = ConfigDict(frozen=True)

    source: str
    message: str

"""Health check endpoints."""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...infrastructure.dependencies import ServiceContainer, get_container

VERSION = "1.0.0"

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str
    timestamp: datetime
    llm_provider: str
    search_sources: List[str]
    air_gapped: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """Report service status and the configured capabilities."""
    provider = container.llm_provider
    engine = container.engine
    return HealthResponse(
        status="healthy",
        version=VERSION,
        timestamp=datetime.now(timezone.utc),
        llm_provider=provider.provider_name if provider is not None else "none",
        search_sources=[s.name for s in container.search_sources if s.available],
        air_gapped=engine.air_gapped,
    )

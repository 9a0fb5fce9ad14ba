"""Stored verification result endpoints."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ...domain.errors import StoreError
from ...domain.models.analysis import AnalysisResult, VerificationResponse
from ...domain.services.verification_engine import VerificationEngine
from ...infrastructure.dependencies import get_verification_engine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/results", tags=["results"])

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


class ResultsPage(BaseModel):
    """One page of stored analyses, newest first."""

    results: List[AnalysisResult]
    limit: int
    offset: int


@router.get("", response_model=ResultsPage)
async def list_results(
    limit: int = DEFAULT_PAGE_SIZE,
    offset: int = 0,
    engine: VerificationEngine = Depends(get_verification_engine),
) -> ResultsPage:
    """List stored analyses.

    A limit outside 1..100 falls back to the default page size and a
    negative offset is treated as 0.
    """
    if limit <= 0 or limit > MAX_PAGE_SIZE:
        limit = DEFAULT_PAGE_SIZE
    offset = max(offset, 0)

    try:
        results = await engine.list_results(limit=limit, offset=offset)
    except StoreError as e:
        logger.error(f"❌ Failed to list results: {e}")
        raise HTTPException(status_code=500, detail="Failed to list results")
    return ResultsPage(results=results, limit=limit, offset=offset)


@router.get("/{analysis_id}", response_model=VerificationResponse, response_model_exclude_none=True)
async def get_result(
    analysis_id: str,
    engine: VerificationEngine = Depends(get_verification_engine),
) -> VerificationResponse:
    """Get a stored analysis with its claims.

    Raises:
        HTTPException: 404 if the analysis does not exist
    """
    try:
        result = await engine.get_result(analysis_id)
    except StoreError as e:
        logger.error(f"❌ Failed to load result {analysis_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load result")

    if result is None:
        raise HTTPException(status_code=404, detail="Result not found")
    return result

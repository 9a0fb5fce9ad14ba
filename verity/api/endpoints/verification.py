"""Text verification endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...domain.errors import ExtractionError, InvalidInputError
from ...domain.models.analysis import VerificationResponse
from ...infrastructure.dependencies import ServiceContainer, get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/verify", tags=["verification"])


class VerifyTextRequest(BaseModel):
    """Request model for text verification."""

    text: str = Field(..., description="Text whose factual claims should be verified")


@router.post(
    "/text",
    response_model=VerificationResponse,
    response_model_exclude_none=True,
    status_code=201,
)
async def verify_text(
    request: VerifyTextRequest,
    container: ServiceContainer = Depends(get_container),
) -> VerificationResponse:
    """Verify every factual claim in a text.

    Args:
        request: Text verification request

    Returns:
        Scored analysis with per-claim verdicts and run warnings

    Raises:
        HTTPException: 400 for empty text, 500 if claims cannot be extracted
    """
    logger.info(f"📨 Verification requested for text: {request.text[:100]}")
    try:
        return await container.engine.verify_text(
            request.text,
            timeout=container.config.engine.run_timeout,
        )
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ExtractionError as e:
        logger.error(f"❌ Claim extraction failed: {e}")
        raise HTTPException(status_code=500, detail=f"Verification failed: {e}")

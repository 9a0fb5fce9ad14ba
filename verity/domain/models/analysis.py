"""Domain models for document-level analysis results."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .claim import Claim, VerificationStatus
from .evidence import RunWarning


class AnalysisResult(BaseModel):
    """Overall result of fact-checking one document."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    document_hash: str
    overall_score: float = Field(..., ge=0.0, le=10.0, description="Trust score (0-10)")
    total_claims: int = Field(..., ge=0)
    verified_claims: int = Field(..., ge=0)
    mixed_claims: int = Field(..., ge=0)
    unsupported_claims: int = Field(..., ge=0)
    processing_time_ms: int = Field(default=0, ge=0)
    status: str = Field(default="completed", description="pending, processing, completed or failed")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def _check_counts(self) -> "AnalysisResult":
        if self.verified_claims + self.mixed_claims + self.unsupported_claims != self.total_claims:
            raise ValueError("Claim counts must add up to total_claims")
        return self

    @classmethod
    def from_claims(
        cls,
        document_hash: str,
        claims: List[Claim],
        processing_time_ms: int = 0,
    ) -> "AnalysisResult":
        """Score a set of resolved claims.

        Verified claims weigh 1.0, mixed 0.5 and unsupported 0.0; the
        weighted mean is scaled to 0-10. An empty claim set scores 0.
        """
        verified = sum(1 for c in claims if c.status == VerificationStatus.VERIFIED)
        mixed = sum(1 for c in claims if c.status == VerificationStatus.MIXED)
        # Anything neither verified nor mixed counts against the document
        unsupported = len(claims) - verified - mixed

        score = 0.0
        if claims:
            score = 10 * (verified + 0.5 * mixed) / len(claims)

        return cls(
            document_hash=document_hash,
            overall_score=score,
            total_claims=len(claims),
            verified_claims=verified,
            mixed_claims=mixed,
            unsupported_claims=unsupported,
            processing_time_ms=processing_time_ms,
            status="completed",
        )


class VerificationResponse(BaseModel):
    """An analysis together with its claims and the run's warnings."""

    id: str
    document_hash: str
    analysis: AnalysisResult
    claims: List[Claim] = Field(default_factory=list)
    warnings: Optional[List[RunWarning]] = None
    cached: bool = Field(default=False, description="Whether the result was served from the store")

    @classmethod
    def build(
        cls,
        analysis: AnalysisResult,
        claims: List[Claim],
        warnings: Optional[List[RunWarning]] = None,
        cached: bool = False,
    ) -> "VerificationResponse":
        return cls(
            id=analysis.id,
            document_hash=analysis.document_hash,
            analysis=analysis,
            claims=claims,
            warnings=warnings or None,
            cached=cached,
        )

"""Domain model for factual claims."""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from .evidence import Evidence


class ClaimType(str, Enum):
    """Taxonomy used when decomposing text into claims."""

    STATISTICAL = "statistical"  # Numbers, percentages, quantities
    FACTUAL = "factual"
    TEMPORAL = "temporal"  # Dates, times, durations
    GEOGRAPHIC = "geographic"
    CITATION = "citation"  # Quotes and references to other sources
    COMPARATIVE = "comparative"
    CAUSAL = "causal"
    CUSTOM = "custom"  # Any configured custom claim type


class VerificationStatus(str, Enum):
    """Possible verification outcomes for a single claim."""

    PENDING = "pending"
    VERIFIED = "verified"  # Evidence strongly supports the claim
    MIXED = "mixed"  # Evidence is conflicting or only partially supports
    UNSUPPORTED = "unsupported"  # Nothing supports the claim, or evidence contradicts it


class SourceType(str, Enum):
    """How a claim's verdict was reached."""

    EVIDENCE_BACKED = "evidence_backed"
    MODEL_BASED = "model_based"


class ClaimTypeConfig(BaseModel):
    """A user-defined claim type offered to the extractor."""

    description: str = Field(..., description="What claims of this type look like")
    prompt_hint: str = Field(default="", description="Extra guidance for the extraction prompt")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Claim(BaseModel):
    """An atomic, independently verifiable statement extracted from text.

    Claims are immutable: the verification stage produces a new copy of
    each pending claim (see ``with_verdict``) rather than mutating it.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "6f1c1a0e-3f7e-4b5e-9d8a-0c2f9e1d2b3a",
                "text": "The Earth is approximately 4.54 billion years old.",
                "type": "temporal",
                "sentence_index": 0,
                "status": "verified",
                "confidence": 0.92,
                "source_type": "evidence_backed",
                "evidences": [],
                "reasoning": "Consistent with radiometric dating sources.",
            }
        },
    )

    id: str = Field(default_factory=lambda: str(uuid4()), description="Claim identifier")
    text: str = Field(..., description="The claim text to be verified")
    type: ClaimType = Field(default=ClaimType.FACTUAL, description="Claim category")
    sentence_index: int = Field(default=0, ge=0, description="0-indexed position in the source text")
    status: VerificationStatus = Field(default=VerificationStatus.PENDING)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0, description="Confidence in the verdict")
    source_type: Optional[SourceType] = Field(default=None, description="Evidence-backed or model-based")
    evidences: List[Evidence] = Field(default_factory=list)
    reasoning: str = Field(default="", description="Explanation of the verdict")
    created_at: datetime = Field(default_factory=_utcnow)

    def with_verdict(
        self,
        status: VerificationStatus,
        confidence: float,
        reasoning: str,
        source_type: SourceType,
        evidences: Optional[List[Evidence]] = None,
    ) -> "Claim":
        """Return the verified copy of this claim."""
        return self.model_copy(
            update={
                "status": status,
                "confidence": min(1.0, max(0.0, confidence)),
                "reasoning": reasoning,
                "source_type": source_type,
                "evidences": list(evidences or []),
                "created_at": _utcnow(),
            }
        )

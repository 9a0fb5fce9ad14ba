"""Service for adjudicating claims against evidence or model knowledge."""

import logging
from typing import Any, Dict, List, NamedTuple, Optional

from ..errors import ResponseParseError, VerificationError
from ..models.claim import Claim, VerificationStatus
from ..models.evidence import Evidence
from ..ports.llm_provider import CompletionOptions, LLMProvider
from .response_decoder import decode_json_object

logger = logging.getLogger(__name__)

NO_EVIDENCE_REASONING = "No evidence found"
MODEL_ONLY_DISCLAIMER = " [Note: Verified using model knowledge only, without external evidence sources]"

EVIDENCE_SYSTEM_PROMPT = """You are a fact-checking expert. Analyze the claim against the provided evidence.

Your task:
1. Compare the claim with each piece of evidence
2. Determine if the evidence supports, contradicts, or is neutral to the claim
3. Assign a confidence score (0-1) based on:
   - Quality and authority of sources
   - Consistency across multiple sources
   - Recency of information
   - Specificity of evidence

Respond with a JSON object:
{
  "verification_status": "verified|mixed|unsupported",
  "confidence_score": 0.0-1.0,
  "reasoning": "Brief explanation of your decision"
}

Status meanings:
- verified: Evidence strongly supports the claim
- mixed: Evidence is conflicting or partially supports
- unsupported: No evidence supports the claim or evidence contradicts it

Only respond with the JSON object, no other text."""

KNOWLEDGE_SYSTEM_PROMPT = """You are a fact-checking expert. Analyze the claim using your training knowledge.

IMPORTANT: You are operating without external evidence sources. Base your assessment only on your training data.

Your task:
1. Assess whether the claim is likely to be true based on your knowledge
2. Be conservative - if uncertain, mark as unsupported
3. Assign a confidence score (0-1), keeping in mind that without external verification, confidence should generally be lower

Respond with a JSON object:
{
  "verification_status": "verified|mixed|unsupported",
  "confidence_score": 0.0-1.0,
  "reasoning": "Brief explanation including any caveats about relying on model knowledge"
}

Status meanings:
- verified: You are confident the claim is factually correct
- mixed: The claim is partially correct or you have some uncertainty
- unsupported: You cannot verify the claim or believe it may be incorrect

Only respond with the JSON object, no other text."""

_STATUS_MAP = {
    "verified": VerificationStatus.VERIFIED,
    "mixed": VerificationStatus.MIXED,
    "unsupported": VerificationStatus.UNSUPPORTED,
}


class Verdict(NamedTuple):
    """Outcome of adjudicating one claim."""

    status: VerificationStatus
    confidence: float
    reasoning: str


def format_evidence(evidences: List[Evidence]) -> str:
    """Render evidence items for the verification prompt."""
    blocks = []
    for i, evidence in enumerate(evidences, 1):
        blocks.append(
            f"\nEvidence {i}:\n"
            f"Source: {evidence.source_name} ({evidence.source_type.value})\n"
            f"URL: {evidence.source_url}\n"
            f"Text: {evidence.snippet}\n"
        )
    return "".join(blocks)


class ClaimVerifier:
    """Adjudicates single claims with one model call each."""

    def __init__(self, llm_provider: LLMProvider, options: Optional[CompletionOptions] = None):
        """Initialize the verifier.

        Args:
            llm_provider: Language-model capability used for adjudication
            options: Completion options for verification calls
        """
        self._llm = llm_provider
        self._options = options or CompletionOptions()

    async def verify(self, claim: Claim, evidences: List[Evidence]) -> Verdict:
        """Verify a claim against the supplied evidence.

        An empty evidence list short-circuits to ``unsupported`` without
        calling the model.

        Raises:
            VerificationError: If the model call fails or its verdict
                cannot be decoded
        """
        if not evidences:
            return Verdict(VerificationStatus.UNSUPPORTED, 0.0, NO_EVIDENCE_REASONING)

        user_prompt = (
            f"Claim: {claim.text}\n\n"
            f"Evidence found:{format_evidence(evidences)}\n\n"
            "Analyze and provide verification result."
        )
        return await self._adjudicate(EVIDENCE_SYSTEM_PROMPT, user_prompt)

    async def verify_without_evidence(self, claim: Claim) -> Verdict:
        """Verify a claim using model knowledge only.

        Used in air-gapped mode and as the fallback when search finds
        nothing. The reasoning carries a disclaimer that no external
        evidence was consulted.

        Raises:
            VerificationError: If the model call fails or its verdict
                cannot be decoded
        """
        verdict = await self._adjudicate(KNOWLEDGE_SYSTEM_PROMPT, f"Claim to verify: {claim.text}")
        return verdict._replace(reasoning=verdict.reasoning + MODEL_ONLY_DISCLAIMER)

    async def _adjudicate(self, system_prompt: str, user_prompt: str) -> Verdict:
        try:
            response = await self._llm.complete(system_prompt, user_prompt, self._options)
        except Exception as e:
            raise VerificationError(f"Verification failed: {e}") from e

        try:
            payload = decode_json_object(response)
        except ResponseParseError as e:
            raise VerificationError(f"Failed to parse verification response: {e}") from e

        return self._to_verdict(payload)

    @staticmethod
    def _to_verdict(payload: Dict[str, Any]) -> Verdict:
        raw_status = str(payload.get("verification_status") or "").strip().lower()
        status = _STATUS_MAP.get(raw_status, VerificationStatus.UNSUPPORTED)
        if raw_status not in _STATUS_MAP:
            logger.debug(f"Unrecognized verification status {raw_status!r}, using unsupported")

        try:
            confidence = float(payload.get("confidence_score", 0.0))
        except (TypeError, ValueError):
            confidence = 0.0
        if confidence != confidence:  # NaN
            confidence = 0.0
        confidence = min(1.0, max(0.0, confidence))

        return Verdict(status, confidence, str(payload.get("reasoning") or ""))

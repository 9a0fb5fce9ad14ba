"""Service for decomposing text into atomic, verifiable claims."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..errors import ExtractionError, ResponseParseError
from ..models.claim import Claim, ClaimType, ClaimTypeConfig, VerificationStatus
from ..ports.llm_provider import CompletionOptions, LLMProvider
from .response_decoder import decode_json_object

logger = logging.getLogger(__name__)

EXTRACTION_MAX_TOKENS = 4096

_BUILTIN_TYPES = {t.value: t for t in ClaimType if t is not ClaimType.CUSTOM}

SYSTEM_PROMPT_TEMPLATE = """You are an expert fact-checker specialized in decomposing text into atomic, verifiable claims.

Your task:
1. Break down the text into individual, atomic factual claims
2. Each claim should be independently verifiable
3. Classify each claim by type
4. Preserve the original meaning and context
5. Number each claim by the position of its sentence in the original text (0-indexed)

Claim types:
- statistical: Claims involving numbers, percentages, quantities
- factual: General factual statements
- temporal: Claims about dates, times, durations
- geographic: Claims about locations, places
- citation: References to other sources, quotes
- comparative: Claims comparing entities (X is larger/better than Y)
- causal: Claims about cause and effect relationships{custom_types}

Rules:
- Ignore opinions, questions, and subjective statements
- Focus only on objective, verifiable facts
- Each claim must be a complete, standalone statement
- Do not merge multiple facts into one claim

Respond with a JSON object containing an array of claims:
{{
  "claims": [
    {{"text": "The claim text", "type": "statistical", "sentence_index": 0}},
    {{"text": "Another claim", "type": "factual", "sentence_index": 1}}
  ]
}}

Only respond with the JSON object, no other text."""


class ClaimExtractor:
    """Extracts atomic factual claims from text with one model call."""

    def __init__(
        self,
        llm_provider: LLMProvider,
        custom_claim_types: Optional[Mapping[str, ClaimTypeConfig]] = None,
    ):
        """Initialize the extractor.

        Args:
            llm_provider: Language-model capability used for extraction
            custom_claim_types: Additional claim types keyed by name
        """
        self._llm = llm_provider
        self._custom_types: Dict[str, ClaimTypeConfig] = dict(custom_claim_types or {})

    def build_system_prompt(self) -> str:
        """Build the extraction instruction, including custom claim types."""
        custom = ""
        if self._custom_types:
            lines = [
                f"- {name}: {cfg.description}. {cfg.prompt_hint}".rstrip()
                for name, cfg in self._custom_types.items()
            ]
            custom = "\n\nCustom claim types:\n" + "\n".join(lines)
        return SYSTEM_PROMPT_TEMPLATE.format(custom_types=custom)

    async def extract(self, text: str) -> List[Claim]:
        """Extract claims from text.

        Args:
            text: Document to analyze

        Returns:
            Pending claims in extraction order

        Raises:
            ExtractionError: If the model call fails or its response cannot
                be decoded into a list of claims
        """
        options = CompletionOptions(max_tokens=EXTRACTION_MAX_TOKENS, temperature=0.0)
        user_prompt = f"Text to analyze:\n\n{text}"

        try:
            response = await self._llm.complete(self.build_system_prompt(), user_prompt, options)
        except Exception as e:
            raise ExtractionError(f"Failed to extract claims: {e}") from e

        try:
            payload = decode_json_object(response)
        except ResponseParseError as e:
            raise ExtractionError(f"Failed to parse extraction response: {e}") from e

        return self._parse_claims(payload)

    def _parse_claims(self, payload: Dict[str, Any]) -> List[Claim]:
        raw_claims = payload.get("claims")
        if not isinstance(raw_claims, list):
            raise ExtractionError("Failed to parse extraction response: missing 'claims' list")

        claims = []
        for position, item in enumerate(raw_claims):
            if not isinstance(item, dict):
                logger.warning(f"⚠️ Skipping malformed claim entry: {item!r}")
                continue

            text = str(item.get("text") or "").strip()
            if not text:
                continue

            claims.append(
                Claim(
                    text=text,
                    type=self._resolve_type(item.get("type")),
                    sentence_index=self._resolve_index(item.get("sentence_index"), position),
                    status=VerificationStatus.PENDING,
                )
            )

        logger.info(f"📝 Extracted {len(claims)} claims")
        return claims

    def _resolve_type(self, value: Any) -> ClaimType:
        name = str(value or "").strip().lower()
        if name in _BUILTIN_TYPES:
            return _BUILTIN_TYPES[name]
        if name == ClaimType.CUSTOM.value or name in {n.lower() for n in self._custom_types}:
            return ClaimType.CUSTOM
        return ClaimType.FACTUAL

    @staticmethod
    def _resolve_index(value: Any, default: int) -> int:
        try:
            index = int(value)
        except (TypeError, ValueError):
            return default
        return index if index >= 0 else default

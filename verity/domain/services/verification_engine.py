"""Orchestration of a complete verification run."""

import asyncio
import hashlib
import logging
import time
import unicodedata
from typing import List, Optional, Set, Tuple

from ..errors import InvalidInputError, VerificationError
from ..models.analysis import AnalysisResult, VerificationResponse
from ..models.claim import Claim, SourceType, VerificationStatus
from ..models.evidence import RunWarning
from ..ports.analysis_store import AnalysisStore
from .claim_extractor import ClaimExtractor
from .claim_verifier import ClaimVerifier, Verdict
from .evidence_aggregator import EvidenceAggregator

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_CLAIMS = 5
DEFAULT_EVIDENCE_PER_SOURCE = 6

AIR_GAPPED_WARNING = RunWarning(
    source="search",
    message="No search sources configured - claims verified using model knowledge only",
)
VERIFICATION_ERROR_REASONING = "Verification error"
FALLBACK_ERROR_REASONING = "Verification error - no evidence found"
CANCELLED_REASONING = "Verification cancelled: run deadline exceeded"


def compute_document_hash(text: str) -> str:
    """Compute the cache key of a document.

    The text is NFC-normalized, stripped and has internal whitespace runs
    collapsed to a single space before hashing, so cosmetic differences do
    not defeat the cache.

    Args:
        text: Raw document text

    Returns:
        Hex-encoded SHA-256 digest
    """
    normalized = " ".join(unicodedata.normalize("NFC", text).split())
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


class WarningCollector:
    """Accumulates run warnings from concurrent claim tasks.

    Identical ``(source, message)`` pairs are kept once, so a source that
    fails the same way for every claim is reported once per run.
    """

    def __init__(self):
        self._lock = asyncio.Lock()
        self._seen: Set[tuple] = set()
        self._warnings: List[RunWarning] = []

    async def add(self, warning: RunWarning) -> None:
        async with self._lock:
            key = (warning.source, warning.message)
            if key in self._seen:
                return
            self._seen.add(key)
            self._warnings.append(warning)

    async def extend(self, warnings: List[RunWarning]) -> None:
        for warning in warnings:
            await self.add(warning)

    def snapshot(self) -> List[RunWarning]:
        return list(self._warnings)


class VerificationEngine:
    """Turns one document into a scored, evidence-annotated result.

    A run goes through cache lookup, claim extraction, bounded-concurrency
    per-claim verification, scoring and persistence. Only extraction
    failures (and empty input) abort a run; every other failure degrades a
    single claim, becomes a warning, or is logged.
    """

    def __init__(
        self,
        extractor: ClaimExtractor,
        verifier: ClaimVerifier,
        aggregator: Optional[EvidenceAggregator],
        store: AnalysisStore,
        max_concurrent_claims: int = DEFAULT_MAX_CONCURRENT_CLAIMS,
        evidence_per_source: int = DEFAULT_EVIDENCE_PER_SOURCE,
        persist_in_background: bool = False,
    ):
        """Initialize the engine.

        Args:
            extractor: Claim extraction service
            verifier: Claim adjudication service
            aggregator: Evidence search fan-out; ``None`` or one without
                sources puts the engine in air-gapped mode
            store: Analysis repository used as the document cache
            max_concurrent_claims: Claims verified at the same time per run
            evidence_per_source: Evidences requested from each source
            persist_in_background: Schedule persistence without awaiting it
        """
        if max_concurrent_claims < 1:
            raise ValueError("max_concurrent_claims must be at least 1")
        if evidence_per_source < 1:
            raise ValueError("evidence_per_source must be at least 1")

        self._extractor = extractor
        self._verifier = verifier
        self._aggregator = aggregator
        self._store = store
        self._max_concurrent_claims = max_concurrent_claims
        self._evidence_per_source = evidence_per_source
        self._persist_in_background = persist_in_background
        self._background_tasks: Set[asyncio.Task] = set()

        self._air_gapped = aggregator is None or not aggregator.has_sources
        if self._air_gapped:
            logger.warning("⚠️ No search sources available - running in air-gapped mode")

    @property
    def air_gapped(self) -> bool:
        return self._air_gapped

    @property
    def max_concurrent_claims(self) -> int:
        return self._max_concurrent_claims

    async def verify_text(self, text: str, timeout: Optional[float] = None) -> VerificationResponse:
        """Verify every factual claim in a document.

        Args:
            text: Document to verify
            timeout: Optional run deadline in seconds, applied to evidence
                search and claim verification. A run that hits it is returned
                but never persisted, so it cannot be served from the cache.

        Returns:
            The scored response; cached responses carry no warnings

        Raises:
            InvalidInputError: If the text is empty
            ExtractionError: If claims cannot be extracted
        """
        if not text or not text.strip():
            raise InvalidInputError("Text is required")

        started = time.perf_counter()
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        document_hash = compute_document_hash(text)
        cached = await self._lookup_cached(document_hash)
        if cached is not None:
            logger.info(f"♻️ Cache hit for document {document_hash[:12]} (analysis {cached.id})")
            return cached

        logger.info(f"🔍 Verifying document {document_hash[:12]} ({len(text)} chars)")
        claims = await self._extractor.extract(text)

        warnings = WarningCollector()
        if self._air_gapped:
            await warnings.add(AIR_GAPPED_WARNING)

        verified, completed = await self._verify_claims(claims, warnings, deadline)

        processing_time_ms = int((time.perf_counter() - started) * 1000)
        analysis = AnalysisResult.from_claims(document_hash, verified, processing_time_ms)
        logger.info(
            f"✅ Analysis {analysis.id} scored {analysis.overall_score:.1f}/10 "
            f"({analysis.verified_claims} verified, {analysis.mixed_claims} mixed, "
            f"{analysis.unsupported_claims} unsupported) in {processing_time_ms}ms"
        )

        if not completed:
            logger.warning(f"🚫 Analysis {analysis.id} is incomplete and will not be cached")
        elif self._persist_in_background:
            task = asyncio.create_task(self._persist(analysis, verified))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
        else:
            await self._persist(analysis, verified)

        return VerificationResponse.build(analysis, verified, warnings.snapshot())

    async def get_result(self, analysis_id: str) -> Optional[VerificationResponse]:
        """Reconstruct a stored response by analysis ID.

        Raises:
            StoreError: If the store cannot be read
        """
        analysis = await self._store.get_analysis(analysis_id)
        if analysis is None:
            return None
        claims = await self._store.get_claims_by_analysis(analysis.id)
        return VerificationResponse.build(analysis, claims, cached=True)

    async def list_results(self, limit: int = 20, offset: int = 0) -> List[AnalysisResult]:
        """List stored analyses, newest first."""
        return await self._store.list_analyses(limit=limit, offset=offset)

    async def aclose(self) -> None:
        """Wait for pending background persistence to finish."""
        if self._background_tasks:
            logger.info(f"⏳ Waiting for {len(self._background_tasks)} background save(s)")
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _lookup_cached(self, document_hash: str) -> Optional[VerificationResponse]:
        try:
            analysis = await self._store.get_analysis_by_hash(document_hash)
            if analysis is None:
                return None
            claims = await self._store.get_claims_by_analysis(analysis.id)
        except Exception as e:
            logger.warning(f"⚠️ Cache lookup failed, verifying from scratch: {e}")
            return None
        if len(claims) != analysis.total_claims:
            logger.warning(
                f"⚠️ Cached analysis {analysis.id} has {len(claims)} of {analysis.total_claims} claims, "
                "verifying from scratch"
            )
            return None
        return VerificationResponse.build(analysis, claims, cached=True)

    async def _verify_claims(
        self,
        claims: List[Claim],
        warnings: WarningCollector,
        deadline: Optional[float],
    ) -> Tuple[List[Claim], bool]:
        if not claims:
            return [], True

        semaphore = asyncio.Semaphore(self._max_concurrent_claims)
        results: List[Optional[Claim]] = [None] * len(claims)

        async def run(index: int, claim: Claim) -> None:
            async with semaphore:
                results[index] = await self._verify_claim(claim, warnings, deadline)

        tasks = [asyncio.create_task(run(i, claim)) for i, claim in enumerate(claims)]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self._remaining(deadline))
        finally:
            unfinished = [t for t in tasks if not t.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)

        if pending:
            logger.warning(f"⏱️ Run deadline exceeded with {len(pending)} claim(s) unverified")
            await warnings.add(
                RunWarning(
                    source="verification",
                    message=f"Run deadline exceeded; {len(pending)} claim(s) were not verified",
                )
            )

        for i, (claim, task) in enumerate(zip(claims, tasks)):
            if results[i] is not None:
                continue
            if not task.cancelled() and task.exception() is not None:
                logger.error(f"❌ Unexpected failure verifying claim {claim.id}: {task.exception()}")
                reasoning = VERIFICATION_ERROR_REASONING
            else:
                reasoning = CANCELLED_REASONING
            results[i] = claim.with_verdict(VerificationStatus.UNSUPPORTED, 0.0, reasoning, SourceType.MODEL_BASED)

        return results, not pending

    async def _verify_claim(
        self,
        claim: Claim,
        warnings: WarningCollector,
        deadline: Optional[float],
    ) -> Claim:
        if self._air_gapped:
            return await self._verify_from_knowledge(claim, VERIFICATION_ERROR_REASONING)

        evidences, search_warnings = await self._aggregator.search(
            claim.text,
            self._evidence_per_source,
            timeout=self._remaining(deadline),
        )
        await warnings.extend(search_warnings)

        if not evidences:
            logger.debug(f"📭 No evidence for claim {claim.id}, falling back to model knowledge")
            return await self._verify_from_knowledge(claim, FALLBACK_ERROR_REASONING)

        try:
            verdict = await self._verifier.verify(claim, evidences)
        except VerificationError as e:
            logger.warning(f"⚠️ Verification failed for claim {claim.id}: {e}")
            return claim.with_verdict(
                VerificationStatus.UNSUPPORTED,
                0.0,
                VERIFICATION_ERROR_REASONING,
                SourceType.EVIDENCE_BACKED,
                evidences,
            )
        return self._apply(claim, verdict, SourceType.EVIDENCE_BACKED, evidences)

    async def _verify_from_knowledge(self, claim: Claim, error_reasoning: str) -> Claim:
        try:
            verdict = await self._verifier.verify_without_evidence(claim)
        except VerificationError as e:
            logger.warning(f"⚠️ Knowledge-only verification failed for claim {claim.id}: {e}")
            return claim.with_verdict(
                VerificationStatus.UNSUPPORTED, 0.0, error_reasoning, SourceType.MODEL_BASED
            )
        return self._apply(claim, verdict, SourceType.MODEL_BASED)

    @staticmethod
    def _apply(claim: Claim, verdict: Verdict, source_type: SourceType, evidences=None) -> Claim:
        return claim.with_verdict(
            verdict.status,
            verdict.confidence,
            verdict.reasoning,
            source_type,
            evidences,
        )

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - asyncio.get_running_loop().time())

    async def _persist(self, analysis: AnalysisResult, claims: List[Claim]) -> None:
        try:
            await self._store.save_claims(analysis.id, claims)
            await self._store.save_analysis(analysis)
        except Exception as e:
            logger.error(f"❌ Failed to save analysis {analysis.id}: {e}")
            return
        logger.info(f"💾 Saved analysis {analysis.id} with {len(claims)} claims")

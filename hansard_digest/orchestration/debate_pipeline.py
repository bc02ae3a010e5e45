"""
Debate processing pipeline orchestration.

Coordinates the per-debate stages and the batch loop around them:
classify → (divisions ∥ members) → AI analysis → stats and score →
record assembly → persistence, followed by weekly index ingestion for
each batch's successes.

Responsibility: Batch scheduling and per-debate outcome mapping
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import httpx

from ..adapters.hansard_adapter import HOUSES, HansardAdapter
from ..analysis.orchestrator import AnalysisOrchestrator
from ..config import settings
from ..db.session import Database
from ..exceptions import (
    AnalysisRefusedError,
    DivisionFetchError,
    ExistingContentReadError,
    LLMProviderError,
    PersistenceError,
    UpstreamUnavailableError,
)
from ..models.analysis import AIContent, AIProcessMode
from ..models.debate import RawDebate
from ..models.division import Division
from ..models.results import DebateOutcome, OutcomeReason, ProcessingStatus, RunSummary
from ..models.vector import VectorDocument
from ..processing.chunks import build_debate_chunks
from ..processing.classifier import classify_debate
from ..processing.divisions import DivisionReconciler
from ..processing.scoring import calculate_interest_score
from ..processing.stats import calculate_stats
from ..processing.transform import build_debate_record
from ..processing.vector_document import format_debate_for_vector
from ..services.debate_persistence import DebatePersistence
from ..services.embedding_service import EmbeddingService
from ..services.index_client import IndexClient
from ..services.llm_client import LLMClient
from ..services.member_cache import MemberCache
from ..services.vector_index import VectorIndexRotationManager

logger = logging.getLogger(__name__)

ProcessResult = Tuple[DebateOutcome, Optional[VectorDocument]]


def batched(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class DebatePipeline:
    """
    Processes the debates of one unit of work.

    A unit of work is a sitting date (both houses), a single debate id, or
    the most recent sitting day.

    Example:
        pipeline = DebatePipeline.from_settings(db)
        summary = await pipeline.run(sitting_date=date(2024, 3, 5))
        await pipeline.close()
    """

    def __init__(
        self,
        source: HansardAdapter,
        persistence: DebatePersistence,
        member_cache: MemberCache,
        analyser: Optional[AnalysisOrchestrator] = None,
        index: Optional[VectorIndexRotationManager] = None,
        ai_process_mode: Optional[AIProcessMode] = None,
        embedder: Optional[EmbeddingService] = None,
        batch_size: Optional[int] = None,
        batch_delay_seconds: Optional[float] = None,
        closeables: Sequence[Any] = (),
    ):
        config = settings.processing
        self.source = source
        self.reconciler = DivisionReconciler(source)
        self.persistence = persistence
        self.member_cache = member_cache
        self.analyser = analyser
        self.index = index
        self.ai_process_mode = ai_process_mode
        self.embedder = embedder
        self.batch_size = batch_size or config.batch_size
        self.batch_delay_seconds = (
            config.batch_delay_seconds if batch_delay_seconds is None else batch_delay_seconds
        )
        self._closeables = list(closeables)

    @classmethod
    def from_settings(
        cls,
        database: Database,
        ai_process_mode: Optional[AIProcessMode] = None,
        enable_ai: Optional[bool] = None,
        enable_vector_index: Optional[bool] = None,
    ) -> "DebatePipeline":
        """Wire the production adapter, provider clients and datastore."""
        config = settings.processing
        enable_ai = config.enable_ai if enable_ai is None else enable_ai
        enable_vector_index = (
            config.enable_vector_index if enable_vector_index is None else enable_vector_index
        )

        source = HansardAdapter()
        llm = LLMClient()
        index_client = IndexClient()
        embedder = EmbeddingService()

        analyser = None
        if enable_ai:
            if llm.enabled:
                analyser = AnalysisOrchestrator(llm, config.max_context_words)
            else:
                logger.warning("AI analysis disabled: OPENAI_API_KEY not set")

        index = None
        if enable_vector_index and enable_ai and index_client.enabled:
            index = VectorIndexRotationManager(index_client, database)

        return cls(
            source=source,
            persistence=DebatePersistence(database),
            member_cache=MemberCache.from_database(database),
            analyser=analyser,
            index=index,
            ai_process_mode=ai_process_mode,
            embedder=embedder,
            closeables=[source, llm, index_client, embedder],
        )

    async def close(self) -> None:
        for resource in self._closeables:
            await resource.close()

    # ------------------------------------------------------------------
    # Collection
    # ------------------------------------------------------------------

    async def collect(
        self,
        sitting_date: Optional[date] = None,
        debate_id: Optional[str] = None,
        latest: bool = False,
    ) -> List[RawDebate]:
        """
        Load the debates for a unit of work.

        Raises:
            UpstreamUnavailableError: The records API is unreachable
        """
        if debate_id:
            try:
                return [await self.source.fetch_debate(debate_id)]
            except httpx.HTTPStatusError as exc:
                logger.error("Debate %s could not be fetched: %s", debate_id, exc)
                return []

        if latest or sitting_date is None:
            sitting_date = await self.source.fetch_last_sitting_date()
            logger.info("Most recent sitting day: %s", sitting_date)

        debates: List[RawDebate] = []
        seen = set()
        for house in HOUSES:
            response = await self.source.fetch(sitting_date=sitting_date, house=house)
            if response.unavailable:
                message = response.errors[0].message if response.errors else "no response"
                raise UpstreamUnavailableError("hansard", message)
            logger.info(
                "%s: %s debates loaded, %s errors, %s throttle delays",
                house, response.loaded, len(response.errors), response.metrics.throttle_delays,
            )
            for debate in response.data or []:
                if debate.ext_id not in seen:
                    seen.add(debate.ext_id)
                    debates.append(debate)

        logger.info("Collected %s debates for %s", len(debates), sitting_date)
        return debates

    # ------------------------------------------------------------------
    # Per-debate processing
    # ------------------------------------------------------------------

    async def _fetch_divisions(self, ext_id: str) -> Optional[List[Division]]:
        try:
            return await self.reconciler.fetch_divisions(ext_id)
        except DivisionFetchError as exc:
            logger.warning("Continuing %s without divisions: %s", ext_id, exc)
            return None

    def _upserts_divisions(self) -> bool:
        return self.ai_process_mode in (None, AIProcessMode.DIVISIONS)


    async def _embed_stored(self, debate: RawDebate, debate_type: str) -> DebateOutcome:
        """Embed the stored summary and key points of an already processed debate."""
        ext_id = debate.ext_id
        try:
            if self.embedder is None:
                raise LLMProviderError("No embedding provider configured")
            stored = await self.persistence.read_existing(ext_id)
            chunks = build_debate_chunks(stored) if stored else []
            if not chunks:
                logger.info("Nothing stored to embed for %s", ext_id)
                return DebateOutcome(
                    ext_id=ext_id,
                    title=debate.overview.title,
                    status=ProcessingStatus.SKIPPED,
                    reason=OutcomeReason.NOTHING_TO_EMBED,
                    debate_type=debate_type,
                )

            vectors = await self.embedder.embed([chunk.chunk_text for chunk in chunks])
            for chunk, vector in zip(chunks, vectors):
                chunk.embedding = vector
            written = await self.persistence.store_chunks(ext_id, chunks)
        except UpstreamUnavailableError:
            raise
        except Exception as exc:
            logger.exception("Embedding %s failed: %s", ext_id, exc)
            return self._failed(debate, debate_type, OutcomeReason.ERROR, exc)

        logger.info("Embedded %s chunks for %s", written, ext_id)
        return DebateOutcome(
            ext_id=ext_id,
            title=debate.overview.title,
            status=ProcessingStatus.SUCCESS,
            reason=OutcomeReason.PROCESSED,
            debate_type=debate_type,
            interest_score=stored.get("interest_score"),
        )

    async def process_debate(self, debate: RawDebate) -> ProcessResult:
        """
        Run every stage for one debate.

        Only ``UpstreamUnavailableError`` escapes; everything else becomes
        a failed or skipped outcome.
        """
        ext_id = debate.ext_id
        title = debate.overview.title

        classification = classify_debate(debate)
        if not classification.eligible:
            logger.info("Skipping %s (%s): %s", ext_id, title, classification.reason)
            outcome = DebateOutcome(
                ext_id=ext_id,
                title=title,
                status=ProcessingStatus.SKIPPED,
                reason=OutcomeReason.INELIGIBLE,
                message=classification.reason,
            )
            return outcome, None

        debate_type = classification.type
        if self.ai_process_mode == AIProcessMode.EMBEDDINGS:
            return await self._embed_stored(debate, debate_type), None

        try:
            divisions, members = await asyncio.gather(
                self._fetch_divisions(ext_id),
                self.member_cache.get_many(debate.member_ids()),
            )

            content: Optional[AIContent] = None
            if self.analyser is not None:
                content = await self.analyser.analyse(
                    debate, debate_type, members, divisions, self.ai_process_mode
                )

            stats = calculate_stats(debate, members)
            interest = calculate_interest_score(
                content.tone if content else None,
                stats.speaker_count,
                stats.contribution_count,
                stats.party_counts,
                content.key_points if content else None,
            )
            record = build_debate_record(debate, debate_type, stats, members, content, interest)
            stored = await self.persistence.upsert(record, self.ai_process_mode)

            if divisions and self._upserts_divisions():
                await self.persistence.upsert_divisions(divisions)

        except UpstreamUnavailableError:
            raise
        except AnalysisRefusedError as exc:
            logger.warning("Debate %s failed: analysis refused (%s)", ext_id, exc)
            return self._failed(debate, debate_type, OutcomeReason.REFUSED, exc), None
        except ExistingContentReadError as exc:
            logger.error(
                "Data loss risk: not writing %s because stored content could not be read: %s",
                ext_id, exc.cause
            )
            outcome = DebateOutcome(
                ext_id=ext_id,
                title=title,
                status=ProcessingStatus.SKIPPED,
                reason=OutcomeReason.DATA_LOSS_RISK,
                debate_type=debate_type,
                error_type=type(exc).__name__,
                message=str(exc),
            )
            return outcome, None
        except Exception as exc:
            logger.exception("Debate %s failed: %s", ext_id, exc)
            return self._failed(debate, debate_type, OutcomeReason.ERROR, exc), None

        document = format_debate_for_vector(stored, divisions) if self.index is not None else None
        outcome = DebateOutcome(
            ext_id=ext_id,
            title=title,
            status=ProcessingStatus.SUCCESS,
            reason=OutcomeReason.PROCESSED,
            debate_type=debate_type,
            interest_score=stored.get("interest_score"),
        )
        logger.info(
            "Processed %s (%s) score=%s", ext_id, debate_type, outcome.interest_score
        )
        return outcome, document

    @staticmethod
    def _failed(
        debate: RawDebate,
        debate_type: Optional[str],
        reason: OutcomeReason,
        exc: Exception,
    ) -> DebateOutcome:
        return DebateOutcome(
            ext_id=debate.ext_id,
            title=debate.overview.title,
            status=ProcessingStatus.FAILED,
            reason=reason,
            debate_type=debate_type,
            error_type=type(exc).__name__,
            message=str(exc),
        )

    # ------------------------------------------------------------------
    # Batch loop
    # ------------------------------------------------------------------

    async def _index(self, documents: List[VectorDocument], summary: RunSummary) -> None:
        report = await self.index.index_documents(documents)
        summary.index_failures += report.failures
        try:
            await self.persistence.set_file_ids(report.file_ids)
        except PersistenceError as exc:
            logger.error("Could not record index file ids: %s", exc)

    async def process(self, debates: Sequence[RawDebate], summary: Optional[RunSummary] = None) -> RunSummary:
        """Process ``debates`` in paced batches."""
        summary = summary or RunSummary()

        # ineligible debates never reach the member lookup
        eligible_member_ids = {
            member_id
            for debate in debates
            if classify_debate(debate).eligible
            for member_id in debate.member_ids()
        }
        if self.ai_process_mode != AIProcessMode.EMBEDDINGS:
            await self.member_cache.load(eligible_member_ids)

        for number, batch in enumerate(batched(list(debates), self.batch_size)):
            if number:
                await asyncio.sleep(self.batch_delay_seconds)

            logger.info("Processing batch %s (%s debates)", number + 1, len(batch))
            results = await asyncio.gather(*(self.process_debate(debate) for debate in batch))

            documents = []
            for outcome, document in results:
                summary.add(outcome)
                if document is not None:
                    documents.append(document)

            if documents and self.index is not None:
                await self._index(documents, summary)

        summary.finished_at = datetime.utcnow()
        return summary

    async def run(
        self,
        sitting_date: Optional[date] = None,
        debate_id: Optional[str] = None,
        latest: bool = False,
    ) -> RunSummary:
        """
        Collect and process one unit of work, then record the run.

        Raises:
            UpstreamUnavailableError: Records API or datastore unreachable
        """
        summary = RunSummary()
        unit_of_work = debate_id or ("latest" if latest or sitting_date is None else sitting_date.isoformat())
        logger.info(
            "Starting debate pipeline: unit=%s ai_process=%s",
            unit_of_work, self.ai_process_mode.value if self.ai_process_mode else "all"
        )

        debates = await self.collect(sitting_date=sitting_date, debate_id=debate_id, latest=latest)
        await self.process(debates, summary)

        try:
            await self.persistence.record_run(summary, unit_of_work=unit_of_work)
        except PersistenceError as exc:
            logger.error("Could not write fetch log: %s", exc)

        logger.info(
            "Pipeline complete: success=%s failed=%s skipped=%s index_failures=%s (%.1fs)",
            summary.success, summary.failed, summary.skipped,
            summary.index_failures, summary.duration_seconds
        )
        return summary

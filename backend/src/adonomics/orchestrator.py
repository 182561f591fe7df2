"""
Analysis orchestration.

Runs the pipeline for one advertisement: video analysis, user profile,
competitive search, then synthesis. The record is saved after every step
so partial progress survives a crash, and a retry starts over from scratch.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from adonomics import profile
from adonomics.competitive import CompetitiveIntelligenceLookup
from adonomics.config import Config
from adonomics.errors import (
    AdonomicsError,
    AlreadyAnalyzedError,
    AnalysisFailedError,
    AnalysisInProgressError,
    ConcurrentModificationError,
    InvalidRequestError,
    InvalidTransitionError,
    MissingVideoError,
    NotFoundError,
    StillIndexingError,
)
from adonomics.lifecycle import (
    new_advertisement,
    with_analysis_result,
    with_decision,
    with_metrics,
    with_status,
    with_synthesis,
)
from adonomics.logging_utils import log_event
from adonomics.models import (
    DECIDED_STATUSES,
    AdvertisementRecord,
    AdvertisementStatus,
    DecisionType,
    Synthesis,
    UserProfileSummary,
    VideoSource,
)
from adonomics.repository import AdvertisementRepository
from adonomics.synthesis import ReportSynthesizer
from adonomics.video_index import VideoIndexClient

logger = logging.getLogger(__name__)

NOT_READY_NOTE = "Video is still being indexed by Twelve Labs. Please try again in 10-15 minutes."


class AnalysisOrchestrator:
    def __init__(
        self,
        config: Config,
        repository: AdvertisementRepository,
        video_index: VideoIndexClient,
        synthesizer: ReportSynthesizer,
        competitive: Optional[CompetitiveIntelligenceLookup] = None,
    ):
        self.config = config
        self.repository = repository
        self.video_index = video_index
        self.synthesizer = synthesizer
        self.competitive = competitive or CompetitiveIntelligenceLookup(video_index)
        # Advertisement ids with an analysis running in this process.
        self._inflight: set[str] = set()

    # ------------------------------------------------------------------
    # Repository access
    # ------------------------------------------------------------------

    async def _load(self, advertisement_id: str) -> AdvertisementRecord:
        record = await asyncio.to_thread(self.repository.get, advertisement_id)
        if record is None:
            raise NotFoundError("Advertisement not found")
        return record

    async def _save(self, record: AdvertisementRecord) -> AdvertisementRecord:
        return await asyncio.to_thread(self.repository.save, record)

    async def _regress(self, record: AdvertisementRecord, note: str) -> AdvertisementRecord:
        try:
            return await self._save(with_status(record, AdvertisementStatus.UPLOAD, note=note))
        except AdonomicsError:
            logger.exception("Could not return advertisement %s to upload status", record.id)
            return record

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def submit_advertisement(self, user_id: str, source: VideoSource) -> AdvertisementRecord:
        """Upload, wait for indexing and persist a new advertisement."""
        if not user_id:
            raise InvalidRequestError("User ID is required")
        task = await self.video_index.submit(source)
        indexed = await self.video_index.await_ready(task)
        record = new_advertisement(user_id, source, task, indexed)
        record = await asyncio.to_thread(self.repository.create, record)
        log_event(logger, "advertisement_created", advertisement_id=record.id, video_id=indexed.video_id)
        return record

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze(self, advertisement_id: str) -> AdvertisementRecord:
        if not advertisement_id:
            raise InvalidRequestError("Advertisement ID is required")
        if advertisement_id in self._inflight:
            raise AnalysisInProgressError("Analysis is already running for this advertisement")
        self._inflight.add(advertisement_id)
        try:
            return await self._analyze(advertisement_id)
        finally:
            self._inflight.discard(advertisement_id)

    async def _analyze(self, advertisement_id: str) -> AdvertisementRecord:
        record = await self._load(advertisement_id)
        if record.status == AdvertisementStatus.ANALYZED or record.status in DECIDED_STATUSES:
            raise AlreadyAnalyzedError("Advertisement already analyzed")
        video_id = record.twelve_labs_video_id
        if not video_id:
            raise MissingVideoError("No video ID found for this advertisement")
        # Fail on missing credentials before touching the record.
        self.config.require_video_index()

        if record.status == AdvertisementStatus.ANALYZING:
            # Left behind by an interrupted run; start over.
            record = await self._save(
                with_status(record, AdvertisementStatus.UPLOAD, note="Restarting interrupted analysis")
            )
        record = await self._save(with_status(record, AdvertisementStatus.ANALYZING, note="Analysis started"))

        if not await self.video_index.is_ready(video_id):
            await self._regress(record, NOT_READY_NOTE)
            raise StillIndexingError(NOT_READY_NOTE, retry_after=self.config.retry_after_seconds)

        try:
            log_event(logger, "step=video_analysis", advertisement_id=record.id)
            video_analysis = await self.video_index.describe_video(video_id, record.twelve_labs_task_id)
            record = await self._save(with_analysis_result(record, video_analysis=video_analysis))

            log_event(logger, "step=user_profile", advertisement_id=record.id)
            user_profile = await self._profile_summary(record.user_id)
            record = await self._save(with_analysis_result(record, user_profile=user_profile))

            log_event(logger, "step=competitive_search", advertisement_id=record.id)
            competitive_search = await self.competitive.lookup(video_id)
            record = await self._save(with_analysis_result(record, competitive_search=competitive_search))

            log_event(logger, "step=synthesis", advertisement_id=record.id)
            synthesis = await self._synthesize(record)
            record = await self._save(with_synthesis(record, synthesis, note="Analysis completed"))
        except StillIndexingError:
            await self._regress(record, NOT_READY_NOTE)
            raise StillIndexingError(NOT_READY_NOTE, retry_after=self.config.retry_after_seconds)
        except ConcurrentModificationError:
            raise
        except Exception as exc:
            logger.exception("Analysis failed for advertisement %s", record.id)
            await self._regress(record, str(exc))
            raise AnalysisFailedError(f"Analysis failed: {exc}") from exc

        log_event(
            logger,
            "analysis_complete",
            advertisement_id=record.id,
            fallback=record.analysis_results.synthesis.fallback,
        )
        return record

    async def _profile_summary(self, user_id: str) -> UserProfileSummary:
        preferences = await asyncio.to_thread(self.repository.get_preferences, user_id)
        return UserProfileSummary(summary=profile.summarize(preferences))

    async def _synthesize(self, record: AdvertisementRecord) -> Synthesis:
        results = record.analysis_results
        benchmarks = await asyncio.to_thread(self.repository.benchmark_summary)
        report, used_fallback = await self.synthesizer.synthesize_with_status(
            results.video_analysis,
            results.user_profile,
            results.competitive_search,
            benchmarks,
        )
        return Synthesis(report=report, fallback=used_fallback)

    async def reanalyze(self, advertisement_id: str) -> AdvertisementRecord:
        """
        Refresh profile, competitive search and report of an analyzed ad.

        The stored video analysis is reused; the status stays ``analyzed``.
        """
        if advertisement_id in self._inflight:
            raise AnalysisInProgressError("Analysis is already running for this advertisement")
        self._inflight.add(advertisement_id)
        try:
            record = await self._load(advertisement_id)
            if record.status != AdvertisementStatus.ANALYZED:
                raise InvalidTransitionError(
                    f"Only analyzed advertisements can be re-analyzed (status: {record.status.value})"
                )
            video_id = record.twelve_labs_video_id
            if not video_id:
                raise MissingVideoError("No video ID found for this advertisement")

            results: dict[str, Any] = {
                "user_profile": await self._profile_summary(record.user_id),
                "competitive_search": await self.competitive.lookup(video_id),
            }
            if record.analysis_results.video_analysis is None:
                results["video_analysis"] = await self.video_index.describe_video(
                    video_id, record.twelve_labs_task_id
                )
            record = with_analysis_result(record, **results)
            synthesis = await self._synthesize(record)
            record = await self._save(with_synthesis(record, synthesis))
            log_event(logger, "reanalysis_complete", advertisement_id=record.id, fallback=synthesis.fallback)
            return record
        finally:
            self._inflight.discard(advertisement_id)

    # ------------------------------------------------------------------
    # Decisions and metrics
    # ------------------------------------------------------------------

    async def apply_decision(
        self,
        advertisement_id: str,
        decision: DecisionType,
        comments: Optional[str] = None,
        decided_by: Optional[str] = None,
        status: Optional[AdvertisementStatus] = None,
    ) -> AdvertisementRecord:
        record = await self._load(advertisement_id)
        updated = with_decision(record, decision, comments, decided_by, status)
        if updated is record:
            return record
        record = await self._save(updated)
        log_event(logger, "decision_applied", advertisement_id=record.id, decision=decision.value)
        return record

    async def update_metrics(self, advertisement_id: str, changes: dict[str, Any]) -> AdvertisementRecord:
        record = await self._load(advertisement_id)
        return await self._save(with_metrics(record, changes))

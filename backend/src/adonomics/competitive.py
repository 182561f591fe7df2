"""Competitive intelligence from similar videos in the index."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from adonomics.errors import AdonomicsError
from adonomics.models import (
    AdvertisementRecord,
    CompetitiveSearch,
    PerformanceIndicators,
    SimilarAd,
    VideoHit,
)
from adonomics.video_index import VideoIndexClient

logger = logging.getLogger(__name__)


class PerformanceScorer(Protocol):
    def score(self, hit: VideoHit) -> PerformanceIndicators:
        ...


class UnscoredPerformance:
    """Reports that no performance data exists for any hit."""

    def score(self, hit: VideoHit) -> PerformanceIndicators:
        return PerformanceIndicators()


class StoredMetricsScorer:
    """
    Uses measured metrics when a hit is one of our own advertisements.

    ``lookup`` maps a Twelve Labs video id to the stored advertisement.
    """

    def __init__(self, lookup: Callable[[str], Optional[AdvertisementRecord]]):
        self._lookup = lookup

    def score(self, hit: VideoHit) -> PerformanceIndicators:
        record = self._lookup(hit.id)
        if record is None or record.metrics is None:
            return PerformanceIndicators()
        metrics = record.metrics
        return PerformanceIndicators(
            source="stored_metrics",
            engagement_rate=metrics.engagement_score,
            conversion_rate=metrics.conversion_rate,
            ctr=metrics.ctr,
            vtr=metrics.vtr,
            roas=metrics.roas,
        )


class CompetitiveIntelligenceLookup:
    def __init__(self, video_index: VideoIndexClient, scorer: Optional[PerformanceScorer] = None):
        self.video_index = video_index
        self.scorer = scorer or UnscoredPerformance()

    async def lookup(self, video_id: str) -> CompetitiveSearch:
        """Similar ads for ``video_id``. Provider failures yield an empty result."""
        try:
            hits = await self.video_index.search_by_video_id(video_id)
        except AdonomicsError as exc:
            logger.warning("Competitive search skipped for video %s: %s", video_id, exc)
            return CompetitiveSearch()

        similar_ads = [
            SimilarAd(
                id=hit.id,
                title=hit.title,
                score=hit.score,
                thumbnail_url=hit.thumbnail_url,
                performance_indicators=self.scorer.score(hit),
            )
            for hit in hits
        ]
        logger.info("Competitive search video_id=%s similar_ads=%s", video_id, len(similar_ads))
        return CompetitiveSearch(similar_ads=similar_ads)

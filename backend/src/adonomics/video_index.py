"""
Twelve Labs video index adapter.

All calls into the ``twelvelabs`` SDK go through this module. The SDK is
synchronous, so each call runs in a worker thread and comes back as one of
the typed models in ``adonomics.models``.
"""
from __future__ import annotations

import asyncio
import itertools
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from twelvelabs import TwelveLabs

from adonomics.config import Config
from adonomics.errors import (
    AdonomicsError,
    ConfigurationError,
    IndexingFailedError,
    IndexingTimeoutError,
    InvalidRequestError,
    ProviderError,
    StillIndexingError,
)
from adonomics.models import (
    AnalysisPayload,
    IndexedVideo,
    TaskHandle,
    VideoAnalysis,
    VideoGist,
    VideoHit,
    VideoSource,
)
from adonomics.prompts import DEFAULT_SUMMARY_PROMPT, TWELVE_LABS_ANALYZE_PROMPT

logger = logging.getLogger(__name__)

T = TypeVar("T")

ANALYSIS_KINDS = ("gist", "summary", "open-ended")
GIST_TYPES = ["title", "topic", "hashtag"]
OPEN_ENDED_TEMPERATURE = 0.2
MAX_SEARCH_CLIPS = 50

READY_STATUS = "ready"
FAILED_STATUS = "failed"
INTERMEDIATE_STATUSES = ("uploading", "validating", "pending", "queued", "indexing")

_NOT_READY_MARKERS = ("video_not_ready", "not ready", "still indexing", "being indexed")

_RETRY_MAX_ATTEMPTS = 3
_RETRY_MIN_DELAY_SECONDS = 1.0
_RETRY_MAX_DELAY_SECONDS = 8.0

# Sentinel so callers can pass max_wait=None for an unbounded wait.
_CONFIGURED = object()

StatusCallback = Callable[[str], Awaitable[None]]


def _is_rate_limited(exc: BaseException) -> bool:
    return getattr(exc, "status_code", None) == 429


def _error_text(exc: BaseException) -> str:
    parts = [str(exc)]
    body = getattr(exc, "body", None)
    if body:
        parts.append(str(body))
    return " ".join(part for part in parts if part)


def is_not_ready_message(message: str) -> bool:
    lowered = (message or "").lower()
    return any(marker in lowered for marker in _NOT_READY_MARKERS)


def _text_of(response: Any) -> str:
    """Pull the generated text out of an analyze/summarize response."""
    if response is None:
        return ""
    if isinstance(response, str):
        return response
    for attr in ("data", "text", "summary"):
        value = getattr(response, attr, None)
        if isinstance(value, str) and value:
            return value
    return ""


class VideoIndexClient:
    """Narrow adapter over the Twelve Labs SDK used by the analysis pipeline."""

    def __init__(self, config: Config, client: Any = None):
        self.config = config
        self._client = client
        self._retry_sleep: Callable[[float], None] = time.sleep
        self._poll_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
        self._clock: Callable[[], float] = time.monotonic

    @property
    def index_id(self) -> str:
        _, index_id = self.config.require_video_index()
        return index_id

    def _sdk(self) -> Any:
        if self._client is None:
            if not self.config.twelve_labs_api_key:
                raise ConfigurationError("TwelveLabs API key is not configured")
            self._client = TwelveLabs(api_key=self.config.twelve_labs_api_key)
        return self._client

    # ------------------------------------------------------------------
    # Call plumbing
    # ------------------------------------------------------------------

    def _call_sync(self, operation: str, fn: Callable[[], T]) -> T:
        result: Optional[T] = None
        try:
            for attempt in Retrying(
                retry=retry_if_exception(_is_rate_limited),
                stop=stop_after_attempt(_RETRY_MAX_ATTEMPTS),
                wait=wait_exponential(
                    multiplier=1,
                    min=_RETRY_MIN_DELAY_SECONDS,
                    max=_RETRY_MAX_DELAY_SECONDS,
                ),
                reraise=True,
                before_sleep=self._log_retry_before_sleep,
                sleep=self._retry_sleep,
            ):
                with attempt:
                    result = fn()
        except AdonomicsError:
            raise
        except Exception as exc:
            raise self._translate(operation, exc) from exc
        return result

    async def _call(self, operation: str, fn: Callable[[], T]) -> T:
        return await asyncio.to_thread(self._call_sync, operation, fn)

    def _translate(self, operation: str, exc: BaseException) -> AdonomicsError:
        message = _error_text(exc)
        if is_not_ready_message(message):
            return StillIndexingError(retry_after=self.config.retry_after_seconds)
        return ProviderError(
            f"Twelve Labs {operation} failed: {message}",
            provider_status=getattr(exc, "status_code", None),
        )

    @staticmethod
    def _log_retry_before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if exc is None:
            return
        wait_seconds = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            "Twelve Labs rate-limited (attempt %s/%s): %s. Retrying in %.1fs.",
            retry_state.attempt_number,
            _RETRY_MAX_ATTEMPTS,
            exc,
            wait_seconds,
        )

    # ------------------------------------------------------------------
    # Indexing
    # ------------------------------------------------------------------

    async def submit(self, source: VideoSource) -> TaskHandle:
        client = self._sdk()
        index_id = self.index_id

        def _create() -> Any:
            if source.url:
                return client.tasks.create(index_id=index_id, video_url=source.url)
            return client.tasks.create(
                index_id=index_id,
                video_file=(source.filename, source.content),
            )

        task = await self._call("upload", _create)
        handle = TaskHandle(
            task_id=str(task.id),
            index_id=index_id,
            video_id=getattr(task, "video_id", None),
        )
        logger.info("Submitted video for indexing task_id=%s index_id=%s", handle.task_id, index_id)
        return handle

    async def retrieve_task(self, task_id: str) -> tuple[str, Optional[str]]:
        """Return ``(status, video_id)`` for an indexing task."""
        client = self._sdk()
        task = await self._call("task status", lambda: client.tasks.retrieve(task_id))
        status = str(getattr(task, "status", "") or "").lower()
        return status, getattr(task, "video_id", None)

    async def await_ready(
        self,
        task: TaskHandle,
        poll_interval: Optional[float] = None,
        max_wait: Any = _CONFIGURED,
        on_status: Optional[StatusCallback] = None,
    ) -> IndexedVideo:
        """
        Poll an indexing task until it reaches a terminal status.

        Args:
            task: Handle returned by ``submit``.
            poll_interval: Seconds between polls. Defaults to the configured interval.
            max_wait: Ceiling in seconds, or None to wait for a terminal status
                indefinitely. Defaults to the configured ceiling.
            on_status: Awaited with every non-terminal status observed.

        Raises:
            IndexingFailedError: the provider reported ``failed``.
            IndexingTimeoutError: the ceiling elapsed first.
        """
        interval = self.config.poll_interval_seconds if poll_interval is None else poll_interval
        ceiling = self.config.index_wait_ceiling if max_wait is _CONFIGURED else max_wait
        started = self._clock()

        while True:
            try:
                status, video_id = await self.retrieve_task(task.task_id)
            except (ProviderError, StillIndexingError) as exc:
                # Transient poll failures are retried until the ceiling.
                logger.warning("Polling task %s failed: %s", task.task_id, exc)
                status, video_id = "", None

            if status == READY_STATUS:
                resolved = video_id or task.video_id
                if not resolved:
                    raise ProviderError(f"Task {task.task_id} is ready but has no video id")
                logger.info("Indexing complete task_id=%s video_id=%s", task.task_id, resolved)
                return IndexedVideo(task_id=task.task_id, video_id=resolved, final_status=status)
            if status == FAILED_STATUS:
                raise IndexingFailedError(task.task_id, status)

            if status:
                if status not in INTERMEDIATE_STATUSES:
                    logger.info("Unrecognised task status %r for %s, still waiting", status, task.task_id)
                if on_status is not None:
                    await on_status(status)

            elapsed = self._clock() - started
            if ceiling is not None and elapsed >= ceiling:
                raise IndexingTimeoutError(task.task_id, ceiling)
            await self._poll_sleep(interval)

    async def is_ready(self, video_id: str) -> bool:
        """Best-effort readiness probe. Any failure counts as not ready."""
        try:
            await self._gist(video_id, types=["title"])
        except AdonomicsError as exc:
            logger.warning("Readiness check for video %s failed: %s", video_id, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def _gist(self, video_id: str, types: Optional[list[str]] = None) -> VideoGist:
        client = self._sdk()
        response = await self._call(
            "gist",
            lambda: client.gist(video_id=video_id, types=types or GIST_TYPES),
        )
        return VideoGist(
            title=getattr(response, "title", None),
            topics=list(getattr(response, "topics", None) or []),
            hashtags=list(getattr(response, "hashtags", None) or []),
        )

    async def run_analysis(
        self,
        video_id: str,
        kind: str,
        prompt: Optional[str] = None,
    ) -> AnalysisPayload:
        if kind not in ANALYSIS_KINDS:
            raise InvalidRequestError("Invalid analysis type. Use: gist, summary, or open-ended")
        if kind == "open-ended" and not (prompt or "").strip():
            raise InvalidRequestError("Prompt is required for open-ended analysis")
        if not video_id:
            raise InvalidRequestError("Video ID is required")

        if kind == "gist":
            gist = await self._gist(video_id)
            return AnalysisPayload(video_id=video_id, kind=kind, data=gist.model_dump())

        client = self._sdk()
        if kind == "summary":
            response = await self._call(
                "summarize",
                lambda: client.summarize(
                    video_id=video_id,
                    type="summary",
                    prompt=prompt or DEFAULT_SUMMARY_PROMPT,
                ),
            )
            return AnalysisPayload(video_id=video_id, kind=kind, data=_text_of(response))

        response = await self._call(
            "analyze",
            lambda: client.analyze(
                video_id=video_id,
                prompt=prompt,
                temperature=OPEN_ENDED_TEMPERATURE,
            ),
        )
        return AnalysisPayload(video_id=video_id, kind=kind, data=_text_of(response))

    async def describe_video(self, video_id: str, task_id: Optional[str] = None) -> VideoAnalysis:
        summary = await self.run_analysis(video_id, "summary")
        analysis = await self.run_analysis(video_id, "open-ended", TWELVE_LABS_ANALYZE_PROMPT)
        gist = await self._gist(video_id)
        return VideoAnalysis(
            video_id=video_id,
            task_id=task_id,
            summary=summary.data or "",
            analysis=analysis.data or "",
            gist=gist,
        )

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search_by_text(self, query: str) -> list[VideoHit]:
        if not (query or "").strip():
            raise InvalidRequestError("Query is required")
        client = self._sdk()
        index_id = self.index_id

        def _search() -> list[Any]:
            pager = client.search.query(
                index_id=index_id,
                search_options=list(self.config.search_options),
                query_text=query,
                group_by="clip",
                sort_option="score",
            )
            return list(itertools.islice(pager, MAX_SEARCH_CLIPS))

        clips = await self._call("search", _search)

        # Clips arrive per segment; keep the best-scoring clip per video.
        hits: dict[str, VideoHit] = {}
        for clip in clips:
            video_id = getattr(clip, "video_id", None) or getattr(clip, "id", None)
            if not video_id:
                continue
            score = getattr(clip, "score", None)
            existing = hits.get(video_id)
            if existing is not None and (existing.score or 0) >= (score or 0):
                continue
            hits[video_id] = VideoHit(
                id=video_id,
                title=getattr(clip, "title", None),
                description=getattr(clip, "description", None),
                thumbnail_url=getattr(clip, "thumbnail_url", None),
                score=score,
            )
        return sorted(hits.values(), key=lambda hit: hit.score or 0, reverse=True)

    async def search_by_video_id(self, video_id: str) -> list[VideoHit]:
        """Find videos similar to ``video_id``, excluding the video itself."""
        gist = await self._gist(video_id)
        terms = [gist.title] if gist.title else []
        terms.extend(gist.topics)
        query = " ".join(term for term in terms if term) or video_id
        hits = await self.search_by_text(query)
        return [hit for hit in hits if hit.id != video_id]

    # ------------------------------------------------------------------
    # Index management
    # ------------------------------------------------------------------

    async def validate(self) -> bool:
        """Check that the configured index exists."""
        try:
            client = self._sdk()
            index_id = self.index_id
            await self._call("index lookup", lambda: client.indexes.retrieve(index_id))
        except AdonomicsError as exc:
            logger.warning("Twelve Labs index validation failed: %s", exc)
            return False
        return True

    async def create_index(self, name: str, models: list[dict[str, Any]]) -> str:
        from twelvelabs.indexes import IndexesCreateRequestModelsItem

        client = self._sdk()
        items = [IndexesCreateRequestModelsItem(**model) for model in models]
        index = await self._call(
            "index create",
            lambda: client.indexes.create(index_name=name, models=items),
        )
        return str(index.id)

"""
Live upload progress.

``ProgressEmitter`` runs upload, indexing wait and persistence while
writing progress events to a ``ProgressStream``. The HTTP layer drains the
stream into an SSE response.
"""
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import AsyncIterator, Optional

from adonomics.config import Config
from adonomics.errors import AdonomicsError, IndexingTimeoutError, InvalidRequestError
from adonomics.lifecycle import new_advertisement
from adonomics.models import IndexedVideo, ProgressEvent, TaskHandle, VideoSource
from adonomics.repository import AdvertisementRepository
from adonomics.sse import format_event
from adonomics.video_index import VideoIndexClient

logger = logging.getLogger(__name__)

# Percentage reported for each provider task status.
STATUS_PROGRESS = {
    "uploading": 20,
    "validating": 40,
    "pending": 50,
    "queued": 60,
    "indexing": 75,
}
DEFAULT_STATUS_PROGRESS = 70

STATUS_MESSAGES = {
    "uploading": "Uploading video...",
    "validating": "Validating video...",
    "pending": "Waiting to start indexing...",
    "queued": "Queued for indexing...",
    "indexing": "Indexing video content...",
}

_CLOSED = object()


class ProgressStream:
    """Single-producer, single-consumer stream of SSE frames."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False
        self.sent: list[ProgressEvent] = []

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, event: ProgressEvent) -> None:
        if self._closed:
            raise RuntimeError("Progress stream is closed")
        self.sent.append(event)
        await self._queue.put(format_event(event.to_payload()))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._queue.put(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            frame = await self._queue.get()
            if frame is _CLOSED:
                return
            yield frame


class ProgressEmitter:
    def __init__(
        self,
        config: Config,
        video_index: VideoIndexClient,
        repository: AdvertisementRepository,
    ):
        self.config = config
        self.video_index = video_index
        self.repository = repository

    async def run(self, stream: ProgressStream, user_id: str, source: VideoSource) -> Optional[str]:
        """
        Upload ``source`` and report progress until it is indexed and saved.

        Returns the new advertisement id, or None after an error event.
        The stream is closed exactly once on every path.
        """
        progress = 0

        async def emit(status: str, message: str, percent: int) -> None:
            nonlocal progress
            progress = max(progress, percent)
            await stream.send(ProgressEvent(status=status, message=message, progress=progress))

        async def on_status(status: str) -> None:
            await emit(
                status,
                STATUS_MESSAGES.get(status, f"Processing video ({status})..."),
                STATUS_PROGRESS.get(status, DEFAULT_STATUS_PROGRESS),
            )

        async def upload_and_index() -> tuple[TaskHandle, IndexedVideo]:
            await emit("uploading", "Uploading video to Twelve Labs...", 10)
            task = await self.video_index.submit(source)
            await emit("uploaded", "Video uploaded, waiting for indexing...", 30)
            indexed = await self.video_index.await_ready(task, on_status=on_status)
            return task, indexed

        try:
            await emit("initializing", "Initializing upload...", 0)
            if not user_id:
                raise InvalidRequestError("User ID is required")
            self.config.require_video_index()

            # Upload and polling share one deadline; await_ready also checks it between polls.
            ceiling = self.config.index_wait_ceiling
            try:
                task, indexed = await asyncio.wait_for(upload_and_index(), timeout=ceiling)
            except asyncio.TimeoutError:
                raise IndexingTimeoutError(None, ceiling) from None
            await emit("indexing_complete", "Video indexing complete", 90)

            record = new_advertisement(user_id, source, task, indexed)
            record = await asyncio.to_thread(self.repository.create, record)
            await emit("complete", "Advertisement saved", 100)

            await stream.send(
                ProgressEvent(
                    status="success",
                    message="Upload complete",
                    progress=100,
                    data={
                        "taskId": task.task_id,
                        "videoId": indexed.video_id,
                        "advertisementId": record.id,
                    },
                )
            )
            logger.info("Upload stream finished advertisement_id=%s", record.id)
            return record.id
        except AdonomicsError as exc:
            logger.warning("Upload stream failed: %s", exc)
            await stream.send(ProgressEvent(status="error", message=str(exc), progress=0))
        except Exception:
            logger.exception("Upload stream failed unexpectedly")
            await stream.send(ProgressEvent(status="error", message="Upload failed", progress=0))
        finally:
            await stream.close()
        return None

    async def frames(self, user_id: str, source: VideoSource) -> AsyncIterator[str]:
        """SSE frames for one upload. Cancels the upload if the client goes away."""
        stream = ProgressStream()
        task = asyncio.create_task(self.run(stream, user_id, source))
        try:
            async for frame in stream:
                yield frame
        finally:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest

from adonomics.config import Config
from adonomics.errors import (
    ConfigurationError,
    IndexingFailedError,
    IndexingTimeoutError,
    InvalidRequestError,
    ProviderError,
    StillIndexingError,
)
from adonomics.models import TaskHandle, VideoSource
from adonomics.prompts import TWELVE_LABS_ANALYZE_PROMPT
from adonomics.video_index import VideoIndexClient

from conftest import FakeProviderError, FakeTwelveLabs


async def _no_sleep(seconds: float) -> None:
    return None


def _client(config: Config, fake: FakeTwelveLabs) -> VideoIndexClient:
    client = VideoIndexClient(config, client=fake)
    client._poll_sleep = _no_sleep
    client._retry_sleep = lambda seconds: None
    return client


def test_submit_retries_rate_limits_with_exponential_backoff(config: Config) -> None:
    fake = FakeTwelveLabs()
    attempts = {"count": 0}
    original_create = fake.tasks.create

    def flaky_create(**kwargs):
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise FakeProviderError("Too many requests", status_code=429)
        return original_create(**kwargs)

    fake.tasks.create = flaky_create
    client = VideoIndexClient(config, client=fake)
    delays: list[float] = []
    client._retry_sleep = delays.append

    source = VideoSource.from_inputs(content=b"video-bytes", filename="ad.mp4")
    handle = asyncio.run(client.submit(source))

    assert handle.task_id == "task-1"
    assert handle.index_id == "index-1"
    assert attempts["count"] == 3
    assert delays == [1.0, 2.0]
    assert fake.tasks.created[0]["video_file"] == ("ad.mp4", b"video-bytes")


def test_submit_by_url(config: Config) -> None:
    fake = FakeTwelveLabs()
    client = _client(config, fake)

    asyncio.run(client.submit(VideoSource.from_inputs(url="https://cdn.example.com/ad.mp4")))

    assert fake.tasks.created == [
        {"index_id": "index-1", "video_file": None, "video_url": "https://cdn.example.com/ad.mp4"}
    ]


def test_submit_without_credentials_fails_before_remote_call() -> None:
    client = VideoIndexClient(Config(), client=FakeTwelveLabs())

    with pytest.raises(ConfigurationError):
        asyncio.run(client.submit(VideoSource.from_inputs(url="https://cdn.example.com/ad.mp4")))


def test_submit_wraps_provider_failures(config: Config) -> None:
    fake = FakeTwelveLabs()

    def broken_create(**kwargs):
        raise FakeProviderError("Bad gateway", status_code=502)

    fake.tasks.create = broken_create
    client = _client(config, fake)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.submit(VideoSource.from_inputs(url="https://cdn.example.com/ad.mp4")))

    assert excinfo.value.provider_status == 502


def test_await_ready_reports_intermediate_statuses(config: Config, fake_twelve_labs: FakeTwelveLabs) -> None:
    client = _client(config, fake_twelve_labs)
    seen: list[str] = []

    async def on_status(status: str) -> None:
        seen.append(status)

    indexed = asyncio.run(
        client.await_ready(TaskHandle(task_id="task-1", index_id="index-1"), on_status=on_status)
    )

    assert seen == ["uploading", "validating", "queued", "indexing"]
    assert indexed.video_id == "v1"
    assert indexed.final_status == "ready"


def test_await_ready_raises_on_failed_status(config: Config) -> None:
    client = _client(config, FakeTwelveLabs(statuses=["uploading", "failed"]))

    with pytest.raises(IndexingFailedError) as excinfo:
        asyncio.run(client.await_ready(TaskHandle(task_id="task-1", index_id="index-1")))

    assert str(excinfo.value) == "Video indexing failed with status: failed"


def test_await_ready_survives_transient_poll_errors(config: Config) -> None:
    fake = FakeTwelveLabs(statuses=[FakeProviderError("Service unavailable", status_code=503), "ready"])
    client = _client(config, fake)

    indexed = asyncio.run(client.await_ready(TaskHandle(task_id="task-1", index_id="index-1")))

    assert indexed.video_id == "v1"
    assert fake.tasks.retrieved == 2


def test_await_ready_stops_at_the_ceiling(config: Config) -> None:
    client = _client(config, FakeTwelveLabs(statuses=["indexing"]))
    ticks = iter([0.0, 100.0, 200.0, 300.0])
    client._clock = lambda: next(ticks)

    with pytest.raises(IndexingTimeoutError):
        asyncio.run(client.await_ready(TaskHandle(task_id="task-1", index_id="index-1"), max_wait=250))


def test_run_analysis_translates_not_ready_errors(config: Config) -> None:
    fake = FakeTwelveLabs()
    fake.analysis_error = FakeProviderError(
        "Bad request",
        status_code=400,
        body={"code": "video_not_ready", "message": "The video is still being indexed."},
    )
    client = _client(config, fake)

    with pytest.raises(StillIndexingError) as excinfo:
        asyncio.run(client.run_analysis("v1", "summary"))

    assert excinfo.value.retry_after == config.retry_after_seconds
    assert asyncio.run(client.is_ready("v1")) is False


def test_open_ended_analysis_requires_prompt(config: Config) -> None:
    fake = FakeTwelveLabs()
    client = _client(config, fake)

    with pytest.raises(InvalidRequestError):
        asyncio.run(client.run_analysis("v1", "open-ended", "   "))

    assert fake.calls == []


def test_run_analysis_rejects_unknown_kind(config: Config) -> None:
    client = _client(config, FakeTwelveLabs())

    with pytest.raises(InvalidRequestError):
        asyncio.run(client.run_analysis("v1", "transcript"))


def test_describe_video_collects_summary_analysis_and_gist(config: Config) -> None:
    fake = FakeTwelveLabs()
    prompts: list[str] = []
    original_analyze = fake.analyze

    def recording_analyze(video_id: str, prompt: str, temperature: float):
        prompts.append(prompt)
        return original_analyze(video_id=video_id, prompt=prompt, temperature=temperature)

    fake.analyze = recording_analyze
    client = _client(config, fake)

    analysis = asyncio.run(client.describe_video("v1", "task-1"))

    assert analysis.summary == "A runner laces up new sneakers at sunrise."
    assert analysis.analysis == "Strong hook in the first three seconds."
    assert analysis.gist.title == "Summer Sneakers"
    assert prompts == [TWELVE_LABS_ANALYZE_PROMPT]


def test_search_keeps_best_clip_per_video(config: Config) -> None:
    clips = [
        SimpleNamespace(video_id="a", score=80.0, thumbnail_url="https://img/a1.jpg"),
        SimpleNamespace(video_id="b", score=90.0, thumbnail_url="https://img/b.jpg"),
        SimpleNamespace(video_id="a", score=95.0, thumbnail_url="https://img/a2.jpg"),
    ]
    fake = FakeTwelveLabs(clips=clips)
    client = _client(config, fake)

    hits = asyncio.run(client.search_by_text("sneakers"))

    assert [(hit.id, hit.score) for hit in hits] == [("a", 95.0), ("b", 90.0)]
    assert hits[0].thumbnail_url == "https://img/a2.jpg"
    assert fake.search.queries[0]["search_options"] == ["visual", "audio"]


def test_search_by_video_id_excludes_the_video_itself(config: Config) -> None:
    clips = [
        SimpleNamespace(video_id="v1", score=99.0, thumbnail_url=None),
        SimpleNamespace(video_id="v2", score=70.0, thumbnail_url=None),
    ]
    fake = FakeTwelveLabs(clips=clips)
    client = _client(config, fake)

    hits = asyncio.run(client.search_by_video_id("v1"))

    assert [hit.id for hit in hits] == ["v2"]
    assert fake.search.queries[0]["query_text"] == "Summer Sneakers running fitness"


def test_validate_reports_missing_index(config: Config) -> None:
    fake = FakeTwelveLabs()

    def missing_index(index_id: str):
        raise FakeProviderError("Index not found", status_code=404)

    fake.indexes = SimpleNamespace(retrieve=missing_index)

    assert asyncio.run(_client(config, fake).validate()) is False
    assert asyncio.run(_client(config, FakeTwelveLabs()).validate()) is True


def test_await_ready_keeps_polling_through_not_ready_errors(config: Config) -> None:
    fake = FakeTwelveLabs(
        statuses=[FakeProviderError("video_not_ready: still being indexed", status_code=400), "indexing", "ready"]
    )
    client = _client(config, fake)

    indexed = asyncio.run(client.await_ready(TaskHandle(task_id="task-1", index_id="index-1")))

    assert indexed.video_id == "v1"
    assert fake.tasks.retrieved == 3

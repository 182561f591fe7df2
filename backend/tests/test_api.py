from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from adonomics import api as api_module
from adonomics.config import Config
from adonomics.db import get_db
from adonomics.llm import LanguageModelClient
from adonomics.orchestrator import AnalysisOrchestrator
from adonomics.repository import AdvertisementRepository
from adonomics.sse import parse_frames
from adonomics.synthesis import ReportSynthesizer
from adonomics.video_index import VideoIndexClient

from conftest import FakeCompletion, FakeProviderError, FakeTwelveLabs


async def _no_sleep(seconds: float) -> None:
    return None


@pytest.fixture
def fake() -> FakeTwelveLabs:
    return FakeTwelveLabs(
        statuses=["indexing", "ready"],
        clips=[SimpleNamespace(video_id="v2", score=81.0, thumbnail_url="https://img/v2.jpg")],
    )


@pytest.fixture
def client(config: Config, repository: AdvertisementRepository, fake: FakeTwelveLabs):
    video_index = VideoIndexClient(config, client=fake)
    video_index._poll_sleep = _no_sleep
    orchestrator = AnalysisOrchestrator(
        config,
        repository,
        video_index,
        ReportSynthesizer(LanguageModelClient(config, completion=FakeCompletion())),
    )

    def override_db():
        db = repository._session_factory()
        try:
            yield db
        finally:
            db.close()

    app = api_module.app
    app.dependency_overrides[api_module.get_config] = lambda: config
    app.dependency_overrides[api_module.get_repository] = lambda: repository
    app.dependency_overrides[api_module.get_video_index] = lambda: video_index
    app.dependency_overrides[api_module.get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_db] = override_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _upload(client: TestClient) -> dict:
    response = client.post(
        "/advertisements",
        data={"userId": "u1"},
        files={"videoFile": ("ad.mp4", b"fake-mp4-bytes", "video/mp4")},
    )
    assert response.status_code == 201
    return response.json()


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/health/providers").json() == {"video_index": True}


def test_upload_returns_identifiers(client: TestClient) -> None:
    body = _upload(client)

    assert body["taskId"] == "task-1"
    assert body["videoId"] == "v1"
    assert body["advertisementId"]

    record = client.get(f"/advertisements/{body['advertisementId']}").json()
    assert record["status"] == "upload"
    assert record["video_filename"] == "ad.mp4"
    assert record["video_file_size"] == len(b"fake-mp4-bytes")


def test_upload_by_url(client: TestClient, fake: FakeTwelveLabs) -> None:
    response = client.post(
        "/advertisements",
        data={"userId": "u1", "videoUrl": "https://cdn.example.com/ad.mp4"},
    )

    assert response.status_code == 201
    assert fake.tasks.created[0]["video_url"] == "https://cdn.example.com/ad.mp4"


def test_upload_requires_user_and_a_single_source(client: TestClient) -> None:
    missing_user = client.post("/advertisements", data={"videoUrl": "https://cdn.example.com/ad.mp4"})
    missing_video = client.post("/advertisements", data={"userId": "u1"})
    both = client.post(
        "/advertisements",
        data={"userId": "u1", "videoUrl": "https://cdn.example.com/ad.mp4"},
        files={"videoFile": ("ad.mp4", b"fake-mp4-bytes", "video/mp4")},
    )

    assert missing_user.status_code == 400
    assert missing_user.json() == {
        "success": False,
        "error": "invalid_request",
        "message": "User ID is required",
    }
    assert missing_video.status_code == 400
    assert missing_video.json()["message"] == "Either videoFile or videoUrl is required"
    assert both.status_code == 400


def test_upload_fails_with_indexing_error(client: TestClient, fake: FakeTwelveLabs) -> None:
    fake.tasks.statuses = ["failed"]

    response = client.post("/advertisements", data={"userId": "u1", "videoUrl": "https://cdn.example.com/ad.mp4"})

    assert response.status_code == 502
    assert response.json()["error"] == "indexing_failed"


def test_upload_progress_streams_events(client: TestClient) -> None:
    response = client.post(
        "/advertisements/upload-progress",
        data={"userId": "u1"},
        files={"videoFile": ("ad.mp4", b"fake-mp4-bytes", "video/mp4")},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = parse_frames(response.text)
    assert [event["progress"] for event in events] == sorted(event["progress"] for event in events)
    assert events[-1]["status"] == "success"
    assert events[-1]["data"]["advertisementId"]


def test_upload_progress_validates_before_streaming(client: TestClient) -> None:
    response = client.post("/advertisements/upload-progress", data={"userId": "u1"})

    assert response.status_code == 400


def test_analyze_then_decide(client: TestClient) -> None:
    advertisement_id = _upload(client)["advertisementId"]

    analyzed = client.post("/analyze-advertisement", json={"advertisementId": advertisement_id})

    assert analyzed.status_code == 200
    body = analyzed.json()
    assert body["success"] is True
    assert body["analysis"]["synthesis"]["report"]["risk_assessment"]["risk_level"] == "low"
    assert body["analysis"]["competitive_search"]["similar_ads"][0]["id"] == "v2"

    again = client.post("/analyze-advertisement", json={"advertisementId": advertisement_id})
    assert again.status_code == 400
    assert again.json()["message"] == "Advertisement already analyzed"

    first = client.patch(
        f"/advertisements/{advertisement_id}",
        json={"decision": "approve", "decision_comments": "Looks great"},
        headers={"X-User-Id": "u1"},
    )
    second = client.patch(
        f"/advertisements/{advertisement_id}",
        json={"decision": "approve", "decision_comments": "Looks great"},
        headers={"X-User-Id": "u1"},
    )

    assert first.status_code == 200
    assert first.json()["status"] == "approved"
    assert first.json()["decided_at"] is not None
    assert first.json()["decision"]["decided_by"] == "u1"
    assert second.json() == first.json()
    assert second.json()["decision_history"] == []


def test_analyze_not_ready_returns_202(client: TestClient, fake: FakeTwelveLabs) -> None:
    advertisement_id = _upload(client)["advertisementId"]
    fake.analysis_error = FakeProviderError("video_not_ready", status_code=400)

    response = client.post("/analyze-advertisement", json={"advertisementId": advertisement_id})

    assert response.status_code == 202
    assert response.json()["retryAfter"] == 900
    assert response.json()["error"] == "video_not_ready"
    assert client.get(f"/advertisements/{advertisement_id}").json()["status"] == "upload"


def test_analyze_requires_an_id(client: TestClient) -> None:
    assert client.post("/analyze-advertisement", json={}).status_code == 400
    assert client.post("/analyze-advertisement", json={"advertisementId": "missing"}).status_code == 404


def test_decision_requires_analysis(client: TestClient) -> None:
    advertisement_id = _upload(client)["advertisementId"]

    response = client.patch(f"/advertisements/{advertisement_id}", json={"decision": "approve"})

    assert response.status_code == 409


def test_decision_rejects_unknown_fields(client: TestClient) -> None:
    advertisement_id = _upload(client)["advertisementId"]

    response = client.patch(f"/advertisements/{advertisement_id}", json={"decision": "approve", "extra": 1})

    assert response.status_code == 422


def test_list_and_metrics(client: TestClient) -> None:
    advertisement_id = _upload(client)["advertisementId"]

    metrics = client.put(f"/advertisements/{advertisement_id}/metrics", json={"ctr": 2.2, "views": 900})
    listing = client.get("/advertisements", params={"userId": "u1"}).json()

    assert metrics.json()["metrics"]["ctr"] == 2.2
    assert listing["success"] is True
    assert [item["id"] for item in listing["data"]] == [advertisement_id]
    assert client.get("/advertisements", params={"status": "approved"}).json()["data"] == []
    assert client.get("/advertisements/missing").status_code == 404


def test_video_passthrough_routes(client: TestClient) -> None:
    search = client.post("/search-videos", json={"query": "running shoes"}).json()
    gist = client.post("/analyze-video", json={"videoId": "v1", "analysisType": "gist"}).json()
    ready = client.post("/test-video-ready", json={"videoId": "v1"}).json()

    assert search["data"][0]["id"] == "v2"
    assert gist["data"]["title"] == "Summer Sneakers"
    assert ready == {"success": True, "isReady": True, "videoId": "v1"}


def test_open_ended_analysis_requires_prompt(client: TestClient) -> None:
    response = client.post("/analyze-video", json={"videoId": "v1", "analysisType": "open-ended"})

    assert response.status_code == 400
    assert response.json()["message"] == "Prompt is required for open-ended analysis"


def test_preferences_feed_the_profile_summary(client: TestClient) -> None:
    user = client.post("/users", json={"email": "ana@example.com", "name": "Ana"}).json()

    saved = client.put(
        f"/preferences/{user['id']}",
        json={"current_step": 12, "role": "creative_director_designer", "platforms": ["youtube"]},
    )
    summary = client.get("/user-profile", params={"userId": user["id"]}).json()

    assert saved.status_code == 200
    assert saved.json()["current_step"] == 8
    assert summary["summary"] == (
        "The user is a creative director/designer. They typically advertises on YouTube."
    )
    assert client.put(f"/preferences/{user['id']}", json={"role": "astronaut"}).status_code == 422
    assert client.post("/users", json={"email": "ana@example.com", "name": "Ana"}).status_code == 400

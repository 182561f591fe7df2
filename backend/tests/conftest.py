from __future__ import annotations

import json
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Iterable, Optional

import pytest


BACKEND_ROOT = Path(__file__).resolve().parents[1]
BACKEND_SRC = BACKEND_ROOT / "src"

if str(BACKEND_SRC) not in sys.path:
    sys.path.insert(0, str(BACKEND_SRC))

from adonomics.config import Config  # noqa: E402
from adonomics.db import Base, make_engine, make_session_factory  # noqa: E402
from adonomics.repository import AdvertisementRepository  # noqa: E402


VALID_REPORT: dict[str, Any] = {
    "twelve_labs_summary": "A runner laces up new sneakers at sunrise.",
    "success_prediction": {
        "confidence_score": 78.6,
        "key_strengths": ["Strong opening hook", "Clear product shots"],
        "performance_factors": ["Fast pacing"],
        "audience_fit": "Young urban runners",
        "competitive_advantage": "Authentic athlete casting",
    },
    "risk_assessment": {
        "risk_level": "low",
        "potential_issues": ["Logo appears late"],
        "failure_risks": ["Weak call to action"],
        "mitigation_suggestions": ["Show logo in first 3 seconds"],
    },
    "personalized_recommendations": {
        "decision_suggestion": "approve",
        "action_items": ["Launch on TikTok first"],
        "optimization_priorities": ["Call to action"],
        "user_specific_insights": "Fits the ROI goals of a performance marketer.",
    },
    "creative_analysis": {
        "storytelling_effectiveness": "Good - clear arc",
        "visual_impact": "Strong - vivid colors",
        "emotional_resonance": "High - aspirational",
        "technical_quality": "Professional",
    },
    "competitive_intelligence": {
        "market_positioning": "Premium running",
        "benchmark_comparison": "Above average engagement",
        "differentiation_opportunities": "User-generated footage",
        "trend_alignment": "Short vertical video",
    },
    "emotional_features": {"emotion_primary": "inspiration", "emotion_intensity": 7.4},
}


class FakeProviderError(Exception):
    """Shaped like the SDK's ApiError: carries status_code and body."""

    def __init__(self, message: str, status_code: int = 500, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FakeTasks:
    def __init__(self, statuses: Iterable[str], video_id: str = "v1", task_id: str = "task-1"):
        self.statuses = list(statuses)
        self.video_id = video_id
        self.task_id = task_id
        self.created: list[dict[str, Any]] = []
        self.retrieved = 0

    def create(self, index_id: str, video_file: Any = None, video_url: Optional[str] = None):
        self.created.append({"index_id": index_id, "video_file": video_file, "video_url": video_url})
        return SimpleNamespace(id=self.task_id, video_id=None)

    def retrieve(self, task_id: str):
        self.retrieved += 1
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if isinstance(status, Exception):
            raise status
        video_id = self.video_id if status == "ready" else None
        return SimpleNamespace(id=task_id, status=status, video_id=video_id)


class FakeSearch:
    def __init__(self, clips: Iterable[Any]):
        self.clips = list(clips)
        self.queries: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def query(self, **kwargs):
        self.queries.append(kwargs)
        if self.error is not None:
            raise self.error
        return iter(self.clips)


class FakeTwelveLabs:
    """Stands in for ``twelvelabs.TwelveLabs`` with canned responses."""

    def __init__(
        self,
        statuses: Iterable[str] = ("ready",),
        clips: Iterable[Any] = (),
        video_id: str = "v1",
    ):
        self.tasks = FakeTasks(statuses, video_id=video_id)
        self.search = FakeSearch(clips)
        self.indexes = SimpleNamespace(retrieve=lambda index_id: SimpleNamespace(id=index_id))
        self.gist_response = SimpleNamespace(
            title="Summer Sneakers",
            topics=["running", "fitness"],
            hashtags=["#run"],
        )
        self.analysis_error: Optional[Exception] = None
        self.calls: list[tuple[str, str]] = []

    def _maybe_fail(self) -> None:
        if self.analysis_error is not None:
            raise self.analysis_error

    def gist(self, video_id: str, types: list[str]):
        self.calls.append(("gist", video_id))
        self._maybe_fail()
        return self.gist_response

    def summarize(self, video_id: str, type: str, prompt: str):
        self.calls.append(("summarize", video_id))
        self._maybe_fail()
        return SimpleNamespace(id="res-1", summary="A runner laces up new sneakers at sunrise.")

    def analyze(self, video_id: str, prompt: str, temperature: float):
        self.calls.append(("analyze", video_id))
        self._maybe_fail()
        return SimpleNamespace(id="res-2", data="Strong hook in the first three seconds.")


def tool_call_response(arguments: Any, name: str = "generate_analysis_report"):
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    function = SimpleNamespace(name=name, arguments=arguments)
    message = SimpleNamespace(content=None, tool_calls=[SimpleNamespace(function=function)])
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeCompletion:
    """Async stand-in for ``litellm.acompletion``."""

    def __init__(self, response: Any = None, error: Optional[BaseException] = None):
        self.response = response if response is not None else tool_call_response(VALID_REPORT)
        self.error = error
        self.requests: list[dict[str, Any]] = []

    async def __call__(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def config() -> Config:
    return Config(
        twelve_labs_api_key="tl-test-key",
        twelve_labs_index_id="index-1",
        groq_api_key="groq-test-key",
        poll_interval_seconds=0,
        max_index_wait_seconds=300,
    )


@pytest.fixture
def repository(tmp_path: Path) -> AdvertisementRepository:
    engine = make_engine(f"sqlite:///{tmp_path / 'adonomics-test.db'}")
    Base.metadata.create_all(bind=engine)
    return AdvertisementRepository(make_session_factory(engine))


@pytest.fixture
def fake_twelve_labs() -> FakeTwelveLabs:
    return FakeTwelveLabs(statuses=["uploading", "validating", "queued", "indexing", "ready"])


@pytest.fixture
def valid_report() -> dict[str, Any]:
    return json.loads(json.dumps(VALID_REPORT))

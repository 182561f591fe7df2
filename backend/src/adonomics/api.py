"""
FastAPI service for Adonomics creative analysis.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import Any, Optional

from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.asyncio import AsyncioInstrumentor

from fastapi import Depends, FastAPI, File, Form, Header, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from adonomics.config import Config, get_config
from adonomics.db import Base, get_engine, get_session_factory, users_router
from adonomics.errors import AdonomicsError, InvalidRequestError, NotFoundError, StillIndexingError
from adonomics.llm import LanguageModelClient
from adonomics.logging_utils import configure_logging
from adonomics.models import AdvertisementStatus, DecisionType, VideoSource
from adonomics.orchestrator import AnalysisOrchestrator
from adonomics.progress import ProgressEmitter
from adonomics.repository import AdvertisementRepository
from adonomics.sse import create_sse_response
from adonomics.synthesis import ReportSynthesizer
from adonomics.video_index import VideoIndexClient

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str


class ProviderHealthResponse(BaseModel):
    video_index: bool


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalyzeAdvertisementRequest(CamelModel):
    advertisement_id: Optional[str] = Field(default=None, alias="advertisementId")


class SearchVideosRequest(CamelModel):
    query: Optional[str] = None


class AnalyzeVideoRequest(CamelModel):
    video_id: Optional[str] = Field(default=None, alias="videoId")
    analysis_type: Optional[str] = Field(default=None, alias="analysisType")
    prompt: Optional[str] = None


class VideoReadyRequest(CamelModel):
    video_id: Optional[str] = Field(default=None, alias="videoId")


class DecisionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    decision: DecisionType
    decision_comments: Optional[str] = None
    status: Optional[AdvertisementStatus] = None


class MetricsUpdateRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")
    views: Optional[int] = None
    engagement: Optional[int] = None
    conversions: Optional[int] = None
    ctr: Optional[float] = None
    vtr: Optional[float] = None
    conversion_rate: Optional[float] = None
    completion_rate: Optional[float] = None
    engagement_score: Optional[float] = None
    roas: Optional[float] = None


# ============================================================================
# Dependencies
# ============================================================================

@lru_cache
def get_repository() -> AdvertisementRepository:
    return AdvertisementRepository(get_session_factory(get_config()))


@lru_cache
def get_video_index() -> VideoIndexClient:
    return VideoIndexClient(get_config())


@lru_cache
def get_orchestrator() -> AnalysisOrchestrator:
    # One instance per process so the in-flight guard is shared.
    config = get_config()
    return AnalysisOrchestrator(
        config=config,
        repository=get_repository(),
        video_index=get_video_index(),
        synthesizer=ReportSynthesizer(LanguageModelClient(config)),
    )


def get_progress_emitter(
    config: Config = Depends(get_config),
    video_index: VideoIndexClient = Depends(get_video_index),
    repository: AdvertisementRepository = Depends(get_repository),
) -> ProgressEmitter:
    return ProgressEmitter(config, video_index, repository)


# ============================================================================
# App
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_config().log_level)
    Base.metadata.create_all(bind=get_engine(get_config()))

    # Instrument Asyncio
    AsyncioInstrumentor().instrument()

    yield


app = FastAPI(title="Adonomics API", version="0.1.0", lifespan=lifespan)
FastAPIInstrumentor.instrument_app(app)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(users_router)


@app.exception_handler(AdonomicsError)
async def handle_adonomics_error(request: Request, exc: AdonomicsError) -> JSONResponse:
    body: dict[str, Any] = {"success": False, "error": exc.error_code, "message": str(exc)}
    if isinstance(exc, StillIndexingError):
        body["retryAfter"] = exc.retry_after
    return JSONResponse(status_code=exc.status_code, content=body)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "internal_error", "message": "Internal server error"},
    )


async def _video_source(
    video_file: Optional[UploadFile],
    video_url: Optional[str],
) -> VideoSource:
    content = await video_file.read() if video_file is not None else None
    filename = video_file.filename if video_file is not None else None
    return VideoSource.from_inputs(content=content, filename=filename, url=video_url)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/health/providers", response_model=ProviderHealthResponse)
async def provider_health(
    video_index: VideoIndexClient = Depends(get_video_index),
) -> ProviderHealthResponse:
    return ProviderHealthResponse(video_index=await video_index.validate())


# ============================================================================
# Advertisements
# ============================================================================

@app.post("/advertisements", status_code=201)
async def create_advertisement(
    user_id: Optional[str] = Form(default=None, alias="userId"),
    video_url: Optional[str] = Form(default=None, alias="videoUrl"),
    video_file: Optional[UploadFile] = File(default=None, alias="videoFile"),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Upload a video, wait for indexing and create the advertisement."""
    if not user_id:
        raise InvalidRequestError("User ID is required")
    source = await _video_source(video_file, video_url)
    orchestrator.config.require_video_index()
    record = await orchestrator.submit_advertisement(user_id, source)
    return {
        "taskId": record.twelve_labs_task_id,
        "videoId": record.twelve_labs_video_id,
        "advertisementId": record.id,
    }


@app.post("/advertisements/upload-progress")
async def upload_with_progress(
    user_id: Optional[str] = Form(default=None, alias="userId"),
    video_url: Optional[str] = Form(default=None, alias="videoUrl"),
    video_file: Optional[UploadFile] = File(default=None, alias="videoFile"),
    emitter: ProgressEmitter = Depends(get_progress_emitter),
):
    """
    Same as POST /advertisements but streams progress events.

    Connect with fetch() and read the body as an event stream.
    """
    if not user_id:
        raise InvalidRequestError("User ID is required")
    source = await _video_source(video_file, video_url)
    return create_sse_response(emitter.frames(user_id, source))


@app.get("/advertisements")
def list_advertisements(
    status: Optional[AdvertisementStatus] = Query(default=None),
    user_id: Optional[str] = Query(default=None, alias="userId"),
    repository: AdvertisementRepository = Depends(get_repository),
) -> dict[str, Any]:
    records = repository.list(status=status, user_id=user_id)
    return {"success": True, "data": [record.model_dump(mode="json") for record in records]}


@app.get("/advertisements/{advertisement_id}")
def get_advertisement(
    advertisement_id: str,
    repository: AdvertisementRepository = Depends(get_repository),
) -> dict[str, Any]:
    record = repository.get(advertisement_id)
    if record is None:
        raise NotFoundError("Advertisement not found")
    return record.model_dump(mode="json")


@app.patch("/advertisements/{advertisement_id}")
async def decide_advertisement(
    advertisement_id: str,
    request: DecisionRequest,
    x_user_id: Optional[str] = Header(default=None),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    record = await orchestrator.apply_decision(
        advertisement_id,
        request.decision,
        comments=request.decision_comments,
        decided_by=x_user_id,
        status=request.status,
    )
    return record.model_dump(mode="json")


@app.put("/advertisements/{advertisement_id}/metrics")
async def update_advertisement_metrics(
    advertisement_id: str,
    request: MetricsUpdateRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    record = await orchestrator.update_metrics(advertisement_id, request.model_dump(exclude_none=True))
    return record.model_dump(mode="json")


@app.post("/analyze-advertisement")
async def analyze_advertisement(
    request: AnalyzeAdvertisementRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    """Run the full analysis pipeline. 202 means the video is still indexing."""
    if not request.advertisement_id:
        raise InvalidRequestError("Advertisement ID is required")
    record = await orchestrator.analyze(request.advertisement_id)
    return {
        "success": True,
        "advertisementId": record.id,
        "analysis": record.analysis_results.model_dump(mode="json"),
    }


# ============================================================================
# Video index passthrough
# ============================================================================

@app.post("/search-videos")
async def search_videos(
    request: SearchVideosRequest,
    video_index: VideoIndexClient = Depends(get_video_index),
) -> dict[str, Any]:
    if not (request.query or "").strip():
        raise InvalidRequestError("Query is required")
    hits = await video_index.search_by_text(request.query)
    return {"success": True, "data": [hit.model_dump(mode="json") for hit in hits]}


@app.post("/analyze-video")
async def analyze_video(
    request: AnalyzeVideoRequest,
    video_index: VideoIndexClient = Depends(get_video_index),
) -> dict[str, Any]:
    if not request.video_id:
        raise InvalidRequestError("Video ID is required")
    if not request.analysis_type:
        raise InvalidRequestError("Analysis type is required")
    payload = await video_index.run_analysis(request.video_id, request.analysis_type, request.prompt)
    return {"success": True, "data": payload.data}


@app.post("/test-video-ready")
async def test_video_ready(
    request: VideoReadyRequest,
    video_index: VideoIndexClient = Depends(get_video_index),
) -> dict[str, Any]:
    if not request.video_id:
        raise InvalidRequestError("Video ID is required")
    is_ready = await video_index.is_ready(request.video_id)
    return {"success": True, "isReady": is_ready, "videoId": request.video_id}

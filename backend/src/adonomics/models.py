"""
Data models for the Adonomics analysis pipeline.

These models are the typed boundary between the provider SDKs, the
pipeline steps and the HTTP layer. Everything the providers return is
parsed into one of these before it travels further.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from adonomics.errors import InvalidRequestError


def utcnow() -> datetime:
    return datetime.utcnow()


class AdonomicsModel(BaseModel):
    model_config = ConfigDict(validate_assignment=True)


# ============================================================================
# Advertisement lifecycle
# ============================================================================

class AdvertisementStatus(str, Enum):
    UPLOAD = "upload"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
    APPROVED = "approved"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


DECIDED_STATUSES = frozenset(
    {AdvertisementStatus.APPROVED, AdvertisementStatus.SUSPENDED, AdvertisementStatus.REJECTED}
)


class DecisionType(str, Enum):
    APPROVE = "approve"
    SUSPEND = "suspend"
    REJECT = "reject"


DECISION_STATUS = {
    DecisionType.APPROVE: AdvertisementStatus.APPROVED,
    DecisionType.SUSPEND: AdvertisementStatus.SUSPENDED,
    DecisionType.REJECT: AdvertisementStatus.REJECTED,
}


class StatusHistoryEntry(AdonomicsModel):
    status: AdvertisementStatus
    timestamp: datetime = Field(default_factory=utcnow)
    changed_by: Optional[str] = None
    note: Optional[str] = None


class Decision(AdonomicsModel):
    type: DecisionType
    comments: Optional[str] = None
    decided_at: datetime = Field(default_factory=utcnow)
    decided_by: Optional[str] = None


class PerformanceMetrics(AdonomicsModel):
    """Measured campaign metrics, filled in out of band once an ad runs."""
    views: Optional[int] = None
    engagement: Optional[int] = None
    conversions: Optional[int] = None
    ctr: Optional[float] = None
    vtr: Optional[float] = None
    conversion_rate: Optional[float] = None
    completion_rate: Optional[float] = None
    engagement_score: Optional[float] = None
    roas: Optional[float] = None
    last_updated: Optional[datetime] = None


# ============================================================================
# Video index
# ============================================================================

class VideoSource(AdonomicsModel):
    """Exactly one of an uploaded file or a remote URL."""
    filename: Optional[str] = None
    content: Optional[bytes] = None
    url: Optional[str] = None

    @model_validator(mode="after")
    def _one_source(self) -> "VideoSource":
        if (self.content is None) == (not self.url):
            raise ValueError("Provide exactly one of a video file or a video URL")
        return self

    @classmethod
    def from_inputs(
        cls,
        content: Optional[bytes] = None,
        filename: Optional[str] = None,
        url: Optional[str] = None,
    ) -> "VideoSource":
        url = (url or "").strip() or None
        if content is not None and not content:
            content = None
        if content is None and url is None:
            raise InvalidRequestError("Either videoFile or videoUrl is required")
        if content is not None and url is not None:
            raise InvalidRequestError("Provide either videoFile or videoUrl, not both")
        if content is not None:
            return cls(filename=filename or "video.mp4", content=content)
        return cls(url=url)

    @property
    def file_size(self) -> Optional[int]:
        return len(self.content) if self.content is not None else None


class TaskHandle(AdonomicsModel):
    task_id: str
    index_id: str
    video_id: Optional[str] = None


class IndexedVideo(AdonomicsModel):
    task_id: str
    video_id: str
    final_status: str


class VideoHit(AdonomicsModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    score: Optional[float] = None


class AnalysisPayload(AdonomicsModel):
    video_id: str
    kind: Literal["gist", "summary", "open-ended"]
    data: Any = None


class VideoGist(AdonomicsModel):
    title: Optional[str] = None
    topics: list[str] = Field(default_factory=list)
    hashtags: list[str] = Field(default_factory=list)


class VideoAnalysis(AdonomicsModel):
    video_id: str
    task_id: Optional[str] = None
    summary: str = ""
    analysis: str = ""
    gist: VideoGist = Field(default_factory=VideoGist)
    extracted_at: datetime = Field(default_factory=utcnow)


# ============================================================================
# Profile and competitive context
# ============================================================================

class UserPreferences(AdonomicsModel):
    """Onboarding answers. Values are stored keys from ``adonomics.options``."""
    user_id: Optional[str] = None
    current_step: int = 1
    onboarding_completed: bool = False
    role: Optional[str] = None
    primary_goals: list[str] = Field(default_factory=list)
    decision_factors: list[str] = Field(default_factory=list)
    technical_comfort: Optional[str] = None
    campaign_types: list[str] = Field(default_factory=list)
    platforms: list[str] = Field(default_factory=list)
    insight_timing: list[str] = Field(default_factory=list)
    result_speed: Optional[str] = None
    team_members: list[str] = Field(default_factory=list)
    sharing_formats: list[str] = Field(default_factory=list)
    pain_points: list[str] = Field(default_factory=list)


class UserProfileSummary(AdonomicsModel):
    summary: str
    generated_at: datetime = Field(default_factory=utcnow)


class PerformanceIndicators(AdonomicsModel):
    """
    Performance indicators attached to a similar ad.

    ``source`` says where the numbers came from. ``not_available`` means no
    scorer could measure the hit and every rate is None.
    """
    source: str = "not_available"
    engagement_rate: Optional[float] = None
    conversion_rate: Optional[float] = None
    ctr: Optional[float] = None
    vtr: Optional[float] = None
    roas: Optional[float] = None
    success_factors: list[str] = Field(default_factory=list)


class SimilarAd(AdonomicsModel):
    id: str
    title: Optional[str] = None
    score: Optional[float] = None
    thumbnail_url: Optional[str] = None
    performance_indicators: PerformanceIndicators = Field(default_factory=PerformanceIndicators)


class CompetitiveSearch(AdonomicsModel):
    similar_ads: list[SimilarAd] = Field(default_factory=list)
    searched_at: datetime = Field(default_factory=utcnow)


class BenchmarkExample(AdonomicsModel):
    title: Optional[str] = None
    ctr: Optional[float] = None
    vtr: Optional[float] = None
    conversion_rate: Optional[float] = None


class BenchmarkSummary(AdonomicsModel):
    """Average metrics across approved advertisements with measured results."""
    sample_size: int = 0
    ctr: float = 0.0
    vtr: float = 0.0
    conversion_rate: float = 0.0
    completion_rate: float = 0.0
    engagement_score: float = 0.0
    roas: float = 0.0
    examples: list[BenchmarkExample] = Field(default_factory=list)


# ============================================================================
# Analysis report
# ============================================================================

def _round_number(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, float):
        return int(round(value))
    if isinstance(value, str):
        try:
            return int(round(float(value)))
        except ValueError:
            return value
    return value


class ReportSection(BaseModel):
    model_config = ConfigDict(extra="ignore")


class ReportMetadata(ReportSection):
    ad_id: Optional[str] = None
    brand: Optional[str] = None
    campaign_name: Optional[str] = None
    year: Optional[int] = None
    quarter: Optional[str] = None
    platform: Optional[str] = None
    region: Optional[str] = None


class CreativeFeatures(ReportSection):
    scene_id: Optional[str] = None
    scene_duration: Optional[float] = None
    scene_count: Optional[int] = None
    pacing: Optional[str] = None
    objects_present: list[str] = Field(default_factory=list)
    faces_detected: Optional[int] = None
    brand_logo_presence: Optional[bool] = None
    text_on_screen: list[str] = Field(default_factory=list)
    audio_elements: list[str] = Field(default_factory=list)
    music_tempo: Optional[str] = None
    music_mode: Optional[str] = None
    color_palette_dominant: list[str] = Field(default_factory=list)
    editing_pace: Optional[float] = None


class EmotionalFeatures(ReportSection):
    emotion_primary: Optional[str] = None
    emotion_intensity: Optional[int] = Field(default=None, ge=1, le=10)
    emotional_arc_timeline: list[str] = Field(default_factory=list)
    tone_of_voice: Optional[str] = None
    facial_expression_emotions: dict[str, float] = Field(default_factory=dict)
    audience_perceived_sentiment: Optional[str] = None
    cultural_sensitivity_flag: Optional[bool] = None

    @field_validator("emotion_intensity", mode="before")
    @classmethod
    def _round_intensity(cls, value: Any) -> Any:
        return _round_number(value)


class PredictedMetrics(ReportSection):
    ctr: Optional[float] = None
    vtr: Optional[float] = None
    conversion_rate: Optional[float] = None
    completion_rate: Optional[float] = None
    engagement_score: Optional[float] = None
    roas: Optional[float] = None
    grade: Optional[Literal["A", "B", "C", "D", "F"]] = None
    grade_rationale: Optional[str] = None


class SuccessPrediction(ReportSection):
    confidence_score: int = Field(ge=0, le=100)
    key_strengths: list[str]
    performance_factors: list[str]
    audience_fit: str
    competitive_advantage: str
    predicted_metrics: Optional[PredictedMetrics] = None

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _round_confidence(cls, value: Any) -> Any:
        return _round_number(value)


class RiskAssessment(ReportSection):
    risk_level: Literal["low", "medium", "high"]
    potential_issues: list[str]
    failure_risks: list[str]
    mitigation_suggestions: list[str]


class PersonalizedRecommendations(ReportSection):
    decision_suggestion: Literal["approve", "suspend", "reject"]
    action_items: list[str]
    optimization_priorities: list[str]
    user_specific_insights: str
    performance_based_rationale: Optional[str] = None
    expected_roi_impact: Optional[str] = None
    competitive_benchmarking: Optional[str] = None


class CreativeAnalysis(ReportSection):
    storytelling_effectiveness: str
    visual_impact: str
    emotional_resonance: str
    technical_quality: str


class CompetitiveIntelligence(ReportSection):
    market_positioning: str
    benchmark_comparison: str
    differentiation_opportunities: str
    trend_alignment: str


class AnalysisReport(ReportSection):
    """Structured creative-performance report rendered by the dashboard."""
    twelve_labs_summary: Optional[str] = None
    metadata: Optional[ReportMetadata] = None
    creative_features: Optional[CreativeFeatures] = None
    emotional_features: Optional[EmotionalFeatures] = None
    success_prediction: SuccessPrediction
    risk_assessment: RiskAssessment
    personalized_recommendations: PersonalizedRecommendations
    creative_analysis: CreativeAnalysis
    competitive_intelligence: CompetitiveIntelligence
    executive_summary: Optional[str] = None


class Synthesis(AdonomicsModel):
    report: AnalysisReport
    generated_at: datetime = Field(default_factory=utcnow)
    fallback: bool = False


class AnalysisResults(AdonomicsModel):
    video_analysis: Optional[VideoAnalysis] = None
    user_profile: Optional[UserProfileSummary] = None
    competitive_search: Optional[CompetitiveSearch] = None
    synthesis: Optional[Synthesis] = None

    def has_pipeline_inputs(self) -> bool:
        return (
            self.video_analysis is not None
            and self.user_profile is not None
            and self.competitive_search is not None
        )


class AdvertisementRecord(AdonomicsModel):
    """One video submission and its lifecycle."""
    id: str
    user_id: str
    video_filename: Optional[str] = None
    video_file_size: Optional[int] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    tags: list[str] = Field(default_factory=list)

    twelve_labs_index_id: Optional[str] = None
    twelve_labs_task_id: Optional[str] = None
    twelve_labs_video_id: Optional[str] = None

    status: AdvertisementStatus = AdvertisementStatus.UPLOAD
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    analysis_results: AnalysisResults = Field(default_factory=AnalysisResults)

    decision: Optional[Decision] = None
    decision_history: list[Decision] = Field(default_factory=list)
    metrics: Optional[PerformanceMetrics] = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    uploaded_at: Optional[datetime] = None
    analyzed_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    version: int = 1


# ============================================================================
# Progress stream
# ============================================================================

class ProgressEvent(AdonomicsModel):
    status: str
    message: str
    progress: int = Field(ge=0, le=100)
    data: Optional[dict[str, Any]] = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

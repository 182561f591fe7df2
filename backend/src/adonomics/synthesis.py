"""
Report synthesis.

Combines the video analysis, the user profile summary and competitive
search results into one prompt, asks the language model for a structured
``AnalysisReport`` and falls back to a fixed report when that fails.
"""
from __future__ import annotations

import json
import logging
from typing import Optional

from pydantic import ValidationError

from adonomics.errors import SynthesisError
from adonomics.llm import LanguageModelClient
from adonomics.models import (
    AnalysisReport,
    BenchmarkSummary,
    CompetitiveIntelligence,
    CompetitiveSearch,
    CreativeAnalysis,
    PersonalizedRecommendations,
    RiskAssessment,
    SuccessPrediction,
    UserProfileSummary,
    VideoAnalysis,
)
from adonomics.prompts import REPORT_TOOL, SYNTHESIS_INSTRUCTIONS, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

_PENDING = "Automated analysis unavailable; manual review required."


def fallback_report() -> AnalysisReport:
    """The report used whenever synthesis fails. Identical on every call."""
    return AnalysisReport(
        success_prediction=SuccessPrediction(
            confidence_score=50,
            key_strengths=["Analysis pending"],
            performance_factors=["Analysis pending"],
            audience_fit=_PENDING,
            competitive_advantage=_PENDING,
        ),
        risk_assessment=RiskAssessment(
            risk_level="medium",
            potential_issues=["Automated analysis could not be completed"],
            failure_risks=["Performance could not be predicted"],
            mitigation_suggestions=["Review the creative manually before launch"],
        ),
        personalized_recommendations=PersonalizedRecommendations(
            decision_suggestion="suspend",
            action_items=["Review the video manually", "Re-run the analysis later"],
            optimization_priorities=["Complete the automated analysis"],
            user_specific_insights=_PENDING,
        ),
        creative_analysis=CreativeAnalysis(
            storytelling_effectiveness=_PENDING,
            visual_impact=_PENDING,
            emotional_resonance=_PENDING,
            technical_quality=_PENDING,
        ),
        competitive_intelligence=CompetitiveIntelligence(
            market_positioning=_PENDING,
            benchmark_comparison=_PENDING,
            differentiation_opportunities=_PENDING,
            trend_alignment=_PENDING,
        ),
    )


def _format_benchmarks(benchmarks: Optional[BenchmarkSummary]) -> str:
    if benchmarks is None or benchmarks.sample_size == 0:
        return "No measured benchmarks are available yet."
    lines = [
        f"Average performance across {benchmarks.sample_size} approved ads:",
        f"- CTR: {benchmarks.ctr:.2f}%",
        f"- VTR: {benchmarks.vtr:.0f}%",
        f"- Conversion Rate: {benchmarks.conversion_rate:.1f}%",
        f"- Completion Rate: {benchmarks.completion_rate:.0f}%",
        f"- Engagement Score: {benchmarks.engagement_score:.0f}",
        f"- ROAS: {benchmarks.roas:.2f}x",
    ]
    for example in benchmarks.examples[:5]:
        lines.append(
            f'- "{example.title or "Untitled"}": CTR {example.ctr}%, '
            f"VTR {example.vtr}%, Conv {example.conversion_rate}%"
        )
    return "\n".join(lines)


def build_prompt(
    video_analysis: VideoAnalysis,
    user_profile: UserProfileSummary,
    competitive_search: CompetitiveSearch,
    benchmarks: Optional[BenchmarkSummary] = None,
) -> str:
    similar_ads = [
        ad.model_dump(mode="json", exclude_none=True) for ad in competitive_search.similar_ads
    ]
    gist = video_analysis.gist
    sections = [
        "Analyze this video advertisement and predict its performance.",
        "## VIDEO ANALYSIS DATA",
        f"### Summary\n{video_analysis.summary or 'No summary available.'}",
        f"### Detailed Analysis\n{video_analysis.analysis or 'No detailed analysis available.'}",
        "### Gist\n"
        f"- Title: {gist.title or 'unknown'}\n"
        f"- Topics: {', '.join(gist.topics) or 'none identified'}\n"
        f"- Hashtags: {', '.join(gist.hashtags) or 'none'}",
        "## USER PROFILE & PRIORITIES",
        user_profile.summary,
        "## SIMILAR ADS",
        json.dumps(similar_ads, indent=2) if similar_ads else "No similar ads were found.",
        "## BENCHMARKS",
        _format_benchmarks(benchmarks),
        SYNTHESIS_INSTRUCTIONS,
    ]
    return "\n\n".join(sections)


class ReportSynthesizer:
    def __init__(self, llm: LanguageModelClient):
        self.llm = llm

    async def _request_report(self, prompt: str, video_analysis: VideoAnalysis) -> AnalysisReport:
        arguments = await self.llm.call_function(SYSTEM_PROMPT, prompt, REPORT_TOOL)
        try:
            report = AnalysisReport.model_validate(arguments)
        except ValidationError as exc:
            raise SynthesisError(f"Report does not match the required fields: {exc}") from exc
        if not report.twelve_labs_summary and video_analysis.summary:
            report.twelve_labs_summary = video_analysis.summary
        return report

    async def synthesize_with_status(
        self,
        video_analysis: VideoAnalysis,
        user_profile: UserProfileSummary,
        competitive_search: CompetitiveSearch,
        benchmarks: Optional[BenchmarkSummary] = None,
    ) -> tuple[AnalysisReport, bool]:
        """Return ``(report, used_fallback)``. Never raises."""
        try:
            prompt = build_prompt(video_analysis, user_profile, competitive_search, benchmarks)
            report = await self._request_report(prompt, video_analysis)
        except SynthesisError as exc:
            logger.warning("Synthesis failed, using fallback report: %s", exc)
            return fallback_report(), True
        except Exception:
            logger.exception("Unexpected synthesis failure, using fallback report")
            return fallback_report(), True
        return report, False

    async def synthesize(
        self,
        video_analysis: VideoAnalysis,
        user_profile: UserProfileSummary,
        competitive_search: CompetitiveSearch,
        benchmarks: Optional[BenchmarkSummary] = None,
    ) -> AnalysisReport:
        report, _ = await self.synthesize_with_status(
            video_analysis, user_profile, competitive_search, benchmarks
        )
        return report

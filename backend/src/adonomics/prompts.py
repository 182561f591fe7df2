"""Prompts and the report tool schema used by the analysis pipeline."""

SYSTEM_PROMPT = (
    "You are an expert advertising analyst and data scientist specializing in video ad "
    "creative performance prediction. You provide detailed, quantitative analysis comparing "
    "new ads against successful benchmarks. Always answer by calling the "
    "generate_analysis_report function with every required field filled in."
)

DEFAULT_SUMMARY_PROMPT = "Create a concise summary of this video for advertising analysis."

TWELVE_LABS_ANALYZE_PROMPT = """Analyze this video advertisement comprehensively. Extract and provide detailed insights about:

**Creative Elements:**
- Visual composition, color schemes, and branding
- Characters, settings, and props
- Text overlays, logos, and messaging
- Pacing, transitions, and editing style

**Storytelling & Narrative:**
- Overall story arc and message flow
- Emotional triggers and audience engagement
- Call-to-action effectiveness
- Brand positioning and value propositions

**Technical Analysis:**
- Audio elements (music, voiceover, sound effects)
- Production quality and cinematography
- Target audience demographics suggested by creative
- Platform optimization indicators

**Performance Indicators:**
- Memorability factors
- Shareability potential
- Conversion likelihood signals
- Potential fatigue or saturation risks

Provide specific, actionable observations that marketing teams can use to evaluate ad effectiveness."""

SYNTHESIS_INSTRUCTIONS = """## YOUR TASK

Compare this ad against the benchmarks and similar ads above and produce a data-driven analysis report.

1. Analyze how this ad's creative elements compare to successful ads.
2. Predict performance (CTR, VTR, conversion rate, engagement score, ROAS) with rationale.
3. Assign a realistic performance grade (A/B/C/D/F).
4. Tailor every recommendation to the user profile: their goals, decision factors, platforms and pain points.
5. Be specific and quantitative. Use numbers, timestamps and concrete examples.

Rules for the generate_analysis_report call:
- confidence_score is an integer from 0 to 100.
- risk_level is one of: low, medium, high.
- decision_suggestion is one of: approve, suspend, reject.
- emotion_intensity, when provided, is an integer from 1 to 10.
- twelve_labs_summary repeats the video summary exactly as provided."""

REPORT_TOOL_NAME = "generate_analysis_report"

_STRING = {"type": "string"}
_STRING_LIST = {"type": "array", "items": {"type": "string"}}

REPORT_TOOL = {
    "type": "function",
    "function": {
        "name": REPORT_TOOL_NAME,
        "description": "Generate the final structured analysis report for dashboard rendering",
        "parameters": {
            "type": "object",
            "properties": {
                "twelve_labs_summary": {
                    "type": "string",
                    "description": "Raw summary text directly from Twelve Labs video analysis",
                },
                "metadata": {
                    "type": "object",
                    "properties": {
                        "brand": _STRING,
                        "campaign_name": _STRING,
                        "year": {"type": "integer"},
                        "quarter": _STRING,
                        "platform": _STRING,
                        "region": _STRING,
                    },
                },
                "creative_features": {
                    "type": "object",
                    "properties": {
                        "scene_count": {"type": "integer"},
                        "pacing": _STRING,
                        "objects_present": _STRING_LIST,
                        "faces_detected": {"type": "integer"},
                        "brand_logo_presence": {"type": "boolean"},
                        "text_on_screen": _STRING_LIST,
                        "audio_elements": _STRING_LIST,
                        "music_tempo": _STRING,
                        "music_mode": _STRING,
                        "color_palette_dominant": _STRING_LIST,
                        "editing_pace": {"type": "number"},
                    },
                },
                "emotional_features": {
                    "type": "object",
                    "properties": {
                        "emotion_primary": _STRING,
                        "emotion_intensity": {"type": "integer", "minimum": 1, "maximum": 10},
                        "emotional_arc_timeline": _STRING_LIST,
                        "tone_of_voice": _STRING,
                        "audience_perceived_sentiment": _STRING,
                        "cultural_sensitivity_flag": {"type": "boolean"},
                    },
                },
                "success_prediction": {
                    "type": "object",
                    "properties": {
                        "confidence_score": {"type": "number", "minimum": 0, "maximum": 100},
                        "key_strengths": _STRING_LIST,
                        "performance_factors": _STRING_LIST,
                        "audience_fit": _STRING,
                        "competitive_advantage": _STRING,
                        "predicted_metrics": {
                            "type": "object",
                            "properties": {
                                "ctr": {"type": "number"},
                                "vtr": {"type": "number"},
                                "conversion_rate": {"type": "number"},
                                "completion_rate": {"type": "number"},
                                "engagement_score": {"type": "number"},
                                "roas": {"type": "number"},
                                "grade": {"type": "string", "enum": ["A", "B", "C", "D", "F"]},
                                "grade_rationale": _STRING,
                            },
                        },
                    },
                    "required": [
                        "confidence_score",
                        "key_strengths",
                        "performance_factors",
                        "audience_fit",
                        "competitive_advantage",
                    ],
                },
                "risk_assessment": {
                    "type": "object",
                    "properties": {
                        "risk_level": {"type": "string", "enum": ["low", "medium", "high"]},
                        "potential_issues": _STRING_LIST,
                        "failure_risks": _STRING_LIST,
                        "mitigation_suggestions": _STRING_LIST,
                    },
                    "required": [
                        "risk_level",
                        "potential_issues",
                        "failure_risks",
                        "mitigation_suggestions",
                    ],
                },
                "personalized_recommendations": {
                    "type": "object",
                    "properties": {
                        "decision_suggestion": {
                            "type": "string",
                            "enum": ["approve", "suspend", "reject"],
                        },
                        "action_items": _STRING_LIST,
                        "optimization_priorities": _STRING_LIST,
                        "user_specific_insights": _STRING,
                        "performance_based_rationale": _STRING,
                        "expected_roi_impact": _STRING,
                        "competitive_benchmarking": _STRING,
                    },
                    "required": [
                        "decision_suggestion",
                        "action_items",
                        "optimization_priorities",
                        "user_specific_insights",
                    ],
                },
                "creative_analysis": {
                    "type": "object",
                    "properties": {
                        "storytelling_effectiveness": _STRING,
                        "visual_impact": _STRING,
                        "emotional_resonance": _STRING,
                        "technical_quality": _STRING,
                    },
                    "required": [
                        "storytelling_effectiveness",
                        "visual_impact",
                        "emotional_resonance",
                        "technical_quality",
                    ],
                },
                "competitive_intelligence": {
                    "type": "object",
                    "properties": {
                        "market_positioning": _STRING,
                        "benchmark_comparison": _STRING,
                        "differentiation_opportunities": _STRING,
                        "trend_alignment": _STRING,
                    },
                    "required": [
                        "market_positioning",
                        "benchmark_comparison",
                        "differentiation_opportunities",
                        "trend_alignment",
                    ],
                },
                "executive_summary": _STRING,
            },
            "required": [
                "success_prediction",
                "risk_assessment",
                "personalized_recommendations",
                "creative_analysis",
                "competitive_intelligence",
            ],
        },
    },
}

"""
Onboarding questionnaire options.

Each table maps the stored enum value to the label shown in the onboarding
wizard. The profile summary is built from these labels, so changing a label
changes every summary generated afterwards.
"""

ROLE_OPTIONS = {
    "marketing_brand_manager": "Marketing/Brand Manager",
    "creative_director_designer": "Creative Director/Designer",
    "media_buyer_performance": "Media Buyer/Performance Marketer",
    "data_analyst_insights": "Data Analyst/Insights Manager",
    "agency_account_manager": "Agency Account Manager",
    "c_suite_executive": "C-Suite Executive (CMO, CEO)",
    "video_editor_producer": "Video Editor/Producer",
    "product_manager": "Product Manager",
}

PRIMARY_GOAL_OPTIONS = {
    "maximize_roi_conversions": "Maximize ROI and conversion rates",
    "improve_brand_awareness": "Improve brand awareness and recall",
    "reduce_creative_testing": "Reduce creative testing costs",
    "faster_approval_cycles": "Get faster creative approval cycles",
    "understand_emotional_impact": "Understand emotional impact of ads",
    "identify_winning_patterns": "Identify winning creative patterns",
    "ensure_brand_compliance": "Ensure brand compliance and safety",
    "beat_competitor_performance": "Beat competitor creative performance",
    "optimize_platform_specific": "Optimize for specific platforms",
    "improve_team_alignment": "Improve team alignment on creative decisions",
}

DECISION_FACTOR_OPTIONS = {
    "performance_predictions": "Performance predictions (CTR, VTR, conversions)",
    "emotional_resonance": "Emotional resonance and sentiment",
    "brand_safety_compliance": "Brand safety and compliance",
    "scene_breakdown": "Scene-by-scene breakdown",
    "competitor_benchmarking": "Competitor benchmarking",
    "cost_efficiency": "Cost efficiency (predicted ROAS)",
    "audience_segment_performance": "Audience segment performance",
    "creative_element_impact": "Creative element impact (what's working)",
    "drop_off_points": "Drop-off points and retention",
    "platform_optimization": "Platform-specific optimization",
}

TECHNICAL_COMFORT_OPTIONS = {
    "high_level_summary": "High-level summary with key takeaways only",
    "visual_dashboards": "Visual dashboards with charts and graphs",
    "detailed_tables": "Detailed tables with all metrics",
    "mixed_visuals_data": "Mix of visuals and detailed data",
    "ai_narrative_insights": "AI-generated narrative insights",
    "raw_data_exports": "Raw data exports for my own analysis",
}

CAMPAIGN_TYPE_OPTIONS = {
    "brand_awareness": "Brand awareness campaigns",
    "direct_response_performance": "Direct response / Performance",
    "product_launches": "Product launches",
    "app_install": "App install campaigns",
    "ecommerce_sales": "E-commerce / Sales",
    "b2b_lead_generation": "B2B lead generation",
    "event_promotion": "Event promotion",
    "brand_repositioning": "Brand repositioning",
}

PLATFORM_OPTIONS = {
    "meta_facebook_instagram": "Meta (Facebook/Instagram)",
    "tiktok": "TikTok",
    "youtube": "YouTube",
    "linkedin": "LinkedIn",
    "connected_tv": "Connected TV (CTV)",
    "programmatic_display": "Programmatic Display",
    "snapchat": "Snapchat",
    "twitter_x": "Twitter/X",
}

INSIGHT_TIMING_OPTIONS = {
    "pre_production": "Pre-production (before shooting)",
    "pre_flight": "Pre-flight (before launching campaign)",
    "in_flight": "In-flight (during active campaigns)",
    "post_campaign": "Post-campaign (retrospective analysis)",
}

RESULT_SPEED_OPTIONS = {
    "real_time": "Real-time (within minutes)",
    "same_day": "Same day",
    "within_24_48_hours": "Within 24-48 hours",
    "week_long_dive": "Week-long deep dive",
}

TEAM_MEMBER_OPTIONS = {
    "just_me": "Just me",
    "creative_team": "Creative team",
    "media_buying_team": "Media buying team",
    "executive_leadership": "Executive leadership",
    "clients_agency": "Clients (agency context)",
    "external_partners": "External partners/vendors",
}

SHARING_FORMAT_OPTIONS = {
    "dashboard_screenshots": "Dashboard screenshots",
    "pdf_reports": "PDF reports",
    "live_dashboard_link": "Live dashboard link",
    "powerpoint_slides": "PowerPoint slides",
    "csv_excel_data": "CSV/Excel data",
    "api_integration": "API integration with our tools",
}

# "other" is a valid stored answer without a label; summaries skip it.
PAIN_POINT_OPTIONS = {
    "too_much_data_insights": "Too much data, not enough actionable insights",
    "results_too_late": "Results come too late to be useful",
    "cant_explain_why": "Can't explain WHY a creative worked/failed",
    "team_buy_in_difficult": "Difficult to get team buy-in on changes",
    "expensive_testing": "Expensive to test multiple variants",
    "hard_compare_platforms": "Hard to compare across platforms",
    "lack_qualitative_feedback": "Lack of emotional/qualitative feedback",
    "compliance_manual_slow": "Compliance checking is manual and slow",
    "cant_predict_performance": "Can't predict performance before launch",
}
PAIN_POINT_VALUES = (*PAIN_POINT_OPTIONS, "other")

# Preference field -> allowed values, used when validating preference updates.
PREFERENCE_CHOICES = {
    "role": tuple(ROLE_OPTIONS),
    "primary_goals": tuple(PRIMARY_GOAL_OPTIONS),
    "decision_factors": tuple(DECISION_FACTOR_OPTIONS),
    "technical_comfort": tuple(TECHNICAL_COMFORT_OPTIONS),
    "campaign_types": tuple(CAMPAIGN_TYPE_OPTIONS),
    "platforms": tuple(PLATFORM_OPTIONS),
    "insight_timing": tuple(INSIGHT_TIMING_OPTIONS),
    "result_speed": tuple(RESULT_SPEED_OPTIONS),
    "team_members": tuple(TEAM_MEMBER_OPTIONS),
    "sharing_formats": tuple(SHARING_FORMAT_OPTIONS),
    "pain_points": PAIN_POINT_VALUES,
}

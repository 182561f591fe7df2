"""
User profile summaries.

Turns stored onboarding answers into the paragraph the report synthesizer
uses to personalise its recommendations. The output is memoized inside
reports, so the same preferences must always produce the same text.
"""
from __future__ import annotations

from typing import Iterable, Optional

from adonomics.models import UserPreferences
from adonomics.options import (
    CAMPAIGN_TYPE_OPTIONS,
    DECISION_FACTOR_OPTIONS,
    INSIGHT_TIMING_OPTIONS,
    PAIN_POINT_OPTIONS,
    PLATFORM_OPTIONS,
    PRIMARY_GOAL_OPTIONS,
    RESULT_SPEED_OPTIONS,
    ROLE_OPTIONS,
    SHARING_FORMAT_OPTIONS,
    TEAM_MEMBER_OPTIONS,
    TECHNICAL_COMFORT_OPTIONS,
)

NEW_USER_SUMMARY = "New user with no profile information available yet."
EMPTY_PROFILE_SUMMARY = "No profile information available."


def _labels(values: Iterable[str], table: dict[str, str], lower: bool = True) -> list[str]:
    labels = []
    for value in values or ():
        label = table.get(value)
        if label:
            labels.append(label.lower() if lower else label)
    return labels


def _label(value: Optional[str], table: dict[str, str]) -> Optional[str]:
    if not value:
        return None
    label = table.get(value)
    return label.lower() if label else None


def join_series(items: list[str]) -> str:
    """Join with "and" for two items and an Oxford comma for three or more."""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return " and ".join(items)
    return ", ".join(items[:-1]) + ", and " + items[-1]


def summarize(preferences: Optional[UserPreferences]) -> str:
    if preferences is None:
        return NEW_USER_SUMMARY

    parts: list[str] = []

    role = _label(preferences.role, ROLE_OPTIONS)
    if role:
        parts.append(f"The user is a {role}.")

    goals = _labels(preferences.primary_goals, PRIMARY_GOAL_OPTIONS)
    if goals:
        parts.append(f"Their primary goals are to {join_series(goals)}.")

    factors = _labels(preferences.decision_factors, DECISION_FACTOR_OPTIONS)
    if factors:
        parts.append(f"They prioritize {', '.join(factors)} when evaluating creative performance.")

    comfort = _label(preferences.technical_comfort, TECHNICAL_COMFORT_OPTIONS)
    if comfort:
        parts.append(f"They prefer {comfort}.")

    # Platform names keep their capitalisation.
    campaigns = _labels(preferences.campaign_types, CAMPAIGN_TYPE_OPTIONS)
    platforms = _labels(preferences.platforms, PLATFORM_OPTIONS, lower=False)
    context = []
    if campaigns:
        context.append(f"runs {', '.join(campaigns)} campaigns")
    if platforms:
        context.append(f"advertises on {', '.join(platforms)}")
    if context:
        parts.append(f"They typically {' and '.join(context)}.")

    # Timing is only mentioned alongside a result speed.
    speed = _label(preferences.result_speed, RESULT_SPEED_OPTIONS)
    if speed:
        timings = _labels(preferences.insight_timing, INSIGHT_TIMING_OPTIONS)
        if timings:
            parts.append(f"They need insights during {', '.join(timings)} phases {speed}.")
        else:
            parts.append(f"They need insights {speed}.")

    team = _labels(preferences.team_members, TEAM_MEMBER_OPTIONS)
    formats = _labels(preferences.sharing_formats, SHARING_FORMAT_OPTIONS)
    collaboration = []
    if team:
        collaboration.append(f"shares insights with {', '.join(team)}")
    if formats:
        collaboration.append(f"prefers {', '.join(formats)} for sharing")
    if collaboration:
        parts.append(f"They {' and '.join(collaboration)}.")

    pains = _labels(preferences.pain_points, PAIN_POINT_OPTIONS)
    if pains:
        parts.append(f"Their main frustrations include {', '.join(pains)}.")

    return " ".join(parts) if parts else EMPTY_PROFILE_SUMMARY

"""
CRUD operations for users and onboarding preferences.

Advertisements go through ``adonomics.repository`` instead, since their
writes are version-checked.
"""
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session as DBSession

from adonomics.models import UserPreferences

from .models import User, UserPreference

PREFERENCE_FIELDS = (
    "current_step",
    "onboarding_completed",
    "role",
    "primary_goals",
    "decision_factors",
    "technical_comfort",
    "campaign_types",
    "platforms",
    "insight_timing",
    "result_speed",
    "team_members",
    "sharing_formats",
    "pain_points",
)

MIN_ONBOARDING_STEP = 1
MAX_ONBOARDING_STEP = 8


# ============================================================================
# User CRUD
# ============================================================================

def create_user(db: DBSession, email: str, name: str) -> User:
    """Create a new user."""
    user = User(id=str(uuid.uuid4()), email=email, name=name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user(db: DBSession, user_id: str) -> Optional[User]:
    """Get a user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: DBSession, email: str) -> Optional[User]:
    """Get a user by email."""
    return db.query(User).filter(User.email == email).first()


# ============================================================================
# UserPreference CRUD
# ============================================================================

def get_preferences(db: DBSession, user_id: str) -> Optional[UserPreference]:
    return db.query(UserPreference).filter(UserPreference.user_id == user_id).first()


def update_preferences(db: DBSession, user_id: str, changes: dict[str, Any]) -> UserPreference:
    """
    Merge onboarding answers into the user's preferences, creating the row
    on first write. None values are ignored and the step is kept in 1..8.
    """
    row = get_preferences(db, user_id)
    if row is None:
        row = UserPreference(
            id=str(uuid.uuid4()),
            user_id=user_id,
            current_step=MIN_ONBOARDING_STEP,
            onboarding_completed=False,
        )
        db.add(row)

    for field in PREFERENCE_FIELDS:
        value = changes.get(field)
        if value is None:
            continue
        if field == "current_step":
            value = max(MIN_ONBOARDING_STEP, min(MAX_ONBOARDING_STEP, int(value)))
        setattr(row, field, value)
    row.updated_at = datetime.utcnow()

    db.commit()
    db.refresh(row)
    return row


def to_user_preferences(row: UserPreference) -> UserPreferences:
    return UserPreferences(
        user_id=row.user_id,
        current_step=row.current_step or MIN_ONBOARDING_STEP,
        onboarding_completed=bool(row.onboarding_completed),
        role=row.role,
        primary_goals=row.primary_goals or [],
        decision_factors=row.decision_factors or [],
        technical_comfort=row.technical_comfort,
        campaign_types=row.campaign_types or [],
        platforms=row.platforms or [],
        insight_timing=row.insight_timing or [],
        result_speed=row.result_speed,
        team_members=row.team_members or [],
        sharing_formats=row.sharing_formats or [],
        pain_points=row.pain_points or [],
    )

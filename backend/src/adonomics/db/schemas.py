"""
Pydantic schemas for the user and preference endpoints.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, ValidationInfo

from adonomics.options import PREFERENCE_CHOICES


# ============================================================================
# User Schemas
# ============================================================================

class UserCreate(BaseModel):
    """Request to create a new user."""
    email: str
    name: str


class UserResponse(BaseModel):
    """User response schema."""
    id: str
    email: str
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


# ============================================================================
# Preference Schemas
# ============================================================================

class PreferencesUpdate(BaseModel):
    """Partial onboarding answers. Omitted fields keep their stored value."""
    current_step: Optional[int] = None
    onboarding_completed: Optional[bool] = None
    role: Optional[str] = None
    primary_goals: Optional[list[str]] = None
    decision_factors: Optional[list[str]] = None
    technical_comfort: Optional[str] = None
    campaign_types: Optional[list[str]] = None
    platforms: Optional[list[str]] = None
    insight_timing: Optional[list[str]] = None
    result_speed: Optional[str] = None
    team_members: Optional[list[str]] = None
    sharing_formats: Optional[list[str]] = None
    pain_points: Optional[list[str]] = None

    @field_validator(*PREFERENCE_CHOICES)
    @classmethod
    def _known_values(cls, value, info: ValidationInfo):
        if value is None:
            return value
        allowed = PREFERENCE_CHOICES[info.field_name]
        values = value if isinstance(value, list) else [value]
        unknown = [item for item in values if item not in allowed]
        if unknown:
            raise ValueError(f"Unknown {info.field_name} value(s): {', '.join(unknown)}")
        return value


class PreferencesResponse(BaseModel):
    id: str
    user_id: str
    current_step: int
    onboarding_completed: bool
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
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileSummaryResponse(BaseModel):
    user_id: str
    summary: str

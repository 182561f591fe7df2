"""
FastAPI router for users, onboarding preferences and profile summaries.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session as DBSession

from adonomics import profile

from . import crud
from .connection import get_db
from .schemas import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileSummaryResponse,
    UserCreate,
    UserResponse,
)

router = APIRouter(tags=["users"])


# ============================================================================
# User Endpoints
# ============================================================================

@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    request: UserCreate,
    db: DBSession = Depends(get_db),
):
    """Create a new user."""
    if crud.get_user_by_email(db, request.email):
        raise HTTPException(status_code=400, detail="User with this email already exists")
    return crud.create_user(db, email=request.email, name=request.name)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    db: DBSession = Depends(get_db),
):
    """Get a user by ID."""
    user = crud.get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ============================================================================
# Preference Endpoints
# ============================================================================

@router.get("/preferences/{user_id}", response_model=PreferencesResponse)
def get_preferences(
    user_id: str,
    db: DBSession = Depends(get_db),
):
    row = crud.get_preferences(db, user_id)
    if not row:
        raise HTTPException(status_code=404, detail="Preferences not found")
    return row


@router.put("/preferences/{user_id}", response_model=PreferencesResponse)
def update_preferences(
    user_id: str,
    request: PreferencesUpdate,
    db: DBSession = Depends(get_db),
):
    """Save onboarding answers for one or more wizard steps."""
    return crud.update_preferences(db, user_id, request.model_dump(exclude_none=True))


@router.get("/user-profile", response_model=ProfileSummaryResponse)
def get_user_profile(
    user_id: str = Query(alias="userId"),
    db: DBSession = Depends(get_db),
):
    """Natural-language summary of the user's onboarding answers."""
    row = crud.get_preferences(db, user_id)
    preferences = crud.to_user_preferences(row) if row else None
    return ProfileSummaryResponse(user_id=user_id, summary=profile.summarize(preferences))

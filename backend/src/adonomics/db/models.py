"""
SQLAlchemy ORM models.

These models work with SQLite now and can migrate to PostgreSQL later
by changing the DATABASE_URL connection string. Nested pipeline data is
kept in JSON columns in the shape of ``adonomics.models``.
"""
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


class User(Base):
    """An account that uploads advertisements."""
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)


class UserPreference(Base):
    """Onboarding answers, one row per user."""
    __tablename__ = "user_preferences"

    id = Column(String, primary_key=True)
    user_id = Column(String, unique=True, nullable=False, index=True)
    current_step = Column(Integer, default=1, nullable=False)
    onboarding_completed = Column(Boolean, default=False, nullable=False)

    role = Column(String, nullable=True)
    primary_goals = Column(JSON, default=list)
    decision_factors = Column(JSON, default=list)
    technical_comfort = Column(String, nullable=True)
    campaign_types = Column(JSON, default=list)
    platforms = Column(JSON, default=list)
    insight_timing = Column(JSON, default=list)
    result_speed = Column(String, nullable=True)
    team_members = Column(JSON, default=list)
    sharing_formats = Column(JSON, default=list)
    pain_points = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Advertisement(Base):
    """One submitted video and its analysis lifecycle."""
    __tablename__ = "advertisements"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)

    video_filename = Column(String, nullable=True)
    video_file_size = Column(Integer, nullable=True)
    video_url = Column(Text, nullable=True)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSON, default=list)

    twelve_labs_index_id = Column(String, nullable=True)
    twelve_labs_task_id = Column(String, nullable=True)
    twelve_labs_video_id = Column(String, nullable=True, index=True)

    status = Column(String, nullable=False, default="upload", index=True)
    status_history = Column(JSON, default=list)  # append-only
    analysis_results = Column(JSON, default=dict)

    decision = Column(JSON(none_as_null=True), nullable=True)
    decision_history = Column(JSON, default=list)
    metrics = Column(JSON(none_as_null=True), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    uploaded_at = Column(DateTime, nullable=True)
    analyzed_at = Column(DateTime, nullable=True)
    decided_at = Column(DateTime, nullable=True)

    # Bumped on every write; writers must present the version they read.
    version = Column(Integer, nullable=False, default=1)

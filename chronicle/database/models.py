"""
chronicle.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- users                 — Platform members (handle used for @mentions)
- projects              — Owned projects with a collaboration mode
- collaborators         — (project, user) membership granting "authorized" standing
- journey_entries       — Timeline records documenting project progress
- journey_stats         — Per-project rollup, always recomputed from approved entries
- notifications         — In-app notifications written by the notification sink
- activities            — Activity log consumed read-only by the badge engine
- connections           — Follow graph (follower counts only)
- journey_subscriptions — Users watching a project's journey
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return uuid.uuid4().hex


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Chronicle ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CollaborationMode(enum.StrEnum):
    """Per-project policy governing who may contribute journey entries."""
    SOLO = "solo"
    AUTHORIZED = "authorized"
    OPEN = "open"


class EntryStatus(enum.StrEnum):
    """Moderation state of a journey entry."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EntryType(enum.StrEnum):
    IDEATION = "ideation"
    LEARNING = "learning"
    DEVELOPMENT = "development"
    DEBUGGING = "debugging"
    TESTING = "testing"
    DEPLOYMENT = "deployment"
    COLLABORATION = "collaboration"
    REFLECTION = "reflection"
    MILESTONE = "milestone"
    CHALLENGE = "challenge"
    BREAKTHROUGH = "breakthrough"
    MAINTENANCE = "maintenance"
    SCALING = "scaling"
    COMMUNITY = "community"


class Mood(enum.StrEnum):
    EXCITED = "excited"
    FOCUSED = "focused"
    FRUSTRATED = "frustrated"
    ACCOMPLISHED = "accomplished"
    STUCK = "stuck"
    INSPIRED = "inspired"
    TIRED = "tired"
    PROUD = "proud"
    CONFUSED = "confused"
    MOTIVATED = "motivated"
    OVERWHELMED = "overwhelmed"
    SATISFIED = "satisfied"
    CURIOUS = "curious"


class MilestoneType(enum.StrEnum):
    FIRST_COMMIT = "first_commit"
    MVP_COMPLETE = "mvp_complete"
    FIRST_USER = "first_user"
    FEATURE_COMPLETE = "feature_complete"
    DEPLOYMENT = "deployment"
    FIRST_REVENUE = "first_revenue"
    OPEN_SOURCE = "open_source"
    AWARD_WON = "award_won"
    TEAM_EXPANSION = "team_expansion"
    FUNDING_RAISED = "funding_raised"
    ACQUISITION = "acquisition"
    CUSTOM = "custom"


class NotificationKind(enum.StrEnum):
    MESSAGE = "message"
    TASK_ASSIGNED = "task_assigned"
    REVIEW_REQUESTED = "review_requested"
    PROJECT_UPDATE = "project_update"
    FOLLOW = "follow"
    COMMENT = "comment"


class ActivityAction(enum.StrEnum):
    """Action types recorded in the activity log."""
    CREATED_PROJECT = "created_project"
    UPDATED_PROJECT = "updated_project"
    CREATED_DISCUSSION = "created_discussion"
    COMMENTED_ON_DISCUSSION = "commented_on_discussion"
    FOLLOWED_USER = "followed_user"
    CREATED_TASK = "created_task"
    UPDATED_TASK_STATUS = "updated_task_status"
    COMMENTED_ON_TASK = "commented_on_task"
    REQUESTED_CODE_REVIEW = "requested_code_review"
    REVIEWED_CODE = "reviewed_code"
    ADDED_COLLABORATOR = "added_collaborator"


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(100), default=None)
    email: Mapped[str | None] = mapped_column(String(255), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_users_username", "username"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------
class Project(Base):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    owner_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    # Stored as a plain string: unknown or missing modes must reach the
    # policy resolver's moderation fallback instead of failing to load.
    collaboration_mode: Mapped[str | None] = mapped_column(String(20), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    collaborators: Mapped[list[Collaborator]] = relationship(
        back_populates="project", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_projects_owner", "owner_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Project id={self.id} title={self.title!r} "
            f"mode={self.collaboration_mode!r}>"
        )


class Collaborator(Base):
    """Membership record granting "authorized" standing on a project."""
    __tablename__ = "collaborators"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    source: Mapped[str] = mapped_column(String(30), default="owner")  # owner | github_sync
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    project: Mapped[Project] = relationship(back_populates="collaborators")

    __table_args__ = (
        UniqueConstraint("project_id", "user_id", name="uq_collaborators_project_user"),
        Index("ix_collaborators_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Collaborator project={self.project_id} user={self.user_id}>"


# ---------------------------------------------------------------------------
# JourneyEntry — the central timeline record
# ---------------------------------------------------------------------------
class JourneyEntry(Base):
    __tablename__ = "journey_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False
    )
    author_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    content: Mapped[str] = mapped_column(Text, default="")
    mood: Mapped[str | None] = mapped_column(String(30), default=None)
    energy: Mapped[int | None] = mapped_column(Integer, default=None)  # 1-10
    tags: Mapped[list] = mapped_column(JSONB, default=list)
    skills_learned: Mapped[list] = mapped_column(JSONB, default=list)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    is_milestone: Mapped[bool] = mapped_column(Boolean, default=False)
    milestone_type: Mapped[str | None] = mapped_column(String(30), default=None)
    time_spent: Mapped[int | None] = mapped_column(Integer, default=None)  # minutes

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=EntryStatus.PENDING.value
    )
    approved_by: Mapped[str | None] = mapped_column(String(64), default=None)
    approved_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        Index("ix_journey_entries_project_time", "project_id", "timestamp"),
        Index("ix_journey_entries_project_author_created", "project_id", "author_id", "created_at"),
        Index("ix_journey_entries_author_time", "author_id", "timestamp"),
        Index("ix_journey_entries_project_status", "project_id", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<JourneyEntry id={self.id} project={self.project_id} "
            f"status={self.status}>"
        )


# ---------------------------------------------------------------------------
# JourneyStats — derived rollup, one row per project
# ---------------------------------------------------------------------------
class JourneyStats(Base):
    """Materialized view over a project's approved entries.

    Never patched in place: every recomputation replaces every column.
    """
    __tablename__ = "journey_stats"

    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    total_entries: Mapped[int] = mapped_column(Integer, default=0)
    total_time_spent: Mapped[int] = mapped_column(Integer, default=0)
    milestones_completed: Mapped[int] = mapped_column(Integer, default=0)
    skills_learned: Mapped[list] = mapped_column(JSONB, default=list)
    mood_distribution: Mapped[dict] = mapped_column(JSONB, default=dict)
    entry_type_distribution: Mapped[dict] = mapped_column(JSONB, default=dict)
    average_energy: Mapped[float] = mapped_column(Float, default=5.0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_entry_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return (
            f"<JourneyStats project={self.project_id} "
            f"entries={self.total_entries}>"
        )


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str] = mapped_column(Text, default="")
    ref_id: Mapped[str] = mapped_column(String(64), default="")
    ref_collection: Mapped[str] = mapped_column(String(50), default="")
    actor_id: Mapped[str | None] = mapped_column(String(64), default=None)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_notifications_user_time", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user={self.user_id} kind={self.kind}>"


# ---------------------------------------------------------------------------
# Activities — append-only activity log (read-only for this package)
# ---------------------------------------------------------------------------
class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    action_type: Mapped[str] = mapped_column(String(50), nullable=False)
    related_entity: Mapped[str] = mapped_column(String(200), default="")
    related_entity_id: Mapped[str | None] = mapped_column(String(64), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_activities_user_action", "user_id", "action_type"),
    )

    def __repr__(self) -> str:
        return f"<Activity id={self.id} user={self.user_id} action={self.action_type}>"


class Connection(Base):
    """Follow edge: ``follower_id`` follows ``following_id``."""
    __tablename__ = "connections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[str] = mapped_column(String(64), nullable=False)
    following_id: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_connections_pair"),
        Index("ix_connections_following", "following_id"),
    )


# ---------------------------------------------------------------------------
# JourneySubscription — users watching a project's journey
# ---------------------------------------------------------------------------
class JourneySubscription(Base):
    __tablename__ = "journey_subscriptions"

    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<JourneySubscription project={self.project_id} user={self.user_id}>"

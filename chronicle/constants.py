"""
chronicle.constants — Shared Constants & Helpers
=================================================

Single source of truth for notification copy, the interaction action
list used by the badge engine, and UTC normalization.
"""

from __future__ import annotations

from datetime import UTC, datetime

from chronicle.database.models import ActivityAction

# ---------------------------------------------------------------------------
# Journey defaults
# ---------------------------------------------------------------------------
NEUTRAL_ENERGY = 5
SECONDS_PER_DAY = 86400

# Collection name used as the reference target of journey notifications
ENTRY_REF_COLLECTION = "journey_entry"
PROJECT_REF_COLLECTION = "project"

# ---------------------------------------------------------------------------
# Notification copy
# ---------------------------------------------------------------------------
PENDING_REVIEW_TITLE = "New contribution pending review"
MENTION_TITLE = "You were mentioned in a journey entry"
APPROVED_TITLE = "Your contribution was approved"
REJECTED_TITLE = "Your contribution was rejected"
STALE_REMINDER_BODY = "Any updates since your last log?"


def stale_reminder_title(project_title: str) -> str:
    return f"Keep your users updated on {project_title or 'your project'}"


# ---------------------------------------------------------------------------
# Badge engine — activity-log actions that count as "interactions"
# ---------------------------------------------------------------------------
INTERACTION_ACTIONS: tuple[ActivityAction, ...] = (
    ActivityAction.FOLLOWED_USER,
    ActivityAction.COMMENTED_ON_DISCUSSION,
    ActivityAction.COMMENTED_ON_TASK,
    ActivityAction.REVIEWED_CODE,
    ActivityAction.REQUESTED_CODE_REVIEW,
    ActivityAction.ADDED_COLLABORATOR,
    ActivityAction.CREATED_DISCUSSION,
)


# ---------------------------------------------------------------------------
# Time helpers
# ---------------------------------------------------------------------------
def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)

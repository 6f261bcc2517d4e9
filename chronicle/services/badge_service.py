"""
chronicle.services.badge_service — Badge/Streak data gathering
===============================================================

Collects a user's cross-collection counts (projects owned, interactions,
journey entries, followers, collaborations) plus the recent entry
timestamps, then hands them to :mod:`chronicle.engine.badges`.  Nothing is
persisted; progress is computed on every read.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date

from sqlalchemy import Engine, func, select
from sqlalchemy.orm import Session

from chronicle.constants import INTERACTION_ACTIONS, utcnow
from chronicle.database.engine import get_session
from chronicle.database.models import Activity, Collaborator, Connection, JourneyEntry, Project
from chronicle.engine.badges import (
    Accomplishments,
    CategoryProgress,
    badge_progress,
    day_set_streaks,
    earned_badges,
)

logger = logging.getLogger(__name__)


def _count(session: Session, stmt) -> int:
    return session.scalar(stmt) or 0


def _gather_counts(session: Session, user_id: str) -> dict[str, int]:
    return {
        "project_count": _count(
            session, select(func.count(Project.id)).where(Project.owner_id == user_id)
        ),
        "interaction_count": _count(
            session,
            select(func.count(Activity.id)).where(
                Activity.user_id == user_id,
                Activity.action_type.in_([a.value for a in INTERACTION_ACTIONS]),
            ),
        ),
        "journey_entry_count": _count(
            session,
            select(func.count(JourneyEntry.id)).where(JourneyEntry.author_id == user_id),
        ),
        "follower_count": _count(
            session,
            select(func.count(Connection.id)).where(Connection.following_id == user_id),
        ),
        "collaboration_count": _count(
            session,
            select(func.count(Collaborator.id)).where(Collaborator.user_id == user_id),
        ),
    }


def get_accomplishments(
    engine: Engine,
    user_id: str,
    *,
    today: date | None = None,
    lookback_days: int = 365,
    entry_limit: int = 1000,
) -> Accomplishments:
    """Counts, streaks, and earned badges for *user_id*.

    Streaks read the user's newest *entry_limit* journey entries.
    """
    today = today or utcnow().date()
    with get_session(engine) as session:
        counts = _gather_counts(session, user_id)
        timestamps = session.scalars(
            select(JourneyEntry.timestamp)
            .where(JourneyEntry.author_id == user_id)
            .order_by(JourneyEntry.timestamp.desc())
            .limit(entry_limit)
        ).all()

    current, longest = day_set_streaks(timestamps, today=today, lookback_days=lookback_days)
    acc = Accomplishments(
        **counts,
        current_streak_days=current,
        longest_streak_days=longest,
    )
    acc = replace(acc, badges=earned_badges(acc))
    logger.debug("Accomplishments for %s: %s (%d badges)", user_id, counts, len(acc.badges))
    return acc


def get_badge_progress(
    engine: Engine,
    user_id: str,
    *,
    today: date | None = None,
    lookback_days: int = 365,
    entry_limit: int = 1000,
) -> list[CategoryProgress]:
    """Progress on the six badge tracks for *user_id*."""
    acc = get_accomplishments(
        engine, user_id, today=today, lookback_days=lookback_days, entry_limit=entry_limit
    )
    return badge_progress(acc)

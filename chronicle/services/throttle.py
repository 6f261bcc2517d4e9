"""
chronicle.services.throttle — Contribution rate limiter
========================================================

Caps how many entries one user may contribute to one open-mode project
within a trailing window (default: 10 per 60 minutes).  The count is
recomputed from stored ``created_at`` timestamps on every call.

Best-effort, not exact: the check and the subsequent insert are separate
statements, so two near-simultaneous contributions can both read a count
of ``max - 1`` and both proceed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from chronicle.constants import as_utc, utcnow
from chronicle.database.models import JourneyEntry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10
DEFAULT_WINDOW_MINUTES = 60


class ContributionThrottle:
    """Window counter keyed by (project, user), backed by ``journey_entries``."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        window_minutes: int = DEFAULT_WINDOW_MINUTES,
    ) -> None:
        self.max_entries = max_entries
        self.window = timedelta(minutes=window_minutes)

    def count_recent(
        self,
        session: Session,
        project_id: str,
        user_id: str,
        *,
        now: datetime | None = None,
    ) -> int:
        """Entries by *user_id* on *project_id* created at or after ``now - window``."""
        cutoff = as_utc(now or utcnow()) - self.window
        return session.scalar(
            select(func.count(JourneyEntry.id)).where(
                JourneyEntry.project_id == project_id,
                JourneyEntry.author_id == user_id,
                JourneyEntry.created_at >= cutoff,
            )
        ) or 0

    def is_rate_limited(
        self,
        session: Session,
        project_id: str,
        user_id: str,
        *,
        now: datetime | None = None,
    ) -> bool:
        count = self.count_recent(session, project_id, user_id, now=now)
        if count >= self.max_entries:
            logger.info(
                "Contribution throttled: user=%s project=%s count=%d/%d",
                user_id, project_id, count, self.max_entries,
            )
            return True
        return False

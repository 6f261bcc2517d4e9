"""
chronicle.services.stats_service — Journey stats rollup
========================================================

Materialized-view maintenance for ``journey_stats``: load every approved
entry of a project, fold it with :func:`compute_journey_stats`, and replace
the stored row wholesale.  Safe to call repeatedly and concurrently; the
last write wins and every write is a complete, consistent snapshot.
"""

from __future__ import annotations

import logging

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from chronicle.constants import as_utc, utcnow
from chronicle.database.engine import get_session
from chronicle.database.models import EntryStatus, JourneyEntry, JourneyStats
from chronicle.engine.stats import EntryFacts, JourneyStatsSnapshot, compute_journey_stats
from chronicle.services.directory_service import get_project

logger = logging.getLogger(__name__)


def _load_approved(session: Session, project_id: str) -> list[EntryFacts]:
    rows = session.scalars(
        select(JourneyEntry)
        .where(
            JourneyEntry.project_id == project_id,
            JourneyEntry.status == EntryStatus.APPROVED.value,
        )
        .order_by(JourneyEntry.timestamp.asc(), JourneyEntry.id.asc())
    ).all()
    return [EntryFacts.from_entry(row) for row in rows]


def _to_snapshot(row: JourneyStats) -> JourneyStatsSnapshot:
    return JourneyStatsSnapshot(
        project_id=row.project_id,
        total_entries=row.total_entries,
        total_time_spent=row.total_time_spent,
        milestones_completed=row.milestones_completed,
        skills_learned=tuple(row.skills_learned or ()),
        mood_distribution=dict(row.mood_distribution or {}),
        entry_type_distribution=dict(row.entry_type_distribution or {}),
        average_energy=float(row.average_energy),
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_entry_date=as_utc(row.last_entry_date) if row.last_entry_date else None,
    )


def _write(session: Session, snapshot: JourneyStatsSnapshot) -> None:
    row = session.get(JourneyStats, snapshot.project_id)
    if row is None:
        row = JourneyStats(project_id=snapshot.project_id)
        session.add(row)
    row.total_entries = snapshot.total_entries
    row.total_time_spent = snapshot.total_time_spent
    row.milestones_completed = snapshot.milestones_completed
    row.skills_learned = list(snapshot.skills_learned)
    row.mood_distribution = dict(snapshot.mood_distribution)
    row.entry_type_distribution = dict(snapshot.entry_type_distribution)
    row.average_energy = snapshot.average_energy
    row.current_streak = snapshot.current_streak
    row.longest_streak = snapshot.longest_streak
    row.last_entry_date = snapshot.last_entry_date
    row.updated_at = utcnow()


def recompute_in_session(session: Session, project_id: str) -> JourneyStatsSnapshot:
    snapshot = compute_journey_stats(project_id, _load_approved(session, project_id))
    _write(session, snapshot)
    return snapshot


def recompute_stats(engine: Engine, project_id: str) -> JourneyStatsSnapshot:
    """Recompute and fully replace the rollup for *project_id*."""
    with get_session(engine) as session:
        snapshot = recompute_in_session(session, project_id)
    logger.info(
        "Journey stats recomputed: project=%s entries=%d streak=%d/%d",
        project_id, snapshot.total_entries,
        snapshot.current_streak, snapshot.longest_streak,
    )
    return snapshot


def get_stats(engine: Engine, project_id: str) -> JourneyStatsSnapshot:
    """Return the stored rollup, materializing it on first read.

    Raises :class:`~chronicle.errors.NotFound` for unknown projects.
    """
    with get_session(engine) as session:
        get_project(session, project_id)
        row = session.get(JourneyStats, project_id)
        if row is None:
            recompute_in_session(session, project_id)
            session.flush()
            row = session.get(JourneyStats, project_id)
        return _to_snapshot(row)

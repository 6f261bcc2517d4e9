"""
chronicle.engine.stats — Journey Stats Fold
============================================

Pure recomputation of a project's journey rollup from its approved
entries.  The result is a function of the entry set alone, so repeated
calls over the same entries produce identical snapshots and concurrent
recomputations converge on the same row.

This module is pure calculation: no database I/O.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chronicle.constants import NEUTRAL_ENERGY, SECONDS_PER_DAY, as_utc
from chronicle.database.models import EntryType, Mood


# ---------------------------------------------------------------------------
# Input snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class EntryFacts:
    """The subset of a journey entry the fold reads."""

    timestamp: datetime
    entry_type: str
    mood: str | None = None
    energy: int | None = None
    time_spent: int | None = None
    is_milestone: bool = False
    skills_learned: tuple[str, ...] = ()

    @classmethod
    def from_entry(cls, entry: Any) -> EntryFacts:
        return cls(
            timestamp=as_utc(entry.timestamp),
            entry_type=entry.type,
            mood=entry.mood,
            energy=entry.energy,
            time_spent=entry.time_spent,
            is_milestone=bool(entry.is_milestone),
            skills_learned=tuple(entry.skills_learned or ()),
        )


# ---------------------------------------------------------------------------
# Output snapshot
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class JourneyStatsSnapshot:
    project_id: str
    total_entries: int = 0
    total_time_spent: int = 0
    milestones_completed: int = 0
    skills_learned: tuple[str, ...] = ()
    mood_distribution: dict[str, int] = field(default_factory=dict)
    entry_type_distribution: dict[str, int] = field(default_factory=dict)
    average_energy: float = float(NEUTRAL_ENERGY)
    current_streak: int = 0
    longest_streak: int = 0
    last_entry_date: datetime | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "project_id": self.project_id,
            "total_entries": self.total_entries,
            "total_time_spent": self.total_time_spent,
            "milestones_completed": self.milestones_completed,
            "skills_learned": list(self.skills_learned),
            "mood_distribution": dict(self.mood_distribution),
            "entry_type_distribution": dict(self.entry_type_distribution),
            "average_energy": self.average_energy,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_entry_date": self.last_entry_date,
        }


def empty_mood_distribution() -> dict[str, int]:
    return {m.value: 0 for m in Mood}


def empty_type_distribution() -> dict[str, int]:
    return {t.value: 0 for t in EntryType}


# ---------------------------------------------------------------------------
# Streaks — pairwise gap walk
# ---------------------------------------------------------------------------
def gap_streaks(timestamps: Iterable[datetime]) -> tuple[int, int]:
    """Return ``(current, longest)`` over timestamps sorted ascending.

    Consecutive entries exactly one whole day apart (floor of the elapsed
    days) extend the running streak; any other gap starts a new run at 1.
    ``current`` is the run at the end of the walk; it is not checked
    against today's date.
    """
    ordered = sorted(as_utc(t) for t in timestamps)
    if not ordered:
        return 0, 0

    running = 1
    longest = 1
    for prev, cur in zip(ordered, ordered[1:]):
        days = math.floor((cur - prev).total_seconds() / SECONDS_PER_DAY)
        if days == 1:
            running += 1
        else:
            running = 1
        longest = max(longest, running)
    return running, longest


# ---------------------------------------------------------------------------
# Fold
# ---------------------------------------------------------------------------
def compute_journey_stats(
    project_id: str, entries: Sequence[EntryFacts]
) -> JourneyStatsSnapshot:
    """Fold approved *entries* into a :class:`JourneyStatsSnapshot`."""
    moods = empty_mood_distribution()
    types = empty_type_distribution()
    skills: set[str] = set()
    total_time = 0
    milestones = 0
    energy_sum = 0

    for entry in entries:
        total_time += entry.time_spent or 0
        if entry.is_milestone:
            milestones += 1
        skills.update(entry.skills_learned)
        if entry.mood:
            moods[entry.mood] = moods.get(entry.mood, 0) + 1
        types[entry.entry_type] = types.get(entry.entry_type, 0) + 1
        energy_sum += entry.energy if entry.energy is not None else NEUTRAL_ENERGY

    total = len(entries)
    average_energy = energy_sum / total if total else float(NEUTRAL_ENERGY)
    current, longest = gap_streaks(e.timestamp for e in entries)
    last = max((as_utc(e.timestamp) for e in entries), default=None)

    return JourneyStatsSnapshot(
        project_id=project_id,
        total_entries=total,
        total_time_spent=total_time,
        milestones_completed=milestones,
        skills_learned=tuple(sorted(skills)),
        mood_distribution=moods,
        entry_type_distribution=types,
        average_energy=float(average_energy),
        current_streak=current,
        longest_streak=longest,
        last_entry_date=last,
    )

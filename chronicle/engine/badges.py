"""
chronicle.engine.badges — Badge Tracks & Day-Set Streaks
=========================================================

Six independent threshold ladders over a user's cumulative counts, the
progress math that places a raw count on a ladder, and the calendar-day
streak used by the streak track.

The streak here is *not* the pairwise-gap streak of
:mod:`chronicle.engine.stats`: it collects distinct UTC calendar dates and
walks backward from today, bounded to a fixed lookback window.

This module is pure calculation: no database I/O.
"""

from __future__ import annotations

import enum
import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from chronicle.constants import as_utc


class BadgeCategory(enum.StrEnum):
    BUILDER = "builder"
    SOCIAL = "social"
    JOURNEY = "journey"
    STREAK = "streak"
    COLLAB = "collab"
    INFLUENCE = "influence"
    ACHIEVEMENT = "achievement"


# ---------------------------------------------------------------------------
# Track definitions
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class BadgeThreshold:
    id: str
    name: str
    value: int


@dataclass(frozen=True, slots=True)
class BadgeTrack:
    category: BadgeCategory
    title: str
    thresholds: tuple[BadgeThreshold, ...]


BUILDER_TRACK = BadgeTrack(BadgeCategory.BUILDER, "Builder", (
    BadgeThreshold("first_builder", "First Builder", 1),
    BadgeThreshold("project_rookie", "Project Rookie", 5),
    BadgeThreshold("project_pro", "Project Pro", 30),
    BadgeThreshold("code_architect", "Code Architect", 100),
))

SOCIAL_TRACK = BadgeTrack(BadgeCategory.SOCIAL, "Social", (
    BadgeThreshold("sociable_dev", "Sociable Dev", 10),
    BadgeThreshold("social_freak", "Social Freak", 100),
    BadgeThreshold("networking_master", "Networking Master", 300),
    BadgeThreshold("community_icon", "Community Icon", 1000),
))

JOURNEY_TRACK = BadgeTrack(BadgeCategory.JOURNEY, "Journey", (
    BadgeThreshold("first_log", "First Log", 1),
    BadgeThreshold("journey_starter", "Journey Starter", 10),
    BadgeThreshold("storyteller", "Storyteller", 50),
    BadgeThreshold("journey_master", "Journey Master", 100),
))

STREAK_TRACK = BadgeTrack(BadgeCategory.STREAK, "Streak", (
    BadgeThreshold("streak_3", "3-Day Streak", 3),
    BadgeThreshold("streak_7", "Active Dev (7d)", 7),
    BadgeThreshold("streak_30", "Consistency Beast (30d)", 30),
    BadgeThreshold("streak_100", "Relentless Builder (100d)", 100),
))

COLLAB_TRACK = BadgeTrack(BadgeCategory.COLLAB, "Collaboration", (
    BadgeThreshold("team_spirit", "Team Spirit", 1),
    BadgeThreshold("collab_guru", "Collab Guru", 10),
    BadgeThreshold("open_source_ally", "Open-Source Ally", 30),
))

INFLUENCE_TRACK = BadgeTrack(BadgeCategory.INFLUENCE, "Influence", (
    BadgeThreshold("rising_star", "Rising Star", 10),
    BadgeThreshold("popular_dev", "Popular Dev", 50),
    BadgeThreshold("community_legend", "Community Legend", 200),
))

TRACKS: tuple[BadgeTrack, ...] = (
    BUILDER_TRACK,
    SOCIAL_TRACK,
    JOURNEY_TRACK,
    STREAK_TRACK,
    COLLAB_TRACK,
    INFLUENCE_TRACK,
)


# ---------------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class CategoryProgress:
    category: BadgeCategory
    title: str
    value: int
    target: int
    is_max: bool
    percent: int
    current_badge_name: str
    next_badge_name: str | None
    thresholds: tuple[BadgeThreshold, ...]


def compute_progress(track: BadgeTrack, value: int) -> CategoryProgress:
    """Place *value* on *track*.

    The current tier is the highest threshold ``<= value`` (none below the
    first tier, where the base is 0).  Percent is the clamped, rounded
    share of the way from the current tier to the next.  A value at or
    above the top threshold is reported as max with 100%.
    """
    thresholds = track.thresholds
    current_idx = -1
    for idx, threshold in enumerate(thresholds):
        if value >= threshold.value:
            current_idx = idx

    next_idx = current_idx + 1
    is_max = next_idx >= len(thresholds)
    current_name = thresholds[current_idx].name if current_idx >= 0 else ""

    if is_max:
        return CategoryProgress(
            category=track.category,
            title=track.title,
            value=value,
            target=value,
            is_max=True,
            percent=100,
            current_badge_name=current_name,
            next_badge_name=None,
            thresholds=thresholds,
        )

    base = thresholds[current_idx].value if current_idx >= 0 else 0
    target = thresholds[next_idx].value
    span = max(1, target - base)
    # Halves round up
    percent = math.floor((value - base) / span * 100 + 0.5)
    percent = max(0, min(100, percent))

    return CategoryProgress(
        category=track.category,
        title=track.title,
        value=value,
        target=target,
        is_max=False,
        percent=percent,
        current_badge_name=current_name,
        next_badge_name=thresholds[next_idx].name,
        thresholds=thresholds,
    )


# ---------------------------------------------------------------------------
# Day-set streak
# ---------------------------------------------------------------------------
def day_set_streaks(
    timestamps: Iterable[datetime],
    *,
    today: date,
    lookback_days: int = 365,
) -> tuple[int, int]:
    """Return ``(current, longest)`` calendar-day streaks.

    ``current`` counts consecutive UTC dates with at least one entry,
    walking back from *today* (0 if today has none).  ``longest`` is the
    longest such run inside the *lookback_days* window ending today;
    older history is ignored.
    """
    days = {as_utc(t).date() for t in timestamps}
    if not days:
        return 0, 0

    current = 0
    cursor = today
    while cursor in days:
        current += 1
        cursor -= timedelta(days=1)

    longest = 0
    rolling = 0
    cursor = today
    for _ in range(lookback_days):
        if cursor in days:
            rolling += 1
            longest = max(longest, rolling)
        else:
            rolling = 0
        cursor -= timedelta(days=1)

    return current, longest


# ---------------------------------------------------------------------------
# Accomplishments — earned badge list
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Badge:
    id: str
    name: str
    category: BadgeCategory


_FIRSTS: tuple[tuple[str, str, str], ...] = (
    # (badge id, name, Accomplishments field)
    ("first_project", "First Project", "project_count"),
    ("first_journey", "First Journey", "journey_entry_count"),
    ("first_interaction", "First Interaction", "interaction_count"),
)


@dataclass(frozen=True, slots=True)
class Accomplishments:
    project_count: int = 0
    interaction_count: int = 0
    journey_entry_count: int = 0
    follower_count: int = 0
    collaboration_count: int = 0
    current_streak_days: int = 0
    longest_streak_days: int = 0
    badges: tuple[Badge, ...] = field(default=())

    def track_value(self, category: BadgeCategory) -> int:
        return {
            BadgeCategory.BUILDER: self.project_count,
            BadgeCategory.SOCIAL: self.interaction_count,
            BadgeCategory.JOURNEY: self.journey_entry_count,
            BadgeCategory.STREAK: self.current_streak_days,
            BadgeCategory.COLLAB: self.collaboration_count,
            BadgeCategory.INFLUENCE: self.follower_count,
        }[category]


def earned_badges(acc: Accomplishments) -> tuple[Badge, ...]:
    """Every badge whose threshold *acc* has reached, track order first,
    then the one-off "achievement" firsts."""
    badges: list[Badge] = []
    for track in TRACKS:
        value = acc.track_value(track.category)
        badges.extend(
            Badge(t.id, t.name, track.category)
            for t in track.thresholds
            if value >= t.value
        )
    for badge_id, name, attr in _FIRSTS:
        if getattr(acc, attr) >= 1:
            badges.append(Badge(badge_id, name, BadgeCategory.ACHIEVEMENT))
    return tuple(badges)


def badge_progress(acc: Accomplishments) -> list[CategoryProgress]:
    """Progress on all six tracks, in :data:`TRACKS` order."""
    return [compute_progress(track, acc.track_value(track.category)) for track in TRACKS]

"""
tests/test_badges.py — Badge Tracks, Progress & Day-Set Streak
===============================================================
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest

from chronicle.engine.badges import (
    BUILDER_TRACK,
    COLLAB_TRACK,
    INFLUENCE_TRACK,
    JOURNEY_TRACK,
    SOCIAL_TRACK,
    STREAK_TRACK,
    TRACKS,
    Accomplishments,
    BadgeCategory,
    badge_progress,
    compute_progress,
    day_set_streaks,
    earned_badges,
)

TODAY = date(2025, 6, 30)


def _at(days_ago: int, hour: int = 12) -> datetime:
    d = TODAY - timedelta(days=days_ago)
    return datetime(d.year, d.month, d.day, hour, tzinfo=UTC)


class TestComputeProgress:
    def test_zero_projects(self):
        p = compute_progress(BUILDER_TRACK, 0)
        assert p.current_badge_name == ""
        assert p.percent == 0
        assert p.next_badge_name == "First Builder"
        assert p.target == 1
        assert not p.is_max

    def test_above_top_threshold(self):
        p = compute_progress(BUILDER_TRACK, 150)
        assert p.is_max
        assert p.percent == 100
        assert p.current_badge_name == "Code Architect"
        assert p.next_badge_name is None
        assert p.target == 150

    def test_exactly_top_threshold_is_max(self):
        p = compute_progress(COLLAB_TRACK, 30)
        assert p.is_max
        assert p.current_badge_name == "Open-Source Ally"

    def test_midway_between_tiers(self):
        # Project Rookie (5) → Project Pro (30): 5 of 25 = 20%
        p = compute_progress(BUILDER_TRACK, 10)
        assert p.current_badge_name == "Project Rookie"
        assert p.next_badge_name == "Project Pro"
        assert p.target == 30
        assert p.percent == 20

    def test_percent_is_rounded(self):
        # 3-Day Streak (3) → Active Dev (7): 1 of 4 = 25%; 2 of 4 = 50%
        assert compute_progress(STREAK_TRACK, 4).percent == 25
        # First Builder (1) → Project Rookie (5): 2 of 4
        assert compute_progress(BUILDER_TRACK, 3).percent == 50
        # 0 → Sociable Dev (10): 1 of 10
        assert compute_progress(TRACKS[1], 1).percent == 10

    def test_half_percent_rounds_up(self):
        # First Log (1) → Journey Starter (10) → Storyteller (50): 1 of 40 = 2.5%
        assert compute_progress(JOURNEY_TRACK, 11).percent == 3
        # Rising Star (10) → Popular Dev (50): 5 of 40 = 12.5%
        assert compute_progress(INFLUENCE_TRACK, 15).percent == 13
        # Social Freak (100) → Networking Master (300): 1 of 200 = 0.5%
        assert compute_progress(SOCIAL_TRACK, 101).percent == 1

    def test_percent_bounds(self):
        for track in TRACKS:
            for value in (0, 1, 7, 49, 99, 299, 5000):
                p = compute_progress(track, value)
                assert 0 <= p.percent <= 100


class TestDaySetStreaks:
    def test_empty(self):
        assert day_set_streaks([], today=TODAY) == (0, 0)

    def test_current_run_ending_today(self):
        stamps = [_at(0), _at(1), _at(2), _at(2, hour=20)]
        assert day_set_streaks(stamps, today=TODAY) == (3, 3)

    def test_no_entry_today_means_no_current(self):
        stamps = [_at(1), _at(2)]
        current, longest = day_set_streaks(stamps, today=TODAY)
        assert current == 0
        assert longest == 2

    def test_longest_in_history(self):
        stamps = [_at(0)] + [_at(d) for d in range(10, 15)]
        assert day_set_streaks(stamps, today=TODAY) == (1, 5)

    def test_lookback_bounds_longest(self):
        stamps = [_at(d) for d in range(400, 410)]
        assert day_set_streaks(stamps, today=TODAY, lookback_days=365) == (0, 0)

    def test_uses_utc_calendar_dates(self):
        # 23:30 at UTC-5 is the next UTC day
        from datetime import timezone

        est = timezone(timedelta(hours=-5))
        late = datetime(2025, 6, 29, 23, 30, tzinfo=est)
        assert day_set_streaks([late], today=TODAY) == (1, 1)


class TestEarnedBadges:
    def test_nothing_earned(self):
        assert earned_badges(Accomplishments()) == ()

    def test_track_and_first_badges(self):
        acc = Accomplishments(
            project_count=5,
            journey_entry_count=1,
            current_streak_days=3,
            collaboration_count=1,
        )
        ids = [b.id for b in earned_badges(acc)]
        assert ids == [
            "first_builder",
            "project_rookie",
            "first_log",
            "streak_3",
            "team_spirit",
            "first_project",
            "first_journey",
        ]

    def test_first_interaction_is_an_achievement(self):
        badges = earned_badges(Accomplishments(interaction_count=1))
        assert [(b.id, b.category) for b in badges] == [
            ("first_interaction", BadgeCategory.ACHIEVEMENT)
        ]


class TestBadgeProgress:
    def test_one_entry_per_track_in_order(self):
        progress = badge_progress(Accomplishments())
        assert [p.category for p in progress] == [t.category for t in TRACKS]

    @pytest.mark.parametrize(
        ("field", "category"),
        [
            ("project_count", BadgeCategory.BUILDER),
            ("interaction_count", BadgeCategory.SOCIAL),
            ("journey_entry_count", BadgeCategory.JOURNEY),
            ("current_streak_days", BadgeCategory.STREAK),
            ("collaboration_count", BadgeCategory.COLLAB),
            ("follower_count", BadgeCategory.INFLUENCE),
        ],
    )
    def test_track_reads_its_count(self, field, category):
        acc = Accomplishments(**{field: 42})
        progress = {p.category: p for p in badge_progress(acc)}
        assert progress[category].value == 42

"""
tests/test_stats_service.py — Journey stats rollup maintenance
===============================================================
Uses an in-memory SQLite database via the shared conftest fixtures.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from chronicle.database.models import JourneyEntry, JourneyStats
from chronicle.errors import NotFound
from chronicle.services import stats_service

from conftest import seed_project

T0 = datetime(2025, 4, 1, 8, 0, tzinfo=UTC)


def _entry(project_id, day, *, status="approved", **kw) -> JourneyEntry:
    ts = T0 + timedelta(days=day)
    kw.setdefault("type", "development")
    kw.setdefault("title", f"day {day}")
    return JourneyEntry(
        project_id=project_id, author_id="owner", status=status,
        timestamp=ts, created_at=ts, updated_at=ts, **kw,
    )


class TestRecomputeStats:
    @pytest.fixture(autouse=True)
    def _setup(self, db_engine):
        self.engine = db_engine
        seed_project(db_engine, "p1", "owner", "solo")

    def _add(self, *entries):
        with Session(self.engine) as s:
            s.add_all(entries)
            s.commit()

    def test_only_approved_entries_count(self):
        self._add(
            _entry("p1", 0, time_spent=20, mood="proud"),
            _entry("p1", 1, status="pending", time_spent=100),
            _entry("p1", 2, status="rejected", time_spent=100),
        )
        snap = stats_service.recompute_stats(self.engine, "p1")
        assert snap.total_entries == 1
        assert snap.total_time_spent == 20
        assert snap.mood_distribution["proud"] == 1

    def test_streaks_from_consecutive_days(self):
        self._add(_entry("p1", 0), _entry("p1", 1), _entry("p1", 2))
        snap = stats_service.recompute_stats(self.engine, "p1")
        assert (snap.current_streak, snap.longest_streak) == (3, 3)

    def test_gap_resets_streak(self):
        self._add(_entry("p1", 0), _entry("p1", 4))
        snap = stats_service.recompute_stats(self.engine, "p1")
        assert (snap.current_streak, snap.longest_streak) == (1, 1)

    def test_row_is_fully_replaced(self):
        with Session(self.engine) as s:
            s.add(JourneyStats(
                project_id="p1", total_entries=99, total_time_spent=999,
                current_streak=42, longest_streak=42, skills_learned=["stale"],
            ))
            s.commit()
        self._add(_entry("p1", 0, skills_learned=["sql"]))
        stats_service.recompute_stats(self.engine, "p1")

        with Session(self.engine) as s:
            row = s.get(JourneyStats, "p1")
            assert row.total_entries == 1
            assert row.total_time_spent == 0
            assert row.current_streak == 1
            assert row.skills_learned == ["sql"]

    def test_last_entry_date_is_newest_approved(self):
        self._add(_entry("p1", 0), _entry("p1", 5), _entry("p1", 9, status="pending"))
        snap = stats_service.recompute_stats(self.engine, "p1")
        assert snap.last_entry_date == T0 + timedelta(days=5)


class TestGetStats:
    @pytest.fixture(autouse=True)
    def _setup(self, db_engine):
        self.engine = db_engine
        seed_project(db_engine, "p1", "owner", "solo")

    def test_materializes_on_first_read(self):
        with Session(self.engine) as s:
            s.add(_entry("p1", 0, energy=9))
            s.commit()
        snap = stats_service.get_stats(self.engine, "p1")
        assert snap.total_entries == 1
        assert snap.average_energy == 9.0
        with Session(self.engine) as s:
            assert s.get(JourneyStats, "p1") is not None

    def test_empty_project_defaults(self):
        snap = stats_service.get_stats(self.engine, "p1")
        assert snap.total_entries == 0
        assert snap.average_energy == 5.0
        assert snap.last_entry_date is None
        assert set(snap.mood_distribution.values()) == {0}

    def test_repeated_reads_are_identical(self):
        with Session(self.engine) as s:
            s.add_all([_entry("p1", 0, mood="excited", skills_learned=["a", "b"]),
                       _entry("p1", 1, energy=3)])
            s.commit()
        stats_service.recompute_stats(self.engine, "p1")
        first = stats_service.get_stats(self.engine, "p1")
        second = stats_service.get_stats(self.engine, "p1")
        assert first == second
        assert first.as_dict() == second.as_dict()

    def test_recompute_is_idempotent(self):
        with Session(self.engine) as s:
            s.add_all([_entry("p1", 0), _entry("p1", 1, is_milestone=True)])
            s.commit()
        first = stats_service.recompute_stats(self.engine, "p1")
        second = stats_service.recompute_stats(self.engine, "p1")
        assert first == second
        assert stats_service.get_stats(self.engine, "p1") == first

    def test_unknown_project(self):
        with pytest.raises(NotFound):
            stats_service.get_stats(self.engine, "nope")

"""
tests/test_throttle.py — Contribution Rate Limiter
===================================================
DB-backed window counter over ``journey_entries.created_at``.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.orm import Session

from chronicle.database.models import JourneyEntry
from chronicle.services.throttle import ContributionThrottle

from conftest import seed_project, seed_user

NOW = datetime(2025, 5, 10, 12, 0, tzinfo=UTC)


def _add_entries(engine, project_id, author_id, ages_minutes, status="pending"):
    with Session(engine) as s:
        for age in ages_minutes:
            ts = NOW - timedelta(minutes=age)
            s.add(JourneyEntry(
                project_id=project_id,
                author_id=author_id,
                type="learning",
                title=f"entry {age}",
                status=status,
                timestamp=ts,
                created_at=ts,
                updated_at=ts,
            ))
        s.commit()


class TestContributionThrottle:
    @pytest.fixture(autouse=True)
    def _setup(self, db_engine):
        self.engine = db_engine
        seed_project(db_engine, "p1", "owner", "open")
        seed_project(db_engine, "p2", "owner", "open")
        seed_user(db_engine, "u1")
        seed_user(db_engine, "u2")
        self.throttle = ContributionThrottle(max_entries=10, window_minutes=60)

    def _limited(self, project_id="p1", user_id="u1") -> bool:
        with Session(self.engine) as s:
            return self.throttle.is_rate_limited(s, project_id, user_id, now=NOW)

    def test_ten_within_window_is_limited(self):
        _add_entries(self.engine, "p1", "u1", range(0, 59, 6))  # 10 entries, newest 0 min
        assert self._limited()

    def test_nine_within_window_is_allowed(self):
        _add_entries(self.engine, "p1", "u1", range(0, 54, 6))  # 9 entries
        assert not self._limited()

    def test_entries_outside_window_are_ignored(self):
        _add_entries(self.engine, "p1", "u1", [61, 90, 120] * 4)
        _add_entries(self.engine, "p1", "u1", [5])
        with Session(self.engine) as s:
            assert self.throttle.count_recent(s, "p1", "u1", now=NOW) == 1
        assert not self._limited()

    def test_every_status_counts(self):
        _add_entries(self.engine, "p1", "u1", range(4), status="rejected")
        _add_entries(self.engine, "p1", "u1", range(3), status="approved")
        _add_entries(self.engine, "p1", "u1", range(3), status="pending")
        assert self._limited()

    def test_keyed_by_project_and_user(self):
        _add_entries(self.engine, "p1", "u1", range(10))
        assert self._limited("p1", "u1")
        assert not self._limited("p2", "u1")
        assert not self._limited("p1", "u2")

    def test_window_boundary_is_inclusive(self):
        throttle = ContributionThrottle(max_entries=1, window_minutes=60)
        _add_entries(self.engine, "p1", "u1", [60])
        with Session(self.engine) as s:
            assert throttle.count_recent(s, "p1", "u1", now=NOW) == 1

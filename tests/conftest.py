"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import pytest
from sqlalchemy import Engine, create_engine

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# SQLite doesn't support JSONB natively, but SQLAlchemy's JSON type works.
# We register a custom type compiler so SQLite renders JSONB as TEXT.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.orm import Session

from chronicle.database.models import Base, Collaborator, Project, User

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def run_async(coro):
    """Run an async coroutine in a new event loop."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Chronicle tables.

    JSONB columns are transparently mapped to TEXT for SQLite compatibility.
    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


# ---------------------------------------------------------------------------
# Seed helpers
# ---------------------------------------------------------------------------
def seed_user(engine: Engine, user_id: str, username: str | None = None) -> str:
    with Session(engine) as s:
        s.add(User(id=user_id, username=username or user_id))
        s.commit()
    return user_id


def seed_project(
    engine: Engine,
    project_id: str,
    owner_id: str,
    mode: str | None = "open",
    title: str = "Test Project",
) -> str:
    with Session(engine) as s:
        if s.get(User, owner_id) is None:
            s.add(User(id=owner_id, username=owner_id))
        s.add(Project(id=project_id, owner_id=owner_id, title=title, collaboration_mode=mode))
        s.commit()
    return project_id


def seed_collaborator(engine: Engine, project_id: str, user_id: str) -> None:
    with Session(engine) as s:
        if s.get(User, user_id) is None:
            s.add(User(id=user_id, username=user_id))
        s.add(Collaborator(project_id=project_id, user_id=user_id))
        s.commit()


@pytest.fixture
def world(db_engine: Engine):
    """Owner ``owner`` with one project per collaboration mode.

    ``collab`` is a collaborator on the authorized project; ``guest`` has
    no standing anywhere.
    """
    seed_user(db_engine, "owner")
    seed_user(db_engine, "collab")
    seed_user(db_engine, "guest")
    seed_project(db_engine, "p-solo", "owner", "solo")
    seed_project(db_engine, "p-auth", "owner", "authorized")
    seed_project(db_engine, "p-open", "owner", "open")
    seed_project(db_engine, "p-none", "owner", None)
    seed_project(db_engine, "p-odd", "owner", "invite_only")
    seed_collaborator(db_engine, "p-auth", "collab")
    return db_engine


# ---------------------------------------------------------------------------
# Recording sink
# ---------------------------------------------------------------------------
@dataclass
class RecordingSink:
    """Notification sink that keeps every call; optionally fails."""

    calls: list[dict] = field(default_factory=list)
    fail: bool = False

    def notify(self, recipient_id, kind, title, body, ref_id, ref_collection, actor_id):
        if self.fail:
            raise ConnectionError("sink unavailable")
        self.calls.append({
            "recipient_id": recipient_id,
            "kind": kind,
            "title": title,
            "body": body,
            "ref_id": ref_id,
            "ref_collection": ref_collection,
            "actor_id": actor_id,
        })


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()

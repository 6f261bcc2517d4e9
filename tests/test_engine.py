"""
tests/test_engine.py — Engine, sessions and the thread bridge
"""

from __future__ import annotations

import threading

import pytest

from chronicle.database import engine as engine_mod
from chronicle.database.engine import create_db_engine, get_session, run_db
from chronicle.database.models import User

from conftest import run_async


class TestGetSession:
    def test_commits_on_clean_exit(self, db_engine):
        with get_session(db_engine) as s:
            s.add(User(id="u1", username="ada"))
        with get_session(db_engine) as s:
            assert s.get(User, "u1").username == "ada"

    def test_rolls_back_on_error(self, db_engine):
        with pytest.raises(ValueError):
            with get_session(db_engine) as s:
                s.add(User(id="u2", username="bob"))
                s.flush()
                raise ValueError("abort")
        with get_session(db_engine) as s:
            assert s.get(User, "u2") is None

    def test_objects_readable_after_commit(self, db_engine):
        with get_session(db_engine) as s:
            user = User(id="u3", username="cy")
            s.add(user)
        assert user.username == "cy"


class TestCreateDbEngine:
    def test_missing_url_raises(self, monkeypatch):
        monkeypatch.setattr(engine_mod, "load_dotenv", lambda: None)
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(RuntimeError, match="DATABASE_URL"):
            create_db_engine()


class TestRunDb:
    def test_runs_off_the_event_loop_thread(self):
        def whoami(tag, *, suffix=""):
            return tag + suffix, threading.get_ident()

        async def scenario():
            return await run_db(whoami, "ok", suffix="!"), threading.get_ident()

        (value, worker), loop_thread = run_async(scenario())
        assert value == "ok!"
        assert worker != loop_thread

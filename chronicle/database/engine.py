"""
chronicle.database.engine — Engine, Sessions & Worker-Thread Bridge
====================================================================

Services are synchronous SQLAlchemy; :class:`chronicle.core.JourneyCore`
reaches them from coroutines through :func:`run_db`.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from dotenv import load_dotenv
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from chronicle.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

# Store calls give up after this many seconds waiting for a pooled connection
STORE_TIMEOUT_SECONDS = 10


def create_db_engine(url: str | None = None) -> Engine:
    """Engine for *url*, or for ``DATABASE_URL`` (``.env`` honoured).

    Raises :class:`RuntimeError` when neither is available.
    """
    if url is None:
        load_dotenv()
        url = os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set; see .env.example")

    engine = create_engine(
        url,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=STORE_TIMEOUT_SECONDS,
        pool_recycle=3600,
    )
    logger.info("Journey store engine ready (host=%s)", engine.url.host)
    return engine


def init_db(engine: Engine) -> None:
    """``create_all`` for local and test databases; Alembic owns production."""
    Base.metadata.create_all(engine)
    logger.info("Journey tables ensured on %s", engine.url.get_backend_name())


@contextmanager
def get_session(engine: Engine) -> Iterator[Session]:
    """One unit of work: commit when the block exits cleanly, else roll back.

    Loaded objects stay readable after commit, so services can return
    values from the rows they touched.
    """
    with Session(engine, expire_on_commit=False) as session:
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        session.commit()


async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a blocking service call on the default thread pool."""
    return await asyncio.to_thread(func, *args, **kwargs)

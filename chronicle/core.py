"""
chronicle.core — Async Facade
==============================

:class:`JourneyCore` is what the surrounding UI/API layers talk to.  It
carries the shared state (engine, config, throttle, notification
dispatcher) and exposes every operation as a coroutine.  Each call ships
the synchronous service function to a worker thread via :func:`run_db`.

After a lifecycle operation returns, its notices are handed to the
dispatcher without awaiting delivery, and a stale stats rollup schedules a
detached retry task.  Neither can fail the operation.

Usage::

    core = JourneyCore(engine, load_config())
    core.start()
    entry_id = await core.create_entry(project_id, actor_id, {"type": "learning", "title": "…"})
    ...
    await core.close()
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from chronicle.config import ChronicleConfig
from chronicle.database.engine import run_db
from chronicle.database.models import JourneyEntry
from chronicle.engine.badges import Accomplishments, CategoryProgress
from chronicle.engine.stats import JourneyStatsSnapshot
from chronicle.schemas import EntryDraft, EntryFilter, EntryUpdate
from chronicle.services import badge_service, journey_service, stats_service
from chronicle.services.journey_service import EntryResult
from chronicle.services.notification_service import (
    DatabaseNotificationSink,
    NotificationDispatcher,
    NotificationSink,
)
from chronicle.services.throttle import ContributionThrottle

logger = logging.getLogger(__name__)


class JourneyCore:
    """Contribution & engagement analytics core.

    Parameters
    ----------
    engine:
        SQLAlchemy engine for the document store.
    cfg:
        Tuning knobs; defaults apply when omitted.
    sink:
        Notification sink.  Defaults to writing ``notifications`` rows.
    """

    def __init__(
        self,
        engine: Engine,
        cfg: ChronicleConfig | None = None,
        sink: NotificationSink | None = None,
    ) -> None:
        self.engine = engine
        self.cfg = cfg or ChronicleConfig()
        self.throttle = ContributionThrottle(
            max_entries=self.cfg.rate_limit_max_entries,
            window_minutes=self.cfg.rate_limit_window_minutes,
        )
        self.dispatcher = NotificationDispatcher(
            sink or DatabaseNotificationSink(engine),
            drain_seconds=self.cfg.notification_drain_seconds,
        )
        self._retries: set[asyncio.Task] = set()

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------
    def start(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """Start the notification drain loop."""
        self.dispatcher.start(loop or asyncio.get_running_loop())

    async def close(self) -> None:
        """Stop background work.  Queued notices are flushed first."""
        self.dispatcher.stop()
        await self.dispatcher.drain_once()
        for task in list(self._retries):
            task.cancel()
        self._retries.clear()

    # -----------------------------------------------------------------------
    # Follow-ups
    # -----------------------------------------------------------------------
    def _after(self, result: EntryResult) -> None:
        self.dispatcher.dispatch_all(result.notices)
        if result.stats_stale:
            self.schedule_stats_retry(result.project_id)

    def schedule_stats_retry(self, project_id: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._retry_stats(project_id), name=f"stats-retry-{project_id}"
        )
        self._retries.add(task)
        task.add_done_callback(self._retries.discard)
        return task

    async def _retry_stats(self, project_id: str) -> bool:
        attempts = self.cfg.stats_retry_attempts
        for attempt in range(1, attempts + 1):
            await asyncio.sleep(self.cfg.stats_retry_delay_seconds)
            try:
                await run_db(stats_service.recompute_stats, self.engine, project_id)
                return True
            except SQLAlchemyError:
                logger.warning(
                    "Stats retry %d/%d failed for project %s",
                    attempt, attempts, project_id,
                )
            except Exception:
                logger.exception("Stats retry aborted for project %s", project_id)
                return False
        logger.error("Giving up on stats recomputation for project %s", project_id)
        return False

    # -----------------------------------------------------------------------
    # Entry lifecycle
    # -----------------------------------------------------------------------
    async def create_entry(
        self, project_id: str, actor_id: str, draft: EntryDraft | dict[str, Any]
    ) -> str:
        """Contribute an entry; returns its id.

        Raises Unauthorized, RateLimited, NotFound or ValidationError.
        """
        result = await run_db(
            journey_service.create_entry,
            self.engine, project_id, actor_id, draft,
            throttle=self.throttle,
        )
        self._after(result)
        return result.entry_id

    async def approve_entry(self, entry_id: str, approver_id: str) -> None:
        result = await run_db(journey_service.approve_entry, self.engine, entry_id, approver_id)
        self._after(result)

    async def reject_entry(self, entry_id: str, approver_id: str) -> None:
        result = await run_db(journey_service.reject_entry, self.engine, entry_id, approver_id)
        self._after(result)

    async def update_entry(
        self, entry_id: str, editor_id: str, changes: EntryUpdate | dict[str, Any]
    ) -> None:
        result = await run_db(
            journey_service.update_entry, self.engine, entry_id, editor_id, changes
        )
        self._after(result)

    async def search_entries(
        self,
        entry_filter: EntryFilter | dict[str, Any] | None = None,
        *,
        text: str | None = None,
        limit: int | None = None,
    ) -> list[JourneyEntry]:
        return await run_db(
            journey_service.search_entries, self.engine, entry_filter, text=text, limit=limit
        )

    # -----------------------------------------------------------------------
    # Analytics
    # -----------------------------------------------------------------------
    async def get_stats(self, project_id: str) -> JourneyStatsSnapshot:
        return await run_db(stats_service.get_stats, self.engine, project_id)

    async def get_accomplishments(
        self, user_id: str, *, today: date | None = None
    ) -> Accomplishments:
        return await run_db(
            badge_service.get_accomplishments,
            self.engine, user_id,
            today=today,
            lookback_days=self.cfg.badge_streak_lookback_days,
            entry_limit=self.cfg.badge_streak_entry_limit,
        )

    async def get_badge_progress(
        self, user_id: str, *, today: date | None = None
    ) -> list[CategoryProgress]:
        return await run_db(
            badge_service.get_badge_progress,
            self.engine, user_id,
            today=today,
            lookback_days=self.cfg.badge_streak_lookback_days,
            entry_limit=self.cfg.badge_streak_entry_limit,
        )

    # -----------------------------------------------------------------------
    # Engagement
    # -----------------------------------------------------------------------
    async def check_stale(self, project_id: str, user_id: str | None) -> bool:
        """Return whether the journey is stale; queues the owner reminder."""
        check = await run_db(
            journey_service.check_stale,
            self.engine, project_id, user_id,
            stale_after_days=self.cfg.stale_after_days,
        )
        self.dispatcher.dispatch_all(check.notices)
        return check.stale

    async def subscribe(self, project_id: str, user_id: str) -> None:
        await run_db(journey_service.subscribe, self.engine, project_id, user_id)

    async def unsubscribe(self, project_id: str, user_id: str) -> None:
        await run_db(journey_service.unsubscribe, self.engine, project_id, user_id)

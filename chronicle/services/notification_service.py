"""
chronicle.services.notification_service — Fire-and-forget notifications
========================================================================

Lifecycle operations never send notifications themselves: they return
:class:`Notice` values, and the caller hands them to a
:class:`NotificationDispatcher`.  ``dispatch()`` only enqueues; a
background drain task delivers through the configured sink.  A delivery
failure is logged and dropped, never raised to whoever created the entry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import Engine

from chronicle.database.engine import get_session, run_db
from chronicle.database.models import Notification, NotificationKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notice:
    """One outbound notification, mirroring the sink's ``notify`` arguments."""

    recipient_id: str
    kind: NotificationKind
    title: str
    body: str
    ref_id: str
    ref_collection: str
    actor_id: str | None = None


class NotificationSink(Protocol):
    def notify(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        body: str,
        ref_id: str,
        ref_collection: str,
        actor_id: str | None,
    ) -> None: ...


class DatabaseNotificationSink:
    """Writes one unread ``notifications`` row per notice."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def notify(
        self,
        recipient_id: str,
        kind: NotificationKind,
        title: str,
        body: str,
        ref_id: str,
        ref_collection: str,
        actor_id: str | None,
    ) -> None:
        with get_session(self.engine) as session:
            session.add(Notification(
                user_id=recipient_id,
                kind=str(kind),
                title=title,
                body=body,
                ref_id=ref_id,
                ref_collection=ref_collection,
                actor_id=actor_id,
                read=False,
            ))


def deliver(sink: NotificationSink, notice: Notice) -> None:
    """Send *notice* through *sink* synchronously (may raise)."""
    sink.notify(
        notice.recipient_id,
        notice.kind,
        notice.title,
        notice.body,
        notice.ref_id,
        notice.ref_collection,
        notice.actor_id,
    )


class NotificationDispatcher:
    """Outbound queue drained by a background task every ``drain_seconds``."""

    def __init__(self, sink: NotificationSink, drain_seconds: float = 1.0) -> None:
        self.sink = sink
        self.drain_seconds = drain_seconds
        self._queue: asyncio.Queue[Notice] = asyncio.Queue()
        self._drain_task: asyncio.Task | None = None
        self._warned_idle = False

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def dispatch(self, notice: Notice) -> None:
        """Enqueue *notice*; never blocks and never raises on delivery."""
        self._queue.put_nowait(notice)
        if self._drain_task is None and not self._warned_idle:
            # Warn once per idle period; start() re-arms the warning
            self._warned_idle = True
            logger.warning(
                "Notification queued with no drain task running (%d pending); "
                "call start() or drain_once()",
                self.pending,
            )

    def dispatch_all(self, notices: list[Notice]) -> None:
        for notice in notices:
            self.dispatch(notice)

    async def drain_once(self) -> int:
        """Deliver everything currently queued.  Returns the number delivered."""
        delivered = 0
        while not self._queue.empty():
            notice = self._queue.get_nowait()
            try:
                await run_db(deliver, self.sink, notice)
                delivered += 1
            except Exception:
                logger.exception(
                    "Failed to deliver %s notification to user %s (ref=%s)",
                    notice.kind, notice.recipient_id, notice.ref_id,
                )
        return delivered

    def start(self, loop: asyncio.AbstractEventLoop) -> None:
        """Start the background drain task."""
        if self._drain_task is not None:
            return

        async def _drain_loop() -> None:
            while True:
                await asyncio.sleep(self.drain_seconds)
                try:
                    await self.drain_once()
                except Exception:
                    logger.exception("Notification drain error")

        self._warned_idle = False
        self._drain_task = loop.create_task(
            _drain_loop(), name="notification-drain"
        )

    def stop(self) -> None:
        """Cancel the drain task."""
        if self._drain_task:
            self._drain_task.cancel()
            self._drain_task = None

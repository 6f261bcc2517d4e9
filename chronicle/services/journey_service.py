"""
chronicle.services.journey_service — Entry Lifecycle Controller
================================================================

Decides whether a contribution is accepted, in which moderation state it
lands, and what follows from it::

    create ──► policy ──► throttle (open, non-owner) ──► persist
                                                        │
                     pending ◄──────────────────────────┴──► approved
                        │   owner-review notice              │  mention notices
                        │                                    │  stats recompute
             approve ◄──┴──► reject
        stats + author notice   author notice

Approved and rejected are terminal.  Terminal errors (Unauthorized,
RateLimited, NotFound, ValidationError) are raised before the entry is
written.  Everything after the write (mention resolution, stats
recomputation) is best-effort: failures are logged and reported on the
result, never raised.

Notifications are returned as :class:`Notice` values for the caller to
dispatch; this module never sends them.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import Engine, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chronicle.constants import (
    APPROVED_TITLE,
    ENTRY_REF_COLLECTION,
    MENTION_TITLE,
    PENDING_REVIEW_TITLE,
    PROJECT_REF_COLLECTION,
    REJECTED_TITLE,
    STALE_REMINDER_BODY,
    as_utc,
    stale_reminder_title,
    utcnow,
)
from chronicle.database.engine import get_session
from chronicle.database.models import (
    EntryStatus,
    JourneyEntry,
    JourneySubscription,
    NotificationKind,
    Project,
)
from chronicle.engine.mentions import extract_mentions
from chronicle.engine.policy import (
    PolicyDecision,
    is_throttled_mode,
    needs_collaborator_check,
    parse_mode,
    resolve_policy,
)
from chronicle.errors import InvalidTransition, NotFound, RateLimited, Unauthorized, ValidationError
from chronicle.schemas import EntryDraft, EntryFilter, EntryUpdate, parse_draft, parse_filter, parse_update
from chronicle.services import stats_service
from chronicle.services.directory_service import get_project, is_collaborator, resolve_user_ids
from chronicle.services.notification_service import Notice
from chronicle.services.throttle import ContributionThrottle

logger = logging.getLogger(__name__)

# Columns an author may not clear to NULL through an edit
_NON_NULLABLE_EDITS = frozenset({
    "type", "title", "content", "tags", "skills_learned", "is_public", "is_milestone",
})


@dataclass(slots=True)
class EntryResult:
    """Outcome of a lifecycle operation.

    ``notices`` must be handed to a dispatcher by the caller.
    ``stats_stale`` is True when the entry was written but the stats
    rollup could not be recomputed; the caller should retry later.
    """

    entry_id: str
    project_id: str
    status: EntryStatus
    notices: list[Notice] = field(default_factory=list)
    stats_stale: bool = False


@dataclass(slots=True)
class StaleCheck:
    stale: bool
    notices: list[Notice] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------
def resolve_contribution_policy(
    session: Session, project: Project, actor_id: str
) -> PolicyDecision:
    """Resolve the policy for *actor_id* on *project*.

    The collaborator lookup only runs for authorized-mode non-owners.
    """
    mode = parse_mode(project.collaboration_mode)
    is_owner = actor_id == project.owner_id
    collaborator = False
    if needs_collaborator_check(mode, is_owner=is_owner):
        collaborator = is_collaborator(session, project.id, actor_id)
    return resolve_policy(mode, is_owner=is_owner, is_collaborator=collaborator)


# ---------------------------------------------------------------------------
# Best-effort follow-ups
# ---------------------------------------------------------------------------
def _refresh_stats(engine: Engine, project_id: str) -> bool:
    """Recompute stats; return False (and log) instead of raising."""
    try:
        stats_service.recompute_stats(engine, project_id)
    except SQLAlchemyError:
        logger.exception(
            "Stats recomputation failed for project %s; rollup is stale", project_id
        )
        return False
    return True


def _mention_notices(
    engine: Engine,
    *,
    content: str,
    title: str,
    entry_id: str,
    author_id: str,
) -> list[Notice]:
    handles = extract_mentions(content)
    if not handles:
        return []
    try:
        with get_session(engine) as session:
            resolved = resolve_user_ids(session, handles)
    except SQLAlchemyError:
        logger.exception("Mention resolution failed for entry %s", entry_id)
        return []

    recipients = sorted({uid for uid in resolved.values() if uid != author_id})
    return [
        Notice(
            recipient_id=uid,
            kind=NotificationKind.COMMENT,
            title=MENTION_TITLE,
            body=title,
            ref_id=entry_id,
            ref_collection=ENTRY_REF_COLLECTION,
            actor_id=author_id,
        )
        for uid in recipients
    ]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------
def create_entry(
    engine: Engine,
    project_id: str,
    actor_id: str,
    draft: EntryDraft | dict,
    *,
    throttle: ContributionThrottle | None = None,
    now: datetime | None = None,
) -> EntryResult:
    """Contribute a journey entry to *project_id* as *actor_id*.

    Raises
    ------
    ValidationError
        Malformed draft.
    NotFound
        Unknown project.
    Unauthorized
        The collaboration mode denies this actor.
    RateLimited
        Open-mode, non-owner actor over the contribution cap.
    """
    draft = parse_draft(draft)
    now = as_utc(now or utcnow())
    throttle = throttle or ContributionThrottle()

    with get_session(engine) as session:
        project = get_project(session, project_id)
        decision = resolve_contribution_policy(session, project, actor_id)
        if not decision.allowed:
            raise Unauthorized(
                f"User {actor_id} may not contribute to project {project_id}",
                details={"mode": project.collaboration_mode},
            )

        mode = parse_mode(project.collaboration_mode)
        if is_throttled_mode(mode, is_owner=decision.is_owner) and throttle.is_rate_limited(
            session, project_id, actor_id, now=now
        ):
            raise RateLimited(
                "Too many contributions, please wait",
                details={
                    "limit": throttle.max_entries,
                    "window_minutes": int(throttle.window.total_seconds() // 60),
                },
            )

        status = decision.status
        approved = status == EntryStatus.APPROVED
        owner_id = project.owner_id
        entry = JourneyEntry(
            project_id=project_id,
            author_id=actor_id,
            type=draft.type.value,
            title=draft.title,
            content=draft.content,
            mood=draft.mood.value if draft.mood else None,
            energy=draft.energy,
            tags=sorted(draft.tags),
            skills_learned=sorted(draft.skills_learned),
            is_public=draft.is_public,
            is_milestone=draft.is_milestone,
            milestone_type=draft.milestone_type.value if draft.milestone_type else None,
            time_spent=draft.time_spent,
            status=status.value,
            # Auto-approval is recorded on the owner's behalf, not the author's.
            approved_by=owner_id if approved else None,
            approved_at=now if approved else None,
            timestamp=now,
            created_at=now,
            updated_at=now,
        )
        session.add(entry)
        session.flush()
        entry_id = entry.id

    logger.info(
        "Journey entry created: id=%s project=%s author=%s status=%s",
        entry_id, project_id, actor_id, status,
    )
    result = EntryResult(entry_id=entry_id, project_id=project_id, status=status)

    if status == EntryStatus.PENDING:
        result.notices.append(Notice(
            recipient_id=owner_id,
            kind=NotificationKind.PROJECT_UPDATE,
            title=PENDING_REVIEW_TITLE,
            body=draft.title,
            ref_id=entry_id,
            ref_collection=ENTRY_REF_COLLECTION,
            actor_id=actor_id,
        ))
    else:
        result.notices.extend(_mention_notices(
            engine,
            content=draft.content,
            title=draft.title,
            entry_id=entry_id,
            author_id=actor_id,
        ))
        result.stats_stale = not _refresh_stats(engine, project_id)

    return result


# ---------------------------------------------------------------------------
# Moderation
# ---------------------------------------------------------------------------
def _moderate(
    engine: Engine,
    entry_id: str,
    approver_id: str,
    new_status: EntryStatus,
    now: datetime | None,
) -> EntryResult:
    now = as_utc(now or utcnow())
    with get_session(engine) as session:
        entry = session.get(JourneyEntry, entry_id)
        if entry is None:
            raise NotFound("JourneyEntry", entry_id)
        project = get_project(session, entry.project_id)
        if approver_id != project.owner_id:
            raise Unauthorized(
                f"Only the project owner may moderate entry {entry_id}"
            )
        if entry.status != EntryStatus.PENDING.value:
            raise InvalidTransition(
                f"Entry {entry_id} is already {entry.status}",
                details={"status": entry.status},
            )

        entry.status = new_status.value
        entry.approved_by = approver_id
        entry.approved_at = now
        entry.updated_at = now
        project_id = entry.project_id
        author_id = entry.author_id
        title = entry.title

    logger.info(
        "Journey entry %s: id=%s project=%s by=%s",
        new_status, entry_id, project_id, approver_id,
    )
    result = EntryResult(
        entry_id=entry_id,
        project_id=project_id,
        status=new_status,
        notices=[Notice(
            recipient_id=author_id,
            kind=NotificationKind.PROJECT_UPDATE,
            title=APPROVED_TITLE if new_status == EntryStatus.APPROVED else REJECTED_TITLE,
            body=title or "",
            ref_id=entry_id,
            ref_collection=ENTRY_REF_COLLECTION,
            actor_id=approver_id,
        )],
    )
    if new_status == EntryStatus.APPROVED:
        result.stats_stale = not _refresh_stats(engine, project_id)
    return result


def approve_entry(
    engine: Engine, entry_id: str, approver_id: str, *, now: datetime | None = None
) -> EntryResult:
    """pending → approved.  Recomputes stats and notifies the author."""
    return _moderate(engine, entry_id, approver_id, EntryStatus.APPROVED, now)


def reject_entry(
    engine: Engine, entry_id: str, approver_id: str, *, now: datetime | None = None
) -> EntryResult:
    """pending → rejected.  Notifies the author; stats are untouched."""
    return _moderate(engine, entry_id, approver_id, EntryStatus.REJECTED, now)


# ---------------------------------------------------------------------------
# Author edits
# ---------------------------------------------------------------------------
def _column_value(value):
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def update_entry(
    engine: Engine,
    entry_id: str,
    editor_id: str,
    changes: EntryUpdate | dict,
    *,
    now: datetime | None = None,
) -> EntryResult:
    """Apply an author's edits.

    Moderation status is left as-is: an approved entry stays approved.
    Stats are recomputed when the edited entry is approved.
    """
    update = parse_update(changes)
    values = update.model_dump(exclude_unset=True)
    cleared = sorted(k for k in _NON_NULLABLE_EDITS if k in values and values[k] is None)
    if cleared:
        raise ValidationError(
            "These fields cannot be cleared", details={"fields": cleared}
        )
    now = as_utc(now or utcnow())

    with get_session(engine) as session:
        entry = session.get(JourneyEntry, entry_id)
        if entry is None:
            raise NotFound("JourneyEntry", entry_id)
        if entry.author_id != editor_id:
            raise Unauthorized(f"Only the author may edit entry {entry_id}")
        for key, value in values.items():
            setattr(entry, key, _column_value(value))
        entry.updated_at = now
        project_id = entry.project_id
        status = EntryStatus(entry.status)

    result = EntryResult(entry_id=entry_id, project_id=project_id, status=status)
    if status == EntryStatus.APPROVED:
        result.stats_stale = not _refresh_stats(engine, project_id)
    return result


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
def search_entries(
    engine: Engine,
    entry_filter: EntryFilter | dict | None = None,
    *,
    text: str | None = None,
    limit: int | None = None,
) -> list[JourneyEntry]:
    """Entries matching *entry_filter* and *text*, newest first.

    Tag and skill filters match entries carrying any of the listed values.
    *text* is a case-insensitive substring match over title, content and
    tags.
    """
    flt = parse_filter(entry_filter)
    stmt = select(JourneyEntry)
    if flt.project_id is not None:
        stmt = stmt.where(JourneyEntry.project_id == flt.project_id)
    if flt.author_id is not None:
        stmt = stmt.where(JourneyEntry.author_id == flt.author_id)
    if flt.type is not None:
        stmt = stmt.where(JourneyEntry.type == flt.type.value)
    if flt.mood is not None:
        stmt = stmt.where(JourneyEntry.mood == flt.mood.value)
    if flt.status is not None:
        stmt = stmt.where(JourneyEntry.status == flt.status.value)
    if flt.is_milestone is not None:
        stmt = stmt.where(JourneyEntry.is_milestone.is_(flt.is_milestone))
    if flt.is_public is not None:
        stmt = stmt.where(JourneyEntry.is_public.is_(flt.is_public))
    if flt.start is not None:
        stmt = stmt.where(JourneyEntry.timestamp >= as_utc(flt.start))
    if flt.end is not None:
        stmt = stmt.where(JourneyEntry.timestamp <= as_utc(flt.end))
    stmt = stmt.order_by(JourneyEntry.timestamp.desc(), JourneyEntry.id.desc())

    with get_session(engine) as session:
        entries = list(session.scalars(stmt).all())

    if flt.tags:
        entries = [e for e in entries if flt.tags.intersection(e.tags or ())]
    if flt.skills_learned:
        entries = [
            e for e in entries if flt.skills_learned.intersection(e.skills_learned or ())
        ]
    if text:
        needle = text.lower()
        entries = [
            e for e in entries
            if needle in (e.title or "").lower()
            or needle in (e.content or "").lower()
            or any(needle in tag.lower() for tag in e.tags or ())
        ]
    if limit is not None:
        entries = entries[:limit]
    return entries


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------
def subscribe(engine: Engine, project_id: str, user_id: str) -> None:
    with get_session(engine) as session:
        get_project(session, project_id)
        if session.get(JourneySubscription, (project_id, user_id)) is None:
            session.add(JourneySubscription(project_id=project_id, user_id=user_id))


def unsubscribe(engine: Engine, project_id: str, user_id: str) -> None:
    with get_session(engine) as session:
        row = session.get(JourneySubscription, (project_id, user_id))
        if row is not None:
            session.delete(row)


def is_subscribed(engine: Engine, project_id: str, user_id: str) -> bool:
    with get_session(engine) as session:
        return session.get(JourneySubscription, (project_id, user_id)) is not None


def get_subscribers(engine: Engine, project_id: str) -> list[str]:
    with get_session(engine) as session:
        return list(session.scalars(
            select(JourneySubscription.user_id)
            .where(JourneySubscription.project_id == project_id)
            .order_by(JourneySubscription.user_id)
        ).all())


# ---------------------------------------------------------------------------
# Stale journey reminder
# ---------------------------------------------------------------------------
def check_stale(
    engine: Engine,
    project_id: str,
    user_id: str | None,
    *,
    stale_after_days: int = 7,
    now: datetime | None = None,
) -> StaleCheck:
    """Report whether the owner's journey has gone quiet.

    A project with no entries, or whose newest entry is older than
    *stale_after_days*, is stale.  Only the owner is checked; the reminder
    notice is addressed to them.
    """
    now = as_utc(now or utcnow())
    with get_session(engine) as session:
        project = get_project(session, project_id)
        if user_id != project.owner_id:
            return StaleCheck(stale=False)
        newest = session.scalar(
            select(func.max(JourneyEntry.timestamp)).where(
                JourneyEntry.project_id == project_id
            )
        )
        owner_id = project.owner_id
        title = project.title

    stale = newest is None or now - as_utc(newest) > timedelta(days=stale_after_days)
    if not stale:
        return StaleCheck(stale=False)
    return StaleCheck(stale=True, notices=[Notice(
        recipient_id=owner_id,
        kind=NotificationKind.PROJECT_UPDATE,
        title=stale_reminder_title(title),
        body=STALE_REMINDER_BODY,
        ref_id=project_id,
        ref_collection=PROJECT_REF_COLLECTION,
        actor_id=None,
    )])

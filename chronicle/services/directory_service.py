"""
chronicle.services.directory_service — Lookups against sibling collections
===========================================================================

Project lookup, collaborator membership, and handle → user id resolution
for mentions.  All functions take an open :class:`Session`.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from chronicle.database.models import Collaborator, Project, User
from chronicle.errors import NotFound


def get_project(session: Session, project_id: str) -> Project:
    """Fetch a project or raise :class:`NotFound`."""
    project = session.get(Project, project_id)
    if project is None:
        raise NotFound("Project", project_id)
    return project


def is_collaborator(session: Session, project_id: str, user_id: str) -> bool:
    row = session.scalar(
        select(Collaborator.id).where(
            Collaborator.project_id == project_id,
            Collaborator.user_id == user_id,
        )
    )
    return row is not None


def resolve_user_ids(session: Session, handles: Iterable[str]) -> dict[str, str]:
    """Map ``@handles`` to user ids by exact username match.

    Handles without a matching user are absent from the result.
    """
    wanted = set(handles)
    if not wanted:
        return {}
    rows = session.execute(
        select(User.username, User.id).where(User.username.in_(wanted))
    ).all()
    resolved: dict[str, str] = {}
    for username, user_id in rows:
        # Usernames are not unique at the schema level; first match wins.
        resolved.setdefault(username, user_id)
    return resolved

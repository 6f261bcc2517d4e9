"""
chronicle.engine.policy — Contribution Policy Resolver
=======================================================

Decides whether an actor may add a journey entry to a project and which
moderation state the entry enters.  Pure calculation; the collaborator
lookup is done by the caller.

    mode        owner  collaborator  outcome
    solo        yes    -             allowed, approved
    solo        no     -             denied
    authorized  yes    -             allowed, approved
    authorized  no     yes           allowed, approved
    authorized  no     no            denied
    open        yes    -             allowed, approved
    open        no     any           allowed, pending
    (unknown)   no     any           allowed, pending
"""

from __future__ import annotations

from dataclasses import dataclass

from chronicle.database.models import CollaborationMode, EntryStatus


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    allowed: bool
    is_owner: bool
    requires_moderation: bool

    @property
    def status(self) -> EntryStatus:
        """Initial status for an entry created under this decision."""
        return EntryStatus.PENDING if self.requires_moderation else EntryStatus.APPROVED


def parse_mode(raw: str | None) -> CollaborationMode | None:
    """Return the known mode for *raw*, or None for missing/unknown values."""
    if raw is None:
        return None
    try:
        return CollaborationMode(raw)
    except ValueError:
        return None


def resolve_policy(
    mode: CollaborationMode | str | None,
    *,
    is_owner: bool,
    is_collaborator: bool = False,
) -> PolicyDecision:
    """Apply the decision table above.

    Owners are always allowed and never moderated.  An unrecognized mode
    falls through to the open-mode non-owner branch.
    """
    if isinstance(mode, str) and not isinstance(mode, CollaborationMode):
        mode = parse_mode(mode)

    if is_owner:
        return PolicyDecision(allowed=True, is_owner=True, requires_moderation=False)

    if mode == CollaborationMode.SOLO:
        return PolicyDecision(allowed=False, is_owner=False, requires_moderation=False)

    if mode == CollaborationMode.AUTHORIZED:
        return PolicyDecision(
            allowed=is_collaborator, is_owner=False, requires_moderation=False
        )

    # OPEN, unknown, or missing
    return PolicyDecision(allowed=True, is_owner=False, requires_moderation=True)


def needs_collaborator_check(mode: CollaborationMode | None, *, is_owner: bool) -> bool:
    """Only authorized-mode non-owners require a membership lookup."""
    return not is_owner and mode == CollaborationMode.AUTHORIZED


def is_throttled_mode(mode: CollaborationMode | None, *, is_owner: bool) -> bool:
    """The contribution throttle applies to open-mode non-owners only."""
    return not is_owner and mode == CollaborationMode.OPEN

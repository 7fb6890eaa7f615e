"""Invitation domain entity, token policy and lifecycle state machine."""

import secrets
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import StrEnum
from uuid import UUID, uuid4


class InvitationStatus(StrEnum):
    """Status of an organization invitation."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"


class InvitationType(StrEnum):
    """Who started the invitation: an admin inviting, or a user asking to join."""

    INVITE = "INVITE"
    REQUEST = "REQUEST"


class InvitationEvent(StrEnum):
    """Events that drive the invitation state machine."""

    VALIDATE = "validate"
    ACCEPT = "accept"
    DECLINE = "decline"


TERMINAL_STATUSES = frozenset(
    {InvitationStatus.ACCEPTED, InvitationStatus.DECLINED, InvitationStatus.EXPIRED}
)

# Default invitation expiry: 7 days
INVITATION_EXPIRY_DAYS = 7


def generate_token() -> str:
    """Return an unguessable URL-safe token (256 bits of entropy).

    Uniqueness is enforced by the unique constraint on the token column.
    """
    return secrets.token_urlsafe(32)


def compute_expiry(now: datetime) -> datetime:
    """Return the expiry instant for an invitation issued at ``now``."""
    return now + timedelta(days=INVITATION_EXPIRY_DAYS)


@dataclass
class Invitation:
    """Domain entity for an organization invitation or access request."""

    organization_id: UUID
    email: str
    role_id: UUID
    token: str
    expires_at: datetime
    invited_by: UUID | None = None
    type: InvitationType = InvitationType.INVITE
    id: UUID = field(default_factory=uuid4)
    status: InvitationStatus = InvitationStatus.PENDING
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the validity window has passed."""
        return (now or datetime.utcnow()) > self.expires_at

    @property
    def is_request(self) -> bool:
        """Whether this row is a self-service access request."""
        return self.type == InvitationType.REQUEST


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of applying an event to an invitation.

    ``changed`` tells the caller the returned invitation carries a new status
    that still has to be persisted.
    """

    valid: bool
    reason: str | None = None
    changed: bool = False


def invalid_reason(status: InvitationStatus) -> str:
    """Human-readable reason an invitation in ``status`` can't be used."""
    if status == InvitationStatus.EXPIRED:
        return "Invitation has expired"
    return f"Invitation has already been {status.value}"


_EVENT_TARGET = {
    InvitationEvent.ACCEPT: InvitationStatus.ACCEPTED,
    InvitationEvent.DECLINE: InvitationStatus.DECLINED,
}


def transition(
    invitation: Invitation,
    event: InvitationEvent,
    now: datetime,
) -> tuple[Invitation, TransitionOutcome]:
    """Apply ``event`` to ``invitation`` at instant ``now``.

    Pure: the input is never mutated and nothing is persisted. Terminal
    states are closed, and a pending invitation past its expiry becomes
    ``expired`` whatever the event.
    """
    if invitation.status in TERMINAL_STATUSES:
        return invitation, TransitionOutcome(valid=False, reason=invalid_reason(invitation.status))

    if invitation.is_expired(now):
        expired = replace(invitation, status=InvitationStatus.EXPIRED, updated_at=now)
        return expired, TransitionOutcome(
            valid=False,
            reason=invalid_reason(InvitationStatus.EXPIRED),
            changed=True,
        )

    target = _EVENT_TARGET.get(event)
    if target is None:
        return invitation, TransitionOutcome(valid=True)

    return replace(invitation, status=target, updated_at=now), TransitionOutcome(
        valid=True, changed=True
    )

"""Invitation repository protocol."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from domain.entities.invitation import Invitation, InvitationStatus


class IInvitationRepository(Protocol):
    """Repository interface for Invitation entities.

    Writes raise ``DuplicateInvitationError`` when the unique token or the
    single-pending-per-email-per-organization constraint is violated, and
    ``InvitationNotFoundError`` when the target row does not exist.
    """

    async def create(self, invitation: Invitation) -> Invitation:
        """Create a new invitation."""
        ...

    async def get_by_id(self, id: UUID) -> Invitation | None:
        """Get an invitation by its primary key."""
        ...

    async def get_by_token(self, token: str) -> Invitation | None:
        """Get an invitation by its token."""
        ...

    async def get_for_organization(self, organization_id: UUID) -> list[Invitation]:
        """Get all invitations for an organization, newest first."""
        ...

    async def get_pending_for_email(self, email: str, now: datetime) -> list[Invitation]:
        """Get pending, unexpired invitations addressed to an email."""
        ...

    async def get_pending_for_organization_email(
        self, organization_id: UUID, email: str
    ) -> Invitation | None:
        """Get the pending invitation for an organization and email, if any."""
        ...

    async def update_status(
        self, id: UUID, status: InvitationStatus, updated_at: datetime | None = None
    ) -> Invitation:
        """Update the status of an invitation."""
        ...

    async def regenerate_token(
        self, id: UUID, token: str, expires_at: datetime, updated_at: datetime | None = None
    ) -> Invitation:
        """Replace token and expiry and force the status back to pending."""
        ...

    async def delete(self, id: UUID) -> None:
        """Hard-delete an invitation."""
        ...

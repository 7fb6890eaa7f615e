"""Invitation service layer with business logic."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

import structlog

from core.exceptions import (
    AlreadyAMemberError,
    AuthorizationError,
    DuplicateInvitationError,
    InvitationEmailMismatchError,
    InvitationInvalidError,
    InvitationNotFoundError,
    OrganizationNotFoundError,
    RoleNotFoundError,
    ValidationError,
)
from domain.entities.invitation import (
    Invitation,
    InvitationEvent,
    InvitationStatus,
    InvitationType,
    TransitionOutcome,
    compute_expiry,
    generate_token,
    invalid_reason,
    transition,
)
from domain.entities.organization import (
    MEMBER_ROLE_NAME,
    Membership,
    Organization,
    Role,
    is_valid_email,
)
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.organization_service import add_user_to_organization, get_or_create_role

logger = structlog.get_logger()


def normalize_email(email: str) -> str:
    """Invitation emails are compared case-insensitively."""
    return email.strip().lower()


@dataclass
class InvitationValidation:
    """Outcome of looking up an invitation token."""

    valid: bool
    invitation: Invitation
    reason: str | None = None
    organization: Organization | None = None
    role: Role | None = None


class InvitationService:
    """Service layer for organization invitation and access request logic.

    ``clock`` returns the current naive-UTC instant and is injectable so
    expiry behaviour can be driven deterministically.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._clock = clock

    async def create_invitation(
        self,
        organization_id: UUID,
        email: str,
        role_id: UUID | None = None,
        invited_by: UUID | None = None,
    ) -> Invitation:
        """Create an invitation to join an organization.

        Args:
            organization_id: The organization to invite to.
            email: The email address to invite.
            role_id: Role granted on acceptance; defaults to the Member role.
            invited_by: The admin sending the invitation.

        Returns:
            The pending invitation, including its token.

        Raises:
            ValidationError: If the email is malformed.
            OrganizationNotFoundError: If the organization does not exist.
            RoleNotFoundError: If ``role_id`` is not a role of the organization.
            AlreadyAMemberError: If the email belongs to an existing member.
            DuplicateInvitationError: If a live pending invitation already exists.
        """
        email = normalize_email(email)
        if not is_valid_email(email):
            raise ValidationError("Invalid email address", field="email")

        now = self._clock()
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get(organization_id)
            if not organization:
                raise OrganizationNotFoundError(str(organization_id))

            role = await self._resolve_role(uow, organization.id, role_id)

            if await uow.organizations.get_member_by_email(organization.id, email):
                raise AlreadyAMemberError(email)

            await self._release_pending_slot(uow, organization.id, email, now)

            invitation = await uow.invitations.create(
                Invitation(
                    organization_id=organization.id,
                    email=email,
                    role_id=role.id,
                    token=generate_token(),
                    expires_at=compute_expiry(now),
                    invited_by=invited_by,
                    created_at=now,
                    updated_at=now,
                )
            )
            await uow.commit()

            logger.info(
                "invitation_created",
                invitation_id=str(invitation.id),
                organization_id=str(organization.id),
                email=email,
                role=role.name,
            )
            return invitation

    async def validate(self, token: str) -> InvitationValidation:
        """Check whether a token can still be used.

        A pending invitation found past its expiry is persisted as expired
        before the result is returned.

        Raises:
            InvitationNotFoundError: If no invitation has this token.
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            invitation = await uow.invitations.get_by_token(token)
            if not invitation:
                raise InvitationNotFoundError()

            checked, outcome = await self._apply(uow, invitation, InvitationEvent.VALIDATE, now)
            if outcome.changed:
                await uow.commit()

            if not outcome.valid:
                return InvitationValidation(valid=False, invitation=checked, reason=outcome.reason)

            return InvitationValidation(
                valid=True,
                invitation=checked,
                organization=await uow.organizations.get(checked.organization_id),
                role=await uow.roles.get(checked.role_id),
            )

    async def accept(
        self,
        token: str,
        user_id: UUID,
        user_email: str,
        display_name: str | None = None,
    ) -> Organization:
        """Accept an invitation and join its organization.

        The membership row and the status change are committed together.

        Raises:
            InvitationNotFoundError: If no invitation has this token.
            AuthorizationError: If the token belongs to an access request.
            InvitationInvalidError: If the invitation is expired or resolved.
            InvitationEmailMismatchError: If the caller's email differs.
            AlreadyAMemberError: If the caller is already a member.
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            invitation = await self._open_for_response(uow, token, user_email, now)

            organization = await uow.organizations.get(invitation.organization_id)
            if not organization:
                raise OrganizationNotFoundError(str(invitation.organization_id))

            await uow.profiles.get_or_create(user_id, user_email, display_name)

            if await uow.organizations.get_member(organization.id, user_id):
                # Already joined by another route: close the invitation anyway
                await self._apply(uow, invitation, InvitationEvent.ACCEPT, now)
                await uow.commit()
                raise AlreadyAMemberError(str(user_id))

            await add_user_to_organization(
                uow, user_id, organization.id, invitation.role_id, joined_at=now
            )
            await self._apply(uow, invitation, InvitationEvent.ACCEPT, now)
            await uow.commit()

            logger.info(
                "invitation_accepted",
                invitation_id=str(invitation.id),
                organization_id=str(organization.id),
                user_id=str(user_id),
            )
            return organization

    async def decline(self, token: str, user_email: str) -> Invitation:
        """Decline an invitation addressed to the caller."""
        now = self._clock()
        async with self._uow_factory() as uow:
            invitation = await self._open_for_response(uow, token, user_email, now)
            declined, _ = await self._apply(uow, invitation, InvitationEvent.DECLINE, now)
            await uow.commit()

            logger.info(
                "invitation_declined",
                invitation_id=str(declined.id),
                organization_id=str(declined.organization_id),
            )
            return declined

    async def resend(self, organization_id: UUID, invitation_id: UUID) -> Invitation:
        """Issue a fresh token and expiry, returning the invitation to pending.

        The previous token stops resolving immediately.

        Raises:
            InvitationNotFoundError: If the invitation is not in this organization.
            InvitationInvalidError: If the invitation was already accepted.
            DuplicateInvitationError: If another live pending invitation holds the slot.
        """
        now = self._clock()
        async with self._uow_factory() as uow:
            invitation = await self._get_in_organization(uow, organization_id, invitation_id)
            if invitation.status == InvitationStatus.ACCEPTED:
                raise InvitationInvalidError(
                    invalid_reason(InvitationStatus.ACCEPTED),
                    InvitationStatus.ACCEPTED.value,
                )

            if invitation.status != InvitationStatus.PENDING:
                await self._release_pending_slot(uow, organization_id, invitation.email, now)

            refreshed = await uow.invitations.regenerate_token(
                invitation.id, generate_token(), compute_expiry(now), now
            )
            await uow.commit()

            logger.info(
                "invitation_resent",
                invitation_id=str(refreshed.id),
                organization_id=str(organization_id),
                previous_status=invitation.status.value,
            )
            return refreshed

    async def cancel(self, organization_id: UUID, invitation_id: UUID) -> None:
        """Hard-delete an invitation in any status."""
        async with self._uow_factory() as uow:
            invitation = await self._get_in_organization(uow, organization_id, invitation_id)
            await uow.invitations.delete(invitation.id)
            await uow.commit()

            logger.info(
                "invitation_cancelled",
                invitation_id=str(invitation.id),
                organization_id=str(organization_id),
            )

    async def list_for_organization(self, organization_id: UUID) -> list[Invitation]:
        """List every invitation of an organization, expiring stale pending ones."""
        now = self._clock()
        async with self._uow_factory() as uow:
            invitations = await uow.invitations.get_for_organization(organization_id)

            checked: list[Invitation] = []
            changed = False
            for invitation in invitations:
                if invitation.status == InvitationStatus.PENDING:
                    invitation, outcome = await self._apply(
                        uow, invitation, InvitationEvent.VALIDATE, now
                    )
                    changed = changed or outcome.changed
                checked.append(invitation)

            if changed:
                await uow.commit()
            return checked

    async def get_pending_for_email(
        self, email: str
    ) -> list[tuple[Invitation, Organization | None]]:
        """Pending, unexpired invitations addressed to an email, with their organizations."""
        async with self._uow_factory() as uow:
            invitations = await uow.invitations.get_pending_for_email(
                normalize_email(email), self._clock()
            )
            organizations = {
                organization.id: organization
                for organization in await uow.organizations.get_many(
                    list({invitation.organization_id for invitation in invitations})
                )
            }
            return [
                (invitation, organizations.get(invitation.organization_id))
                for invitation in invitations
            ]

    async def request_access(
        self,
        organization_id: UUID,
        user_id: UUID,
        user_email: str,
        display_name: str | None = None,
    ) -> Invitation:
        """Record a user's request to join an organization for admin review."""
        email = normalize_email(user_email)
        now = self._clock()
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get(organization_id)
            if not organization:
                raise OrganizationNotFoundError(str(organization_id))

            if await uow.organizations.get_member(organization.id, user_id):
                raise AlreadyAMemberError(str(user_id))

            await self._release_pending_slot(uow, organization.id, email, now)

            role = await get_or_create_role(uow, organization.id, MEMBER_ROLE_NAME)
            await uow.profiles.get_or_create(user_id, email, display_name)

            request = await uow.invitations.create(
                Invitation(
                    organization_id=organization.id,
                    email=email,
                    role_id=role.id,
                    token=generate_token(),
                    expires_at=compute_expiry(now),
                    type=InvitationType.REQUEST,
                    created_at=now,
                    updated_at=now,
                )
            )
            await uow.commit()

            logger.info(
                "access_requested",
                invitation_id=str(request.id),
                organization_id=str(organization.id),
                user_id=str(user_id),
            )
            return request

    async def approve_request(self, organization_id: UUID, invitation_id: UUID) -> Membership:
        """Approve a pending access request, adding the requester as a member."""
        now = self._clock()
        async with self._uow_factory() as uow:
            request = await self._open_request(uow, organization_id, invitation_id, now)

            requester = await uow.profiles.get_by_email(request.email)
            if not requester:
                raise ValidationError("The requesting user no longer exists")

            if await uow.organizations.get_member(organization_id, requester.id):
                await self._apply(uow, request, InvitationEvent.ACCEPT, now)
                await uow.commit()
                raise AlreadyAMemberError(str(requester.id))

            membership = await add_user_to_organization(
                uow, requester.id, organization_id, request.role_id, joined_at=now
            )
            await self._apply(uow, request, InvitationEvent.ACCEPT, now)
            await uow.commit()

            logger.info(
                "invitation_accepted",
                invitation_id=str(request.id),
                organization_id=str(organization_id),
                user_id=str(requester.id),
                type=InvitationType.REQUEST.value,
            )
            return membership

    async def reject_request(self, organization_id: UUID, invitation_id: UUID) -> Invitation:
        """Reject a pending access request."""
        now = self._clock()
        async with self._uow_factory() as uow:
            request = await self._open_request(uow, organization_id, invitation_id, now)
            declined, _ = await self._apply(uow, request, InvitationEvent.DECLINE, now)
            await uow.commit()

            logger.info(
                "invitation_declined",
                invitation_id=str(declined.id),
                organization_id=str(organization_id),
                type=InvitationType.REQUEST.value,
            )
            return declined

    # --- Internal helpers ---

    async def _apply(
        self,
        uow: IUnitOfWork,
        invitation: Invitation,
        event: InvitationEvent,
        now: datetime,
    ) -> tuple[Invitation, TransitionOutcome]:
        """Run the state machine and persist a status change if one happened."""
        updated, outcome = transition(invitation, event, now)
        if outcome.changed:
            updated = await uow.invitations.update_status(
                updated.id, updated.status, updated.updated_at
            )
            if updated.status == InvitationStatus.EXPIRED:
                logger.info(
                    "invitation_expired",
                    invitation_id=str(updated.id),
                    organization_id=str(updated.organization_id),
                )
        return updated, outcome

    async def _require_usable(
        self, uow: IUnitOfWork, invitation: Invitation, now: datetime
    ) -> Invitation:
        """Validate a pending invitation, committing a lazy expiry before failing."""
        checked, outcome = await self._apply(uow, invitation, InvitationEvent.VALIDATE, now)
        if not outcome.valid:
            if outcome.changed:
                await uow.commit()
            raise InvitationInvalidError(outcome.reason or "", checked.status.value)
        return checked

    async def _open_for_response(
        self, uow: IUnitOfWork, token: str, user_email: str, now: datetime
    ) -> Invitation:
        invitation = await uow.invitations.get_by_token(token)
        if not invitation:
            raise InvitationNotFoundError()
        if invitation.is_request:
            raise AuthorizationError("Access requests are resolved by an organization admin")

        invitation = await self._require_usable(uow, invitation, now)
        if normalize_email(user_email) != normalize_email(invitation.email):
            raise InvitationEmailMismatchError()
        return invitation

    async def _open_request(
        self, uow: IUnitOfWork, organization_id: UUID, invitation_id: UUID, now: datetime
    ) -> Invitation:
        request = await self._get_in_organization(uow, organization_id, invitation_id)
        if not request.is_request:
            raise ValidationError("Only access requests can be approved or rejected")
        return await self._require_usable(uow, request, now)

    async def _get_in_organization(
        self, uow: IUnitOfWork, organization_id: UUID, invitation_id: UUID
    ) -> Invitation:
        invitation = await uow.invitations.get_by_id(invitation_id)
        if not invitation or invitation.organization_id != organization_id:
            raise InvitationNotFoundError(str(invitation_id))
        return invitation

    async def _release_pending_slot(
        self, uow: IUnitOfWork, organization_id: UUID, email: str, now: datetime
    ) -> None:
        """Expire a stale pending row for the email, or refuse if it is still live."""
        existing = await uow.invitations.get_pending_for_organization_email(organization_id, email)
        if not existing:
            return
        _, outcome = await self._apply(uow, existing, InvitationEvent.VALIDATE, now)
        if outcome.valid:
            raise DuplicateInvitationError(email)

    async def _resolve_role(
        self, uow: IUnitOfWork, organization_id: UUID, role_id: UUID | None
    ) -> Role:
        if role_id is None:
            return await get_or_create_role(uow, organization_id, MEMBER_ROLE_NAME)
        role = await uow.roles.get(role_id)
        if not role or role.organization_id != organization_id:
            raise RoleNotFoundError(str(role_id))
        return role

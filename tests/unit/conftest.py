"""Shared fixtures for unit tests."""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.invitation import (
    INVITATION_EXPIRY_DAYS,
    Invitation,
    InvitationStatus,
    InvitationType,
)
from domain.entities.organization import (
    ADMIN_PERMISSIONS,
    ADMIN_ROLE_NAME,
    MEMBER_PERMISSIONS,
    MEMBER_ROLE_NAME,
    Organization,
    Role,
)
from domain.entities.profile import Profile

NOW = datetime(2026, 3, 1, 12, 0, 0)


def _echo(value: Any) -> Any:
    return value


class FakeUnitOfWork:
    """Fake Unit of Work with repository mocks for unit testing.

    Lookups return nothing and writes echo their argument unless a test
    configures otherwise.
    """

    def __init__(self) -> None:
        self.organizations = AsyncMock()
        self.roles = AsyncMock()
        self.invitations = AsyncMock()
        self.profiles = AsyncMock()
        self.tracked: dict[UUID, Invitation] = {}
        self.committed = False
        self.rolled_back = False

        for name in ("get", "get_by_slug", "get_by_domain", "get_member", "get_member_by_email"):
            getattr(self.organizations, name).return_value = None
        self.organizations.get_many.return_value = []
        self.organizations.get_members.return_value = []
        self.organizations.get_all_for_user.return_value = []
        self.organizations.create.side_effect = _echo
        self.organizations.update.side_effect = _echo
        self.organizations.add_member.side_effect = _echo

        self.roles.get.return_value = None
        self.roles.get_by_name.return_value = None
        self.roles.get_for_organization.return_value = []
        self.roles.create.side_effect = _echo

        for name in ("get_by_id", "get_by_token", "get_pending_for_organization_email"):
            getattr(self.invitations, name).return_value = None
        self.invitations.get_for_organization.return_value = []
        self.invitations.get_pending_for_email.return_value = []
        self.invitations.create.side_effect = _echo

        self.profiles.get.return_value = None
        self.profiles.get_by_email.return_value = None
        self.profiles.update.side_effect = _echo
        self.profiles.get_or_create.side_effect = lambda id, email, display_name=None: Profile(
            id=id, email=email, display_name=display_name
        )

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def track_invitation(uow: FakeUnitOfWork, invitation: Invitation) -> None:
    """Serve ``invitation`` from the mocked store and apply writes to it in place.

    Writes are routed by id, so several invitations can be tracked at once;
    lookups by token or id answer with the most recently tracked one.
    """
    uow.tracked[invitation.id] = invitation
    uow.invitations.get_by_token.return_value = invitation
    uow.invitations.get_by_id.return_value = invitation

    def update_status(
        id: UUID, status: InvitationStatus, updated_at: datetime | None = None
    ) -> Invitation:
        target = uow.tracked[id]
        target.status = status
        if updated_at is not None:
            target.updated_at = updated_at
        return target

    def regenerate_token(
        id: UUID, token: str, expires_at: datetime, updated_at: datetime | None = None
    ) -> Invitation:
        target = uow.tracked[id]
        target.token = token
        target.expires_at = expires_at
        target.status = InvitationStatus.PENDING
        if updated_at is not None:
            target.updated_at = updated_at
        return target

    uow.invitations.update_status.side_effect = update_status
    uow.invitations.regenerate_token.side_effect = regenerate_token


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def organization() -> Organization:
    return Organization(name="Acme", slug="acme", domain="acme.com")


@pytest.fixture
def admin_role(organization: Organization) -> Role:
    return Role(
        organization_id=organization.id,
        name=ADMIN_ROLE_NAME,
        permissions=list(ADMIN_PERMISSIONS),
    )


@pytest.fixture
def member_role(organization: Organization) -> Role:
    return Role(
        organization_id=organization.id,
        name=MEMBER_ROLE_NAME,
        permissions=list(MEMBER_PERMISSIONS),
    )


def make_invitation(
    organization: Organization,
    role: Role,
    email: str = "a@x.com",
    created_at: datetime = NOW,
    **overrides: Any,
) -> Invitation:
    """A pending invitation issued at ``created_at`` with the default window."""
    invitation = Invitation(
        organization_id=organization.id,
        email=email,
        role_id=role.id,
        token=f"token-{uuid4().hex}",
        expires_at=created_at + timedelta(days=INVITATION_EXPIRY_DAYS),
        type=InvitationType.INVITE,
        created_at=created_at,
        updated_at=created_at,
    )
    return replace(invitation, **overrides)

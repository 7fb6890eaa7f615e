"""Organization and membership repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.organization import Membership, Organization


class IOrganizationRepository(Protocol):
    """Repository interface for Organization entities and their memberships."""

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        ...

    async def get_many(self, ids: list[UUID]) -> list[Organization]:
        """Get several organizations by ID in one query."""
        ...

    async def get_by_slug(self, slug: str) -> Organization | None:
        """Get an organization by slug."""
        ...

    async def get_by_domain(self, domain: str) -> Organization | None:
        """Get an organization by its email domain."""
        ...

    async def get_all_for_user(self, user_id: UUID) -> list[tuple[Organization, Membership]]:
        """Get every organization a user belongs to, with the membership row."""
        ...

    async def create(self, organization: Organization) -> Organization:
        """Create a new organization."""
        ...

    async def update(self, organization: Organization) -> Organization:
        """Update an existing organization."""
        ...

    async def get_member(self, organization_id: UUID, user_id: UUID) -> Membership | None:
        """Get a membership by organization and user IDs."""
        ...

    async def get_member_by_email(self, organization_id: UUID, email: str) -> Membership | None:
        """Get a membership by the member's profile email."""
        ...

    async def get_members(self, organization_id: UUID) -> list[Membership]:
        """Get all memberships of an organization."""
        ...

    async def add_member(self, membership: Membership) -> Membership:
        """Add a user to an organization."""
        ...

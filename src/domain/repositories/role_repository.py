"""Role repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.organization import Role


class IRoleRepository(Protocol):
    """Repository interface for organization-scoped roles."""

    async def get(self, id: UUID) -> Role | None:
        """Get a role by ID."""
        ...

    async def get_by_name(self, organization_id: UUID, name: str) -> Role | None:
        """Get a role by its name within an organization."""
        ...

    async def get_for_organization(self, organization_id: UUID) -> list[Role]:
        """Get all roles defined for an organization."""
        ...

    async def create(self, role: Role) -> Role:
        """Create a new role."""
        ...
